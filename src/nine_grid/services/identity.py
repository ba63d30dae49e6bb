"""Identity session holder for email/password authentication."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from nine_grid.domain.auth import AuthResult, AuthSession, Principal, SessionChange
from nine_grid.errors import AuthRequired
from nine_grid.services.log_sink import LogSink, error_details

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

AuthCallback = Callable[[str, AuthSession | None], None]


class IdentityProvider(Protocol):
    """Interface for the hosted authentication service."""

    def get_session(self) -> AuthSession | None:
        """Return the persisted session, if any."""

    def sign_up(self, email: str, password: str) -> Principal | None:
        """Register a new user and return it."""

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """Authenticate and return the new session."""

    def sign_out(self) -> None:
        """End the current session."""

    def on_auth_state_change(self, callback: AuthCallback) -> Callable[[], None]:
        """Register a callback for auth events and return an unsubscribe hook."""


class SessionSubscription:
    """Async iterator over session changes; ``close()`` ends it."""

    def __init__(self, owner: "IdentityService") -> None:
        self._owner = owner
        self._queue: asyncio.Queue[SessionChange | None] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, change: SessionChange) -> None:
        if not self._closed:
            self._queue.put_nowait(change)

    def close(self) -> None:
        """Unsubscribe and wake any pending iteration."""
        if self._closed:
            return
        self._closed = True
        self._owner._detach(self)
        self._queue.put_nowait(None)

    def __aiter__(self) -> "SessionSubscription":
        return self

    async def __anext__(self) -> SessionChange:
        change = await self._queue.get()
        if change is None:
            raise StopAsyncIteration
        return change


@dataclass
class IdentityService:
    """Holds the current session and exposes sign-in, sign-up and sign-out."""

    provider: IdentityProvider
    log_sink: LogSink
    _session: AuthSession | None = field(default=None, init=False)
    _loading: bool = field(default=True, init=False)
    _subscriptions: list[SessionSubscription] = field(
        default_factory=list, init=False
    )
    _unsubscribe: Callable[[], None] | None = field(default=None, init=False)
    _loop: asyncio.AbstractEventLoop | None = field(default=None, init=False)

    @property
    def session(self) -> AuthSession | None:
        return self._session

    @property
    def principal(self) -> Principal | None:
        return self._session.principal if self._session else None

    @property
    def loading(self) -> bool:
        """True until the startup restore check has finished."""
        return self._loading

    def require_session(self) -> AuthSession:
        """Return the active session or raise AuthRequired."""
        if self._session is None:
            raise AuthRequired("No active session")
        return self._session

    async def start(self) -> None:
        """Listen for provider auth events and restore any persisted session."""
        self._loop = asyncio.get_running_loop()
        if self._unsubscribe is None:
            self._unsubscribe = self.provider.on_auth_state_change(self._on_event)
        self._loading = True
        self.log_sink.info("Initializing authentication state")
        try:
            session = await asyncio.to_thread(self.provider.get_session)
        except Exception as exc:
            logger.exception("Failed to restore session")
            self.log_sink.error("Error initializing auth state", error_details(exc))
        else:
            if session is None:
                self.log_sink.info("No active session found")
            else:
                self._apply("INITIAL_SESSION", session)
                self.log_sink.success(
                    "User session restored",
                    {
                        "user_id": session.principal.id,
                        "email": session.principal.email,
                    },
                )
        finally:
            self._loading = False

    async def stop(self) -> None:
        """Stop listening to the provider and end every subscription."""
        if self._unsubscribe is not None:
            try:
                self._unsubscribe()
            except Exception:
                logger.exception("Failed to unsubscribe from auth events")
            self._unsubscribe = None
        for subscription in list(self._subscriptions):
            subscription.close()

    def subscribe(self) -> SessionSubscription:
        """Return a new subscription to session changes."""
        subscription = SessionSubscription(self)
        self._subscriptions.append(subscription)
        return subscription

    async def sign_up(self, email: str, password: str) -> AuthResult:
        """Register a user; failures are reported in the result."""
        invalid = _validate_credentials(email, password)
        if invalid:
            self.log_sink.warning("Sign up rejected", {"email": email, "reason": invalid})
            return AuthResult(success=False, error=invalid)
        self.log_sink.info("Attempting to sign up user", {"email": email})
        try:
            principal = await asyncio.to_thread(self.provider.sign_up, email, password)
        except Exception as exc:
            logger.exception("Sign up failed", extra={"email": email})
            self.log_sink.error("Sign up failed", error_details(exc, email=email))
            return AuthResult(
                success=False, error="Sign up failed. Please try again."
            )
        self.log_sink.success(
            "Sign up successful",
            {
                "user_id": principal.id if principal else None,
                "email": principal.email if principal else email,
            },
        )
        return AuthResult(success=True)

    async def sign_in(self, email: str, password: str) -> AuthResult:
        """Authenticate a user; failures are reported in the result."""
        invalid = _validate_credentials(email, password)
        if invalid:
            self.log_sink.warning("Sign in rejected", {"email": email, "reason": invalid})
            return AuthResult(success=False, error=invalid)
        self.log_sink.info("Attempting to sign in user", {"email": email})
        try:
            session = await asyncio.to_thread(
                self.provider.sign_in_with_password, email, password
            )
        except Exception as exc:
            logger.exception("Sign in failed", extra={"email": email})
            self.log_sink.error("Sign in failed", error_details(exc, email=email))
            return AuthResult(success=False, error="Invalid email or password.")
        self._apply("SIGNED_IN", session)
        self.log_sink.success(
            "Sign in successful",
            {"user_id": session.principal.id, "email": session.principal.email},
        )
        return AuthResult(success=True)

    async def sign_out(self) -> None:
        """End the session; provider failures are only logged."""
        self.log_sink.info("Signing out user")
        try:
            await asyncio.to_thread(self.provider.sign_out)
        except Exception as exc:
            logger.exception("Sign out failed")
            self.log_sink.error("Error signing out", error_details(exc))
        else:
            self.log_sink.success("User signed out successfully")
        self._apply("SIGNED_OUT", None)

    def _on_event(self, event: str, session: AuthSession | None) -> None:
        """Receive a provider event on whichever thread raised it."""
        loop = self._loop
        if loop is None or loop.is_closed():
            self._apply(event, session)
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self._apply(event, session)
        else:
            loop.call_soon_threadsafe(self._apply, event, session)

    def _apply(self, event: str, session: AuthSession | None) -> None:
        previous = self._session
        if session == previous:
            return
        self._session = session
        self.log_sink.info(f"Auth state changed: {event}")
        change = SessionChange(event=event, previous=previous, current=session)
        for subscription in list(self._subscriptions):
            subscription.publish(change)

    def _detach(self, subscription: SessionSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)


def _validate_credentials(email: str, password: str) -> str | None:
    """Return a user-facing problem with the credentials, if any."""
    if not email or "@" not in email:
        return "Please enter a valid email address."
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
    return None
