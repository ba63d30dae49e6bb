"""Supabase-backed identity provider."""

from collections.abc import Callable
from dataclasses import dataclass

from supabase import Client

from nine_grid.domain.auth import AuthSession, Principal
from nine_grid.services.identity import AuthCallback, IdentityProvider


@dataclass
class SupabaseIdentityProvider(IdentityProvider):
    """Supabase Auth implementation for email/password sessions."""

    client: Client

    def get_session(self) -> AuthSession | None:
        """Return the persisted session, if any."""
        return _to_auth_session(self.client.auth.get_session())

    def sign_up(self, email: str, password: str) -> Principal | None:
        """Register a new user."""
        response = self.client.auth.sign_up({"email": email, "password": password})
        if response.user is None:
            return None
        return _to_principal(response.user)

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """Authenticate with email and password."""
        response = self.client.auth.sign_in_with_password(
            {"email": email, "password": password}
        )
        session = _to_auth_session(response.session)
        if session is None:
            raise RuntimeError("Sign in returned no session")
        return session

    def sign_out(self) -> None:
        """End the current session."""
        self.client.auth.sign_out()

    def on_auth_state_change(self, callback: AuthCallback) -> Callable[[], None]:
        """Forward Supabase auth events as domain sessions."""

        def forward(event, session) -> None:  # type: ignore[no-untyped-def]
            callback(str(event), _to_auth_session(session))

        subscription = self.client.auth.on_auth_state_change(forward)
        return subscription.unsubscribe


def _to_principal(user) -> Principal:  # type: ignore[no-untyped-def]
    return Principal(id=str(user.id), email=user.email)


def _to_auth_session(session) -> AuthSession | None:  # type: ignore[no-untyped-def]
    if session is None or session.user is None:
        return None
    return AuthSession(
        principal=_to_principal(session.user),
        access_token=session.access_token,
    )
