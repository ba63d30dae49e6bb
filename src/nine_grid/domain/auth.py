"""Domain models for identity sessions."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Principal:
    """The authenticated user."""

    id: str
    email: str | None


@dataclass(frozen=True)
class AuthSession:
    """An authenticated session held in memory."""

    principal: Principal
    access_token: str


@dataclass(frozen=True)
class SessionChange:
    """A replacement of the held session announced by the provider."""

    event: str
    previous: AuthSession | None
    current: AuthSession | None

    @property
    def signed_in(self) -> bool:
        """Return True for an anonymous-to-authenticated transition."""
        return self.previous is None and self.current is not None


@dataclass(frozen=True)
class AuthResult:
    """Uniform outcome of sign-up and sign-in."""

    success: bool
    error: str | None = None
