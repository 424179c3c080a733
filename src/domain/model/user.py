from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class AuthProvider(str, Enum):
    """Sign-in method that owns an account."""
    LOCAL = 'local'
    GOOGLE = 'google'
    GITHUB = 'github'


@dataclass
class User:
    """Domain model representing a user (public view).

    Never carries the password hash or any password-reset field.
    """
    id: str
    email: str
    created_at: datetime
    updated_at: datetime
    provider: AuthProvider = AuthProvider.LOCAL
    provider_id: str | None = None
    display_name: str | None = None
    avatar: str | None = None


@dataclass
class PasswordResetState:
    """Password-reset bookkeeping stored on the user record."""
    token_hash: str | None = None
    expires_at: datetime | None = None
    attempts: int = 0
    last_requested_at: datetime | None = None


@dataclass
class UserCredentials:
    """Privileged view of a user: public fields plus secrets.

    Only the auth services read this view. It must never leave the
    service layer.
    """
    user: User
    password_hash: str | None = None
    reset: PasswordResetState = field(default_factory=PasswordResetState)

    @property
    def is_local(self) -> bool:
        return self.user.provider == AuthProvider.LOCAL


@dataclass(frozen=True)
class OAuthProfile:
    """Verified identity returned by an OAuth provider."""
    provider: AuthProvider
    provider_id: str
    email: str
    display_name: str | None = None
    avatar: str | None = None
