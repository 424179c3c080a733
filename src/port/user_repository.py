from datetime import datetime
from typing import Protocol

from domain.model.user import AuthProvider, User, UserCredentials


class UserRepository(Protocol):
    """Protocol defining the interface for user data access.

    Two views are exposed: `User` (public) and `UserCredentials`
    (privileged, includes the password hash and reset fields).

    Writes raise UniqueViolationError when email or (provider, provider_id)
    collides with an existing record, SchemaViolationError when the store
    rejects the document, and StorageError for any other store failure.
    """

    async def create(
        self,
        email: str,
        password_hash: str | None = None,
        provider: AuthProvider = AuthProvider.LOCAL,
        provider_id: str | None = None,
        display_name: str | None = None,
        avatar: str | None = None,
    ) -> User:
        """Insert a new user and return its public view."""
        ...

    # ── public view ──────────────────────────────────────────

    async def get_by_id(self, user_id: str) -> User | None: ...

    async def get_by_email(self, email: str) -> User | None: ...

    async def get_by_provider(self, provider: AuthProvider, provider_id: str) -> User | None: ...

    # ── privileged view ──────────────────────────────────────

    async def get_credentials_by_email(self, email: str) -> UserCredentials | None: ...

    async def get_credentials_by_reset_token(
        self, token_hash: str, now: datetime,
    ) -> UserCredentials | None:
        """Find the user whose reset token hash matches and has not expired at `now`."""
        ...

    async def save_reset_request(
        self,
        user_id: str,
        token_hash: str,
        expires_at: datetime,
        attempts: int,
        requested_at: datetime,
    ) -> bool:
        """Store a pending reset, overwriting any previous one. Return True if a user was updated."""
        ...

    async def complete_password_reset(
        self, user_id: str, token_hash: str, password_hash: str,
    ) -> bool:
        """Set the new password and clear all reset fields in one write.

        Only applies while `token_hash` is still the stored token.
        Return False if it was already consumed or replaced.
        """
        ...
