"""In-memory implementation of UserRepository for testing."""

import copy
import uuid
from datetime import datetime, timezone

from domain.model.errors import UniqueViolationError
from domain.model.user import AuthProvider, PasswordResetState, User, UserCredentials


class FakeUserRepository:
    def __init__(self):
        self.store: dict[str, UserCredentials] = {}

    def _check_unique(self, email: str, provider: AuthProvider, provider_id: str | None) -> None:
        for record in self.store.values():
            if record.user.email == email:
                raise UniqueViolationError(f"duplicate email: {email}")
            if (
                provider_id is not None
                and record.user.provider == provider
                and record.user.provider_id == provider_id
            ):
                raise UniqueViolationError(f"duplicate provider id: {provider.value}/{provider_id}")

    # ── write operations ─────────────────────────────────────

    async def create(
        self,
        email: str,
        password_hash: str | None = None,
        provider: AuthProvider = AuthProvider.LOCAL,
        provider_id: str | None = None,
        display_name: str | None = None,
        avatar: str | None = None,
    ) -> User:
        self._check_unique(email, provider, provider_id)

        now = datetime.now(timezone.utc)
        user = User(
            id=uuid.uuid4().hex,
            email=email,
            created_at=now,
            updated_at=now,
            provider=provider,
            provider_id=provider_id,
            display_name=display_name,
            avatar=avatar,
        )
        self.store[user.id] = UserCredentials(user=user, password_hash=password_hash)
        return copy.deepcopy(user)

    async def save_reset_request(
        self,
        user_id: str,
        token_hash: str,
        expires_at: datetime,
        attempts: int,
        requested_at: datetime,
    ) -> bool:
        record = self.store.get(user_id)
        if not record:
            return False

        record.reset = PasswordResetState(
            token_hash=token_hash,
            expires_at=expires_at,
            attempts=attempts,
            last_requested_at=requested_at,
        )
        record.user.updated_at = datetime.now(timezone.utc)
        return True

    async def complete_password_reset(self, user_id: str, token_hash: str, password_hash: str) -> bool:
        record = self.store.get(user_id)
        if not record or record.reset.token_hash != token_hash:
            return False

        record.password_hash = password_hash
        record.reset = PasswordResetState(
            token_hash=None,
            expires_at=None,
            attempts=0,
            last_requested_at=record.reset.last_requested_at,
        )
        record.user.updated_at = datetime.now(timezone.utc)
        return True

    # ── read operations ──────────────────────────────────────

    async def get_by_id(self, user_id: str) -> User | None:
        record = self.store.get(user_id)
        return copy.deepcopy(record.user) if record else None

    async def get_by_email(self, email: str) -> User | None:
        record = await self.get_credentials_by_email(email)
        return record.user if record else None

    async def get_by_provider(self, provider: AuthProvider, provider_id: str) -> User | None:
        for record in self.store.values():
            if record.user.provider == provider and record.user.provider_id == provider_id:
                return copy.deepcopy(record.user)
        return None

    async def get_credentials_by_email(self, email: str) -> UserCredentials | None:
        for record in self.store.values():
            if record.user.email == email:
                return copy.deepcopy(record)
        return None

    async def get_credentials_by_reset_token(self, token_hash: str, now: datetime) -> UserCredentials | None:
        for record in self.store.values():
            reset = record.reset
            if reset.token_hash == token_hash and reset.expires_at is not None and reset.expires_at > now:
                return copy.deepcopy(record)
        return None
