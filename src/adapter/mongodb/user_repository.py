"""MongoDB implementation of UserRepository."""

import uuid
from datetime import datetime, timezone
from logging import getLogger

from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError, WriteError

from adapter.mongodb.connection import USERS_COLLECTION_NAME
from domain.model.errors import SchemaViolationError, StorageError, UniqueViolationError
from domain.model.user import AuthProvider, PasswordResetState, User, UserCredentials

logger = getLogger(__name__)

# MongoDB server error code for a document rejected by collection validation
DOCUMENT_VALIDATION_FAILURE = 121

_SECRET_FIELDS = (
    'password_hash',
    'reset_password_token',
    'reset_password_expires',
    'reset_password_attempts',
    'last_reset_password_request',
)
_PUBLIC_PROJECTION = {name: 0 for name in _SECRET_FIELDS}


class MongoUserRepository:
    def __init__(self, db: AsyncDatabase):
        self.collection = db[USERS_COLLECTION_NAME]

    async def ensure_indexes(self) -> bool:
        """Create indexes for users collection."""
        from adapter.mongodb.indexes import create_index_safe

        try:
            await create_index_safe(self.collection, [('email', 1)], 'idx_users_email', unique=True)
            await create_index_safe(
                self.collection,
                [('provider', 1), ('provider_id', 1)],
                'idx_users_provider_identity',
                unique=True,
                partialFilterExpression={'provider_id': {'$type': 'string'}},
            )
            await create_index_safe(
                self.collection,
                [('reset_password_token', 1)],
                'idx_users_reset_token',
                sparse=True,
            )
            return True
        except Exception as e:
            logger.error("Failed to create users indexes", extra={"error": str(e)})
            return False

    # ── document mapping ─────────────────────────────────────

    def _to_domain(self, doc: dict) -> User:
        """Convert MongoDB document to the public User view."""
        return User(
            id=str(doc['_id']),
            email=doc['email'],
            created_at=doc['created_at'],
            updated_at=doc['updated_at'],
            provider=AuthProvider(doc.get('provider', AuthProvider.LOCAL.value)),
            provider_id=doc.get('provider_id'),
            display_name=doc.get('display_name'),
            avatar=doc.get('avatar'),
        )

    def _to_credentials(self, doc: dict) -> UserCredentials:
        """Convert MongoDB document to the privileged UserCredentials view."""
        return UserCredentials(
            user=self._to_domain(doc),
            password_hash=doc.get('password_hash'),
            reset=PasswordResetState(
                token_hash=doc.get('reset_password_token'),
                expires_at=doc.get('reset_password_expires'),
                attempts=doc.get('reset_password_attempts') or 0,
                last_requested_at=doc.get('last_reset_password_request'),
            ),
        )

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
        """Create a new user and return the User object."""
        now = datetime.now(timezone.utc)
        user_doc = {
            '_id': uuid.uuid4().hex,
            'email': email,
            'provider': provider.value,
            'created_at': now,
            'updated_at': now,
            'reset_password_attempts': 0,
        }
        # Absent rather than null so the partial (provider, provider_id) index skips local users
        optional = {
            'password_hash': password_hash,
            'provider_id': provider_id,
            'display_name': display_name,
            'avatar': avatar,
        }
        user_doc.update({k: v for k, v in optional.items() if v is not None})

        try:
            await self.collection.insert_one(user_doc)
        except DuplicateKeyError as e:
            logger.warning(
                "User creation failed: duplicate key",
                extra={"email": email, "provider": provider.value},
            )
            raise UniqueViolationError(str(e)) from e
        except WriteError as e:
            if e.code == DOCUMENT_VALIDATION_FAILURE:
                logger.warning("User creation failed: document validation", extra={"email": email})
                raise SchemaViolationError(str(e)) from e
            logger.error("Failed to create user", extra={"email": email, "error": str(e)})
            raise StorageError("Failed to create user") from e
        except PyMongoError as e:
            logger.error("Failed to create user", extra={"email": email, "error": str(e)})
            raise StorageError("Failed to create user") from e

        user = self._to_domain(user_doc)
        logger.info("User created", extra={"userId": user.id, "provider": provider.value})
        return user

    async def save_reset_request(
        self,
        user_id: str,
        token_hash: str,
        expires_at: datetime,
        attempts: int,
        requested_at: datetime,
    ) -> bool:
        try:
            result = await self.collection.update_one(
                {'_id': user_id},
                {'$set': {
                    'reset_password_token': token_hash,
                    'reset_password_expires': expires_at,
                    'reset_password_attempts': attempts,
                    'last_reset_password_request': requested_at,
                    'updated_at': datetime.now(timezone.utc),
                }},
            )
        except PyMongoError as e:
            logger.error("Failed to save reset request", extra={"userId": user_id, "error": str(e)})
            raise StorageError("Failed to save reset request") from e
        return result.matched_count > 0

    async def complete_password_reset(self, user_id: str, token_hash: str, password_hash: str) -> bool:
        try:
            result = await self.collection.update_one(
                {'_id': user_id, 'reset_password_token': token_hash},
                {'$set': {
                    'password_hash': password_hash,
                    'reset_password_token': None,
                    'reset_password_expires': None,
                    'reset_password_attempts': 0,
                    'updated_at': datetime.now(timezone.utc),
                }},
            )
        except PyMongoError as e:
            logger.error("Failed to complete password reset", extra={"userId": user_id, "error": str(e)})
            raise StorageError("Failed to complete password reset") from e
        return result.matched_count > 0

    # ── read operations ──────────────────────────────────────

    async def _find_one(self, query: dict, projection: dict | None, log_extra: dict) -> dict | None:
        try:
            return await self.collection.find_one(query, projection)
        except PyMongoError as e:
            logger.error("Failed to query users", extra={**log_extra, "error": str(e)})
            raise StorageError("Failed to query users") from e

    async def get_by_id(self, user_id: str) -> User | None:
        doc = await self._find_one({'_id': user_id}, _PUBLIC_PROJECTION, {"userId": user_id})
        return self._to_domain(doc) if doc else None

    async def get_by_email(self, email: str) -> User | None:
        doc = await self._find_one({'email': email}, _PUBLIC_PROJECTION, {"email": email})
        return self._to_domain(doc) if doc else None

    async def get_by_provider(self, provider: AuthProvider, provider_id: str) -> User | None:
        doc = await self._find_one(
            {'provider': provider.value, 'provider_id': provider_id},
            _PUBLIC_PROJECTION,
            {"provider": provider.value},
        )
        return self._to_domain(doc) if doc else None

    async def get_credentials_by_email(self, email: str) -> UserCredentials | None:
        doc = await self._find_one({'email': email}, None, {"email": email})
        return self._to_credentials(doc) if doc else None

    async def get_credentials_by_reset_token(self, token_hash: str, now: datetime) -> UserCredentials | None:
        doc = await self._find_one(
            {'reset_password_token': token_hash, 'reset_password_expires': {'$gt': now}},
            None,
            {},
        )
        return self._to_credentials(doc) if doc else None
