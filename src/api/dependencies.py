from functools import lru_cache

from fastapi import HTTPException

from adapter.cache.redis_cache import RedisCacheAdapter
from adapter.email.smtp_notifier import SmtpNotifier
from adapter.external.github_oauth import GitHubOAuthAdapter
from adapter.external.google_oauth import GoogleOAuthAdapter
from adapter.mongodb.connection import get_mongodb_client, DATABASE_NAME
from adapter.mongodb.user_repository import MongoUserRepository
from domain.model.user import AuthProvider
from port.cache import CachePort
from port.identity_provider import IdentityProviderPort
from port.notifier import NotifierPort
from port.user_repository import UserRepository


async def _get_db():
    """Get MongoDB database, raising 503 if unavailable."""
    client = await get_mongodb_client()
    if client is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return client[DATABASE_NAME]


async def get_user_repo() -> UserRepository:
    return MongoUserRepository(await _get_db())


async def get_optional_user_repo() -> UserRepository | None:
    """Like get_user_repo, but None instead of 503 when MongoDB is unavailable."""
    client = await get_mongodb_client()
    if client is None:
        return None
    return MongoUserRepository(client[DATABASE_NAME])


@lru_cache
def get_cache() -> CachePort:
    # One adapter per process so the Redis connection is reused
    return RedisCacheAdapter()


def get_notifier() -> NotifierPort:
    return SmtpNotifier()


def get_identity_provider(provider: str) -> IdentityProviderPort:
    """Resolve the `{provider}` path segment to a configured adapter (404 otherwise)."""
    adapters = {
        AuthProvider.GOOGLE.value: GoogleOAuthAdapter.from_env,
        AuthProvider.GITHUB.value: GitHubOAuthAdapter.from_env,
    }
    factory = adapters.get(provider)
    if factory is None:
        raise HTTPException(status_code=404, detail="Unknown identity provider")
    adapter = factory()
    if not adapter.is_configured:
        raise HTTPException(status_code=503, detail=f"{adapter.display_name} sign-in is not configured")
    return adapter
