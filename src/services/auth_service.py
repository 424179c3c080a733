"""Auth service: login, registration, OAuth identity resolution.

Pure business logic with no HTTP dependencies.
Raises domain errors that route handlers map to HTTP status codes:
DomainErrors pass through unchanged, anything unexpected is logged and
replaced by an InternalError with a generic message.
"""

import logging

from domain.model.errors import (
    AuthenticationError,
    DomainError,
    DuplicateError,
    InternalError,
    SchemaViolationError,
    UniqueViolationError,
    ValidationError,
)
from domain.model.user import AuthProvider, OAuthProfile, User
from port.cache import CachePort
from port.user_repository import UserRepository
from services import token_service
from services.password_hasher import (
    PASSWORD_TOO_LONG_MESSAGE,
    exceeds_length_limit,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

SIGNUP_CACHE_TTL_SECONDS = 60 * 60 * 6
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
OAUTH_EMAIL_CONFLICT_MESSAGE = (
    "An account with this email already exists. Please sign in with your original provider."
)


def _signup_cache_key(email: str) -> str:
    return f"signup:{email}"


async def login(repo: UserRepository, email: str, password: str) -> User:
    """Authenticate a user by email and password.

    Unknown email and wrong password fail identically so callers cannot
    probe which addresses are registered.

    Raises:
        AuthenticationError: invalid credentials (deliberately vague)
        InternalError: unexpected store or hashing failure
    """
    try:
        credentials = await repo.get_credentials_by_email(email)
        # OAuth-only accounts have no hash and cannot log in with a password
        if not credentials or not credentials.password_hash:
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        if not await verify_password(password, credentials.password_hash):
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
    except DomainError:
        raise
    except Exception as e:
        logger.error("Login failed unexpectedly", extra={"error": str(e), "errorType": type(e).__name__})
        raise InternalError("Authentication failed") from e

    logger.info("User logged in", extra={"userId": credentials.user.id})
    return credentials.user


async def signup(repo: UserRepository, cache: CachePort, email: str, password: str) -> User:
    """Register a new local user.

    The cache lookup only saves a store round trip for recent signups;
    the unique index on email is what actually prevents duplicates.

    Raises:
        DuplicateError: email already registered
        ValidationError: password over the bcrypt limit, or the store
            rejected the document
        InternalError: anything else
    """
    if exceeds_length_limit(password):
        raise ValidationError(PASSWORD_TOO_LONG_MESSAGE)

    try:
        if await cache.get(_signup_cache_key(email)):
            raise DuplicateError("User already exists")

        if await repo.get_by_email(email):
            raise DuplicateError("User already exists")

        password_hash = await hash_password(password)
        user = await repo.create(email=email, password_hash=password_hash)
    except DomainError:
        raise
    except UniqueViolationError as e:
        # Lost a race with a concurrent signup for the same email
        raise DuplicateError("User already exists") from e
    except SchemaViolationError as e:
        raise ValidationError("Invalid user data") from e
    except Exception as e:
        logger.error("Signup failed unexpectedly", extra={"error": str(e), "errorType": type(e).__name__})
        raise InternalError("User registration failed") from e

    if not await cache.set(_signup_cache_key(email), "1", SIGNUP_CACHE_TTL_SECONDS):
        logger.warning("Failed to cache registered email", extra={"userId": user.id})

    logger.info("User registered", extra={"userId": user.id})
    return user


async def find_or_create_oauth_user(repo: UserRepository, profile: OAuthProfile) -> User:
    """Resolve a verified OAuth identity to a user, creating one on first sign-in.

    An existing account with the same email under another sign-in method is
    never linked automatically; the caller must sign in with that method.
    Returning users are not re-synced with the provider's profile.

    Raises:
        DuplicateError: email already owned by another sign-in method
        ValidationError: profile names the local provider
        InternalError: anything else
    """
    if profile.provider == AuthProvider.LOCAL:
        raise ValidationError("OAuth profile must name an external provider")

    try:
        user = await repo.get_by_provider(profile.provider, profile.provider_id)
        if user:
            return user

        if await repo.get_by_email(profile.email):
            logger.warning(
                "OAuth sign-in refused: email owned by another sign-in method",
                extra={"provider": profile.provider.value},
            )
            raise DuplicateError(OAUTH_EMAIL_CONFLICT_MESSAGE)

        user = await repo.create(
            email=profile.email,
            provider=profile.provider,
            provider_id=profile.provider_id,
            display_name=profile.display_name,
            avatar=profile.avatar,
        )
    except DomainError:
        raise
    except UniqueViolationError as e:
        raise DuplicateError(OAUTH_EMAIL_CONFLICT_MESSAGE) from e
    except Exception as e:
        logger.error(
            "OAuth resolution failed unexpectedly",
            extra={"provider": profile.provider.value, "error": str(e), "errorType": type(e).__name__},
        )
        raise InternalError("OAuth authentication failed") from e

    logger.info("OAuth user created", extra={"userId": user.id, "provider": profile.provider.value})
    return user


async def get_user(repo: UserRepository, user_id: str) -> User | None:
    try:
        return await repo.get_by_id(user_id)
    except Exception as e:
        logger.error("Failed to load user", extra={"userId": user_id, "error": str(e)})
        raise InternalError("Failed to load user") from e


async def refresh_tokens(repo: UserRepository, refresh_token: str) -> token_service.TokenPair:
    """Exchange a valid refresh token for a new token pair.

    Raises:
        AuthenticationError: token invalid, expired, or its user no longer exists
        ConfigurationError / InternalError: from token generation
    """
    payload = token_service.verify_refresh_token(refresh_token)
    if not payload:
        raise AuthenticationError("Invalid refresh token")

    user = await get_user(repo, payload["sub"])
    if not user:
        raise AuthenticationError("Invalid refresh token")

    return await token_service.generate_tokens({"sub": user.id})
