"""Access/refresh token issuance and verification.

Access and refresh tokens are signed with two independent secrets so that
holding one cannot be used to mint the other. Secrets are read from the
environment on every call; a missing secret fails the call instead of
signing with an empty key.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from domain.model.errors import ConfigurationError, InternalError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_TTL = timedelta(hours=24)
REFRESH_TOKEN_TTL = timedelta(days=7)

ACCESS_SECRET_ENV = "JWT_ACCESS_SECRET"
REFRESH_SECRET_ENV = "JWT_REFRESH_SECRET"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def _get_secrets() -> tuple[str, str]:
    access_secret = os.getenv(ACCESS_SECRET_ENV)
    refresh_secret = os.getenv(REFRESH_SECRET_ENV)
    if not access_secret or not refresh_secret:
        logger.error(
            "JWT secrets not configured",
            extra={"accessSecretSet": bool(access_secret), "refreshSecretSet": bool(refresh_secret)},
        )
        raise ConfigurationError("JWT configuration error")
    return access_secret, refresh_secret


def _sign(payload: dict[str, Any], secret: str, ttl: timedelta) -> str:
    now = datetime.now(timezone.utc)
    claims = {**payload, "iat": now, "exp": now + ttl}
    return jwt.encode(claims, secret, algorithm=JWT_ALGORITHM)


async def generate_tokens(payload: dict[str, Any]) -> TokenPair:
    """Sign an access token (24h) and a refresh token (7d) for `payload`.

    `payload` must contain at least the subject claim `sub`.

    Raises:
        ConfigurationError: either secret is unset or empty
        InternalError: signing failed
    """
    access_secret, refresh_secret = _get_secrets()

    try:
        access_token, refresh_token = await asyncio.gather(
            asyncio.to_thread(_sign, payload, access_secret, ACCESS_TOKEN_TTL),
            asyncio.to_thread(_sign, payload, refresh_secret, REFRESH_TOKEN_TTL),
        )
    except Exception as e:
        logger.error("Token generation failed", extra={"error": str(e)})
        raise InternalError("Token generation failed") from e

    return TokenPair(access_token=access_token, refresh_token=refresh_token)


def _verify(token: str, env_name: str) -> dict[str, Any] | None:
    secret = os.getenv(env_name)
    if not secret:
        logger.error("JWT secret not configured", extra={"secret": env_name})
        return None
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.debug(f"JWT verification failed: {e}")
        return None
    if not payload.get("sub"):
        return None
    return payload


def verify_access_token(token: str) -> dict[str, Any] | None:
    """Verify an access token and return its claims, or None."""
    return _verify(token, ACCESS_SECRET_ENV)


def verify_refresh_token(token: str) -> dict[str, Any] | None:
    """Verify a refresh token and return its claims, or None."""
    return _verify(token, REFRESH_SECRET_ENV)
