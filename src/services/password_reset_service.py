"""Password-reset service: request and redemption phases.

Request (forgot_password) always answers with the same acknowledgement,
whether or not the account exists, is OAuth-only, or the lookup failed.
The only visible difference is the rate-limit rejection.

Redemption (reset_password) consumes the token: the password update and
the clearing of all reset fields happen in one conditional write, so a
token works exactly once.
"""

import logging
import os
from datetime import datetime, timezone

from domain.model.errors import DomainError, InternalError, RateLimitError, ValidationError
from domain.model.password_reset import (
    RESET_TOKEN_TTL,
    hash_reset_token,
    is_rate_limited,
    issue_reset_token,
    next_attempt_count,
)
from port.notifier import NotificationTemplate, NotifierPort
from port.user_repository import UserRepository
from services.password_hasher import PASSWORD_TOO_LONG_MESSAGE, exceeds_length_limit, hash_password

logger = logging.getLogger(__name__)

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

FORGOT_PASSWORD_MESSAGE = (
    "If your email exists in our system, you will receive a password reset link shortly."
)
RESET_SUCCESS_MESSAGE = (
    "Password has been reset successfully. You can now log in with your new password."
)
INVALID_TOKEN_MESSAGE = (
    "Password reset token is invalid or has expired. Please request a new password reset."
)
RATE_LIMIT_MESSAGE = "Too many password reset attempts. Please try again in 24 hours."


def _now() -> datetime:
    return datetime.now(timezone.utc)


def build_reset_url(token: str) -> str:
    return f"{FRONTEND_URL.rstrip('/')}/reset-password?token={token}"


async def forgot_password(repo: UserRepository, notifier: NotifierPort, email: str) -> dict:
    """Issue a reset token for a local account and email the link.

    Returns:
        {"message": FORGOT_PASSWORD_MESSAGE} in every non-rate-limited case

    Raises:
        RateLimitError: more than 5 requests within 24 hours for this account
    """
    try:
        await _issue_reset(repo, notifier, email)
    except RateLimitError:
        raise
    except Exception as e:
        logger.error("Forgot password failed", extra={"error": str(e), "errorType": type(e).__name__})

    return {"message": FORGOT_PASSWORD_MESSAGE}


async def _issue_reset(repo: UserRepository, notifier: NotifierPort, email: str) -> None:
    credentials = await repo.get_credentials_by_email(email)
    if not credentials:
        logger.info("Password reset requested for unknown email")
        return

    if not credentials.is_local:
        logger.info(
            "Password reset requested for OAuth account",
            extra={"userId": credentials.user.id, "provider": credentials.user.provider.value},
        )
        return

    now = _now()
    if is_rate_limited(credentials.reset, now):
        logger.warning("Password reset rate limit exceeded", extra={"userId": credentials.user.id})
        raise RateLimitError(RATE_LIMIT_MESSAGE)

    issued = issue_reset_token(now)
    saved = await repo.save_reset_request(
        user_id=credentials.user.id,
        token_hash=issued.token_hash,
        expires_at=issued.expires_at,
        attempts=next_attempt_count(credentials.reset, now),
        requested_at=now,
    )
    if not saved:
        logger.warning("Reset request not stored: user vanished", extra={"userId": credentials.user.id})
        return

    logger.info("Password reset token generated", extra={"userId": credentials.user.id})

    try:
        await notifier.send(
            credentials.user.email,
            NotificationTemplate.PASSWORD_RESET,
            {
                "reset_url": build_reset_url(issued.token),
                "token": issued.token,
                "expires_in_minutes": int(RESET_TOKEN_TTL.total_seconds() // 60),
            },
        )
    except Exception as e:
        logger.error(
            "Failed to send password reset email",
            extra={"userId": credentials.user.id, "error": str(e)},
        )


async def reset_password(
    repo: UserRepository, notifier: NotifierPort, token: str, new_password: str,
) -> dict:
    """Redeem a reset token and set a new password.

    Raises:
        ValidationError: token unknown, expired, or already used
            or the new password is over the bcrypt limit
        InternalError: unexpected store or hashing failure
    """
    if exceeds_length_limit(new_password):
        raise ValidationError(PASSWORD_TOO_LONG_MESSAGE)

    token_hash = hash_reset_token(token)

    try:
        credentials = await repo.get_credentials_by_reset_token(token_hash, _now())
        if not credentials:
            logger.warning("Invalid or expired reset token used")
            raise ValidationError(INVALID_TOKEN_MESSAGE)

        password_hash = await hash_password(new_password)
        if not await repo.complete_password_reset(credentials.user.id, token_hash, password_hash):
            # Another redemption of the same token won the write
            logger.warning("Reset token consumed concurrently", extra={"userId": credentials.user.id})
            raise ValidationError(INVALID_TOKEN_MESSAGE)
    except DomainError:
        raise
    except Exception as e:
        logger.error("Reset password failed", extra={"error": str(e), "errorType": type(e).__name__})
        raise InternalError("Failed to reset password. Please try again.") from e

    logger.info("Password reset completed", extra={"userId": credentials.user.id})

    try:
        await notifier.send(
            credentials.user.email,
            NotificationTemplate.PASSWORD_RESET_CONFIRMATION,
            {"email": credentials.user.email},
        )
    except Exception as e:
        logger.error(
            "Failed to send password reset confirmation",
            extra={"userId": credentials.user.id, "error": str(e)},
        )

    return {"message": RESET_SUCCESS_MESSAGE}
