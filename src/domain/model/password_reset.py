# domain/model/password_reset.py

"""Password-reset token and rate-limit rules.

Pure functions over PasswordResetState; persistence lives in the
UserRepository and orchestration in services.password_reset_service.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from domain.model.user import PasswordResetState

RESET_TOKEN_BYTES = 32
RESET_TOKEN_TTL = timedelta(minutes=30)
RESET_ATTEMPT_WINDOW = timedelta(hours=24)
MAX_RESET_ATTEMPTS_PER_WINDOW = 5


@dataclass(frozen=True)
class IssuedResetToken:
    """A freshly generated reset token.

    `token` is the plaintext sent to the user; only `token_hash` is stored.
    """
    token: str
    token_hash: str
    expires_at: datetime


def hash_reset_token(token: str) -> str:
    """One-way hash of a reset token (sha256, lowercase hex).

    A fast hash is enough here: the token carries 256 bits of entropy.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def issue_reset_token(now: datetime) -> IssuedResetToken:
    token = secrets.token_hex(RESET_TOKEN_BYTES)
    return IssuedResetToken(
        token=token,
        token_hash=hash_reset_token(token),
        expires_at=now + RESET_TOKEN_TTL,
    )


def _within_window(state: PasswordResetState, now: datetime) -> bool:
    if state.last_requested_at is None:
        return False
    return now - state.last_requested_at < RESET_ATTEMPT_WINDOW


def is_rate_limited(state: PasswordResetState, now: datetime) -> bool:
    """True when the existing counter already hit the cap inside the window."""
    return (
        _within_window(state, now)
        and (state.attempts or 0) >= MAX_RESET_ATTEMPTS_PER_WINDOW
    )


def next_attempt_count(state: PasswordResetState, now: datetime) -> int:
    """Counter value to store for a request accepted at `now`.

    Restarts at 1 when there is no prior request or the prior one is more
    than a window old; otherwise increments.
    """
    if state.last_requested_at is None or now - state.last_requested_at > RESET_ATTEMPT_WINDOW:
        return 1
    return (state.attempts or 0) + 1
