"""bcrypt password hashing.

Both calls run in a worker thread so the event loop is not blocked
(rounds 12 takes a few hundred milliseconds).
"""

import asyncio

import bcrypt

BCRYPT_ROUNDS = 12
# bcrypt rejects (or silently truncates, before 5.0) longer input
MAX_PASSWORD_BYTES = 72
PASSWORD_TOO_LONG_MESSAGE = f"Password must be at most {MAX_PASSWORD_BYTES} bytes"


def exceeds_length_limit(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def _hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def _verify_password(plain: str, hashed: str) -> bool:
    # No stored hash can come from input over the limit
    if exceeds_length_limit(plain):
        return False
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


async def hash_password(password: str) -> str:
    return await asyncio.to_thread(_hash_password, password)


async def verify_password(plain: str, hashed: str) -> bool:
    return await asyncio.to_thread(_verify_password, plain, hashed)
