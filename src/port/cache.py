"""Port definition for a short-lived key/value cache."""

from typing import Protocol


class CachePort(Protocol):
    """Best-effort cache. Implementations never raise on backend failure:
    get() returns None and set() returns False instead."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool: ...

    async def ping(self) -> bool: ...
