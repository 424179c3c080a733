"""In-memory implementation of CachePort for testing."""

import time


class FakeCache:
    def __init__(self):
        self.entries: dict[str, tuple[str, float]] = {}

    async def get(self, key: str) -> str | None:
        entry = self.entries.get(key)
        if not entry:
            return None
        value, expires_at = entry
        if time.monotonic() >= expires_at:
            del self.entries[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        self.entries[key] = (value, time.monotonic() + ttl_seconds)
        return True

    async def ping(self) -> bool:
        return True
