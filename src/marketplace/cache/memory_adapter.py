"""Process-local cache with per-key expiry."""

import time
from typing import Any

from marketplace.cache.port import CachePort


class InMemoryCache(CachePort):
    def __init__(self, default_ttl: int = 300) -> None:
        self.default_ttl = default_ttl
        self._entries: dict[str, tuple[Any, float]] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= time.monotonic():
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = (value, time.monotonic() + ttl)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def invalidate(self, prefix: str) -> int:
        stale = [key for key in self._entries if key.startswith(prefix)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def keys(self) -> list[str]:
        return list(self._entries)
