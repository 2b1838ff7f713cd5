"""Read cache factory.

Provides get_cache() / set_cache(). CACHE_ADAPTER picks the adapter and
ORDER_CACHE_TTL (seconds, default 300) sets how long entries live.
"""

import os

from marketplace.cache.port import CachePort

DEFAULT_TTL = 300

_current_cache: CachePort | None = None


def cache_ttl() -> int:
    return int(os.environ.get("ORDER_CACHE_TTL", DEFAULT_TTL))


def get_cache() -> CachePort:
    """Return the current cache. Defaults to InMemoryCache."""
    global _current_cache
    if _current_cache is None:
        adapter = os.environ.get("CACHE_ADAPTER", "memory")
        if adapter == "memory":
            from marketplace.cache.memory_adapter import InMemoryCache

            _current_cache = InMemoryCache(default_ttl=cache_ttl())
        else:
            raise ValueError(f"Unknown cache adapter: {adapter}")
    return _current_cache


def set_cache(cache: CachePort) -> None:
    global _current_cache
    _current_cache = cache


def reset_cache() -> None:
    global _current_cache
    _current_cache = None
