"""Read cache port (abstract interface).

Keys are plain strings such as ``order:<id>`` or ``orders:customer:<id>``.
``invalidate`` drops every key that starts with the given prefix.
"""

from abc import ABC, abstractmethod
from typing import Any


class CachePort(ABC):
    @abstractmethod
    def get(self, key: str) -> Any | None: ...

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int | None = None) -> None: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...

    @abstractmethod
    def invalidate(self, prefix: str) -> int:
        """Remove all keys starting with ``prefix`` and return how many went."""
        ...
