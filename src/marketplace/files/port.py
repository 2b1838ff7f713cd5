"""File store port — resolves the opaque file handles attached to customizations.

Design files live in an external storage service. The domain only stores
handles and asks the store whether a handle refers to an uploaded file.
"""

from abc import ABC, abstractmethod


class FileStore(ABC):
    """Abstract interface for file storage adapters."""

    @abstractmethod
    def exists(self, handle: str) -> bool:
        """Return True if ``handle`` refers to a stored file."""
        ...
