"""File store factory.

Provides get_file_store() / set_file_store() to swap implementations.
"""

import os

from protean.exceptions import ValidationError

from marketplace.files.port import FileStore

_current_store: FileStore | None = None


def get_file_store() -> FileStore:
    """Return the configured file store. Defaults to FakeFileStore."""
    global _current_store
    if _current_store is None:
        adapter = os.environ.get("FILE_STORE_ADAPTER", "fake")
        if adapter == "fake":
            from marketplace.files.fake_adapter import FakeFileStore

            _current_store = FakeFileStore()
        else:
            raise ValueError(f"Unknown file store adapter: {adapter}")
    return _current_store


def set_file_store(store: FileStore) -> None:
    """Override the active file store (useful for tests)."""
    global _current_store
    _current_store = store


def reset_file_store() -> None:
    """Reset to the default file store."""
    global _current_store
    _current_store = None


def assert_files_exist(**handles: str | None) -> None:
    """Raise ValidationError for every supplied handle the store does not know."""
    store = get_file_store()
    errors = {name: ["Unknown file reference"] for name, handle in handles.items() if handle and not store.exists(handle)}
    if errors:
        raise ValidationError(errors)
