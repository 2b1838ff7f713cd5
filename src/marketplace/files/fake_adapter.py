"""In-memory file store for development and testing.

Accepts every non-empty handle until ``configure`` restricts it to a known
set, which lets tests exercise the unknown-file path.
"""

from marketplace.files.port import FileStore


class FakeFileStore(FileStore):
    def __init__(self) -> None:
        self.known_handles: set[str] | None = None
        self.lookups: list[str] = []

    def configure(self, known_handles: set[str] | None = None) -> None:
        """Restrict the store to ``known_handles``; ``None`` accepts everything."""
        self.known_handles = set(known_handles) if known_handles is not None else None

    def exists(self, handle: str) -> bool:
        self.lookups.append(handle)
        if not handle:
            return False
        if self.known_handles is None:
            return True
        return handle in self.known_handles
