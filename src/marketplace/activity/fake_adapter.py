"""In-memory activity log for development and testing."""

from marketplace.activity.port import ActivityEntry, ActivityLogPort


class FakeActivityLog(ActivityLogPort):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.entries: list[ActivityEntry] = []

    def configure(self, should_succeed: bool) -> None:
        """Make every subsequent write fail (or succeed again)."""
        self.should_succeed = should_succeed

    def record(self, entry: ActivityEntry) -> None:
        if not self.should_succeed:
            raise ConnectionError("Activity log unavailable")
        self.entries.append(entry)

    def entries_for(self, entity_id: str) -> list[ActivityEntry]:
        return [entry for entry in self.entries if entry.entity_id == entity_id]
