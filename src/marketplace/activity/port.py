"""Activity log port (abstract interface).

An append-only audit trail of who did what to an order or a customization
request. Writes are best-effort: the domain never waits on, or fails
because of, the activity log.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class ActivityEntry:
    entity_type: str
    entity_id: str
    action: str
    occurred_at: datetime
    actor_id: str | None = None
    details: dict = field(default_factory=dict)


class ActivityLogPort(ABC):
    """Abstract activity log interface."""

    @abstractmethod
    def record(self, entry: ActivityEntry) -> None:
        """Append ``entry`` to the log."""
        ...
