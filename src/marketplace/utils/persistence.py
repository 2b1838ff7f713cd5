"""Conditional writes that commit ahead of the surrounding unit of work.

A guarded write goes straight to the store, outside the command's unit of
work, and only succeeds if the aggregate's stored version is still the one it
was loaded at. Once ``commit_if_unchanged`` returns the write is durable, so a
side effect that follows it (an escrow release, a counted redemption) runs for
exactly one of two racing writers. The other one gets a ConflictError.

Events raised on the aggregate are still dispatched when the unit of work
commits, and are dropped with it if the handler fails afterwards.
"""

import structlog
from protean.exceptions import ExpectedVersionError

from marketplace.errors import ConflictError

logger = structlog.get_logger(__name__)


def stored_copy(repository, aggregate):
    """Re-read ``aggregate`` from the store, ignoring the unit of work's snapshot."""
    return repository._dao.outside_uow().get(aggregate.id)


def commit_if_unchanged(repository, aggregate, field: str = "status") -> None:
    """Persist ``aggregate`` now, unless someone else wrote it since it was loaded.

    Raises ConflictError carrying the stored status when the write loses.
    """
    try:
        repository._dao.outside_uow().save(aggregate)
    except ExpectedVersionError as exc:
        stored = stored_copy(repository, aggregate)
        name = type(aggregate).__name__
        logger.info(
            "Concurrent write lost",
            aggregate=name,
            aggregate_id=str(aggregate.id),
            current_status=stored.status,
        )
        raise ConflictError(
            {field: [f"{name} changed concurrently and is now {stored.status}"]},
            current_status=stored.status,
        ) from exc
