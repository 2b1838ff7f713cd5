"""Marketplace error taxonomy.

Malformed input raises ``protean.exceptions.ValidationError`` and unknown ids
raise ``protean.exceptions.ObjectNotFoundError``, as everywhere else in
Protean. The errors below cover the remaining outcomes of a guarded
transition. Each carries a ``messages`` dict shaped like ValidationError's,
so API handlers can render them uniformly.
"""


class MarketplaceError(Exception):
    """Base class for marketplace business-rule failures."""

    def __init__(self, messages: dict, **context) -> None:
        self.messages = messages
        self.context = context
        super().__init__(messages)


class PermissionDeniedError(MarketplaceError):
    """The acting user is not allowed to perform the transition."""


class ConflictError(MarketplaceError):
    """The entity's current state does not admit the requested change.

    Raised for invalid state transitions, stale concurrent writes, and
    discounts that are exhausted or outside their validity window.
    """

    def __init__(self, messages: dict, current_status: str | None = None, **context) -> None:
        self.current_status = current_status
        super().__init__(messages, current_status=current_status, **context)


class DependencyError(MarketplaceError):
    """An external collaborator (ledger, persistence) failed."""


class NoEligibleShopError(MarketplaceError):
    """No shop can fulfil the product of a customization request."""
