"""Ledger port (abstract interface).

The payment ledger holds a customer's money in escrow until the fulfilling
shop ships. The domain only ever asks it to release a shop's portion.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ReleaseResult:
    """Result of an escrow release attempt."""

    success: bool
    ledger_transaction_id: str | None = None
    failure_reason: str | None = None


class LedgerPort(ABC):
    """Abstract payment ledger interface."""

    @abstractmethod
    def release_funds(self, order_id: str, shop_id: str, amount: float) -> ReleaseResult:
        """Release ``amount`` held for ``order_id`` to ``shop_id``."""
        ...
