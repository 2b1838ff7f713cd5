"""Configurable fake ledger for development and testing.

Records every release so tests can assert exactly how many times escrow
was paid out, and can be told to fail to exercise the rollback path.
"""

from uuid import uuid4

from marketplace.escrow.port import LedgerPort, ReleaseResult


class FakeLedger(LedgerPort):
    """In-memory ledger."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Ledger unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Ledger unavailable") -> None:
        """Configure ledger behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def release_funds(self, order_id: str, shop_id: str, amount: float) -> ReleaseResult:
        self.calls.append(
            {
                "method": "release_funds",
                "order_id": order_id,
                "shop_id": shop_id,
                "amount": amount,
            }
        )

        if self.should_succeed:
            return ReleaseResult(success=True, ledger_transaction_id=f"fake_rel_{uuid4().hex[:12]}")
        return ReleaseResult(success=False, failure_reason=self.failure_reason)

    def releases_for(self, order_id: str) -> list[dict]:
        return [call for call in self.calls if call["order_id"] == order_id]
