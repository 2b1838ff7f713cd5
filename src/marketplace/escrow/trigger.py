"""Escrow release trigger — pays the fulfilling shop when a customized order ships.

The trigger keeps no bookkeeping of its own. It runs only from the
TO_SHIP → SHIPPED transition, after the shipped write has been committed
conditionally, so a retried or concurrent second ship fails with a
ConflictError before it can reach the ledger. Any ledger failure surfaces as
DependencyError; the shipping handler then puts the order back into TO_SHIP.
"""

import structlog

from marketplace.errors import DependencyError
from marketplace.escrow import get_ledger
from marketplace.escrow.port import LedgerPort, ReleaseResult
from marketplace.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


class EscrowReleaseTrigger:
    def __init__(self, ledger: LedgerPort | None = None) -> None:
        self.ledger = ledger or get_ledger()

    def fire(self, order: Order) -> ReleaseResult | None:
        """Release the shop's held funds for a just-shipped order.

        Returns None for orders without customized lines.
        """
        if not order.is_customization_order:
            return None
        if order.status != OrderStatus.SHIPPED.value:
            raise ValueError(f"Escrow is only released for shipped orders, order {order.id} is {order.status}")

        amount = order.escrow_amount or order.customization_total()
        try:
            result = self.ledger.release_funds(order_id=str(order.id), shop_id=order.shop_id, amount=amount)
        except Exception as exc:
            logger.error(
                "Escrow release failed",
                order_id=str(order.id),
                shop_id=order.shop_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise DependencyError({"ledger": [f"Escrow release failed: {exc}"]}, order_id=str(order.id)) from exc

        if not result.success:
            logger.error(
                "Escrow release rejected by ledger",
                order_id=str(order.id),
                shop_id=order.shop_id,
                reason=result.failure_reason,
            )
            raise DependencyError(
                {"ledger": [f"Escrow release failed: {result.failure_reason}"]},
                order_id=str(order.id),
            )

        logger.info(
            "Escrow released",
            order_id=str(order.id),
            shop_id=order.shop_id,
            amount=amount,
            ledger_transaction_id=result.ledger_transaction_id,
        )
        return result
