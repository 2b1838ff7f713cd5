"""Order shipping — readying the parcel and handing it to the carrier.

AddTrackingAndShip is the only way an order becomes SHIPPED. Its handler:

1. applies the TO_SHIP → SHIPPED transition to the aggregate;
2. commits it with a conditional write, which fails with a ConflictError if
   another request already moved the order;
3. releases escrow for customized orders, only after that write is durable.

If the ledger fails, the handler writes the order back to TO_SHIP and
raises DependencyError, so the shipment is as if it never happened.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import DependencyError
from marketplace.escrow.trigger import EscrowReleaseTrigger
from marketplace.order.order import Order, OrderStatus
from marketplace.utils.persistence import commit_if_unchanged

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class MarkReadyToShip:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)


@marketplace.command(part_of="Order")
class AddTrackingAndShip:
    """Record the carrier tracking number, which ships the order."""

    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    tracking_number = String(required=True, max_length=255)
    carrier = String(max_length=100)


@marketplace.command_handler(part_of=Order)
class ShippingHandler:
    @handle(MarkReadyToShip)
    def mark_ready_to_ship(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        expected = order.status
        order.mark_ready_to_ship(command.actor_id)
        repo.save_transition(order, expected)

    @handle(AddTrackingAndShip)
    def add_tracking_and_ship(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        expected = order.status
        order.add_tracking_and_ship(
            actor_id=command.actor_id,
            tracking_number=command.tracking_number,
            carrier=command.carrier,
        )
        repo.save_transition(order, expected)

        try:
            EscrowReleaseTrigger().fire(order)
        except DependencyError:
            order.undo_shipment()
            commit_if_unchanged(repo, order)
            logger.warning(
                "Shipment undone after failed escrow release",
                order_id=str(order.id),
                status=OrderStatus.TO_SHIP.value,
            )
            raise
