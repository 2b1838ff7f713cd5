"""Order acceptance — the shop accepts or rejects, the customer may withdraw."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order


@marketplace.command(part_of="Order")
class AcceptOrder:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)


@marketplace.command(part_of="Order")
class RejectOrder:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    reason = String(max_length=500)


@marketplace.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    reason = String(max_length=500)


@marketplace.command_handler(part_of=Order)
class OrderAcceptanceHandler:
    @handle(AcceptOrder)
    def accept_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        expected = order.status
        order.accept(command.actor_id)
        repo.save_transition(order, expected)

    @handle(RejectOrder)
    def reject_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        expected = order.status
        order.reject(command.actor_id, reason=command.reason)
        repo.save_transition(order, expected)

    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        expected = order.status
        order.cancel(command.actor_id, reason=command.reason)
        repo.save_transition(order, expected)
