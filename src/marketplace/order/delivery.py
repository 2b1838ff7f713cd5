"""Order delivery confirmation — command and handler."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order


@marketplace.command(part_of="Order")
class ConfirmDelivery:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)


@marketplace.command_handler(part_of=Order)
class DeliveryHandler:
    @handle(ConfirmDelivery)
    def confirm_delivery(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        expected = order.status
        order.confirm_delivery(command.actor_id)
        repo.save_transition(order, expected)
