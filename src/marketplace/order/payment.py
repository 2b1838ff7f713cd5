"""Order payment status — updates reported by the payment provider."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order
from marketplace.utils.persistence import commit_if_unchanged


@marketplace.command(part_of="Order")
class RecordPaymentStatus:
    order_id = Identifier(required=True)
    payment_status = String(required=True, max_length=20)


@marketplace.command_handler(part_of=Order)
class PaymentStatusHandler:
    @handle(RecordPaymentStatus)
    def record_payment_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_payment(command.payment_status)
        commit_if_unchanged(repo, order, field="payment_status")
