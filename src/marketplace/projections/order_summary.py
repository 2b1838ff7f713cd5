"""Order summary — listing view for customers and shops.

Every update also evicts the cached reads that include the order.
"""

import json

from protean.core.projector import on
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.cache import get_cache
from marketplace.domain import marketplace
from marketplace.order.events import (
    OrderAccepted,
    OrderCancelled,
    OrderDelivered,
    OrderPlaced,
    OrderReadyToShip,
    OrderRejected,
    OrderShipped,
    PaymentStatusChanged,
)
from marketplace.order.order import Order


def order_cache_key(order_id) -> str:
    return f"order:{order_id}"


def customer_orders_cache_key(customer_id) -> str:
    return f"orders:customer:{customer_id}"


def shop_orders_cache_key(shop_id) -> str:
    return f"orders:shop:{shop_id}"


@marketplace.projection
class OrderSummary:
    order_id = Identifier(identifier=True, required=True)
    customer_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    status = String(required=True)
    payment_status = String(default="pending")
    item_count = Integer(default=0)
    total_amount = Float()
    currency = String(default="USD")
    is_customization = Boolean(default=False)
    tracking_number = String()
    carrier = String()
    placed_at = DateTime()
    updated_at = DateTime()


def _evict(summary: OrderSummary) -> None:
    cache = get_cache()
    cache.delete(order_cache_key(summary.order_id))
    cache.delete(customer_orders_cache_key(summary.customer_id))
    cache.delete(shop_orders_cache_key(summary.shop_id))


@marketplace.projector(projector_for=OrderSummary, aggregates=[Order])
class OrderSummaryProjector:
    def _update(self, order_id, updated_at, **changes) -> None:
        repo = current_domain.repository_for(OrderSummary)
        summary = repo.get(order_id)
        for field_name, value in changes.items():
            setattr(summary, field_name, value)
        summary.updated_at = updated_at
        repo.add(summary)
        _evict(summary)

    @on(OrderPlaced)
    def on_order_placed(self, event):
        items = json.loads(event.items) if isinstance(event.items, str) else []
        request_ids = json.loads(event.customization_request_ids) if event.customization_request_ids else []
        summary = OrderSummary(
            order_id=event.order_id,
            customer_id=event.customer_id,
            shop_id=event.shop_id,
            status="pending",
            item_count=sum(item["quantity"] for item in items),
            total_amount=event.total_amount,
            currency=event.currency or "USD",
            is_customization=bool(request_ids),
            placed_at=event.placed_at,
            updated_at=event.placed_at,
        )
        current_domain.repository_for(OrderSummary).add(summary)
        _evict(summary)

    @on(OrderAccepted)
    def on_order_accepted(self, event):
        self._update(event.order_id, event.accepted_at, status="processing")

    @on(OrderRejected)
    def on_order_rejected(self, event):
        self._update(event.order_id, event.rejected_at, status="cancelled")

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        self._update(event.order_id, event.cancelled_at, status="cancelled")

    @on(OrderReadyToShip)
    def on_order_ready_to_ship(self, event):
        self._update(event.order_id, event.ready_at, status="to_ship")

    @on(OrderShipped)
    def on_order_shipped(self, event):
        self._update(
            event.order_id,
            event.shipped_at,
            status="shipped",
            tracking_number=event.tracking_number,
            carrier=event.carrier,
        )

    @on(OrderDelivered)
    def on_order_delivered(self, event):
        self._update(event.order_id, event.delivered_at, status="delivered")

    @on(PaymentStatusChanged)
    def on_payment_status_changed(self, event):
        self._update(event.order_id, event.changed_at, payment_status=event.payment_status)
