"""Order domain events — immutable facts about order state changes.

All events are past tense, versioned, and carry the customization request
ids of the order so customization-side handlers need not load the order.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    """A customer placed an order with a shop."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    items = Text(required=True)  # JSON list of item dicts
    customization_request_ids = Text()  # JSON list
    subtotal = Float(required=True)
    tax = Float(required=True)
    shipping_cost = Float(required=True)
    discount_id = Identifier()
    discount_amount = Float(required=True)
    total_amount = Float(required=True)
    currency = String(max_length=3, default="USD")
    placed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderAccepted:
    __version__ = 1

    order_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    accepted_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderRejected:
    """The fulfilling shop turned the order down."""

    __version__ = 1

    order_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = Text()
    customization_request_ids = Text()  # JSON list
    rejected_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderCancelled:
    """The customer withdrew the order before the shop accepted it."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    reason = Text()
    customization_request_ids = Text()  # JSON list
    cancelled_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderReadyToShip:
    __version__ = 1

    order_id = Identifier(required=True)
    ready_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderShipped:
    """Tracking was added and the order left the shop."""

    __version__ = 1

    order_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    tracking_number = String(required=True)
    carrier = String()
    escrow_amount = Float(default=0.0)  # released to the shop; 0 for stock orders
    shipped_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderDelivered:
    __version__ = 1

    order_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    confirmed_by = Identifier(required=True)
    customization_request_ids = Text()  # JSON list
    delivered_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class PaymentStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    payment_status = String(required=True)
    changed_at = DateTime(required=True)
