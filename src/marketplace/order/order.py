"""Order aggregate (CQRS) — a purchase from placement to delivery.

Every status change is looked up in one transition table keyed by
(current status, action); anything missing from the table is a conflict and
leaves the order untouched. Each successful transition stamps updated_at and
raises exactly one lifecycle event.

State Machine:
    PENDING → PROCESSING → TO_SHIP → SHIPPED → DELIVERED
    {PENDING, PROCESSING} → CANCELLED   (shop rejects)
    PENDING → CANCELLED                 (customer cancels)

Adding tracking *is* the shipped transition. For orders with customized
items it also releases the shop's escrowed funds; see escrow/trigger.py.
"""

import json
import os
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from marketplace.domain import marketplace
from marketplace.errors import ConflictError, PermissionDeniedError
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

DEFAULT_TAX_RATE = 0.08


def current_tax_rate() -> float:
    """Sales tax rate applied to the subtotal, overridable via ORDER_TAX_RATE."""
    return float(os.environ.get("ORDER_TAX_RATE", DEFAULT_TAX_RATE))


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    TO_SHIP = "to_ship"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderAction(Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    CANCEL = "cancel"
    MARK_READY = "mark_ready"
    SHIP = "ship"
    DELIVER = "deliver"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


_TRANSITIONS = {
    (OrderStatus.PENDING, OrderAction.ACCEPT): OrderStatus.PROCESSING,
    (OrderStatus.PENDING, OrderAction.REJECT): OrderStatus.CANCELLED,
    (OrderStatus.PROCESSING, OrderAction.REJECT): OrderStatus.CANCELLED,
    (OrderStatus.PENDING, OrderAction.CANCEL): OrderStatus.CANCELLED,
    (OrderStatus.PROCESSING, OrderAction.MARK_READY): OrderStatus.TO_SHIP,
    (OrderStatus.TO_SHIP, OrderAction.SHIP): OrderStatus.SHIPPED,
    (OrderStatus.SHIPPED, OrderAction.DELIVER): OrderStatus.DELIVERED,
}

_VALID_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.FAILED: {PaymentStatus.PENDING, PaymentStatus.PAID},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.REFUNDED: set(),  # terminal
}


def next_order_status(current: str | OrderStatus, action: str | OrderAction) -> OrderStatus:
    """Return the status ``action`` leads to from ``current``.

    Raises ConflictError, carrying the current status, when the table has no
    such edge.
    """
    current, action = OrderStatus(current), OrderAction(action)
    target = _TRANSITIONS.get((current, action))
    if target is None:
        raise ConflictError(
            {"status": [f"Cannot {action.value} an order that is {current.value}"]},
            current_status=current.value,
        )
    return target


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Order")
class OrderPricing:
    """Financial summary of an order.

    ``total_amount`` is always ``subtotal + tax + shipping_cost - discount_amount``
    floored at zero.
    """

    subtotal = Float(default=0.0, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    shipping_cost = Float(default=0.0, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    total_amount = Float(default=0.0, min_value=0.0)
    currency = String(max_length=3, default="USD")

    @invariant.post
    def total_matches_components(self):
        expected = max(
            0.0,
            (self.subtotal or 0.0) + (self.tax or 0.0) + (self.shipping_cost or 0.0) - (self.discount_amount or 0.0),
        )
        if abs((self.total_amount or 0.0) - expected) > 0.01:
            raise ValidationError({"total_amount": ["Total must equal subtotal + tax + shipping - discount"]})

    @classmethod
    def compute(
        cls,
        subtotal: float,
        tax: float = 0.0,
        shipping_cost: float = 0.0,
        discount_amount: float = 0.0,
        currency: str = "USD",
    ) -> "OrderPricing":
        subtotal, tax = round(subtotal, 2), round(tax, 2)
        shipping_cost, discount_amount = round(shipping_cost, 2), round(discount_amount, 2)
        total = max(0.0, subtotal + tax + shipping_cost - discount_amount)
        return cls(
            subtotal=subtotal,
            tax=tax,
            shipping_cost=shipping_cost,
            discount_amount=discount_amount,
            total_amount=round(total, 2),
            currency=currency,
        )


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order")
class OrderItem:
    """A line of the order. Customized lines point at their request."""

    product_id = Identifier(required=True)
    category_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    customization_request_id = Identifier()

    @property
    def line_total(self) -> float:
        return round(self.unit_price * self.quantity, 2)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    customer_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    shop_owner_id = Identifier(required=True)
    items = HasMany(OrderItem)
    pricing = ValueObject(OrderPricing)
    discount_id = Identifier()
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    payment_status = String(
        choices=PaymentStatus,
        default=PaymentStatus.PENDING.value,
    )
    tracking_number = String(max_length=255)
    carrier = String(max_length=100)
    notes = Text()
    cancellation_reason = String(max_length=500)
    cancelled_by = Identifier()
    escrow_amount = Float(default=0.0)
    escrow_released_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id: str,
        shop_id: str,
        shop_owner_id: str,
        items_data: list[dict],
        shipping_cost: float = 0.0,
        tax_rate: float = DEFAULT_TAX_RATE,
        discount_id: str | None = None,
        discount_amount: float = 0.0,
        notes: str | None = None,
        order_id: str | None = None,
    ):
        """Place a pending order with a shop.

        Args:
            items_data: List of dicts with product_id, quantity, unit_price and
                optionally category_id and customization_request_id.
            order_id: Pre-generated identity, so a discount redemption can
                reference the order before it is persisted.
        """
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})
        if shipping_cost is None or shipping_cost < 0:
            raise ValidationError({"shipping_cost": ["Shipping cost must be zero or more"]})

        now = datetime.now(UTC)
        subtotal = sum(item["unit_price"] * item["quantity"] for item in items_data)
        pricing = OrderPricing.compute(
            subtotal=subtotal,
            tax=subtotal * tax_rate,
            shipping_cost=shipping_cost,
            discount_amount=discount_amount,
        )

        identity = {"id": order_id} if order_id else {}
        order = cls(
            **identity,
            customer_id=customer_id,
            shop_id=shop_id,
            shop_owner_id=shop_owner_id,
            pricing=pricing,
            discount_id=discount_id,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        for item_data in items_data:
            order.add_items(OrderItem(**item_data))

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=customer_id,
                shop_id=shop_id,
                items=json.dumps(items_data),
                customization_request_ids=json.dumps(order.customization_request_ids),
                subtotal=pricing.subtotal,
                tax=pricing.tax,
                shipping_cost=pricing.shipping_cost,
                discount_id=discount_id,
                discount_amount=pricing.discount_amount,
                total_amount=pricing.total_amount,
                currency=pricing.currency,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def customization_request_ids(self) -> list[str]:
        return [str(item.customization_request_id) for item in self.items if item.customization_request_id]

    @property
    def is_customization_order(self) -> bool:
        return bool(self.customization_request_ids)

    def customization_total(self) -> float:
        """The shop's held portion: every customization-linked line."""
        return round(sum(item.line_total for item in self.items if item.customization_request_id), 2)

    # -------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------
    def _assert_shop(self, actor_id: str) -> None:
        if actor_id != self.shop_owner_id:
            raise PermissionDeniedError({"actor_id": ["Only the fulfilling shop can do this"]})

    def _assert_customer(self, actor_id: str) -> None:
        if actor_id != self.customer_id:
            raise PermissionDeniedError({"actor_id": ["Only the customer who placed the order can do this"]})

    # -------------------------------------------------------------------
    # Shop actions
    # -------------------------------------------------------------------
    def accept(self, actor_id: str) -> None:
        self._assert_shop(actor_id)
        target = next_order_status(self.status, OrderAction.ACCEPT)
        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now
        self.raise_(OrderAccepted(order_id=str(self.id), shop_id=self.shop_id, accepted_at=now))

    def reject(self, actor_id: str, reason: str | None = None) -> None:
        """The shop turns the order down; customized requests go back to shop selection."""
        self._assert_shop(actor_id)
        previous = self.status
        target = next_order_status(self.status, OrderAction.REJECT)
        now = datetime.now(UTC)
        self.status = target.value
        self.cancellation_reason = reason
        self.cancelled_by = actor_id
        self.updated_at = now
        self.raise_(
            OrderRejected(
                order_id=str(self.id),
                shop_id=self.shop_id,
                previous_status=previous,
                reason=reason,
                customization_request_ids=json.dumps(self.customization_request_ids),
                rejected_at=now,
            )
        )

    def mark_ready_to_ship(self, actor_id: str) -> None:
        self._assert_shop(actor_id)
        target = next_order_status(self.status, OrderAction.MARK_READY)
        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now
        self.raise_(OrderReadyToShip(order_id=str(self.id), ready_at=now))

    def add_tracking_and_ship(self, actor_id: str, tracking_number: str, carrier: str | None = None) -> None:
        """Record tracking, which ships the order.

        Side effects, all in this one transition:
        - status moves TO_SHIP → SHIPPED;
        - for orders with customized lines, the customization total is
          recorded as the escrow amount. The command handler hands that
          amount to the ledger once the conditional write has succeeded.
        """
        self._assert_shop(actor_id)
        target = next_order_status(self.status, OrderAction.SHIP)
        if not tracking_number or not tracking_number.strip():
            raise ValidationError({"tracking_number": ["Tracking number is required"]})

        now = datetime.now(UTC)
        self.status = target.value
        self.tracking_number = tracking_number.strip()
        self.carrier = carrier
        if self.is_customization_order:
            self.escrow_amount = self.customization_total()
            self.escrow_released_at = now
        self.updated_at = now
        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                shop_id=self.shop_id,
                tracking_number=self.tracking_number,
                carrier=carrier,
                escrow_amount=self.escrow_amount or 0.0,
                shipped_at=now,
            )
        )

    def undo_shipment(self) -> None:
        """Put an order whose escrow release failed back into TO_SHIP.

        Only the shipping handler calls this, on the copy it has just shipped.
        """
        if self.status != OrderStatus.SHIPPED.value:
            raise ConflictError(
                {"status": ["Only a shipped order can be put back to to_ship"]},
                current_status=self.status,
            )
        self.status = OrderStatus.TO_SHIP.value
        self.tracking_number = None
        self.carrier = None
        self.escrow_amount = 0.0
        self.escrow_released_at = None
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Customer actions
    # -------------------------------------------------------------------
    def cancel(self, actor_id: str, reason: str | None = None) -> None:
        """The customer withdraws an order the shop has not accepted yet."""
        self._assert_customer(actor_id)
        target = next_order_status(self.status, OrderAction.CANCEL)
        now = datetime.now(UTC)
        self.status = target.value
        self.cancellation_reason = reason
        self.cancelled_by = actor_id
        self.updated_at = now
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                customer_id=self.customer_id,
                reason=reason,
                customization_request_ids=json.dumps(self.customization_request_ids),
                cancelled_at=now,
            )
        )

    def confirm_delivery(self, actor_id: str) -> None:
        """Either the customer or the fulfilling shop confirms delivery."""
        if actor_id not in (self.customer_id, self.shop_owner_id):
            raise PermissionDeniedError({"actor_id": ["Only the customer or the shop can confirm delivery"]})
        target = next_order_status(self.status, OrderAction.DELIVER)
        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now
        self.raise_(
            OrderDelivered(
                order_id=str(self.id),
                shop_id=self.shop_id,
                confirmed_by=actor_id,
                customization_request_ids=json.dumps(self.customization_request_ids),
                delivered_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def record_payment(self, payment_status: str) -> None:
        current = PaymentStatus(self.payment_status)
        try:
            target = PaymentStatus(payment_status)
        except ValueError:
            raise ValidationError({"payment_status": [f"Unknown payment status: {payment_status}"]}) from None
        if target not in _VALID_PAYMENT_TRANSITIONS.get(current, set()):
            raise ConflictError(
                {"payment_status": [f"Cannot change payment from {current.value} to {target.value}"]},
                current_status=current.value,
            )
        now = datetime.now(UTC)
        self.payment_status = target.value
        self.updated_at = now
        self.raise_(
            PaymentStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                payment_status=target.value,
                changed_at=now,
            )
        )
