"""Tests for order totals, line items and payment status changes."""

import json

import pytest
from marketplace.errors import ConflictError
from marketplace.order.events import OrderPlaced
from marketplace.order.order import Order, OrderPricing
from protean.exceptions import ValidationError


def _place(items_data, shipping_cost=50.0, tax_rate=0.1, discount_amount=0.0):
    return Order.place(
        customer_id="cust-001",
        shop_id="shop-001",
        shop_owner_id="owner-001",
        items_data=items_data,
        shipping_cost=shipping_cost,
        tax_rate=tax_rate,
        discount_amount=discount_amount,
    )


class TestOrderTotals:
    def test_total_is_subtotal_plus_tax_plus_shipping(self):
        order = _place([{"product_id": "prod-001", "quantity": 2, "unit_price": 250.0}])
        assert order.pricing.subtotal == 500.0
        assert order.pricing.tax == 50.0
        assert order.pricing.shipping_cost == 50.0
        assert order.pricing.total_amount == 600.0

    def test_discount_reduces_total(self):
        order = _place(
            [{"product_id": "prod-001", "quantity": 1, "unit_price": 100.0}],
            shipping_cost=0.0,
            tax_rate=0.0,
            discount_amount=30.0,
        )
        assert order.pricing.total_amount == 70.0

    def test_total_never_goes_negative(self):
        pricing = OrderPricing.compute(subtotal=20.0, discount_amount=50.0)
        assert pricing.total_amount == 0.0

    def test_inconsistent_total_is_rejected(self):
        with pytest.raises(ValidationError):
            OrderPricing(subtotal=100.0, tax=0.0, shipping_cost=0.0, discount_amount=0.0, total_amount=90.0)

    def test_amounts_are_rounded_to_cents(self):
        order = _place(
            [{"product_id": "prod-001", "quantity": 3, "unit_price": 3.33}],
            shipping_cost=0.0,
            tax_rate=0.0825,
        )
        assert order.pricing.subtotal == 9.99
        assert order.pricing.tax == 0.82


class TestPlacement:
    def test_order_needs_items(self):
        with pytest.raises(ValidationError) as exc:
            _place([])
        assert "items" in exc.value.messages

    def test_negative_shipping_rejected(self):
        with pytest.raises(ValidationError):
            _place([{"product_id": "prod-001", "quantity": 1, "unit_price": 10.0}], shipping_cost=-1.0)

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError):
            _place([{"product_id": "prod-001", "quantity": 0, "unit_price": 10.0}])

    def test_pre_generated_identity_is_kept(self):
        order = Order.place(
            customer_id="cust-001",
            shop_id="shop-001",
            shop_owner_id="owner-001",
            items_data=[{"product_id": "prod-001", "quantity": 1, "unit_price": 10.0}],
            order_id="ord-fixed",
        )
        assert order.id == "ord-fixed"

    def test_placed_event_describes_order(self):
        order = _place(
            [
                {"product_id": "prod-001", "quantity": 1, "unit_price": 400.0, "customization_request_id": "req-1"},
                {"product_id": "prod-002", "quantity": 2, "unit_price": 50.0},
            ]
        )
        event = order._events[-1]
        assert isinstance(event, OrderPlaced)
        assert event.order_id == str(order.id)
        assert event.total_amount == order.pricing.total_amount
        assert json.loads(event.customization_request_ids) == ["req-1"]


class TestCustomizationLines:
    def test_customization_total_covers_only_linked_lines(self):
        order = _place(
            [
                {"product_id": "prod-001", "quantity": 1, "unit_price": 400.0, "customization_request_id": "req-1"},
                {"product_id": "prod-002", "quantity": 2, "unit_price": 50.0},
            ]
        )
        assert order.customization_request_ids == ["req-1"]
        assert order.customization_total() == 400.0

    def test_stock_order_has_no_customization_total(self):
        order = _place([{"product_id": "prod-002", "quantity": 2, "unit_price": 50.0}])
        assert order.is_customization_order is False
        assert order.customization_total() == 0.0


class TestPaymentStatus:
    def _order(self):
        order = _place([{"product_id": "prod-001", "quantity": 1, "unit_price": 10.0}])
        order._events.clear()
        return order

    def test_pending_to_paid(self):
        order = self._order()
        order.record_payment("paid")
        assert order.payment_status == "paid"
        assert order._events[-1].previous_status == "pending"

    def test_failed_can_be_retried(self):
        order = self._order()
        order.record_payment("failed")
        order.record_payment("pending")
        order.record_payment("paid")
        assert order.payment_status == "paid"

    def test_paid_can_be_refunded(self):
        order = self._order()
        order.record_payment("paid")
        order.record_payment("refunded")
        assert order.payment_status == "refunded"

    def test_refunded_is_terminal(self):
        order = self._order()
        order.record_payment("paid")
        order.record_payment("refunded")
        with pytest.raises(ConflictError) as exc:
            order.record_payment("paid")
        assert exc.value.current_status == "refunded"

    def test_pending_cannot_be_refunded(self):
        order = self._order()
        with pytest.raises(ConflictError):
            order.record_payment("refunded")
        assert order.payment_status == "pending"

    def test_unknown_payment_status(self):
        order = self._order()
        with pytest.raises(ValidationError):
            order.record_payment("bogus")

    def test_payment_does_not_touch_order_status(self):
        order = self._order()
        order.record_payment("paid")
        assert order.status == "pending"
