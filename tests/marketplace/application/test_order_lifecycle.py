"""Application tests for the order lifecycle through command handlers.

Covers the happy path, actor checks, the conditional write that stops a
stale copy from overwriting a newer transition, and the escrow release on
shipment (exactly once, rolled back with the order when the ledger fails).
"""

import json

import pytest
from marketplace.errors import ConflictError, DependencyError, PermissionDeniedError
from marketplace.escrow import get_ledger
from marketplace.order.acceptance import AcceptOrder, CancelOrder, RejectOrder
from marketplace.order.delivery import ConfirmDelivery
from marketplace.order.order import Order, OrderStatus
from marketplace.order.payment import RecordPaymentStatus
from marketplace.order.placement import PlaceCustomizationOrder, PlaceOrder
from marketplace.order.repository import OrderRepository
from marketplace.order.shipping import AddTrackingAndShip, MarkReadyToShip
from protean import current_domain
from protean.exceptions import ValidationError

CUSTOMER = "cust-001"
SHOP_OWNER = "owner-001"


def _place_stock_order(shop_id, product_id):
    return current_domain.process(
        PlaceOrder(
            customer_id=CUSTOMER,
            shop_id=shop_id,
            items=json.dumps([{"product_id": product_id, "quantity": 1}]),
        ),
        asynchronous=False,
    )


def _place_customization_order(request_id):
    return current_domain.process(
        PlaceCustomizationOrder(request_id=request_id, customer_id=CUSTOMER),
        asynchronous=False,
    )


def _advance_to_ready(order_id):
    current_domain.process(AcceptOrder(order_id=order_id, actor_id=SHOP_OWNER), asynchronous=False)
    current_domain.process(MarkReadyToShip(order_id=order_id, actor_id=SHOP_OWNER), asynchronous=False)


def _ship(order_id, tracking_number="TRACK-001"):
    current_domain.process(
        AddTrackingAndShip(order_id=order_id, actor_id=SHOP_OWNER, tracking_number=tracking_number, carrier="UPS"),
        asynchronous=False,
    )


class TestFullOrderLifecycle:
    def test_happy_path_to_delivery(self, shop_id, product_id):
        repo = current_domain.repository_for(Order)

        order_id = _place_stock_order(shop_id, product_id)
        assert repo.get(order_id).status == OrderStatus.PENDING.value

        current_domain.process(AcceptOrder(order_id=order_id, actor_id=SHOP_OWNER), asynchronous=False)
        assert repo.get(order_id).status == OrderStatus.PROCESSING.value

        current_domain.process(MarkReadyToShip(order_id=order_id, actor_id=SHOP_OWNER), asynchronous=False)
        assert repo.get(order_id).status == OrderStatus.TO_SHIP.value

        _ship(order_id)
        order = repo.get(order_id)
        assert order.status == OrderStatus.SHIPPED.value
        assert order.tracking_number == "TRACK-001"
        assert order.carrier == "UPS"

        current_domain.process(ConfirmDelivery(order_id=order_id, actor_id=CUSTOMER), asynchronous=False)
        assert repo.get(order_id).status == OrderStatus.DELIVERED.value

    def test_shop_rejects_accepted_order(self, shop_id, product_id):
        order_id = _place_stock_order(shop_id, product_id)
        current_domain.process(AcceptOrder(order_id=order_id, actor_id=SHOP_OWNER), asynchronous=False)

        current_domain.process(
            RejectOrder(order_id=order_id, actor_id=SHOP_OWNER, reason="Kiln broke"), asynchronous=False
        )

        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == OrderStatus.CANCELLED.value
        assert order.cancellation_reason == "Kiln broke"

    def test_customer_cancels_pending_order(self, shop_id, product_id):
        order_id = _place_stock_order(shop_id, product_id)
        current_domain.process(CancelOrder(order_id=order_id, actor_id=CUSTOMER), asynchronous=False)
        assert current_domain.repository_for(Order).get(order_id).status == OrderStatus.CANCELLED.value

    def test_customer_cannot_cancel_accepted_order(self, shop_id, product_id):
        order_id = _place_stock_order(shop_id, product_id)
        current_domain.process(AcceptOrder(order_id=order_id, actor_id=SHOP_OWNER), asynchronous=False)

        with pytest.raises(ConflictError) as exc:
            current_domain.process(CancelOrder(order_id=order_id, actor_id=CUSTOMER), asynchronous=False)

        assert exc.value.current_status == "processing"
        assert current_domain.repository_for(Order).get(order_id).status == OrderStatus.PROCESSING.value

    def test_customer_cannot_accept(self, shop_id, product_id):
        order_id = _place_stock_order(shop_id, product_id)
        with pytest.raises(PermissionDeniedError):
            current_domain.process(AcceptOrder(order_id=order_id, actor_id=CUSTOMER), asynchronous=False)
        assert current_domain.repository_for(Order).get(order_id).status == OrderStatus.PENDING.value

    def test_blank_tracking_number_rejected(self, shop_id, product_id):
        order_id = _place_stock_order(shop_id, product_id)
        _advance_to_ready(order_id)
        with pytest.raises(ValidationError):
            _ship(order_id, tracking_number="   ")
        assert current_domain.repository_for(Order).get(order_id).status == OrderStatus.TO_SHIP.value


class TestConditionalWrites:
    def test_stale_copy_cannot_overwrite_newer_transition(self, shop_id, product_id):
        order_id = _place_stock_order(shop_id, product_id)
        repo = current_domain.repository_for(Order)
        shop_copy = repo.get(order_id)
        customer_copy = repo.get(order_id)

        shop_copy.accept(SHOP_OWNER)
        repo.save_transition(shop_copy, "pending")

        customer_copy.cancel(CUSTOMER)
        with pytest.raises(ConflictError) as exc:
            repo.save_transition(customer_copy, "pending")

        assert exc.value.current_status == "processing"
        assert repo.get(order_id).status == OrderStatus.PROCESSING.value

    def test_write_in_between_conflicts_even_without_status_change(self, shop_id, product_id):
        order_id = _place_stock_order(shop_id, product_id)
        repo = current_domain.repository_for(Order)
        shop_copy = repo.get(order_id)

        current_domain.process(RecordPaymentStatus(order_id=order_id, payment_status="paid"), asynchronous=False)

        shop_copy.accept(SHOP_OWNER)
        with pytest.raises(ConflictError) as exc:
            repo.save_transition(shop_copy, "pending")

        assert exc.value.current_status == "pending"
        stored = repo.get(order_id)
        assert stored.status == OrderStatus.PENDING.value
        assert stored.payment_status == "paid"


class TestEscrowOnShipment:
    def test_customization_order_releases_escrow(self, approved_request_id, shop_id):
        order_id = _place_customization_order(approved_request_id)
        _advance_to_ready(order_id)

        _ship(order_id)

        releases = get_ledger().releases_for(order_id)
        assert releases == [{"method": "release_funds", "order_id": order_id, "shop_id": shop_id, "amount": 150.0}]
        order = current_domain.repository_for(Order).get(order_id)
        assert order.escrow_amount == 150.0
        assert order.escrow_released_at is not None

    def test_stock_order_releases_nothing(self, shop_id, product_id):
        order_id = _place_stock_order(shop_id, product_id)
        _advance_to_ready(order_id)
        _ship(order_id)
        assert get_ledger().calls == []

    def test_second_ship_conflicts_and_releases_once(self, approved_request_id):
        order_id = _place_customization_order(approved_request_id)
        _advance_to_ready(order_id)
        _ship(order_id)

        with pytest.raises(ConflictError):
            _ship(order_id, tracking_number="TRACK-002")

        assert len(get_ledger().releases_for(order_id)) == 1
        assert current_domain.repository_for(Order).get(order_id).tracking_number == "TRACK-001"

    def test_overlapping_ship_requests_release_once(self, approved_request_id, race):
        order_id = _place_customization_order(approved_request_id)
        _advance_to_ready(order_id)

        outcomes = race(
            [
                AddTrackingAndShip(order_id=order_id, actor_id=SHOP_OWNER, tracking_number=tracking)
                for tracking in ("TRACK-001", "TRACK-002")
            ],
            OrderRepository,
            "save_transition",
        )

        conflicts = [outcome for outcome in outcomes if isinstance(outcome, ConflictError)]
        assert len(conflicts) == 1
        assert conflicts[0].current_status == "shipped"
        assert outcomes.count(None) == 1
        assert len(get_ledger().releases_for(order_id)) == 1
        assert current_domain.repository_for(Order).get(order_id).status == OrderStatus.SHIPPED.value

    def test_ledger_failure_rolls_back_shipment(self, approved_request_id):
        order_id = _place_customization_order(approved_request_id)
        _advance_to_ready(order_id)
        get_ledger().configure(should_succeed=False, failure_reason="Ledger offline")

        with pytest.raises(DependencyError):
            _ship(order_id)

        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == OrderStatus.TO_SHIP.value
        assert order.tracking_number is None
        assert order.escrow_released_at is None

    def test_ship_succeeds_after_ledger_recovers(self, approved_request_id):
        order_id = _place_customization_order(approved_request_id)
        _advance_to_ready(order_id)
        ledger = get_ledger()
        ledger.configure(should_succeed=False)
        with pytest.raises(DependencyError):
            _ship(order_id)

        ledger.configure(should_succeed=True)
        _ship(order_id)

        assert current_domain.repository_for(Order).get(order_id).status == OrderStatus.SHIPPED.value
        assert len(ledger.releases_for(order_id)) == 2


class TestPaymentStatus:
    def test_payment_recorded(self, shop_id, product_id):
        order_id = _place_stock_order(shop_id, product_id)
        current_domain.process(RecordPaymentStatus(order_id=order_id, payment_status="paid"), asynchronous=False)
        assert current_domain.repository_for(Order).get(order_id).payment_status == "paid"

    def test_invalid_payment_change_conflicts(self, shop_id, product_id):
        order_id = _place_stock_order(shop_id, product_id)
        with pytest.raises(ConflictError):
            current_domain.process(
                RecordPaymentStatus(order_id=order_id, payment_status="refunded"), asynchronous=False
            )
