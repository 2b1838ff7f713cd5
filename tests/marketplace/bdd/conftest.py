"""Shared BDD fixtures and step definitions for the Marketplace domain."""

import pytest
from marketplace.customization.events import (
    CustomizationCancelled,
    DesignApproved,
    DesignerAssigned,
    DesignSubmitted,
    RevisionRequested,
    ShopSelected,
)
from marketplace.customization.pricing import PricingAgreementBuilder
from marketplace.customization.request import CustomizationRequest
from marketplace.errors import ConflictError, PermissionDeniedError
from marketplace.order.events import (
    OrderAccepted,
    OrderCancelled,
    OrderDelivered,
    OrderReadyToShip,
    OrderRejected,
    OrderShipped,
)
from marketplace.order.order import Order
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

CUSTOMER = "cust-001"
DESIGNER = "designer-001"
SHOP_OWNER = "owner-001"

# Map event name strings to classes for dynamic lookup
_EVENT_CLASSES = {
    "OrderAccepted": OrderAccepted,
    "OrderRejected": OrderRejected,
    "OrderCancelled": OrderCancelled,
    "OrderReadyToShip": OrderReadyToShip,
    "OrderShipped": OrderShipped,
    "OrderDelivered": OrderDelivered,
    "DesignerAssigned": DesignerAssigned,
    "DesignSubmitted": DesignSubmitted,
    "DesignApproved": DesignApproved,
    "RevisionRequested": RevisionRequested,
    "CustomizationCancelled": CustomizationCancelled,
    "ShopSelected": ShopSelected,
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for the exception raised by a When step."""
    return {"exc": None}


@pytest.fixture()
def actors():
    """Actor names used in feature files, mapped to their ids."""
    return {
        "customer": CUSTOMER,
        "designer": DESIGNER,
        "shop owner": SHOP_OWNER,
        "stranger": "stranger-001",
    }


# ---------------------------------------------------------------------------
# Given steps: orders
# ---------------------------------------------------------------------------
@given("a pending stock order", target_fixture="order")
def pending_stock_order():
    order = Order.place(
        customer_id=CUSTOMER,
        shop_id="shop-001",
        shop_owner_id=SHOP_OWNER,
        items_data=[{"product_id": "prod-001", "quantity": 2, "unit_price": 250.0}],
        shipping_cost=50.0,
        tax_rate=0.1,
    )
    order._events.clear()
    return order


@given(
    parsers.cfparse("a pending order for a customization costing {amount:f}"),
    target_fixture="order",
)
def pending_customization_order(amount):
    order = Order.place(
        customer_id=CUSTOMER,
        shop_id="shop-001",
        shop_owner_id=SHOP_OWNER,
        items_data=[
            {
                "product_id": "prod-001",
                "quantity": 1,
                "unit_price": amount,
                "customization_request_id": "req-001",
            }
        ],
        tax_rate=0.0,
    )
    order._events.clear()
    return order


@given("the shop has accepted the order")
def shop_accepted(order):
    order.accept(SHOP_OWNER)
    order._events.clear()


@given("the order is ready to ship")
def order_ready_to_ship(order):
    order.mark_ready_to_ship(SHOP_OWNER)
    order._events.clear()


@given("the order has shipped")
def order_has_shipped(order):
    order.add_tracking_and_ship(SHOP_OWNER, "TRACK-001", "UPS")
    order._events.clear()


# ---------------------------------------------------------------------------
# Given steps: customization requests
# ---------------------------------------------------------------------------
@given("a new customization request", target_fixture="customization")
def new_customization_request():
    customization = CustomizationRequest.create(
        product_id="prod-001",
        customer_id=CUSTOMER,
        customer_notes="Add my dog to the mug",
    )
    customization._events.clear()
    return customization


@given("the designer has accepted the request")
def designer_accepted(customization):
    customization.designer_accept(DESIGNER)
    customization._events.clear()


@given(parsers.cfparse('the customer has selected shop "{shop_id}"'))
def customer_selected_shop(customization, shop_id):
    customization.select_shop(CUSTOMER, shop_id)
    customization._events.clear()


@given(parsers.cfparse("the designer has set an upfront design fee of {fee:f}"))
def designer_set_pricing(customization, fee):
    customization.set_pricing(DESIGNER, PricingAgreementBuilder(design_fee=fee, payment_type="upfront").build())
    customization._events.clear()


@given("the designer has submitted a design")
def designer_submitted(customization):
    customization.submit_design(DESIGNER, "files/final.png", preview_image="files/preview.png")
    customization._events.clear()


# ---------------------------------------------------------------------------
# Then steps (shared)
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert order.status == status


@then(parsers.cfparse('the request status is "{status}"'))
def request_status_is(customization, status):
    assert customization.status == status


@then(parsers.cfparse("the order raises {event_type}"))
def order_raises(order, event_type):
    event_cls = _EVENT_CLASSES[event_type]
    assert any(isinstance(e, event_cls) for e in order._events), f"No {event_type} event found"


@then(parsers.cfparse("the request raises {event_type}"))
def request_raises(customization, event_type):
    event_cls = _EVENT_CLASSES[event_type]
    assert any(isinstance(e, event_cls) for e in customization._events), f"No {event_type} event found"


@then("the action is refused as a conflict")
def refused_as_conflict(error):
    assert isinstance(error["exc"], ConflictError), f"Expected ConflictError, got {error['exc']!r}"


@then(parsers.cfparse('the conflict reports current status "{status}"'))
def conflict_reports_status(error, status):
    assert error["exc"].current_status == status


@then("the action is refused as not permitted")
def refused_as_not_permitted(error):
    assert isinstance(error["exc"], PermissionDeniedError), f"Expected PermissionDeniedError, got {error['exc']!r}"


@then("the action fails with a validation error")
def fails_with_validation_error(error):
    assert isinstance(error["exc"], ValidationError), f"Expected ValidationError, got {error['exc']!r}"
