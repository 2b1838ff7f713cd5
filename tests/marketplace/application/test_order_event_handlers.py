"""Application tests for reactions to order events in other aggregates.

Covers:
- OrderCustomizationEventHandler: releases, unlinks and completes requests
- OrderShopEventHandler: counts completed orders on the fulfilling shop
"""

import pytest
from marketplace.customization.request import CustomizationRequest, RequestStatus
from marketplace.customization.shop_selection import SelectShop
from marketplace.errors import ConflictError
from marketplace.order.acceptance import AcceptOrder, CancelOrder, RejectOrder
from marketplace.order.delivery import ConfirmDelivery
from marketplace.order.placement import PlaceCustomizationOrder
from marketplace.order.shipping import AddTrackingAndShip, MarkReadyToShip
from marketplace.shop.shop import Shop
from protean import current_domain

CUSTOMER = "cust-001"
SHOP_OWNER = "owner-001"


def _order(request_id):
    return current_domain.process(
        PlaceCustomizationOrder(request_id=request_id, customer_id=CUSTOMER),
        asynchronous=False,
    )


def _deliver(order_id):
    current_domain.process(AcceptOrder(order_id=order_id, actor_id=SHOP_OWNER), asynchronous=False)
    current_domain.process(MarkReadyToShip(order_id=order_id, actor_id=SHOP_OWNER), asynchronous=False)
    current_domain.process(
        AddTrackingAndShip(order_id=order_id, actor_id=SHOP_OWNER, tracking_number="TRACK-001"),
        asynchronous=False,
    )
    current_domain.process(ConfirmDelivery(order_id=order_id, actor_id=CUSTOMER), asynchronous=False)


def _request(request_id):
    return current_domain.repository_for(CustomizationRequest).get(request_id)


class TestShopRejection:
    def test_rejection_sends_request_back_to_shop_selection(self, approved_request_id):
        order_id = _order(approved_request_id)

        current_domain.process(
            RejectOrder(order_id=order_id, actor_id=SHOP_OWNER, reason="Out of blanks"), asynchronous=False
        )

        request = _request(approved_request_id)
        assert request.status == RequestStatus.APPROVED.value
        assert request.selected_shop_id is None
        assert request.order_id is None
        assert request.pricing.is_shop_priced is False
        assert "Out of blanks" in request.designer_notes

    def test_request_cannot_be_reordered_until_a_shop_is_chosen(self, approved_request_id, shop_id):
        order_id = _order(approved_request_id)
        current_domain.process(RejectOrder(order_id=order_id, actor_id=SHOP_OWNER), asynchronous=False)

        with pytest.raises(ConflictError):
            _order(approved_request_id)

        current_domain.process(
            SelectShop(request_id=approved_request_id, customer_id=CUSTOMER, shop_id=shop_id),
            asynchronous=False,
        )
        assert _request(approved_request_id).selected_shop_id == shop_id


class TestCustomerCancellation:
    def test_cancellation_frees_request_for_a_new_order(self, approved_request_id, shop_id):
        order_id = _order(approved_request_id)

        current_domain.process(CancelOrder(order_id=order_id, actor_id=CUSTOMER), asynchronous=False)

        request = _request(approved_request_id)
        assert request.order_id is None
        assert request.selected_shop_id == shop_id
        assert request.pricing.is_shop_priced is True

        new_order_id = _order(approved_request_id)
        assert _request(approved_request_id).order_id == new_order_id


class TestDelivery:
    def test_delivery_completes_request(self, approved_request_id):
        order_id = _order(approved_request_id)

        _deliver(order_id)

        request = _request(approved_request_id)
        assert request.status == RequestStatus.COMPLETED.value
        assert request.completed_at is not None

    def test_delivery_counts_towards_shop_reputation(self, approved_request_id, shop_id):
        _deliver(_order(approved_request_id))
        assert current_domain.repository_for(Shop).get(shop_id).completed_orders == 1
