"""Application tests for cached order reads and their invalidation."""

import json

import pytest
from marketplace.cache import get_cache
from marketplace.order.acceptance import AcceptOrder
from marketplace.order.placement import PlaceOrder
from marketplace.order.queries import get_order_summary, orders_for_customer, orders_for_shop
from marketplace.projections.order_summary import (
    OrderSummary,
    customer_orders_cache_key,
    order_cache_key,
    shop_orders_cache_key,
)
from protean import current_domain
from protean.exceptions import ObjectNotFoundError

CUSTOMER = "cust-001"
SHOP_OWNER = "owner-001"


def _place(shop_id, product_id, quantity=1):
    return current_domain.process(
        PlaceOrder(
            customer_id=CUSTOMER,
            shop_id=shop_id,
            items=json.dumps([{"product_id": product_id, "quantity": quantity}]),
        ),
        asynchronous=False,
    )


class TestOrderSummaryProjection:
    def test_placed_order_is_projected(self, shop_id, product_id):
        order_id = _place(shop_id, product_id, quantity=3)

        summary = current_domain.repository_for(OrderSummary).get(order_id)
        assert summary.status == "pending"
        assert summary.item_count == 3
        assert summary.shop_id == shop_id
        assert summary.is_customization is False

    def test_customization_order_is_flagged(self, approved_request_id):
        from marketplace.order.placement import PlaceCustomizationOrder

        order_id = current_domain.process(
            PlaceCustomizationOrder(request_id=approved_request_id, customer_id=CUSTOMER),
            asynchronous=False,
        )
        assert current_domain.repository_for(OrderSummary).get(order_id).is_customization is True


class TestCachedReads:
    def test_summary_is_cached(self, shop_id, product_id):
        order_id = _place(shop_id, product_id)

        view = get_order_summary(order_id)

        assert view["order_id"] == order_id
        assert get_cache().get(order_cache_key(order_id)) == view

    def test_transition_evicts_cached_summary(self, shop_id, product_id):
        order_id = _place(shop_id, product_id)
        assert get_order_summary(order_id)["status"] == "pending"

        current_domain.process(AcceptOrder(order_id=order_id, actor_id=SHOP_OWNER), asynchronous=False)

        assert get_cache().get(order_cache_key(order_id)) is None
        assert get_order_summary(order_id)["status"] == "processing"

    def test_new_order_evicts_cached_lists(self, shop_id, product_id):
        _place(shop_id, product_id)
        assert len(orders_for_customer(CUSTOMER)) == 1
        assert len(orders_for_shop(shop_id)) == 1

        _place(shop_id, product_id)

        assert get_cache().get(customer_orders_cache_key(CUSTOMER)) is None
        assert get_cache().get(shop_orders_cache_key(shop_id)) is None
        assert len(orders_for_customer(CUSTOMER)) == 2

    def test_lists_are_newest_first(self, shop_id, product_id):
        first = _place(shop_id, product_id)
        second = _place(shop_id, product_id)
        assert [view["order_id"] for view in orders_for_customer(CUSTOMER)] == [second, first]

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            get_order_summary("no-such-order")

    def test_zero_ttl_disables_caching(self, shop_id, product_id, monkeypatch):
        monkeypatch.setenv("ORDER_CACHE_TTL", "0")
        order_id = _place(shop_id, product_id)
        get_order_summary(order_id)
        assert get_cache().get(order_cache_key(order_id)) is None
