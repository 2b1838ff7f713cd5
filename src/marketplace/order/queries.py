"""Cached order reads built on the OrderSummary projection."""

import structlog
from protean.utils.globals import current_domain

from marketplace.cache import cache_ttl, get_cache
from marketplace.projections.order_summary import (
    OrderSummary,
    customer_orders_cache_key,
    order_cache_key,
    shop_orders_cache_key,
)

logger = structlog.get_logger(__name__)


def _as_dict(summary: OrderSummary) -> dict:
    return {
        "order_id": str(summary.order_id),
        "customer_id": str(summary.customer_id),
        "shop_id": str(summary.shop_id),
        "status": summary.status,
        "payment_status": summary.payment_status,
        "item_count": summary.item_count,
        "total_amount": summary.total_amount,
        "currency": summary.currency,
        "is_customization": summary.is_customization,
        "tracking_number": summary.tracking_number,
        "carrier": summary.carrier,
        "placed_at": summary.placed_at.isoformat() if summary.placed_at else None,
        "updated_at": summary.updated_at.isoformat() if summary.updated_at else None,
    }


def get_order_summary(order_id: str) -> dict:
    """Return one order's summary. Raises ObjectNotFoundError for unknown ids."""
    cache = get_cache()
    key = order_cache_key(order_id)
    cached = cache.get(key)
    if cached is not None:
        return cached

    summary = current_domain.repository_for(OrderSummary).get(order_id)
    view = _as_dict(summary)
    cache.set(key, view, ttl=cache_ttl())
    return view


def _list_cached(key: str, **filters) -> list[dict]:
    cache = get_cache()
    cached = cache.get(key)
    if cached is not None:
        return cached

    repo = current_domain.repository_for(OrderSummary)
    results = repo._dao.query.filter(**filters).all().items
    results = sorted(results, key=lambda summary: summary.placed_at, reverse=True)
    views = [_as_dict(summary) for summary in results]
    cache.set(key, views, ttl=cache_ttl())
    logger.debug("Order list cached", key=key, count=len(views))
    return views


def orders_for_customer(customer_id: str) -> list[dict]:
    return _list_cached(customer_orders_cache_key(customer_id), customer_id=customer_id)


def orders_for_shop(shop_id: str) -> list[dict]:
    return _list_cached(shop_orders_cache_key(shop_id), shop_id=shop_id)
