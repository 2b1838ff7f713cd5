"""Marketplace API package."""

from marketplace.api.errors import register_marketplace_exception_handlers
from marketplace.api.routes import (
    customization_router,
    discount_router,
    order_router,
    product_router,
    shop_router,
)

__all__ = [
    "customization_router",
    "discount_router",
    "order_router",
    "product_router",
    "register_marketplace_exception_handlers",
    "shop_router",
]
