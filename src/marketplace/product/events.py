"""Product domain events."""

from protean.fields import Boolean, DateTime, Float, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Product")
class ProductListed:
    __version__ = 1

    product_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    name = String(required=True)
    price = Float(required=True)
    is_customizable = Boolean(default=False)
    listed_at = DateTime(required=True)
