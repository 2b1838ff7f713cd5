"""Product listing — command and handler."""

import json

from protean import handle
from protean.fields import Boolean, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import PermissionDeniedError
from marketplace.product.product import Product
from marketplace.shop.shop import Shop


@marketplace.command(part_of="Product")
class ListProduct:
    shop_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    category_id = Identifier()
    tags = Text()  # JSON list
    designer_id = Identifier()
    is_customizable = Boolean(default=False)


@marketplace.command_handler(part_of=Product)
class ListProductHandler:
    @handle(ListProduct)
    def list_product(self, command):
        shop = current_domain.repository_for(Shop).get(command.shop_id)
        if command.actor_id != shop.owner_id:
            raise PermissionDeniedError({"actor_id": ["Only the shop owner can list products"]})

        tags = json.loads(command.tags) if isinstance(command.tags, str) else command.tags
        product = Product.create(
            shop_id=command.shop_id,
            name=command.name,
            price=command.price,
            category_id=command.category_id,
            tags=tags,
            designer_id=command.designer_id,
            is_customizable=bool(command.is_customizable),
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)
