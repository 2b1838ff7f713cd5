"""Product aggregate (CQRS) — the marketplace facts customization relies on.

Only what matching and pricing need is kept here: the owning shop, the
designer of record, category, tags and base price.
"""

import json
from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Float, Identifier, String, Text

from marketplace.domain import marketplace
from marketplace.product.events import ProductListed


@marketplace.aggregate
class Product:
    shop_id = Identifier(required=True)
    designer_id = Identifier()
    name = String(required=True, max_length=255)
    category_id = Identifier()
    tags = Text()  # JSON list of tags
    price = Float(required=True, min_value=0.0)
    is_customizable = Boolean(default=False)
    created_at = DateTime()

    @classmethod
    def create(
        cls,
        shop_id: str,
        name: str,
        price: float,
        category_id: str | None = None,
        tags: list[str] | None = None,
        designer_id: str | None = None,
        is_customizable: bool = False,
    ):
        now = datetime.now(UTC)
        product = cls(
            shop_id=shop_id,
            designer_id=designer_id,
            name=name,
            category_id=category_id,
            tags=json.dumps(tags or []),
            price=price,
            is_customizable=is_customizable,
            created_at=now,
        )
        product.raise_(
            ProductListed(
                product_id=str(product.id),
                shop_id=shop_id,
                name=name,
                price=price,
                is_customizable=is_customizable,
                listed_at=now,
            )
        )
        return product

    @property
    def tag_list(self) -> list[str]:
        return json.loads(self.tags) if self.tags else []
