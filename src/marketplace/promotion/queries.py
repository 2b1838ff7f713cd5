"""Read-only discount lookups: validation previews and applicable discounts."""

from dataclasses import dataclass
from datetime import UTC, datetime

from protean.utils.globals import current_domain

from marketplace.promotion.discount import Discount, DiscountScope
from marketplace.promotion.engine import DiscountCheck, calculate_discount, validate_discount


@dataclass(frozen=True)
class ApplicableDiscount:
    discount_id: str
    name: str
    discount_type: str
    scope: str
    value: float
    estimated_amount: float


def check_discount(
    discount_id: str,
    order_amount: float,
    user_id: str | None = None,
    product_ids: list[str] | None = None,
    category_ids: list[str] | None = None,
) -> DiscountCheck:
    """Validate a discount without consuming a use."""
    discount = current_domain.repository_for(Discount).get(discount_id)
    return validate_discount(
        discount,
        order_amount,
        user_id=user_id,
        product_ids=product_ids,
        category_ids=category_ids,
    )


def list_applicable_discounts(
    order_amount: float,
    user_id: str | None = None,
    product_ids: list[str] | None = None,
    category_ids: list[str] | None = None,
    business_owner_id: str | None = None,
    shipping_amount: float | None = None,
) -> list[ApplicableDiscount]:
    """Every active discount the order could use right now, best first.

    Scoped discounts are estimated against the whole order amount because
    line amounts are not known at this point.
    """
    now = datetime.now(UTC)
    repo = current_domain.repository_for(Discount)

    results = []
    for discount in repo.find_active(business_owner_id):
        check = validate_discount(
            discount,
            order_amount,
            user_id=user_id,
            product_ids=product_ids or [],
            category_ids=category_ids or [],
            now=now,
        )
        if not check.valid:
            continue
        scoped = order_amount if discount.scope in (DiscountScope.PRODUCT.value, DiscountScope.CATEGORY.value) else None
        results.append(
            ApplicableDiscount(
                discount_id=str(discount.id),
                name=discount.name,
                discount_type=discount.discount_type,
                scope=discount.scope,
                value=discount.value,
                estimated_amount=calculate_discount(
                    discount,
                    order_amount,
                    scoped_amount=scoped,
                    shipping_amount=shipping_amount,
                ),
            )
        )

    results.sort(key=lambda d: d.estimated_amount, reverse=True)
    return results
