"""Discount redemption — validate, price and count one use of a discount.

``quote_discount`` checks and prices a discount without touching it;
``count_redemption`` records the use with a guarded write that commits at
once. Order placement quotes first and counts last, once the order itself is
known to be valid. The ApplyDiscount command does both through
``redeem_discount``.
"""

from collections.abc import Iterable

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import ConflictError
from marketplace.promotion.discount import Discount, DiscountScope
from marketplace.promotion.engine import (
    PricedLine,
    calculate_discount,
    scoped_amount_for,
    validate_discount,
)

logger = structlog.get_logger(__name__)

_TARGETED_SCOPES = (DiscountScope.PRODUCT.value, DiscountScope.CATEGORY.value)


def quote_discount(
    discount_id: str,
    order_amount: float,
    user_id: str | None = None,
    lines: Iterable[PricedLine] | None = None,
    scoped_amount: float | None = None,
    shipping_amount: float | None = None,
) -> tuple[Discount, float]:
    """Load a discount, check it against the order and price it.

    Raises ConflictError with the engine's reason when the discount cannot be
    used. Product and category discounts need either the order lines or the
    targeted amount; without them there is nothing to price.
    """
    discount = current_domain.repository_for(Discount).get(discount_id)

    lines = list(lines or [])
    check = validate_discount(
        discount,
        order_amount,
        user_id=user_id,
        product_ids=[line.product_id for line in lines] if lines else None,
        category_ids=[line.category_id for line in lines if line.category_id] if lines else None,
    )
    if not check.valid:
        logger.info(
            "Discount rejected",
            discount_id=discount_id,
            code=check.code.value,
            reason=check.reason,
        )
        raise ConflictError(
            {"discount": [check.reason]},
            current_status=discount.status,
            code=check.code.value,
        )

    if scoped_amount is None and lines:
        scoped_amount = scoped_amount_for(discount, lines)
    if scoped_amount is None and discount.scope in _TARGETED_SCOPES:
        raise ValidationError(
            {"scoped_amount": [f"A {discount.scope} discount needs the amount of the targeted lines"]}
        )

    amount = calculate_discount(
        discount,
        order_amount,
        scoped_amount=scoped_amount,
        shipping_amount=shipping_amount,
    )
    return discount, amount


def count_redemption(discount: Discount, amount: float, order_id: str | None = None) -> None:
    """Record one use of ``discount``; the loser of a race for the last use gets a ConflictError."""
    expected_used_count = discount.used_count or 0
    discount.redeem(order_id=order_id, amount=amount)
    current_domain.repository_for(Discount).save_redemption(discount, expected_used_count)

    logger.info(
        "Discount redeemed",
        discount_id=str(discount.id),
        order_id=order_id,
        amount=amount,
        used_count=discount.used_count,
    )


def redeem_discount(
    discount_id: str,
    order_amount: float,
    user_id: str | None = None,
    lines: Iterable[PricedLine] | None = None,
    scoped_amount: float | None = None,
    shipping_amount: float | None = None,
    order_id: str | None = None,
) -> float:
    """Apply a discount and return the amount it takes off."""
    discount, amount = quote_discount(
        discount_id,
        order_amount,
        user_id=user_id,
        lines=lines,
        scoped_amount=scoped_amount,
        shipping_amount=shipping_amount,
    )
    count_redemption(discount, amount, order_id=order_id)
    return amount


@marketplace.command(part_of="Discount")
class ApplyDiscount:
    """Redeem a discount outside of order placement."""

    discount_id = Identifier(required=True)
    order_amount = Float(required=True, min_value=0.0)
    scoped_amount = Float(min_value=0.0)
    shipping_amount = Float(min_value=0.0)
    user_id = Identifier()
    order_id = Identifier()


@marketplace.command_handler(part_of=Discount)
class DiscountRedemptionHandler:
    @handle(ApplyDiscount)
    def apply_discount(self, command):
        return redeem_discount(
            discount_id=command.discount_id,
            order_amount=command.order_amount,
            user_id=command.user_id,
            scoped_amount=command.scoped_amount,
            shipping_amount=command.shipping_amount,
            order_id=command.order_id,
        )
