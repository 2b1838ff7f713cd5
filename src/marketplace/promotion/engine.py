"""Discount engine — pure eligibility and amount calculation.

Nothing here touches persistence. ``validate_discount`` decides whether a
discount may be used for an order and ``calculate_discount`` decides how much
it is worth. Redemption (the usage increment) lives in ``redemption.py``.

Calculation base by scope:
    shipping          → the shipping amount
    product/category  → the sum of line amounts whose product/category is targeted
    order             → the whole order amount
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from marketplace.promotion.discount import DiscountScope, DiscountStatus, DiscountType, as_utc


class RejectionCode(Enum):
    INACTIVE = "inactive"
    NOT_STARTED = "not_started"
    EXPIRED = "expired"
    BELOW_MINIMUM = "below_minimum"
    USER_NOT_ELIGIBLE = "user_not_eligible"
    USAGE_EXHAUSTED = "usage_exhausted"
    NOT_APPLICABLE = "not_applicable"


@dataclass(frozen=True)
class DiscountCheck:
    """Outcome of validating a discount against an order."""

    valid: bool
    code: RejectionCode | None = None
    reason: str | None = None

    @classmethod
    def ok(cls) -> "DiscountCheck":
        return cls(valid=True)

    @classmethod
    def reject(cls, code: RejectionCode, reason: str) -> "DiscountCheck":
        return cls(valid=False, code=code, reason=reason)


@dataclass(frozen=True)
class PricedLine:
    """The slice of an order line a scoped discount cares about."""

    product_id: str
    category_id: str | None
    amount: float


def _round(amount: float) -> float:
    return round(amount, 2)


def calculate_discount(
    discount,
    order_amount: float,
    scoped_amount: float | None = None,
    shipping_amount: float | None = None,
) -> float:
    """Return the monetary value of ``discount``, never negative."""
    scope = DiscountScope(discount.scope or DiscountScope.ORDER.value)
    if scope == DiscountScope.SHIPPING:
        base = shipping_amount or 0.0
    elif scope in (DiscountScope.PRODUCT, DiscountScope.CATEGORY):
        base = scoped_amount or 0.0
    else:
        base = order_amount or 0.0

    if DiscountType(discount.discount_type) == DiscountType.PERCENTAGE:
        amount = base * discount.value / 100
        if discount.max_discount_amount is not None:
            amount = min(amount, discount.max_discount_amount)
    else:
        amount = min(discount.value, base)

    return _round(max(0.0, amount))


def scoped_amount_for(discount, lines: Iterable[PricedLine]) -> float:
    """Sum the lines a product- or category-scoped discount targets."""
    scope = DiscountScope(discount.scope or DiscountScope.ORDER.value)
    targets = set(discount.targets)
    if scope == DiscountScope.PRODUCT:
        return _round(sum(line.amount for line in lines if line.product_id in targets))
    if scope == DiscountScope.CATEGORY:
        return _round(sum(line.amount for line in lines if line.category_id and line.category_id in targets))
    return 0.0


def validate_discount(
    discount,
    order_amount: float,
    user_id: str | None = None,
    product_ids: Iterable[str] | None = None,
    category_ids: Iterable[str] | None = None,
    now: datetime | None = None,
) -> DiscountCheck:
    """Check every usage rule in order and report the first failure."""
    now = now or datetime.now(UTC)

    if discount.status != DiscountStatus.ACTIVE.value:
        return DiscountCheck.reject(RejectionCode.INACTIVE, "Discount is not active")

    if now < as_utc(discount.start_date):
        return DiscountCheck.reject(RejectionCode.NOT_STARTED, "Discount has not started yet")

    if now > as_utc(discount.end_date):
        return DiscountCheck.reject(RejectionCode.EXPIRED, "Discount has expired")

    if discount.min_order_amount is not None and order_amount < discount.min_order_amount:
        return DiscountCheck.reject(
            RejectionCode.BELOW_MINIMUM,
            f"Minimum order amount of {discount.min_order_amount:.2f} required",
        )

    allowed = discount.allowed_users
    if allowed and user_id not in allowed:
        return DiscountCheck.reject(RejectionCode.USER_NOT_ELIGIBLE, "Discount is not applicable to this user")

    if discount.usage_limit is not None and (discount.used_count or 0) >= discount.usage_limit:
        return DiscountCheck.reject(RejectionCode.USAGE_EXHAUSTED, "Discount has reached its usage limit")

    # Target overlap is only checked when the caller says what is in the order
    scope = DiscountScope(discount.scope or DiscountScope.ORDER.value)
    targets = set(discount.targets)
    if scope == DiscountScope.PRODUCT and product_ids is not None and targets.isdisjoint(product_ids):
        return DiscountCheck.reject(RejectionCode.NOT_APPLICABLE, "Discount does not apply to any product in this order")
    if scope == DiscountScope.CATEGORY and category_ids is not None and targets.isdisjoint(category_ids):
        return DiscountCheck.reject(
            RejectionCode.NOT_APPLICABLE, "Discount does not apply to any category in this order"
        )

    return DiscountCheck.ok()
