"""Discount aggregate (CQRS) — promotional price reductions owned by a business.

Discounts are authored by shop or platform administrators. The fulfillment
engine only reads them, apart from the monotonic ``used_count`` increment
recorded when an order redeems one.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from marketplace.domain import marketplace
from marketplace.errors import ConflictError
from marketplace.promotion.events import (
    DiscountCreated,
    DiscountDeactivated,
    DiscountRedeemed,
    DiscountUpdated,
)


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class DiscountScope(Enum):
    ORDER = "order"
    PRODUCT = "product"
    CATEGORY = "category"
    SHIPPING = "shipping"


class DiscountStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


# Fields an administrator may change after creation
_EDITABLE_FIELDS = (
    "name",
    "description",
    "discount_type",
    "scope",
    "value",
    "min_order_amount",
    "max_discount_amount",
    "start_date",
    "end_date",
    "usage_limit",
)


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC so window comparisons never mix kinds."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@marketplace.aggregate
class Discount:
    name = String(required=True, max_length=200)
    description = Text()
    discount_type = String(required=True, choices=DiscountType)
    scope = String(choices=DiscountScope, default=DiscountScope.ORDER.value)
    value = Float(required=True, min_value=0.0)
    target_ids = Text()  # JSON list of product or category ids
    min_order_amount = Float(min_value=0.0)
    max_discount_amount = Float(min_value=0.0)
    start_date = DateTime(required=True)
    end_date = DateTime(required=True)
    status = String(choices=DiscountStatus, default=DiscountStatus.ACTIVE.value)
    applicable_user_ids = Text()  # JSON list; empty means everyone
    usage_limit = Integer(min_value=1)
    used_count = Integer(default=0, min_value=0)
    business_owner_id = Identifier(required=True)
    created_by = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def usage_cannot_exceed_limit(self):
        if self.usage_limit is not None and (self.used_count or 0) > self.usage_limit:
            raise ValidationError({"used_count": ["Usage count cannot exceed the usage limit"]})

    @invariant.post
    def validity_window_must_be_ordered(self):
        if self.start_date and self.end_date and as_utc(self.end_date) < as_utc(self.start_date):
            raise ValidationError({"end_date": ["End date must be after start date"]})

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and self.value is not None and self.value > 100:
            raise ValidationError({"value": ["Percentage discounts cannot exceed 100"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        name: str,
        discount_type: str,
        value: float,
        start_date: datetime,
        end_date: datetime,
        business_owner_id: str,
        scope: str = DiscountScope.ORDER.value,
        description: str | None = None,
        target_ids: list[str] | None = None,
        min_order_amount: float | None = None,
        max_discount_amount: float | None = None,
        applicable_user_ids: list[str] | None = None,
        usage_limit: int | None = None,
        created_by: str | None = None,
    ):
        """Create an active discount for a business."""
        now = datetime.now(UTC)
        discount = cls(
            name=name,
            description=description,
            discount_type=discount_type,
            scope=scope,
            value=value,
            target_ids=json.dumps(target_ids or []),
            min_order_amount=min_order_amount,
            max_discount_amount=max_discount_amount,
            start_date=start_date,
            end_date=end_date,
            status=DiscountStatus.ACTIVE.value,
            applicable_user_ids=json.dumps(applicable_user_ids or []),
            usage_limit=usage_limit,
            used_count=0,
            business_owner_id=business_owner_id,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        discount.raise_(
            DiscountCreated(
                discount_id=str(discount.id),
                name=name,
                discount_type=discount_type,
                scope=scope,
                value=value,
                business_owner_id=business_owner_id,
                start_date=start_date,
                end_date=end_date,
                usage_limit=usage_limit,
                created_at=now,
            )
        )
        return discount

    # -------------------------------------------------------------------
    # JSON-backed list accessors
    # -------------------------------------------------------------------
    @property
    def targets(self) -> list[str]:
        return json.loads(self.target_ids) if self.target_ids else []

    @property
    def allowed_users(self) -> list[str]:
        return json.loads(self.applicable_user_ids) if self.applicable_user_ids else []

    # -------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------
    def update(self, **changes) -> None:
        """Apply an administrator's edits. Unknown or ``None`` values are ignored."""
        applied = {}
        with atomic_change(self):
            for field_name in _EDITABLE_FIELDS:
                value = changes.get(field_name)
                if value is not None:
                    setattr(self, field_name, value)
                    applied[field_name] = value
            if changes.get("target_ids") is not None:
                self.target_ids = json.dumps(changes["target_ids"])
                applied["target_ids"] = changes["target_ids"]
            if changes.get("applicable_user_ids") is not None:
                self.applicable_user_ids = json.dumps(changes["applicable_user_ids"])
                applied["applicable_user_ids"] = changes["applicable_user_ids"]

        if not applied:
            return

        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(
            DiscountUpdated(
                discount_id=str(self.id),
                changes=json.dumps(applied, default=str),
                updated_at=now,
            )
        )

    def deactivate(self) -> None:
        if self.status == DiscountStatus.INACTIVE.value:
            raise ConflictError(
                {"status": ["Discount is already inactive"]},
                current_status=self.status,
            )
        now = datetime.now(UTC)
        self.status = DiscountStatus.INACTIVE.value
        self.updated_at = now
        self.raise_(DiscountDeactivated(discount_id=str(self.id), deactivated_at=now))

    # -------------------------------------------------------------------
    # Redemption
    # -------------------------------------------------------------------
    def redeem(self, order_id: str | None, amount: float) -> None:
        """Count one successful use of this discount."""
        if self.usage_limit is not None and (self.used_count or 0) >= self.usage_limit:
            raise ConflictError(
                {"discount": ["Discount has reached its usage limit"]},
                current_status=self.status,
            )
        now = datetime.now(UTC)
        self.used_count = (self.used_count or 0) + 1
        self.updated_at = now
        self.raise_(
            DiscountRedeemed(
                discount_id=str(self.id),
                order_id=order_id,
                amount=amount,
                used_count=self.used_count,
                redeemed_at=now,
            )
        )
