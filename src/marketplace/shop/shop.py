"""Shop aggregate (CQRS) — a printing/fulfillment business on the marketplace.

A shop is a candidate fulfiller for customization requests once it is
active, approved by the platform and offers printing.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from marketplace.domain import marketplace
from marketplace.errors import ConflictError
from marketplace.shop.events import (
    ShopApproved,
    ShopProfileUpdated,
    ShopRegistered,
    ShopRejected,
    ShopReviewRecorded,
)


class ApprovalStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@marketplace.aggregate
class Shop:
    owner_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    is_active = Boolean(default=True)
    approval_status = String(choices=ApprovalStatus, default=ApprovalStatus.PENDING.value)
    offers_printing = Boolean(default=False)
    specialties = Text()  # JSON list of free-text specialties
    supported_categories = Text()  # JSON list of category ids
    average_rating = Float(default=0.0, min_value=0.0, max_value=5.0)
    total_reviews = Integer(default=0, min_value=0)
    completed_orders = Integer(default=0, min_value=0)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(
        cls,
        owner_id: str,
        name: str,
        offers_printing: bool = False,
        specialties: list[str] | None = None,
        supported_categories: list[str] | None = None,
    ):
        """Register a shop; it stays out of matching until approved."""
        now = datetime.now(UTC)
        shop = cls(
            owner_id=owner_id,
            name=name,
            is_active=True,
            approval_status=ApprovalStatus.PENDING.value,
            offers_printing=offers_printing,
            specialties=json.dumps(specialties or []),
            supported_categories=json.dumps(supported_categories or []),
            created_at=now,
            updated_at=now,
        )
        shop.raise_(
            ShopRegistered(
                shop_id=str(shop.id),
                owner_id=owner_id,
                name=name,
                offers_printing=offers_printing,
                registered_at=now,
            )
        )
        return shop

    @property
    def specialty_list(self) -> list[str]:
        return json.loads(self.specialties) if self.specialties else []

    @property
    def category_list(self) -> list[str]:
        return json.loads(self.supported_categories) if self.supported_categories else []

    @property
    def is_eligible(self) -> bool:
        """Can this shop be offered as a fulfiller at all?"""
        return bool(self.is_active and self.offers_printing and self.approval_status == ApprovalStatus.APPROVED.value)

    # -------------------------------------------------------------------
    # Platform review
    # -------------------------------------------------------------------
    def approve(self) -> None:
        if self.approval_status == ApprovalStatus.APPROVED.value:
            raise ConflictError({"approval_status": ["Shop is already approved"]}, current_status=self.approval_status)
        now = datetime.now(UTC)
        self.approval_status = ApprovalStatus.APPROVED.value
        self.updated_at = now
        self.raise_(ShopApproved(shop_id=str(self.id), approved_at=now))

    def reject(self, reason: str) -> None:
        if self.approval_status == ApprovalStatus.REJECTED.value:
            raise ConflictError({"approval_status": ["Shop is already rejected"]}, current_status=self.approval_status)
        now = datetime.now(UTC)
        self.approval_status = ApprovalStatus.REJECTED.value
        self.updated_at = now
        self.raise_(ShopRejected(shop_id=str(self.id), reason=reason, rejected_at=now))

    # -------------------------------------------------------------------
    # Profile
    # -------------------------------------------------------------------
    def update_profile(
        self,
        name: str | None = None,
        is_active: bool | None = None,
        offers_printing: bool | None = None,
        specialties: list[str] | None = None,
        supported_categories: list[str] | None = None,
    ) -> None:
        if name is not None:
            self.name = name
        if is_active is not None:
            self.is_active = is_active
        if offers_printing is not None:
            self.offers_printing = offers_printing
        if specialties is not None:
            self.specialties = json.dumps(specialties)
        if supported_categories is not None:
            self.supported_categories = json.dumps(supported_categories)

        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(
            ShopProfileUpdated(
                shop_id=str(self.id),
                name=self.name,
                is_active=self.is_active,
                offers_printing=self.offers_printing,
                specialties=self.specialties,
                supported_categories=self.supported_categories,
                updated_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Reputation
    # -------------------------------------------------------------------
    def record_review(self, rating: int) -> None:
        """Fold a 1-5 star review into the running average."""
        if rating < 1 or rating > 5:
            raise ValidationError({"rating": ["Rating must be between 1 and 5"]})
        total = self.total_reviews or 0
        average = ((self.average_rating or 0.0) * total + rating) / (total + 1)
        self.total_reviews = total + 1
        self.average_rating = round(average, 2)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            ShopReviewRecorded(
                shop_id=str(self.id),
                rating=rating,
                average_rating=self.average_rating,
                total_reviews=self.total_reviews,
            )
        )

    def record_completed_order(self) -> None:
        self.completed_orders = (self.completed_orders or 0) + 1
        self.updated_at = datetime.now(UTC)
