"""Repository for the Discount aggregate."""

from marketplace.domain import marketplace
from marketplace.errors import ConflictError
from marketplace.promotion.discount import Discount, DiscountStatus
from marketplace.utils.persistence import commit_if_unchanged, stored_copy


@marketplace.repository(part_of=Discount)
class DiscountRepository:
    def find_active(self, business_owner_id: str | None = None) -> list[Discount]:
        """Active discounts, optionally limited to one business."""
        criteria = {"status": DiscountStatus.ACTIVE.value}
        if business_owner_id:
            criteria["business_owner_id"] = business_owner_id
        return self._dao.query.filter(**criteria).all().items

    def save_redemption(self, discount: Discount, expected_used_count: int) -> None:
        """Count a redemption only if nobody redeemed since ``discount`` was loaded.

        The increment commits on its own, guarded by the aggregate version, so
        two checkouts racing for the last use cannot both get it.
        """
        stored = stored_copy(self, discount)
        if (stored.used_count or 0) != expected_used_count:
            raise ConflictError(
                {"discount": ["Discount usage changed concurrently, retry the checkout"]},
                current_status=stored.status,
            )
        commit_if_unchanged(self, discount, field="discount")

