"""Repository for the Shop aggregate."""

from marketplace.domain import marketplace
from marketplace.shop.shop import ApprovalStatus, Shop


@marketplace.repository(part_of=Shop)
class ShopRepository:
    def find_candidates(self) -> list[Shop]:
        """Shops that are active, approved and offer printing."""
        return (
            self._dao.query.filter(
                is_active=True,
                offers_printing=True,
                approval_status=ApprovalStatus.APPROVED.value,
            )
            .all()
            .items
        )

    def find_by_owner(self, owner_id: str) -> list[Shop]:
        return self._dao.query.filter(owner_id=owner_id).all().items
