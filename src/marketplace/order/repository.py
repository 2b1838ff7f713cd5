"""Repository for the Order aggregate."""

from marketplace.domain import marketplace
from marketplace.errors import ConflictError
from marketplace.order.order import Order
from marketplace.utils.persistence import commit_if_unchanged, stored_copy


@marketplace.repository(part_of=Order)
class OrderRepository:
    def save_transition(self, order: Order, expected_status: str) -> None:
        """Persist ``order`` only if the stored status is still ``expected_status``.

        The write commits immediately and is guarded by the aggregate version,
        so of two actors that loaded the same order only the first one wins.
        The second gets a ConflictError before any side effect of its
        transition runs.
        """
        stored = stored_copy(self, order)
        if stored.status != expected_status:
            raise ConflictError(
                {"status": [f"Order changed concurrently and is now {stored.status}"]},
                current_status=stored.status,
            )
        commit_if_unchanged(self, order)

    def find_for_customer(self, customer_id: str) -> list[Order]:
        return self._dao.query.filter(customer_id=customer_id).all().items

    def find_for_shop(self, shop_id: str) -> list[Order]:
        return self._dao.query.filter(shop_id=shop_id).all().items
