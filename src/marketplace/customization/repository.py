"""Repository for the CustomizationRequest aggregate."""

from marketplace.customization.request import CustomizationRequest
from marketplace.domain import marketplace
from marketplace.errors import ConflictError
from marketplace.utils.persistence import commit_if_unchanged, stored_copy


@marketplace.repository(part_of=CustomizationRequest)
class CustomizationRequestRepository:
    def save_transition(self, request: CustomizationRequest, expected_status: str) -> None:
        """Persist ``request`` only if the stored status is still ``expected_status``.

        Commits immediately; a concurrent writer that got there first turns
        this into a ConflictError.
        """
        stored = stored_copy(self, request)
        if stored.status != expected_status:
            raise ConflictError(
                {"status": [f"Customization request changed concurrently and is now {stored.status}"]},
                current_status=stored.status,
            )
        commit_if_unchanged(self, request)

    def find_for_designer(self, designer_id: str) -> list[CustomizationRequest]:
        return self._dao.query.filter(designer_id=designer_id).all().items
