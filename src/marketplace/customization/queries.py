"""Read-only customization lookups."""

from collections import Counter

from protean.utils.globals import current_domain

from marketplace.customization.request import CustomizationRequest, RequestStatus

_OPEN_STATUSES = {
    RequestStatus.IN_PROGRESS.value,
    RequestStatus.AWAITING_CUSTOMER_APPROVAL.value,
}


def designer_workload(designer_id: str) -> dict:
    """Count a designer's requests by status, plus how many are still open."""
    requests = current_domain.repository_for(CustomizationRequest).find_for_designer(designer_id)
    by_status = Counter(request.status for request in requests)
    return {
        "designer_id": designer_id,
        "total": len(requests),
        "open": sum(count for status, count in by_status.items() if status in _OPEN_STATUSES),
        "by_status": dict(by_status),
    }
