"""Customization requests react to the lifecycle of the order placed for them.

Listens on the order stream:
- OrderRejected releases the shop so the customer can choose another one
- OrderCancelled detaches the withdrawn order
- OrderDelivered completes the request
"""

import json

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from marketplace.customization.request import CustomizationRequest
from marketplace.domain import marketplace
from marketplace.order.events import OrderCancelled, OrderDelivered, OrderRejected

logger = structlog.get_logger(__name__)


def _request_ids(raw) -> list[str]:
    if not raw:
        return []
    return json.loads(raw) if isinstance(raw, str) else list(raw)


@marketplace.event_handler(part_of=CustomizationRequest, stream_category="marketplace::order")
class OrderCustomizationEventHandler:
    @handle(OrderRejected)
    def on_order_rejected(self, event: OrderRejected) -> None:
        """The shop turned the order down; the design stays approved."""
        repo = current_domain.repository_for(CustomizationRequest)
        for request_id in _request_ids(event.customization_request_ids):
            request = repo.get(request_id)
            request.release_shop(reason=event.reason)
            repo.add(request)
            logger.info(
                "Shop released after order rejection",
                request_id=request_id,
                order_id=str(event.order_id),
                shop_id=str(event.shop_id),
            )

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        repo = current_domain.repository_for(CustomizationRequest)
        for request_id in _request_ids(event.customization_request_ids):
            request = repo.get(request_id)
            request.unlink_order(str(event.order_id))
            repo.add(request)

    @handle(OrderDelivered)
    def on_order_delivered(self, event: OrderDelivered) -> None:
        repo = current_domain.repository_for(CustomizationRequest)
        for request_id in _request_ids(event.customization_request_ids):
            request = repo.get(request_id)
            request.complete()
            repo.add(request)
            logger.info(
                "Customization completed on delivery",
                request_id=request_id,
                order_id=str(event.order_id),
            )
