"""Shops count the orders they have delivered."""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from marketplace.domain import marketplace
from marketplace.order.events import OrderDelivered
from marketplace.shop.shop import Shop

logger = structlog.get_logger(__name__)


@marketplace.event_handler(part_of=Shop, stream_category="marketplace::order")
class OrderShopEventHandler:
    @handle(OrderDelivered)
    def on_order_delivered(self, event: OrderDelivered) -> None:
        repo = current_domain.repository_for(Shop)
        shop = repo.get(event.shop_id)
        shop.record_completed_order()
        repo.add(shop)
        logger.info(
            "Completed order recorded for shop",
            shop_id=str(event.shop_id),
            order_id=str(event.order_id),
            completed_orders=shop.completed_orders,
        )
