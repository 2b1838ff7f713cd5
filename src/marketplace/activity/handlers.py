"""Activity trail — writes an audit entry for every order and customization event.

Entries are written after the state change has committed. A failing
activity log is logged and otherwise ignored.
"""

from datetime import UTC, datetime

import structlog
from protean.utils.mixins import handle

from marketplace.activity import get_activity_log
from marketplace.activity.port import ActivityEntry
from marketplace.customization.events import (
    CustomizationCancelled,
    CustomizationCompleted,
    CustomizationRequested,
    DesignApproved,
    DesignerAssigned,
    DesignSubmitted,
    PricingAgreedByCustomer,
    PricingAgreementSet,
    RevisionRequested,
    ShopPricingSet,
    ShopSelected,
    ShopSelectionReleased,
)
from marketplace.customization.request import CustomizationRequest
from marketplace.domain import marketplace
from marketplace.order.events import (
    OrderAccepted,
    OrderCancelled,
    OrderDelivered,
    OrderPlaced,
    OrderReadyToShip,
    OrderRejected,
    OrderShipped,
    PaymentStatusChanged,
)
from marketplace.order.order import Order

logger = structlog.get_logger(__name__)


def record_activity(entity_type: str, entity_id, action: str, actor_id=None, **details) -> None:
    """Append an entry to the activity log, never raising."""
    entry = ActivityEntry(
        entity_type=entity_type,
        entity_id=str(entity_id),
        action=action,
        occurred_at=datetime.now(UTC),
        actor_id=str(actor_id) if actor_id else None,
        details={key: value for key, value in details.items() if value is not None},
    )
    try:
        get_activity_log().record(entry)
    except Exception as exc:
        logger.warning(
            "Failed to write activity entry",
            entity_type=entity_type,
            entity_id=str(entity_id),
            action=action,
            error=str(exc),
        )


@marketplace.event_handler(part_of=Order)
class OrderActivityHandler:
    @handle(OrderPlaced)
    def on_placed(self, event: OrderPlaced) -> None:
        record_activity(
            "order",
            event.order_id,
            "placed",
            actor_id=event.customer_id,
            shop_id=str(event.shop_id),
            total_amount=event.total_amount,
        )

    @handle(OrderAccepted)
    def on_accepted(self, event: OrderAccepted) -> None:
        record_activity("order", event.order_id, "accepted", shop_id=str(event.shop_id))

    @handle(OrderRejected)
    def on_rejected(self, event: OrderRejected) -> None:
        record_activity(
            "order",
            event.order_id,
            "rejected",
            shop_id=str(event.shop_id),
            previous_status=event.previous_status,
            reason=event.reason,
        )

    @handle(OrderCancelled)
    def on_cancelled(self, event: OrderCancelled) -> None:
        record_activity("order", event.order_id, "cancelled", actor_id=event.customer_id, reason=event.reason)

    @handle(OrderReadyToShip)
    def on_ready_to_ship(self, event: OrderReadyToShip) -> None:
        record_activity("order", event.order_id, "ready_to_ship")

    @handle(OrderShipped)
    def on_shipped(self, event: OrderShipped) -> None:
        record_activity(
            "order",
            event.order_id,
            "shipped",
            shop_id=str(event.shop_id),
            tracking_number=event.tracking_number,
            carrier=event.carrier,
            escrow_amount=event.escrow_amount or None,
        )

    @handle(OrderDelivered)
    def on_delivered(self, event: OrderDelivered) -> None:
        record_activity("order", event.order_id, "delivered", actor_id=event.confirmed_by)

    @handle(PaymentStatusChanged)
    def on_payment_status_changed(self, event: PaymentStatusChanged) -> None:
        record_activity(
            "order",
            event.order_id,
            "payment_status_changed",
            previous_status=event.previous_status,
            payment_status=event.payment_status,
        )


@marketplace.event_handler(part_of=CustomizationRequest)
class CustomizationActivityHandler:
    @handle(CustomizationRequested)
    def on_requested(self, event: CustomizationRequested) -> None:
        record_activity(
            "customization_request",
            event.request_id,
            "requested",
            actor_id=event.customer_id,
            product_id=str(event.product_id),
        )

    @handle(DesignerAssigned)
    def on_designer_assigned(self, event: DesignerAssigned) -> None:
        record_activity("customization_request", event.request_id, "designer_assigned", actor_id=event.designer_id)

    @handle(DesignSubmitted)
    def on_design_submitted(self, event: DesignSubmitted) -> None:
        record_activity(
            "customization_request",
            event.request_id,
            "design_submitted",
            actor_id=event.designer_id,
            final_file=event.final_file,
        )

    @handle(DesignApproved)
    def on_design_approved(self, event: DesignApproved) -> None:
        record_activity(
            "customization_request",
            event.request_id,
            "design_approved",
            actor_id=event.customer_id,
            selected_shop_id=str(event.selected_shop_id),
        )

    @handle(RevisionRequested)
    def on_revision_requested(self, event: RevisionRequested) -> None:
        record_activity("customization_request", event.request_id, "revision_requested", reason=event.reason)

    @handle(CustomizationCancelled)
    def on_cancelled(self, event: CustomizationCancelled) -> None:
        record_activity(
            "customization_request",
            event.request_id,
            "cancelled",
            previous_status=event.previous_status,
            reason=event.reason,
        )

    @handle(CustomizationCompleted)
    def on_completed(self, event: CustomizationCompleted) -> None:
        record_activity("customization_request", event.request_id, "completed", order_id=str(event.order_id))

    @handle(ShopSelected)
    def on_shop_selected(self, event: ShopSelected) -> None:
        record_activity("customization_request", event.request_id, "shop_selected", shop_id=str(event.shop_id))

    @handle(ShopSelectionReleased)
    def on_shop_released(self, event: ShopSelectionReleased) -> None:
        record_activity(
            "customization_request",
            event.request_id,
            "shop_released",
            shop_id=str(event.shop_id),
            reason=event.reason,
        )

    @handle(PricingAgreementSet)
    def on_pricing_set(self, event: PricingAgreementSet) -> None:
        record_activity(
            "customization_request",
            event.request_id,
            "pricing_set",
            actor_id=event.designer_id,
            design_fee=event.design_fee,
            payment_type=event.payment_type,
        )

    @handle(ShopPricingSet)
    def on_shop_pricing_set(self, event: ShopPricingSet) -> None:
        record_activity(
            "customization_request",
            event.request_id,
            "shop_pricing_set",
            shop_id=str(event.shop_id),
            total_cost=event.total_cost,
        )

    @handle(PricingAgreedByCustomer)
    def on_pricing_agreed(self, event: PricingAgreedByCustomer) -> None:
        record_activity("customization_request", event.request_id, "pricing_agreed", actor_id=event.customer_id)
