"""FastAPI routes for the Marketplace — shops, products, customizations,
discounts and orders."""

import json

from fastapi import APIRouter, Query
from protean.utils.globals import current_domain

from marketplace.api.schemas import (
    ActorRequest,
    ApplicableDiscountSchema,
    ApplicableDiscountsResponse,
    ApplyDiscountRequest,
    CancelCustomizationRequest,
    CreateCustomizationRequest,
    CreateDiscountRequest,
    CustomerRequest,
    CustomizationIdResponse,
    DesignerRequest,
    DesignerWorkloadResponse,
    DiscountAmountResponse,
    DiscountCheckResponse,
    DiscountIdResponse,
    ListProductRequest,
    MatchedShopSchema,
    OrderIdResponse,
    OrderListResponse,
    OrderSummaryResponse,
    PaymentStatusRequest,
    PlaceCustomizationOrderRequest,
    PlaceOrderRequest,
    ProductIdResponse,
    ReasonedActorRequest,
    RecordShopReviewRequest,
    RegisterShopRequest,
    RejectShopRequest,
    RevisionRequest,
    SelectShopRequest,
    SetPricingRequest,
    SetShopPricingRequest,
    ShipOrderRequest,
    ShopIdResponse,
    ShopMatchesResponse,
    StatusResponse,
    SubmitDesignRequest,
    UpdateDiscountRequest,
    UpdateShopProfileRequest,
    ValidateDiscountRequest,
)
from marketplace.customization.cancellation import CancelCustomizationRequest as CancelCustomizationCommand
from marketplace.customization.creation import CreateCustomizationRequest as CreateCustomizationCommand
from marketplace.customization.design import DesignerAcceptRequest, SubmitDesignForReview
from marketplace.customization.pricing import AgreeToPricing, SetPricingAgreement, SetShopPricing
from marketplace.customization.queries import designer_workload
from marketplace.customization.review import ApproveDesign, RequestRevision
from marketplace.customization.shop_selection import SelectShop, list_eligible_shops
from marketplace.order.acceptance import AcceptOrder, CancelOrder, RejectOrder
from marketplace.order.delivery import ConfirmDelivery
from marketplace.order.payment import RecordPaymentStatus
from marketplace.order.placement import PlaceCustomizationOrder, PlaceOrder
from marketplace.order.queries import get_order_summary, orders_for_customer, orders_for_shop
from marketplace.order.shipping import AddTrackingAndShip, MarkReadyToShip
from marketplace.product.listing import ListProduct
from marketplace.promotion.management import CreateDiscount, DeactivateDiscount, UpdateDiscount
from marketplace.promotion.queries import check_discount, list_applicable_discounts
from marketplace.promotion.redemption import ApplyDiscount
from marketplace.shop.management import (
    ApproveShop,
    RecordShopReview,
    RegisterShop,
    RejectShop,
    UpdateShopProfile,
)


def _dumps(values):
    return json.dumps(values) if values is not None else None


# ---------------------------------------------------------------------------
# Shop Router
# ---------------------------------------------------------------------------
shop_router = APIRouter(prefix="/shops", tags=["shops"])


@shop_router.post("", status_code=201, response_model=ShopIdResponse)
async def register_shop(body: RegisterShopRequest) -> ShopIdResponse:
    command = RegisterShop(
        owner_id=body.owner_id,
        name=body.name,
        offers_printing=body.offers_printing,
        specialties=json.dumps(body.specialties),
        supported_categories=json.dumps(body.supported_categories),
    )
    result = current_domain.process(command, asynchronous=False)
    return ShopIdResponse(shop_id=result)


@shop_router.put("/{shop_id}/approve", response_model=StatusResponse)
async def approve_shop(shop_id: str) -> StatusResponse:
    current_domain.process(ApproveShop(shop_id=shop_id), asynchronous=False)
    return StatusResponse()


@shop_router.put("/{shop_id}/reject", response_model=StatusResponse)
async def reject_shop(shop_id: str, body: RejectShopRequest) -> StatusResponse:
    current_domain.process(RejectShop(shop_id=shop_id, reason=body.reason), asynchronous=False)
    return StatusResponse()


@shop_router.put("/{shop_id}", response_model=StatusResponse)
async def update_shop_profile(shop_id: str, body: UpdateShopProfileRequest) -> StatusResponse:
    command = UpdateShopProfile(
        shop_id=shop_id,
        actor_id=body.actor_id,
        name=body.name,
        is_active=body.is_active,
        offers_printing=body.offers_printing,
        specialties=_dumps(body.specialties),
        supported_categories=_dumps(body.supported_categories),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@shop_router.post("/{shop_id}/reviews", status_code=201, response_model=StatusResponse)
async def record_shop_review(shop_id: str, body: RecordShopReviewRequest) -> StatusResponse:
    current_domain.process(RecordShopReview(shop_id=shop_id, rating=body.rating), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def list_product(body: ListProductRequest) -> ProductIdResponse:
    command = ListProduct(
        shop_id=body.shop_id,
        actor_id=body.actor_id,
        name=body.name,
        price=body.price,
        category_id=body.category_id,
        tags=json.dumps(body.tags),
        designer_id=body.designer_id,
        is_customizable=body.is_customizable,
    )
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


# ---------------------------------------------------------------------------
# Customization Router
# ---------------------------------------------------------------------------
customization_router = APIRouter(prefix="/customizations", tags=["customizations"])


@customization_router.post("", status_code=201, response_model=CustomizationIdResponse)
async def create_customization(body: CreateCustomizationRequest) -> CustomizationIdResponse:
    command = CreateCustomizationCommand(
        customer_id=body.customer_id,
        product_id=body.product_id,
        customer_notes=body.customer_notes,
        customer_design_file=body.customer_design_file,
        customer_preview_image=body.customer_preview_image,
    )
    result = current_domain.process(command, asynchronous=False)
    return CustomizationIdResponse(request_id=result)


@customization_router.put("/{request_id}/accept", response_model=StatusResponse)
async def designer_accept(request_id: str, body: DesignerRequest) -> StatusResponse:
    command = DesignerAcceptRequest(request_id=request_id, designer_id=body.designer_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@customization_router.put("/{request_id}/submit", response_model=StatusResponse)
async def submit_design(request_id: str, body: SubmitDesignRequest) -> StatusResponse:
    command = SubmitDesignForReview(
        request_id=request_id,
        designer_id=body.designer_id,
        final_file=body.final_file,
        preview_image=body.preview_image,
        notes=body.notes,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@customization_router.put("/{request_id}/approve", response_model=StatusResponse)
async def approve_design(request_id: str, body: CustomerRequest) -> StatusResponse:
    command = ApproveDesign(request_id=request_id, customer_id=body.customer_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@customization_router.put("/{request_id}/revision", response_model=StatusResponse)
async def request_revision(request_id: str, body: RevisionRequest) -> StatusResponse:
    command = RequestRevision(request_id=request_id, customer_id=body.customer_id, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@customization_router.put("/{request_id}/cancel", response_model=StatusResponse)
async def cancel_customization(request_id: str, body: CancelCustomizationRequest) -> StatusResponse:
    command = CancelCustomizationCommand(
        request_id=request_id,
        customer_id=body.customer_id,
        reason=body.reason,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@customization_router.get("/{request_id}/shops", response_model=ShopMatchesResponse)
async def eligible_shops(request_id: str) -> ShopMatchesResponse:
    """Shops that can print this request, in recommendation order."""
    matches = list_eligible_shops(request_id)

    def _schema(shops):
        return [
            MatchedShopSchema(
                shop_id=str(shop.id),
                name=shop.name,
                average_rating=shop.average_rating,
                completed_orders=shop.completed_orders or 0,
            )
            for shop in shops
        ]

    return ShopMatchesResponse(
        product_owner=_schema(matches.product_owner),
        designer=_schema(matches.designer),
        others=_schema(matches.others),
    )


@customization_router.put("/{request_id}/shop", response_model=StatusResponse)
async def select_shop(request_id: str, body: SelectShopRequest) -> StatusResponse:
    command = SelectShop(request_id=request_id, customer_id=body.customer_id, shop_id=body.shop_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@customization_router.put("/{request_id}/pricing", response_model=StatusResponse)
async def set_pricing(request_id: str, body: SetPricingRequest) -> StatusResponse:
    command = SetPricingAgreement(
        request_id=request_id,
        designer_id=body.designer_id,
        design_fee=body.design_fee,
        payment_type=body.payment_type,
        milestones=json.dumps([milestone.model_dump() for milestone in body.milestones]),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@customization_router.put("/{request_id}/shop-pricing", response_model=StatusResponse)
async def set_shop_pricing(request_id: str, body: SetShopPricingRequest) -> StatusResponse:
    command = SetShopPricing(
        request_id=request_id,
        actor_id=body.actor_id,
        printing_cost=body.printing_cost,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@customization_router.put("/{request_id}/pricing/agree", response_model=StatusResponse)
async def agree_to_pricing(request_id: str, body: CustomerRequest) -> StatusResponse:
    command = AgreeToPricing(request_id=request_id, customer_id=body.customer_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@customization_router.get("/designers/{designer_id}/workload", response_model=DesignerWorkloadResponse)
async def get_designer_workload(designer_id: str) -> DesignerWorkloadResponse:
    return DesignerWorkloadResponse(**designer_workload(designer_id))


# ---------------------------------------------------------------------------
# Discount Router
# ---------------------------------------------------------------------------
discount_router = APIRouter(prefix="/discounts", tags=["discounts"])


@discount_router.post("", status_code=201, response_model=DiscountIdResponse)
async def create_discount(body: CreateDiscountRequest) -> DiscountIdResponse:
    command = CreateDiscount(
        name=body.name,
        description=body.description,
        discount_type=body.discount_type,
        scope=body.scope,
        value=body.value,
        target_ids=json.dumps(body.target_ids),
        min_order_amount=body.min_order_amount,
        max_discount_amount=body.max_discount_amount,
        start_date=body.start_date,
        end_date=body.end_date,
        applicable_user_ids=json.dumps(body.applicable_user_ids),
        usage_limit=body.usage_limit,
        business_owner_id=body.business_owner_id,
        created_by=body.created_by,
    )
    result = current_domain.process(command, asynchronous=False)
    return DiscountIdResponse(discount_id=result)


@discount_router.get("/applicable", response_model=ApplicableDiscountsResponse)
async def applicable_discounts(
    order_amount: float = Query(ge=0),
    user_id: str | None = None,
    business_owner_id: str | None = None,
    shipping_amount: float | None = Query(default=None, ge=0),
    product_ids: list[str] | None = Query(default=None),
    category_ids: list[str] | None = Query(default=None),
) -> ApplicableDiscountsResponse:
    results = list_applicable_discounts(
        order_amount,
        user_id=user_id,
        product_ids=product_ids,
        category_ids=category_ids,
        business_owner_id=business_owner_id,
        shipping_amount=shipping_amount,
    )
    return ApplicableDiscountsResponse(
        discounts=[
            ApplicableDiscountSchema(
                discount_id=d.discount_id,
                name=d.name,
                discount_type=d.discount_type,
                scope=d.scope,
                value=d.value,
                estimated_amount=d.estimated_amount,
            )
            for d in results
        ]
    )


@discount_router.put("/{discount_id}", response_model=StatusResponse)
async def update_discount(discount_id: str, body: UpdateDiscountRequest) -> StatusResponse:
    command = UpdateDiscount(
        discount_id=discount_id,
        actor_id=body.actor_id,
        name=body.name,
        description=body.description,
        discount_type=body.discount_type,
        scope=body.scope,
        value=body.value,
        target_ids=_dumps(body.target_ids),
        min_order_amount=body.min_order_amount,
        max_discount_amount=body.max_discount_amount,
        start_date=body.start_date,
        end_date=body.end_date,
        applicable_user_ids=_dumps(body.applicable_user_ids),
        usage_limit=body.usage_limit,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@discount_router.put("/{discount_id}/deactivate", response_model=StatusResponse)
async def deactivate_discount(discount_id: str, body: ActorRequest) -> StatusResponse:
    command = DeactivateDiscount(discount_id=discount_id, actor_id=body.actor_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@discount_router.post("/{discount_id}/validate", response_model=DiscountCheckResponse)
async def validate_discount(discount_id: str, body: ValidateDiscountRequest) -> DiscountCheckResponse:
    """Check a discount against an order without using it up."""
    check = check_discount(
        discount_id,
        body.order_amount,
        user_id=body.user_id,
        product_ids=body.product_ids,
        category_ids=body.category_ids,
    )
    return DiscountCheckResponse(
        valid=check.valid,
        code=check.code.value if check.code else None,
        reason=check.reason,
    )


@discount_router.post("/{discount_id}/apply", response_model=DiscountAmountResponse)
async def apply_discount(discount_id: str, body: ApplyDiscountRequest) -> DiscountAmountResponse:
    command = ApplyDiscount(
        discount_id=discount_id,
        order_amount=body.order_amount,
        scoped_amount=body.scoped_amount,
        shipping_amount=body.shipping_amount,
        user_id=body.user_id,
        order_id=body.order_id,
    )
    amount = current_domain.process(command, asynchronous=False)
    return DiscountAmountResponse(discount_amount=amount)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def place_order(body: PlaceOrderRequest) -> OrderIdResponse:
    command = PlaceOrder(
        customer_id=body.customer_id,
        shop_id=body.shop_id,
        items=json.dumps([item.model_dump() for item in body.items]),
        shipping_cost=body.shipping_cost,
        discount_id=body.discount_id,
        notes=body.notes,
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


@order_router.post("/customization", status_code=201, response_model=OrderIdResponse)
async def place_customization_order(body: PlaceCustomizationOrderRequest) -> OrderIdResponse:
    command = PlaceCustomizationOrder(
        request_id=body.request_id,
        customer_id=body.customer_id,
        shipping_cost=body.shipping_cost,
        discount_id=body.discount_id,
        notes=body.notes,
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


@order_router.get("/customer/{customer_id}", response_model=OrderListResponse)
async def list_customer_orders(customer_id: str) -> OrderListResponse:
    return OrderListResponse(orders=[OrderSummaryResponse(**view) for view in orders_for_customer(customer_id)])


@order_router.get("/shop/{shop_id}", response_model=OrderListResponse)
async def list_shop_orders(shop_id: str) -> OrderListResponse:
    return OrderListResponse(orders=[OrderSummaryResponse(**view) for view in orders_for_shop(shop_id)])


@order_router.get("/{order_id}", response_model=OrderSummaryResponse)
async def get_order(order_id: str) -> OrderSummaryResponse:
    return OrderSummaryResponse(**get_order_summary(order_id))


@order_router.put("/{order_id}/accept", response_model=StatusResponse)
async def accept_order(order_id: str, body: ActorRequest) -> StatusResponse:
    current_domain.process(AcceptOrder(order_id=order_id, actor_id=body.actor_id), asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/reject", response_model=StatusResponse)
async def reject_order(order_id: str, body: ReasonedActorRequest) -> StatusResponse:
    command = RejectOrder(order_id=order_id, actor_id=body.actor_id, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: ReasonedActorRequest) -> StatusResponse:
    command = CancelOrder(order_id=order_id, actor_id=body.actor_id, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/ready-to-ship", response_model=StatusResponse)
async def mark_ready_to_ship(order_id: str, body: ActorRequest) -> StatusResponse:
    current_domain.process(MarkReadyToShip(order_id=order_id, actor_id=body.actor_id), asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/ship", response_model=StatusResponse)
async def ship_order(order_id: str, body: ShipOrderRequest) -> StatusResponse:
    """Add tracking, which ships the order and releases escrow for customized items."""
    command = AddTrackingAndShip(
        order_id=order_id,
        actor_id=body.actor_id,
        tracking_number=body.tracking_number,
        carrier=body.carrier,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/deliver", response_model=StatusResponse)
async def confirm_delivery(order_id: str, body: ActorRequest) -> StatusResponse:
    current_domain.process(ConfirmDelivery(order_id=order_id, actor_id=body.actor_id), asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/payment", response_model=StatusResponse)
async def record_payment_status(order_id: str, body: PaymentStatusRequest) -> StatusResponse:
    command = RecordPaymentStatus(order_id=order_id, payment_status=body.payment_status)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()
