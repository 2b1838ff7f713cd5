"""Pydantic request/response schemas for the Marketplace API.

These are external contracts (anti-corruption layer), kept separate from
the internal Protean commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class ActorRequest(BaseModel):
    actor_id: str


# ---------------------------------------------------------------------------
# Shops & products
# ---------------------------------------------------------------------------
class RegisterShopRequest(BaseModel):
    owner_id: str
    name: str = Field(min_length=1, max_length=200)
    offers_printing: bool = False
    specialties: list[str] = []
    supported_categories: list[str] = []

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "owner_id": "owner-001",
                    "name": "Ink & Thread",
                    "offers_printing": True,
                    "specialties": ["t-shirt", "screen printing"],
                    "supported_categories": ["apparel"],
                }
            ]
        }
    }


class ShopIdResponse(BaseModel):
    shop_id: str


class RejectShopRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class UpdateShopProfileRequest(BaseModel):
    actor_id: str
    name: str | None = Field(default=None, max_length=200)
    is_active: bool | None = None
    offers_printing: bool | None = None
    specialties: list[str] | None = None
    supported_categories: list[str] | None = None


class RecordShopReviewRequest(BaseModel):
    rating: int = Field(ge=1, le=5)


class ListProductRequest(BaseModel):
    shop_id: str
    actor_id: str
    name: str = Field(min_length=1, max_length=255)
    price: float = Field(ge=0)
    category_id: str | None = None
    tags: list[str] = []
    designer_id: str | None = None
    is_customizable: bool = False


class ProductIdResponse(BaseModel):
    product_id: str


# ---------------------------------------------------------------------------
# Customizations
# ---------------------------------------------------------------------------
class CreateCustomizationRequest(BaseModel):
    customer_id: str
    product_id: str
    customer_notes: str | None = None
    customer_design_file: str | None = None
    customer_preview_image: str | None = None


class CustomizationIdResponse(BaseModel):
    request_id: str


class DesignerRequest(BaseModel):
    designer_id: str


class CustomerRequest(BaseModel):
    customer_id: str


class SubmitDesignRequest(BaseModel):
    designer_id: str
    final_file: str = Field(min_length=1, max_length=500)
    preview_image: str | None = None
    notes: str | None = None


class RevisionRequest(BaseModel):
    customer_id: str
    reason: str = Field(min_length=1)


class CancelCustomizationRequest(BaseModel):
    customer_id: str
    reason: str | None = None


class SelectShopRequest(BaseModel):
    customer_id: str
    shop_id: str


class MilestoneSchema(BaseModel):
    description: str
    amount: float = Field(gt=0)


class SetPricingRequest(BaseModel):
    designer_id: str
    design_fee: float = Field(gt=0)
    payment_type: str
    milestones: list[MilestoneSchema] = []

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "designer_id": "designer-001",
                    "design_fee": 300,
                    "payment_type": "milestone",
                    "milestones": [
                        {"description": "Sketch", "amount": 100},
                        {"description": "Final artwork", "amount": 200},
                    ],
                }
            ]
        }
    }


class SetShopPricingRequest(BaseModel):
    actor_id: str
    printing_cost: float = Field(ge=0)


class MatchedShopSchema(BaseModel):
    shop_id: str
    name: str
    average_rating: float | None = None
    completed_orders: int = 0


class ShopMatchesResponse(BaseModel):
    product_owner: list[MatchedShopSchema]
    designer: list[MatchedShopSchema]
    others: list[MatchedShopSchema]


class DesignerWorkloadResponse(BaseModel):
    designer_id: str
    total: int
    open: int
    by_status: dict[str, int]


# ---------------------------------------------------------------------------
# Discounts
# ---------------------------------------------------------------------------
class CreateDiscountRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    discount_type: str
    scope: str = "order"
    value: float = Field(ge=0)
    target_ids: list[str] = []
    min_order_amount: float | None = Field(default=None, ge=0)
    max_discount_amount: float | None = Field(default=None, ge=0)
    start_date: datetime
    end_date: datetime
    applicable_user_ids: list[str] = []
    usage_limit: int | None = Field(default=None, ge=1)
    business_owner_id: str
    created_by: str | None = None


class DiscountIdResponse(BaseModel):
    discount_id: str


class UpdateDiscountRequest(BaseModel):
    actor_id: str
    name: str | None = Field(default=None, max_length=200)
    description: str | None = None
    discount_type: str | None = None
    scope: str | None = None
    value: float | None = Field(default=None, ge=0)
    target_ids: list[str] | None = None
    min_order_amount: float | None = Field(default=None, ge=0)
    max_discount_amount: float | None = Field(default=None, ge=0)
    start_date: datetime | None = None
    end_date: datetime | None = None
    applicable_user_ids: list[str] | None = None
    usage_limit: int | None = Field(default=None, ge=1)


class ValidateDiscountRequest(BaseModel):
    order_amount: float = Field(ge=0)
    user_id: str | None = None
    product_ids: list[str] | None = None
    category_ids: list[str] | None = None


class DiscountCheckResponse(BaseModel):
    valid: bool
    code: str | None = None
    reason: str | None = None


class ApplyDiscountRequest(BaseModel):
    order_amount: float = Field(ge=0)
    scoped_amount: float | None = Field(default=None, ge=0)
    shipping_amount: float | None = Field(default=None, ge=0)
    user_id: str | None = None
    order_id: str | None = None


class DiscountAmountResponse(BaseModel):
    discount_amount: float


class ApplicableDiscountSchema(BaseModel):
    discount_id: str
    name: str
    discount_type: str
    scope: str
    value: float
    estimated_amount: float


class ApplicableDiscountsResponse(BaseModel):
    discounts: list[ApplicableDiscountSchema]


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderLineSchema(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)


class PlaceOrderRequest(BaseModel):
    customer_id: str
    shop_id: str
    items: list[OrderLineSchema] = Field(min_length=1)
    shipping_cost: float = Field(ge=0, default=0.0)
    discount_id: str | None = None
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "cust-001",
                    "shop_id": "shop-001",
                    "items": [{"product_id": "prod-001", "quantity": 2}],
                    "shipping_cost": 50.0,
                }
            ]
        }
    }


class PlaceCustomizationOrderRequest(BaseModel):
    request_id: str
    customer_id: str
    shipping_cost: float = Field(ge=0, default=0.0)
    discount_id: str | None = None
    notes: str | None = None


class OrderIdResponse(BaseModel):
    order_id: str


class ReasonedActorRequest(BaseModel):
    actor_id: str
    reason: str | None = Field(default=None, max_length=500)


class ShipOrderRequest(BaseModel):
    actor_id: str
    tracking_number: str = Field(min_length=1, max_length=255)
    carrier: str | None = Field(default=None, max_length=100)


class PaymentStatusRequest(BaseModel):
    payment_status: str


class OrderSummaryResponse(BaseModel):
    order_id: str
    customer_id: str
    shop_id: str
    status: str
    payment_status: str | None = None
    item_count: int = 0
    total_amount: float | None = None
    currency: str = "USD"
    is_customization: bool = False
    tracking_number: str | None = None
    carrier: str | None = None
    placed_at: str | None = None
    updated_at: str | None = None


class OrderListResponse(BaseModel):
    orders: list[OrderSummaryResponse]
