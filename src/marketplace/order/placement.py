"""Order placement — stock orders and orders for approved customizations.

Prices come from the catalogue (or the customization's pricing agreement),
never from the caller. Tax is a flat rate on the subtotal.

Placement checks and prices everything first and claims last. A customization
order links itself to its request with a conditional write, so of two
concurrent placements only one gets the request. A discount use is counted
after that, and a lost race for it gives the request back.
"""

import json
from uuid import uuid4

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, Text
from protean.utils.globals import current_domain

from marketplace.customization.request import CustomizationRequest, RequestStatus
from marketplace.domain import marketplace
from marketplace.errors import ConflictError, PermissionDeniedError
from marketplace.order.order import Order, current_tax_rate
from marketplace.product.product import Product
from marketplace.promotion.engine import PricedLine
from marketplace.promotion.redemption import count_redemption, quote_discount
from marketplace.shop.shop import Shop
from marketplace.utils.persistence import commit_if_unchanged

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    items = Text(required=True)  # JSON list of {product_id, quantity}
    shipping_cost = Float(default=0.0)
    discount_id = Identifier()
    notes = Text()


@marketplace.command(part_of="Order")
class PlaceCustomizationOrder:
    request_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    shipping_cost = Float(default=0.0)
    discount_id = Identifier()
    notes = Text()


def _priced_lines(items_data: list[dict]) -> list[PricedLine]:
    return [
        PricedLine(
            product_id=item["product_id"],
            category_id=item.get("category_id"),
            amount=round(item["unit_price"] * item["quantity"], 2),
        )
        for item in items_data
    ]


def _link_request(request: CustomizationRequest, order_id: str) -> None:
    repo = current_domain.repository_for(CustomizationRequest)
    expected = request.status
    request.link_order(order_id)
    repo.save_transition(request, expected)
    logger.info("Customization linked to order", request_id=str(request.id), order_id=order_id)


def _unlink_request(request: CustomizationRequest, order_id: str) -> None:
    request.unlink_order(order_id)
    commit_if_unchanged(current_domain.repository_for(CustomizationRequest), request)


def _place(customer_id, shop, items_data, shipping_cost, discount_id, notes, request=None) -> Order:
    """Price, discount and persist a new order."""
    order_id = str(uuid4())
    subtotal = round(sum(item["unit_price"] * item["quantity"] for item in items_data), 2)

    discount, discount_amount = None, 0.0
    if discount_id:
        discount, discount_amount = quote_discount(
            discount_id,
            subtotal,
            user_id=customer_id,
            lines=_priced_lines(items_data),
            shipping_amount=shipping_cost,
        )

    order = Order.place(
        customer_id=customer_id,
        shop_id=str(shop.id),
        shop_owner_id=shop.owner_id,
        items_data=items_data,
        shipping_cost=shipping_cost,
        tax_rate=current_tax_rate(),
        discount_id=discount_id,
        discount_amount=discount_amount,
        notes=notes,
        order_id=order_id,
    )

    if request is not None:
        _link_request(request, order_id)
    if discount is not None:
        try:
            count_redemption(discount, discount_amount, order_id=order_id)
        except ConflictError:
            if request is not None:
                _unlink_request(request, order_id)
            raise

    current_domain.repository_for(Order).add(order)
    logger.info(
        "Order placed",
        order_id=order_id,
        customer_id=customer_id,
        shop_id=str(shop.id),
        total_amount=order.pricing.total_amount,
        discount_amount=discount_amount,
    )
    return order


@marketplace.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        requested = json.loads(command.items) if isinstance(command.items, str) else command.items
        if not requested:
            raise ValidationError({"items": ["An order needs at least one item"]})

        shop = current_domain.repository_for(Shop).get(command.shop_id)
        product_repo = current_domain.repository_for(Product)

        items_data = []
        for line in requested:
            product = product_repo.get(line["product_id"])
            if product.shop_id != command.shop_id:
                raise ValidationError({"items": [f"Product {product.id} is not sold by this shop"]})
            items_data.append(
                {
                    "product_id": str(product.id),
                    "category_id": product.category_id,
                    "quantity": int(line.get("quantity", 1)),
                    "unit_price": product.price,
                }
            )

        order = _place(
            customer_id=command.customer_id,
            shop=shop,
            items_data=items_data,
            shipping_cost=command.shipping_cost or 0.0,
            discount_id=command.discount_id,
            notes=command.notes,
        )
        return str(order.id)

    @handle(PlaceCustomizationOrder)
    def place_customization_order(self, command):
        request = current_domain.repository_for(CustomizationRequest).get(command.request_id)
        if command.customer_id != request.customer_id:
            raise PermissionDeniedError({"customer_id": ["Only the requesting customer can order this design"]})
        if request.status != RequestStatus.APPROVED.value:
            raise ConflictError(
                {"status": ["The design must be approved before ordering"]},
                current_status=request.status,
            )
        if request.order_id:
            raise ConflictError(
                {"order_id": ["An order has already been placed for this request"]},
                current_status=request.status,
            )
        if not request.selected_shop_id:
            raise ConflictError(
                {"selected_shop_id": ["Select a printing shop before ordering"]},
                current_status=request.status,
            )
        if request.pricing is None or not request.pricing.is_shop_priced:
            raise ConflictError(
                {"pricing": ["The selected shop has not priced printing yet"]},
                current_status=request.status,
            )

        shop = current_domain.repository_for(Shop).get(request.selected_shop_id)
        product = current_domain.repository_for(Product).get(request.product_id)

        # The design fee is settled with the designer, not through the order
        items_data = [
            {
                "product_id": str(product.id),
                "category_id": product.category_id,
                "quantity": 1,
                "unit_price": request.pricing.order_amount,
                "customization_request_id": str(request.id),
            }
        ]
        order = _place(
            customer_id=command.customer_id,
            shop=shop,
            items_data=items_data,
            shipping_cost=command.shipping_cost or 0.0,
            discount_id=command.discount_id,
            notes=command.notes,
            request=request,
        )
        return str(order.id)
