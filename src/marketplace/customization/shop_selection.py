"""Shop selection — listing eligible shops for a request and choosing one."""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from marketplace.customization.request import CustomizationRequest
from marketplace.domain import marketplace
from marketplace.errors import ConflictError, NoEligibleShopError
from marketplace.product.product import Product
from marketplace.shop.matching import ShopMatches, find_matching_shops

logger = structlog.get_logger(__name__)


def list_eligible_shops(request_id: str) -> ShopMatches:
    """Rank the shops that can print the product of ``request_id``.

    Raises NoEligibleShopError when every bucket is empty.
    """
    request = current_domain.repository_for(CustomizationRequest).get(request_id)
    product = current_domain.repository_for(Product).get(request.product_id)

    # The assigned designer's shop wins over the product's designer of record
    designer_id = request.designer_id or product.designer_id
    matches = find_matching_shops(product, designer_id=designer_id)
    if matches.is_empty:
        logger.info(
            "No eligible shop for customization request",
            request_id=request_id,
            product_id=request.product_id,
        )
        raise NoEligibleShopError({"shops": ["No eligible shop can fulfil this product"]}, request_id=request_id)
    return matches


@marketplace.command(part_of="CustomizationRequest")
class SelectShop:
    request_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    shop_id = Identifier(required=True)


@marketplace.command_handler(part_of=CustomizationRequest)
class ShopSelectionHandler:
    @handle(SelectShop)
    def select_shop(self, command):
        repo = current_domain.repository_for(CustomizationRequest)
        request = repo.get(command.request_id)
        expected = request.status
        request.select_shop(command.customer_id, command.shop_id)

        matches = list_eligible_shops(command.request_id)
        if command.shop_id not in {str(shop.id) for shop in matches.ranked()}:
            raise ConflictError(
                {"shop_id": ["This shop is not eligible to fulfil the product"]},
                current_status=expected,
            )
        repo.save_transition(request, expected)
