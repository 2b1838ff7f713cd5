"""Customization request creation — command and handler."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.customization.request import CustomizationRequest
from marketplace.domain import marketplace
from marketplace.errors import ConflictError
from marketplace.files import assert_files_exist
from marketplace.product.product import Product


@marketplace.command(part_of="CustomizationRequest")
class CreateCustomizationRequest:
    """A customer asks for a customizable product to be personalised."""

    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    customer_notes = Text()
    customer_design_file = String(max_length=500)
    customer_preview_image = String(max_length=500)


@marketplace.command_handler(part_of=CustomizationRequest)
class CreateCustomizationRequestHandler:
    @handle(CreateCustomizationRequest)
    def create_customization_request(self, command):
        product = current_domain.repository_for(Product).get(command.product_id)
        if not product.is_customizable:
            raise ConflictError({"product_id": ["This product cannot be customized"]})

        assert_files_exist(
            customer_design_file=command.customer_design_file,
            customer_preview_image=command.customer_preview_image,
        )

        request = CustomizationRequest.create(
            product_id=command.product_id,
            customer_id=command.customer_id,
            customer_notes=command.customer_notes,
            customer_design_file=command.customer_design_file,
            customer_preview_image=command.customer_preview_image,
        )
        current_domain.repository_for(CustomizationRequest).add(request)
        return str(request.id)
