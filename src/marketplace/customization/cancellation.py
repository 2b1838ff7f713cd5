"""Customization request cancellation — command and handler."""

from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from marketplace.customization.request import CustomizationRequest
from marketplace.domain import marketplace


@marketplace.command(part_of="CustomizationRequest")
class CancelCustomizationRequest:
    """Customer closes the request before the design is submitted."""

    request_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    reason = Text()


@marketplace.command_handler(part_of=CustomizationRequest)
class CancelCustomizationRequestHandler:
    @handle(CancelCustomizationRequest)
    def cancel_customization_request(self, command):
        repo = current_domain.repository_for(CustomizationRequest)
        request = repo.get(command.request_id)
        expected = request.status
        request.cancel(command.customer_id, reason=command.reason)
        repo.save_transition(request, expected)
