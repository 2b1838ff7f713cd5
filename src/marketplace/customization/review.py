"""Customer review of a submitted design — approve or send back for revision."""

from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from marketplace.customization.request import CustomizationRequest
from marketplace.domain import marketplace


@marketplace.command(part_of="CustomizationRequest")
class ApproveDesign:
    request_id = Identifier(required=True)
    customer_id = Identifier(required=True)


@marketplace.command(part_of="CustomizationRequest")
class RequestRevision:
    request_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    reason = Text(required=True)


@marketplace.command_handler(part_of=CustomizationRequest)
class DesignReviewHandler:
    @handle(ApproveDesign)
    def approve_design(self, command):
        repo = current_domain.repository_for(CustomizationRequest)
        request = repo.get(command.request_id)
        expected = request.status
        request.approve(command.customer_id)
        repo.save_transition(request, expected)

    @handle(RequestRevision)
    def request_revision(self, command):
        repo = current_domain.repository_for(CustomizationRequest)
        request = repo.get(command.request_id)
        expected = request.status
        request.request_revision(command.customer_id, command.reason)
        repo.save_transition(request, expected)
