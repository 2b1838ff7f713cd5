"""Designer workflow — accepting a request and submitting artwork."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.customization.request import CustomizationRequest
from marketplace.domain import marketplace
from marketplace.files import assert_files_exist


@marketplace.command(part_of="CustomizationRequest")
class DesignerAcceptRequest:
    request_id = Identifier(required=True)
    designer_id = Identifier(required=True)


@marketplace.command(part_of="CustomizationRequest")
class SubmitDesignForReview:
    request_id = Identifier(required=True)
    designer_id = Identifier(required=True)
    final_file = String(required=True, max_length=500)
    preview_image = String(max_length=500)
    notes = Text()


@marketplace.command_handler(part_of=CustomizationRequest)
class DesignHandler:
    @handle(DesignerAcceptRequest)
    def designer_accept_request(self, command):
        repo = current_domain.repository_for(CustomizationRequest)
        request = repo.get(command.request_id)
        expected = request.status
        request.designer_accept(command.designer_id)
        repo.save_transition(request, expected)

    @handle(SubmitDesignForReview)
    def submit_design_for_review(self, command):
        repo = current_domain.repository_for(CustomizationRequest)
        request = repo.get(command.request_id)
        expected = request.status
        request.submit_design(
            designer_id=command.designer_id,
            final_file=command.final_file,
            preview_image=command.preview_image,
            notes=command.notes,
        )
        assert_files_exist(final_file=command.final_file, preview_image=command.preview_image)
        repo.save_transition(request, expected)
