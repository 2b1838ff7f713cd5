"""Customization pricing — the designer's fee, the shop's costs, the customer's consent.

PricingAgreementBuilder turns raw input into a PricingAgreement, collecting
every problem into a single ValidationError. Setting pricing never moves
the request's status, and it may happen before or after shop selection.
"""

import json
from datetime import UTC, datetime

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.customization.request import (
    MILESTONE_TOLERANCE,
    CustomizationRequest,
    PaymentType,
    PricingAgreement,
)
from marketplace.domain import marketplace
from marketplace.errors import PermissionDeniedError
from marketplace.product.product import Product
from marketplace.shop.shop import Shop

logger = structlog.get_logger(__name__)


class PricingAgreementBuilder:
    """Validate and assemble a designer's pricing agreement."""

    def __init__(self, design_fee: float, payment_type: str, milestones: list[dict] | None = None) -> None:
        self.design_fee = design_fee
        self.payment_type = payment_type
        self.milestones = milestones or []

    def errors(self) -> dict[str, list[str]]:
        errors: dict[str, list[str]] = {}

        if self.design_fee is None or self.design_fee < 0:
            errors.setdefault("design_fee", []).append("Design fee must be zero or more")

        valid_types = {t.value for t in PaymentType}
        if self.payment_type not in valid_types:
            errors.setdefault("payment_type", []).append(
                f"Payment type must be one of: {', '.join(sorted(valid_types))}"
            )
            return errors

        if self.payment_type != PaymentType.MILESTONE.value:
            if self.milestones:
                errors.setdefault("milestones", []).append("Milestones are only allowed for milestone payments")
            return errors

        if not self.milestones:
            errors.setdefault("milestones", []).append("Milestone payments need at least one milestone")
            return errors

        for index, milestone in enumerate(self.milestones, start=1):
            if not str(milestone.get("description") or "").strip():
                errors.setdefault("milestones", []).append(f"Milestone {index} needs a description")
            amount = milestone.get("amount")
            if amount is None or float(amount) < 0:
                errors.setdefault("milestones", []).append(f"Milestone {index} needs an amount of zero or more")

        if "milestones" not in errors and "design_fee" not in errors:
            total = sum(float(m["amount"]) for m in self.milestones)
            if abs(total - self.design_fee) > MILESTONE_TOLERANCE:
                errors.setdefault("milestones", []).append(
                    f"Milestone amounts add up to {total:.2f} but the design fee is {self.design_fee:.2f}"
                )

        return errors

    def build(self) -> PricingAgreement:
        errors = self.errors()
        if errors:
            raise ValidationError(errors)

        milestones = [
            {
                "id": f"milestone-{index}",
                "description": m["description"],
                "amount": round(float(m["amount"]), 2),
                "status": "pending",
            }
            for index, m in enumerate(self.milestones, start=1)
        ]
        return PricingAgreement(
            design_fee=round(self.design_fee, 2),
            payment_type=self.payment_type,
            milestones=json.dumps(milestones) if milestones else None,
            product_cost=0.0,
            printing_cost=None,
            total_cost=round(self.design_fee, 2),
            agreed_by_designer=True,
            agreed_by_customer=False,
            created_at=datetime.now(UTC),
        )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@marketplace.command(part_of="CustomizationRequest")
class SetPricingAgreement:
    request_id = Identifier(required=True)
    designer_id = Identifier(required=True)
    design_fee = Float(required=True)
    payment_type = String(required=True, max_length=20)
    milestones = Text()  # JSON list of {description, amount}


@marketplace.command(part_of="CustomizationRequest")
class SetShopPricing:
    request_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    printing_cost = Float(required=True)


@marketplace.command(part_of="CustomizationRequest")
class AgreeToPricing:
    request_id = Identifier(required=True)
    customer_id = Identifier(required=True)


@marketplace.command_handler(part_of=CustomizationRequest)
class PricingHandler:
    @handle(SetPricingAgreement)
    def set_pricing_agreement(self, command):
        milestones = json.loads(command.milestones) if isinstance(command.milestones, str) else command.milestones
        agreement = PricingAgreementBuilder(
            design_fee=command.design_fee,
            payment_type=command.payment_type,
            milestones=milestones,
        ).build()

        repo = current_domain.repository_for(CustomizationRequest)
        request = repo.get(command.request_id)
        expected = request.status
        request.set_pricing(command.designer_id, agreement)
        repo.save_transition(request, expected)
        logger.info(
            "Pricing agreement set",
            request_id=command.request_id,
            design_fee=agreement.design_fee,
            payment_type=agreement.payment_type,
        )

    @handle(SetShopPricing)
    def set_shop_pricing(self, command):
        repo = current_domain.repository_for(CustomizationRequest)
        request = repo.get(command.request_id)
        if request.selected_shop_id:
            shop = current_domain.repository_for(Shop).get(request.selected_shop_id)
            if command.actor_id != shop.owner_id:
                raise PermissionDeniedError({"actor_id": ["Only the selected shop can price printing"]})

        product = current_domain.repository_for(Product).get(request.product_id)
        expected = request.status
        request.set_shop_pricing(product_cost=product.price, printing_cost=command.printing_cost)
        repo.save_transition(request, expected)

    @handle(AgreeToPricing)
    def agree_to_pricing(self, command):
        repo = current_domain.repository_for(CustomizationRequest)
        request = repo.get(command.request_id)
        expected = request.status
        request.agree_to_pricing(command.customer_id)
        repo.save_transition(request, expected)
