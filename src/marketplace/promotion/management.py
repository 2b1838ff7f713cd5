"""Discount administration — create, edit and deactivate discounts."""

import json

import structlog
from protean import handle
from protean.fields import DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import PermissionDeniedError
from marketplace.promotion.discount import Discount, DiscountScope

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Discount")
class CreateDiscount:
    name = String(required=True, max_length=200)
    description = Text()
    discount_type = String(required=True, max_length=20)
    scope = String(max_length=20, default=DiscountScope.ORDER.value)
    value = Float(required=True)
    target_ids = Text()  # JSON list
    min_order_amount = Float()
    max_discount_amount = Float()
    start_date = DateTime(required=True)
    end_date = DateTime(required=True)
    applicable_user_ids = Text()  # JSON list
    usage_limit = Integer()
    business_owner_id = Identifier(required=True)
    created_by = Identifier()


@marketplace.command(part_of="Discount")
class UpdateDiscount:
    discount_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    name = String(max_length=200)
    description = Text()
    discount_type = String(max_length=20)
    scope = String(max_length=20)
    value = Float()
    target_ids = Text()
    min_order_amount = Float()
    max_discount_amount = Float()
    start_date = DateTime()
    end_date = DateTime()
    applicable_user_ids = Text()
    usage_limit = Integer()


@marketplace.command(part_of="Discount")
class DeactivateDiscount:
    discount_id = Identifier(required=True)
    actor_id = Identifier(required=True)


def _json_list(raw):
    if raw is None:
        return None
    return json.loads(raw) if isinstance(raw, str) else list(raw)


def _assert_can_manage(discount: Discount, actor_id: str) -> None:
    if actor_id not in (discount.business_owner_id, discount.created_by):
        raise PermissionDeniedError({"actor_id": ["Only the owning business can manage this discount"]})


@marketplace.command_handler(part_of=Discount)
class DiscountManagementHandler:
    @handle(CreateDiscount)
    def create_discount(self, command):
        discount = Discount.create(
            name=command.name,
            description=command.description,
            discount_type=command.discount_type,
            scope=command.scope or DiscountScope.ORDER.value,
            value=command.value,
            target_ids=_json_list(command.target_ids),
            min_order_amount=command.min_order_amount,
            max_discount_amount=command.max_discount_amount,
            start_date=command.start_date,
            end_date=command.end_date,
            applicable_user_ids=_json_list(command.applicable_user_ids),
            usage_limit=command.usage_limit,
            business_owner_id=command.business_owner_id,
            created_by=command.created_by,
        )
        current_domain.repository_for(Discount).add(discount)
        logger.info(
            "Discount created",
            discount_id=str(discount.id),
            business_owner_id=command.business_owner_id,
        )
        return str(discount.id)

    @handle(UpdateDiscount)
    def update_discount(self, command):
        repo = current_domain.repository_for(Discount)
        discount = repo.get(command.discount_id)
        _assert_can_manage(discount, command.actor_id)
        discount.update(
            name=command.name,
            description=command.description,
            discount_type=command.discount_type,
            scope=command.scope,
            value=command.value,
            target_ids=_json_list(command.target_ids),
            min_order_amount=command.min_order_amount,
            max_discount_amount=command.max_discount_amount,
            start_date=command.start_date,
            end_date=command.end_date,
            applicable_user_ids=_json_list(command.applicable_user_ids),
            usage_limit=command.usage_limit,
        )
        repo.add(discount)

    @handle(DeactivateDiscount)
    def deactivate_discount(self, command):
        repo = current_domain.repository_for(Discount)
        discount = repo.get(command.discount_id)
        _assert_can_manage(discount, command.actor_id)
        discount.deactivate()
        repo.add(discount)
