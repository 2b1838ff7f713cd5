"""Shop onboarding and profile commands."""

import json

from protean import handle
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import PermissionDeniedError
from marketplace.shop.shop import Shop


@marketplace.command(part_of="Shop")
class RegisterShop:
    owner_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    offers_printing = Boolean(default=False)
    specialties = Text()  # JSON list
    supported_categories = Text()  # JSON list


@marketplace.command(part_of="Shop")
class ApproveShop:
    shop_id = Identifier(required=True)


@marketplace.command(part_of="Shop")
class RejectShop:
    shop_id = Identifier(required=True)
    reason = String(required=True, max_length=500)


@marketplace.command(part_of="Shop")
class UpdateShopProfile:
    shop_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    name = String(max_length=200)
    is_active = Boolean()
    offers_printing = Boolean()
    specialties = Text()
    supported_categories = Text()


@marketplace.command(part_of="Shop")
class RecordShopReview:
    shop_id = Identifier(required=True)
    rating = Integer(required=True)


def _json_list(raw):
    if raw is None:
        return None
    return json.loads(raw) if isinstance(raw, str) else list(raw)


@marketplace.command_handler(part_of=Shop)
class ShopManagementHandler:
    @handle(RegisterShop)
    def register_shop(self, command):
        shop = Shop.register(
            owner_id=command.owner_id,
            name=command.name,
            offers_printing=bool(command.offers_printing),
            specialties=_json_list(command.specialties),
            supported_categories=_json_list(command.supported_categories),
        )
        current_domain.repository_for(Shop).add(shop)
        return str(shop.id)

    @handle(ApproveShop)
    def approve_shop(self, command):
        repo = current_domain.repository_for(Shop)
        shop = repo.get(command.shop_id)
        shop.approve()
        repo.add(shop)

    @handle(RejectShop)
    def reject_shop(self, command):
        repo = current_domain.repository_for(Shop)
        shop = repo.get(command.shop_id)
        shop.reject(command.reason)
        repo.add(shop)

    @handle(UpdateShopProfile)
    def update_shop_profile(self, command):
        repo = current_domain.repository_for(Shop)
        shop = repo.get(command.shop_id)
        if command.actor_id != shop.owner_id:
            raise PermissionDeniedError({"actor_id": ["Only the shop owner can update the profile"]})
        shop.update_profile(
            name=command.name,
            is_active=command.is_active,
            offers_printing=command.offers_printing,
            specialties=_json_list(command.specialties),
            supported_categories=_json_list(command.supported_categories),
        )
        repo.add(shop)

    @handle(RecordShopReview)
    def record_shop_review(self, command):
        repo = current_domain.repository_for(Shop)
        shop = repo.get(command.shop_id)
        shop.record_review(command.rating)
        repo.add(shop)
