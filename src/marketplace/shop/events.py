"""Shop domain events."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Shop")
class ShopRegistered:
    """A business registered a shop and awaits platform approval."""

    __version__ = 1

    shop_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    name = String(required=True)
    offers_printing = Boolean(default=False)
    registered_at = DateTime(required=True)


@marketplace.event(part_of="Shop")
class ShopApproved:
    __version__ = 1

    shop_id = Identifier(required=True)
    approved_at = DateTime(required=True)


@marketplace.event(part_of="Shop")
class ShopRejected:
    __version__ = 1

    shop_id = Identifier(required=True)
    reason = String(required=True)
    rejected_at = DateTime(required=True)


@marketplace.event(part_of="Shop")
class ShopProfileUpdated:
    """The owner changed what the shop offers."""

    __version__ = 1

    shop_id = Identifier(required=True)
    name = String(required=True)
    is_active = Boolean()
    offers_printing = Boolean()
    specialties = Text()  # JSON list
    supported_categories = Text()  # JSON list
    updated_at = DateTime(required=True)


@marketplace.event(part_of="Shop")
class ShopReviewRecorded:
    __version__ = 1

    shop_id = Identifier(required=True)
    rating = Integer(required=True)
    average_rating = Float(required=True)
    total_reviews = Integer(required=True)
