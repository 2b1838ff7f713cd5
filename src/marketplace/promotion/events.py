"""Discount domain events."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Discount")
class DiscountCreated:
    """A business published a new discount."""

    __version__ = 1

    discount_id = Identifier(required=True)
    name = String(required=True)
    discount_type = String(required=True)
    scope = String(required=True)
    value = Float(required=True)
    business_owner_id = Identifier(required=True)
    start_date = DateTime(required=True)
    end_date = DateTime(required=True)
    usage_limit = Integer()
    created_at = DateTime(required=True)


@marketplace.event(part_of="Discount")
class DiscountUpdated:
    """An administrator edited a discount."""

    __version__ = 1

    discount_id = Identifier(required=True)
    changes = Text(required=True)  # JSON dict of changed fields
    updated_at = DateTime(required=True)


@marketplace.event(part_of="Discount")
class DiscountDeactivated:
    __version__ = 1

    discount_id = Identifier(required=True)
    deactivated_at = DateTime(required=True)


@marketplace.event(part_of="Discount")
class DiscountRedeemed:
    """An order redeemed the discount, consuming one use."""

    __version__ = 1

    discount_id = Identifier(required=True)
    order_id = Identifier()
    amount = Float(required=True)
    used_count = Integer(required=True)
    redeemed_at = DateTime(required=True)
