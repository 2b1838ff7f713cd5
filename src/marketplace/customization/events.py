"""Customization request domain events.

Past-tense facts about the design workflow. The activity log and the
order-side handlers consume them.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="CustomizationRequest")
class CustomizationRequested:
    """A customer asked for a product to be customized."""

    __version__ = 1

    request_id = Identifier(required=True)
    product_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    customer_notes = Text()
    requested_at = DateTime(required=True)


@marketplace.event(part_of="CustomizationRequest")
class DesignerAssigned:
    """A designer accepted the request and started work."""

    __version__ = 1

    request_id = Identifier(required=True)
    designer_id = Identifier(required=True)
    assigned_at = DateTime(required=True)


@marketplace.event(part_of="CustomizationRequest")
class DesignSubmitted:
    """The designer submitted final artwork for customer review."""

    __version__ = 1

    request_id = Identifier(required=True)
    designer_id = Identifier(required=True)
    final_file = String(required=True)
    preview_image = String()
    submitted_at = DateTime(required=True)


@marketplace.event(part_of="CustomizationRequest")
class DesignApproved:
    __version__ = 1

    request_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    selected_shop_id = Identifier(required=True)
    approved_at = DateTime(required=True)


@marketplace.event(part_of="CustomizationRequest")
class RevisionRequested:
    """The customer sent the design back with a reason."""

    __version__ = 1

    request_id = Identifier(required=True)
    reason = Text(required=True)
    requested_at = DateTime(required=True)


@marketplace.event(part_of="CustomizationRequest")
class CustomizationCancelled:
    __version__ = 1

    request_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = Text()
    cancelled_at = DateTime(required=True)


@marketplace.event(part_of="CustomizationRequest")
class CustomizationCompleted:
    """The order for the request was delivered."""

    __version__ = 1

    request_id = Identifier(required=True)
    order_id = Identifier(required=True)
    completed_at = DateTime(required=True)


@marketplace.event(part_of="CustomizationRequest")
class ShopSelected:
    __version__ = 1

    request_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    selected_at = DateTime(required=True)


@marketplace.event(part_of="CustomizationRequest")
class PricingAgreementSet:
    """The designer recorded the design fee and how it is paid."""

    __version__ = 1

    request_id = Identifier(required=True)
    designer_id = Identifier(required=True)
    design_fee = Float(required=True)
    payment_type = String(required=True)
    milestones = Text()  # JSON list
    set_at = DateTime(required=True)


@marketplace.event(part_of="CustomizationRequest")
class ShopPricingSet:
    """The selected shop priced the product and its printing."""

    __version__ = 1

    request_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    product_cost = Float(required=True)
    printing_cost = Float(required=True)
    total_cost = Float(required=True)
    set_at = DateTime(required=True)


@marketplace.event(part_of="CustomizationRequest")
class PricingAgreedByCustomer:
    __version__ = 1

    request_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    agreed_at = DateTime(required=True)


@marketplace.event(part_of="CustomizationRequest")
class CustomizationOrderLinked:
    __version__ = 1

    request_id = Identifier(required=True)
    order_id = Identifier(required=True)
    linked_at = DateTime(required=True)


@marketplace.event(part_of="CustomizationRequest")
class CustomizationOrderUnlinked:
    """The customer withdrew the order; the approved design can be ordered again."""

    __version__ = 1

    request_id = Identifier(required=True)
    order_id = Identifier(required=True)
    unlinked_at = DateTime(required=True)


@marketplace.event(part_of="CustomizationRequest")
class ShopSelectionReleased:
    """The chosen shop turned the order down; the customer must pick again."""

    __version__ = 1

    request_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    order_id = Identifier()
    reason = Text()
    released_at = DateTime(required=True)
