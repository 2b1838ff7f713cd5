"""CustomizationRequest aggregate (CQRS) — the design workflow of a customized product.

Three actors take turns on a request: the customer who asked for it, the
designer who produces the artwork, and the shop that will print it. Status
changes go through one transition table; shop selection and pricing are
independent side-tracks that must both be complete before approval.

State Machine:
    PENDING_DESIGNER_REVIEW → IN_PROGRESS → AWAITING_CUSTOMER_APPROVAL → APPROVED → COMPLETED
    AWAITING_CUSTOMER_APPROVAL → IN_PROGRESS             (revision requested)
    {PENDING_DESIGNER_REVIEW, IN_PROGRESS} → CANCELLED   (customer only)
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, String, Text, ValueObject

from marketplace.customization.events import (
    CustomizationCancelled,
    CustomizationCompleted,
    CustomizationOrderLinked,
    CustomizationOrderUnlinked,
    CustomizationRequested,
    DesignApproved,
    DesignerAssigned,
    DesignSubmitted,
    PricingAgreedByCustomer,
    PricingAgreementSet,
    RevisionRequested,
    ShopPricingSet,
    ShopSelected,
    ShopSelectionReleased,
)
from marketplace.domain import marketplace
from marketplace.errors import ConflictError, PermissionDeniedError

MILESTONE_TOLERANCE = 0.01


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class RequestStatus(Enum):
    PENDING_DESIGNER_REVIEW = "pending_designer_review"
    IN_PROGRESS = "in_progress"
    AWAITING_CUSTOMER_APPROVAL = "awaiting_customer_approval"
    APPROVED = "approved"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RequestAction(Enum):
    DESIGNER_ACCEPT = "designer_accept"
    SUBMIT_DESIGN = "submit_design"
    APPROVE = "approve"
    REQUEST_REVISION = "request_revision"
    CANCEL = "cancel"
    COMPLETE = "complete"


class PaymentType(Enum):
    UPFRONT = "upfront"
    HALF_PAYMENT = "half_payment"
    MILESTONE = "milestone"


_TRANSITIONS = {
    (RequestStatus.PENDING_DESIGNER_REVIEW, RequestAction.DESIGNER_ACCEPT): RequestStatus.IN_PROGRESS,
    (RequestStatus.IN_PROGRESS, RequestAction.SUBMIT_DESIGN): RequestStatus.AWAITING_CUSTOMER_APPROVAL,
    (RequestStatus.AWAITING_CUSTOMER_APPROVAL, RequestAction.APPROVE): RequestStatus.APPROVED,
    (RequestStatus.AWAITING_CUSTOMER_APPROVAL, RequestAction.REQUEST_REVISION): RequestStatus.IN_PROGRESS,
    (RequestStatus.PENDING_DESIGNER_REVIEW, RequestAction.CANCEL): RequestStatus.CANCELLED,
    (RequestStatus.IN_PROGRESS, RequestAction.CANCEL): RequestStatus.CANCELLED,
    (RequestStatus.APPROVED, RequestAction.COMPLETE): RequestStatus.COMPLETED,
}

_TERMINAL_STATUSES = {RequestStatus.COMPLETED, RequestStatus.CANCELLED}

# Pricing can be negotiated while the design is being worked on or reviewed
_PRICEABLE_STATUSES = {RequestStatus.IN_PROGRESS, RequestStatus.AWAITING_CUSTOMER_APPROVAL}


def next_request_status(current: str | RequestStatus, action: str | RequestAction) -> RequestStatus:
    """Return the status ``action`` leads to from ``current``.

    Raises ConflictError, carrying the current status, when the table has no
    such edge.
    """
    current, action = RequestStatus(current), RequestAction(action)
    target = _TRANSITIONS.get((current, action))
    if target is None:
        raise ConflictError(
            {"status": [f"Cannot {action.value} a customization request that is {current.value}"]},
            current_status=current.value,
        )
    return target


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="CustomizationRequest")
class PricingAgreement:
    """What the customer pays for a customization and how.

    The designer sets the design fee and payment plan; the selected shop
    adds product and printing costs. The design fee is settled with the
    designer separately, so only product and printing costs reach the order.
    """

    design_fee = Float(required=True, min_value=0.0)
    payment_type = String(required=True, choices=PaymentType)
    milestones = Text()  # JSON list of {id, description, amount, status}
    product_cost = Float(default=0.0, min_value=0.0)
    printing_cost = Float(min_value=0.0)  # None until the shop prices it
    total_cost = Float(default=0.0, min_value=0.0)
    agreed_by_designer = Boolean(default=True)
    agreed_by_customer = Boolean(default=False)
    agreed_at = DateTime()
    created_at = DateTime()

    @invariant.post
    def milestones_must_add_up_to_design_fee(self):
        if self.payment_type != PaymentType.MILESTONE.value:
            return
        milestones = json.loads(self.milestones) if self.milestones else []
        total = sum(float(m.get("amount", 0)) for m in milestones)
        if abs(total - (self.design_fee or 0.0)) > MILESTONE_TOLERANCE:
            raise ValidationError({"milestones": ["Milestone amounts must add up to the design fee"]})

    @property
    def milestone_list(self) -> list[dict]:
        return json.loads(self.milestones) if self.milestones else []

    @property
    def is_shop_priced(self) -> bool:
        return self.printing_cost is not None

    @property
    def order_amount(self) -> float:
        """What the fulfilling shop charges: product plus printing."""
        return round((self.product_cost or 0.0) + (self.printing_cost or 0.0), 2)

    def _copy_with(self, **changes) -> "PricingAgreement":
        values = {
            "design_fee": self.design_fee,
            "payment_type": self.payment_type,
            "milestones": self.milestones,
            "product_cost": self.product_cost,
            "printing_cost": self.printing_cost,
            "total_cost": self.total_cost,
            "agreed_by_designer": self.agreed_by_designer,
            "agreed_by_customer": self.agreed_by_customer,
            "agreed_at": self.agreed_at,
            "created_at": self.created_at,
        }
        values.update(changes)
        values["total_cost"] = round(
            values["design_fee"] + (values["product_cost"] or 0.0) + (values["printing_cost"] or 0.0), 2
        )
        return PricingAgreement(**values)

    def with_shop_pricing(self, product_cost: float, printing_cost: float) -> "PricingAgreement":
        return self._copy_with(product_cost=product_cost, printing_cost=printing_cost)

    def without_shop_pricing(self) -> "PricingAgreement":
        return self._copy_with(product_cost=0.0, printing_cost=None)

    def agreed_by(self, when: datetime) -> "PricingAgreement":
        return self._copy_with(agreed_by_customer=True, agreed_at=when)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@marketplace.aggregate
class CustomizationRequest:
    product_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    designer_id = Identifier()
    selected_shop_id = Identifier()
    status = String(
        choices=RequestStatus,
        default=RequestStatus.PENDING_DESIGNER_REVIEW.value,
    )
    customer_notes = Text()
    customer_design_file = String(max_length=500)  # opaque file handle
    customer_preview_image = String(max_length=500)
    designer_final_file = String(max_length=500)
    designer_preview_image = String(max_length=500)
    designer_notes = Text()
    pricing = ValueObject(PricingAgreement)
    rejection_reason = Text()
    order_id = Identifier()
    requested_at = DateTime()
    assigned_at = DateTime()
    completed_at = DateTime()
    cancelled_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        product_id: str,
        customer_id: str,
        customer_notes: str | None = None,
        customer_design_file: str | None = None,
        customer_preview_image: str | None = None,
    ):
        """Open a request; it waits for a designer to pick it up."""
        now = datetime.now(UTC)
        request = cls(
            product_id=product_id,
            customer_id=customer_id,
            status=RequestStatus.PENDING_DESIGNER_REVIEW.value,
            customer_notes=customer_notes,
            customer_design_file=customer_design_file,
            customer_preview_image=customer_preview_image,
            requested_at=now,
            updated_at=now,
        )
        request.raise_(
            CustomizationRequested(
                request_id=str(request.id),
                product_id=product_id,
                customer_id=customer_id,
                customer_notes=customer_notes,
                requested_at=now,
            )
        )
        return request

    # -------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------
    def _assert_customer(self, actor_id: str) -> None:
        if actor_id != self.customer_id:
            raise PermissionDeniedError({"actor_id": ["Only the requesting customer can do this"]})

    def _assert_assigned_designer(self, actor_id: str) -> None:
        if not self.designer_id or actor_id != self.designer_id:
            raise PermissionDeniedError({"actor_id": ["Only the assigned designer can do this"]})

    def _assert_open(self) -> None:
        current = RequestStatus(self.status)
        if current in _TERMINAL_STATUSES:
            raise ConflictError(
                {"status": [f"Customization request is {current.value}"]},
                current_status=current.value,
            )

    def _assert_no_order(self) -> None:
        if self.order_id:
            raise ConflictError(
                {"order_id": ["An order has already been placed for this request"]},
                current_status=self.status,
            )

    @property
    def is_ready_for_approval(self) -> bool:
        return bool(self.selected_shop_id) and self.pricing is not None

    # -------------------------------------------------------------------
    # Design workflow
    # -------------------------------------------------------------------
    def designer_accept(self, designer_id: str) -> None:
        """A designer takes the request and starts work."""
        target = next_request_status(self.status, RequestAction.DESIGNER_ACCEPT)
        now = datetime.now(UTC)
        self.status = target.value
        self.designer_id = designer_id
        self.assigned_at = now
        self.updated_at = now
        self.raise_(
            DesignerAssigned(
                request_id=str(self.id),
                designer_id=designer_id,
                assigned_at=now,
            )
        )

    def submit_design(
        self,
        designer_id: str,
        final_file: str,
        preview_image: str | None = None,
        notes: str | None = None,
    ) -> None:
        """The assigned designer hands the artwork to the customer for review."""
        self._assert_assigned_designer(designer_id)
        target = next_request_status(self.status, RequestAction.SUBMIT_DESIGN)
        if not final_file or not final_file.strip():
            raise ValidationError({"final_file": ["A final design file is required"]})

        now = datetime.now(UTC)
        self.status = target.value
        self.designer_final_file = final_file
        self.designer_preview_image = preview_image
        if notes is not None:
            self.designer_notes = notes
        self.updated_at = now
        self.raise_(
            DesignSubmitted(
                request_id=str(self.id),
                designer_id=designer_id,
                final_file=final_file,
                preview_image=preview_image,
                submitted_at=now,
            )
        )

    def approve(self, customer_id: str) -> None:
        """The customer accepts the design. Needs a shop and a pricing agreement."""
        self._assert_customer(customer_id)
        target = next_request_status(self.status, RequestAction.APPROVE)
        if not self.selected_shop_id:
            raise ConflictError(
                {"selected_shop_id": ["Select a printing shop before approving the design"]},
                current_status=self.status,
            )
        if self.pricing is None:
            raise ConflictError(
                {"pricing": ["A pricing agreement is required before approving the design"]},
                current_status=self.status,
            )

        now = datetime.now(UTC)
        self.status = target.value
        self.rejection_reason = None
        self.updated_at = now
        self.raise_(
            DesignApproved(
                request_id=str(self.id),
                customer_id=customer_id,
                selected_shop_id=self.selected_shop_id,
                approved_at=now,
            )
        )

    def request_revision(self, customer_id: str, reason: str) -> None:
        """Send the design back to the designer. Not a terminal rejection."""
        self._assert_customer(customer_id)
        target = next_request_status(self.status, RequestAction.REQUEST_REVISION)
        if not reason or not reason.strip():
            raise ValidationError({"reason": ["A reason is required when requesting a revision"]})

        now = datetime.now(UTC)
        self.status = target.value
        self.rejection_reason = reason
        self.updated_at = now
        self.raise_(
            RevisionRequested(
                request_id=str(self.id),
                reason=reason,
                requested_at=now,
            )
        )

    def cancel(self, customer_id: str, reason: str | None = None) -> None:
        self._assert_customer(customer_id)
        previous = self.status
        target = next_request_status(self.status, RequestAction.CANCEL)

        now = datetime.now(UTC)
        self.status = target.value
        self.cancelled_at = now
        self.updated_at = now
        self.raise_(
            CustomizationCancelled(
                request_id=str(self.id),
                previous_status=previous,
                reason=reason,
                cancelled_at=now,
            )
        )

    def complete(self) -> None:
        """Close the request once its order has been delivered."""
        target = next_request_status(self.status, RequestAction.COMPLETE)
        now = datetime.now(UTC)
        self.status = target.value
        self.completed_at = now
        self.updated_at = now
        self.raise_(
            CustomizationCompleted(
                request_id=str(self.id),
                order_id=self.order_id,
                completed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Shop selection
    # -------------------------------------------------------------------
    def select_shop(self, customer_id: str, shop_id: str) -> None:
        """Choose the shop that will print. Eligibility is checked by the caller."""
        self._assert_customer(customer_id)
        self._assert_open()
        self._assert_no_order()

        now = datetime.now(UTC)
        if self.selected_shop_id and self.selected_shop_id != shop_id and self.pricing is not None:
            # A different shop has to price printing again
            self.pricing = self.pricing.without_shop_pricing()
        self.selected_shop_id = shop_id
        self.updated_at = now
        self.raise_(ShopSelected(request_id=str(self.id), shop_id=shop_id, selected_at=now))

    def release_shop(self, reason: str | None = None) -> None:
        """Forget the selected shop and its order after the shop turned the order down."""
        if not self.selected_shop_id:
            return
        now = datetime.now(UTC)
        shop_id = self.selected_shop_id
        order_id = self.order_id
        self.selected_shop_id = None
        self.order_id = None
        if self.pricing is not None:
            self.pricing = self.pricing.without_shop_pricing()
        if reason:
            note = f"Order rejected by shop: {reason}"
            self.designer_notes = f"{self.designer_notes}\n{note}" if self.designer_notes else note
        self.updated_at = now
        self.raise_(
            ShopSelectionReleased(
                request_id=str(self.id),
                shop_id=shop_id,
                order_id=order_id,
                reason=reason,
                released_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------
    def set_pricing(self, designer_id: str, agreement: PricingAgreement) -> None:
        """Record the designer's fee. Leaves the status untouched."""
        self._assert_assigned_designer(designer_id)
        current = RequestStatus(self.status)
        if current not in _PRICEABLE_STATUSES:
            raise ConflictError(
                {"status": [f"Pricing cannot be set while the request is {current.value}"]},
                current_status=current.value,
            )
        if self.pricing is not None and self.pricing.agreed_by_customer:
            raise ConflictError(
                {"pricing": ["Pricing already agreed to by the customer"]},
                current_status=current.value,
            )

        if self.pricing is not None and self.pricing.is_shop_priced:
            agreement = agreement.with_shop_pricing(self.pricing.product_cost, self.pricing.printing_cost)

        now = datetime.now(UTC)
        self.pricing = agreement
        self.updated_at = now
        self.raise_(
            PricingAgreementSet(
                request_id=str(self.id),
                designer_id=designer_id,
                design_fee=agreement.design_fee,
                payment_type=agreement.payment_type,
                milestones=agreement.milestones,
                set_at=now,
            )
        )

    def set_shop_pricing(self, product_cost: float, printing_cost: float) -> None:
        """The selected shop adds product and printing costs to the agreement."""
        self._assert_open()
        self._assert_no_order()
        if not self.selected_shop_id:
            raise ConflictError(
                {"selected_shop_id": ["No printing shop has been selected"]},
                current_status=self.status,
            )
        if self.pricing is None:
            raise ConflictError(
                {"pricing": ["The designer has not set a pricing agreement yet"]},
                current_status=self.status,
            )
        if printing_cost is None or printing_cost < 0:
            raise ValidationError({"printing_cost": ["Printing cost must be zero or more"]})

        now = datetime.now(UTC)
        self.pricing = self.pricing.with_shop_pricing(product_cost, printing_cost)
        self.updated_at = now
        self.raise_(
            ShopPricingSet(
                request_id=str(self.id),
                shop_id=self.selected_shop_id,
                product_cost=self.pricing.product_cost,
                printing_cost=self.pricing.printing_cost,
                total_cost=self.pricing.total_cost,
                set_at=now,
            )
        )

    def agree_to_pricing(self, customer_id: str) -> None:
        self._assert_customer(customer_id)
        self._assert_open()
        if self.pricing is None:
            raise ConflictError(
                {"pricing": ["There is no pricing agreement to agree to"]},
                current_status=self.status,
            )
        if self.pricing.agreed_by_customer:
            raise ConflictError(
                {"pricing": ["Pricing already agreed to"]},
                current_status=self.status,
            )

        now = datetime.now(UTC)
        self.pricing = self.pricing.agreed_by(now)
        self.updated_at = now
        self.raise_(
            PricingAgreedByCustomer(
                request_id=str(self.id),
                customer_id=customer_id,
                agreed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Order linkage
    # -------------------------------------------------------------------
    def link_order(self, order_id: str) -> None:
        if RequestStatus(self.status) != RequestStatus.APPROVED:
            raise ConflictError(
                {"status": ["Only approved requests can be ordered"]},
                current_status=self.status,
            )
        self._assert_no_order()
        now = datetime.now(UTC)
        self.order_id = order_id
        self.updated_at = now
        self.raise_(
            CustomizationOrderLinked(
                request_id=str(self.id),
                order_id=order_id,
                linked_at=now,
            )
        )

    def unlink_order(self, order_id: str) -> None:
        """Detach a withdrawn order. The shop and its pricing stay in place."""
        if self.order_id != order_id:
            return
        now = datetime.now(UTC)
        self.order_id = None
        self.updated_at = now
        self.raise_(
            CustomizationOrderUnlinked(
                request_id=str(self.id),
                order_id=order_id,
                unlinked_at=now,
            )
        )
