"""Per-user state tracking for Locust load test scenarios.

Each Locust user keeps its own state; ids returned by creation endpoints
are remembered so later steps of the journey can reference them.
"""

from dataclasses import dataclass


@dataclass
class StorefrontState:
    """A shop with one listed product."""

    owner_id: str | None = None
    shop_id: str | None = None
    product_id: str | None = None


@dataclass
class OrderState:
    order_id: str | None = None
    customer_id: str | None = None
    current_status: str = "pending"


@dataclass
class CustomizationState:
    request_id: str | None = None
    customer_id: str | None = None
    designer_id: str | None = None
    current_status: str = "pending_designer_review"
