"""Marketplace bounded context — made-to-order orders and customizations.

Coordinates customers, independent designers and printing shops: the order
lifecycle from placement to delivery, the design workflow of customization
requests, shop matching, discount pricing, and the escrow release that pays
the fulfilling shop when a customized order ships. Uses CQRS aggregates with
guarded transition tables; audit logging and read caches react to events.
"""

import structlog
from protean.domain import Domain

from marketplace.utils.logging import configure_logging

# Configure logging for the application
configure_logging()

logger = structlog.get_logger(__name__)

# Domain Composition Root
marketplace = Domain(name="marketplace")
