"""Dispatch bounded context — Order Placement and Fulfillment.

Validates orders against mitra-defined service configurations, prices them,
classifies their trust level and drives them through the driver/mitra
lifecycle while keeping an append-only timeline of everything that happened.
"""

import structlog
from protean.domain import Domain

dispatch = Domain(name="dispatch")

logger = structlog.get_logger(__name__)
