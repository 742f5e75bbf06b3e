"""Trust classification for placed orders.

Two risk factors are considered: an advance payment (talangan) and a
high-value ("barang penting") flag, set either on the order or by the
service's default. No factor is STANDARD, one is SENSITIVE and both are
HIGH_RISK. Anything above STANDARD needs the receiver to be notified, so a
receiver contact becomes mandatory.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict

from dispatch.errors import BusinessRuleError
from dispatch.order.details import Placement
from dispatch.service.config import ServiceConfig
from dispatch.trust.links import receiver_notification_link


class TrustLevel(Enum):
    STANDARD = "STANDARD"
    SENSITIVE = "SENSITIVE"
    HIGH_RISK = "HIGH_RISK"


_LEVEL_BY_FACTOR_COUNT = {
    0: TrustLevel.STANDARD,
    1: TrustLevel.SENSITIVE,
    2: TrustLevel.HIGH_RISK,
}

NOTIFY_RECEIVER = "Orderer must notify the receiver using the provided link"
DRIVER_COLLECTS_TALANGAN = "Driver collects the advance payment (talangan) on behalf of the orderer"
EXTRA_CARE = "Extra care required for valuable items during transport"
VERIFY_RECEIVER_IDENTITY = "Driver verifies the receiver's identity at handover"


class TrustResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: TrustLevel
    reasons: tuple[str, ...] = ()
    verification_requirements: tuple[str, ...] = ()
    requires_notification: bool = False
    notification_link: str | None = None

    def summary(self) -> dict:
        return {
            "level": self.level.value,
            "required_actions": list(self.verification_requirements),
            "notification_required": self.requires_notification,
        }


def is_high_value(config: ServiceConfig, placement: Placement) -> bool:
    return placement.high_value or config.high_value_default


def evaluate_trust(config: ServiceConfig, placement: Placement, order_id: str) -> TrustResult:
    has_talangan = placement.talangan_amount > 0
    high_value = is_high_value(config, placement)

    reasons = []
    if has_talangan:
        reasons.append(f"Talangan amount: Rp {placement.talangan_amount:,}")
    if high_value:
        reasons.append("Order contains valuable/important items")

    level = _LEVEL_BY_FACTOR_COUNT[has_talangan + high_value]
    if level is TrustLevel.STANDARD:
        return TrustResult(level=level)

    if not placement.receiver_contact:
        raise BusinessRuleError(
            "Receiver contact is required for orders with talangan or valuable items",
            code="RECEIVER_CONTACT_REQUIRED",
            details={"has_talangan": has_talangan, "high_value": high_value},
        )

    requirements = [NOTIFY_RECEIVER]
    if has_talangan:
        requirements.append(DRIVER_COLLECTS_TALANGAN)
    if high_value:
        requirements.append(EXTRA_CARE)
    if level is TrustLevel.HIGH_RISK:
        requirements.append(VERIFY_RECEIVER_IDENTITY)

    return TrustResult(
        level=level,
        reasons=tuple(reasons),
        verification_requirements=tuple(requirements),
        requires_notification=True,
        notification_link=receiver_notification_link(placement, order_id, config.service_type_alias, high_value),
    )
