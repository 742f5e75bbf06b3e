"""Order lifecycle state machine.

Driver transitions (only the currently assigned driver):
    DRIVER_ASSIGNED → {ACCEPTED_BY_DRIVER, REJECTED_BY_DRIVER, CANCELLED_BY_DRIVER}
    ACCEPTED_BY_DRIVER → DRIVER_AT_PICKUP → PICKED_UP → [IN_TRANSIT] → DRIVER_AT_DROPOFF
    DRIVER_AT_DROPOFF → {DELIVERED, FAILED_DELIVERY}
    FAILED_DELIVERY → DRIVER_AT_DROPOFF
    any active driver state → CANCELLED_BY_DRIVER

Mitra transitions (only the owning mitra):
    {PENDING, ACCEPTED_BY_MITRA, PENDING_DRIVER_ASSIGNMENT, REJECTED_BY_DRIVER} → DRIVER_ASSIGNED

Customers and the system hold no transitions. PENDING is set only by order
placement.
"""

from enum import Enum

from dispatch.errors import StateTransitionError


class OrderStatus(Enum):
    PENDING = "PENDING"
    ACCEPTED_BY_MITRA = "ACCEPTED_BY_MITRA"
    PENDING_DRIVER_ASSIGNMENT = "PENDING_DRIVER_ASSIGNMENT"
    DRIVER_ASSIGNED = "DRIVER_ASSIGNED"
    REJECTED_BY_DRIVER = "REJECTED_BY_DRIVER"
    ACCEPTED_BY_DRIVER = "ACCEPTED_BY_DRIVER"
    DRIVER_AT_PICKUP = "DRIVER_AT_PICKUP"
    PICKED_UP = "PICKED_UP"
    IN_TRANSIT = "IN_TRANSIT"
    DRIVER_AT_DROPOFF = "DRIVER_AT_DROPOFF"
    DELIVERED = "DELIVERED"
    FAILED_DELIVERY = "FAILED_DELIVERY"
    CANCELLED_BY_USER = "CANCELLED_BY_USER"
    CANCELLED_BY_MITRA = "CANCELLED_BY_MITRA"
    CANCELLED_BY_DRIVER = "CANCELLED_BY_DRIVER"
    REFUNDED = "REFUNDED"


class ActorRole(Enum):
    CUSTOMER = "CUSTOMER"
    DRIVER = "DRIVER"
    MITRA = "MITRA"
    SYSTEM = "SYSTEM"


TERMINAL_STATUSES = frozenset(
    {
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED_BY_DRIVER,
        OrderStatus.REFUNDED,
    }
)

ASSIGNABLE_STATUSES = frozenset(
    {
        OrderStatus.PENDING,
        OrderStatus.ACCEPTED_BY_MITRA,
        OrderStatus.PENDING_DRIVER_ASSIGNMENT,
        OrderStatus.REJECTED_BY_DRIVER,
    }
)

# Statuses in which an order sits on a driver's work list
DRIVER_ACTIVE_STATUSES = frozenset(
    {
        OrderStatus.DRIVER_ASSIGNED,
        OrderStatus.ACCEPTED_BY_DRIVER,
        OrderStatus.DRIVER_AT_PICKUP,
        OrderStatus.PICKED_UP,
        OrderStatus.IN_TRANSIT,
        OrderStatus.DRIVER_AT_DROPOFF,
        OrderStatus.FAILED_DELIVERY,
    }
)

_DRIVER_TRANSITIONS = {
    OrderStatus.DRIVER_ASSIGNED: {
        OrderStatus.ACCEPTED_BY_DRIVER,
        OrderStatus.REJECTED_BY_DRIVER,
        OrderStatus.CANCELLED_BY_DRIVER,
    },
    OrderStatus.ACCEPTED_BY_DRIVER: {OrderStatus.DRIVER_AT_PICKUP, OrderStatus.CANCELLED_BY_DRIVER},
    OrderStatus.DRIVER_AT_PICKUP: {OrderStatus.PICKED_UP, OrderStatus.CANCELLED_BY_DRIVER},
    OrderStatus.PICKED_UP: {
        OrderStatus.IN_TRANSIT,
        OrderStatus.DRIVER_AT_DROPOFF,
        OrderStatus.CANCELLED_BY_DRIVER,
    },
    OrderStatus.IN_TRANSIT: {OrderStatus.DRIVER_AT_DROPOFF, OrderStatus.CANCELLED_BY_DRIVER},
    OrderStatus.DRIVER_AT_DROPOFF: {
        OrderStatus.DELIVERED,
        OrderStatus.FAILED_DELIVERY,
        OrderStatus.CANCELLED_BY_DRIVER,
    },
    OrderStatus.FAILED_DELIVERY: {OrderStatus.DRIVER_AT_DROPOFF},
}

_MITRA_TRANSITIONS = {status: {OrderStatus.DRIVER_ASSIGNED} for status in ASSIGNABLE_STATUSES}

_TRANSITIONS_BY_ROLE = {
    ActorRole.DRIVER: _DRIVER_TRANSITIONS,
    ActorRole.MITRA: _MITRA_TRANSITIONS,
    ActorRole.CUSTOMER: {},
    ActorRole.SYSTEM: {},
}


def allowed_targets(current: OrderStatus, role: ActorRole) -> frozenset[OrderStatus]:
    return frozenset(_TRANSITIONS_BY_ROLE[role].get(current, ()))


def can_transition(current: OrderStatus, target: OrderStatus, role: ActorRole) -> bool:
    return target in allowed_targets(current, role)


def check_transition(current: OrderStatus, target: OrderStatus, role: ActorRole) -> None:
    """Raise ``StateTransitionError`` unless ``role`` may move ``current`` to ``target``."""
    if not can_transition(current, target, role):
        raise StateTransitionError(current.value, target.value)
