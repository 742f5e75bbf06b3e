"""Driver domain events."""

from protean.fields import DateTime, Identifier, String

from dispatch.domain import dispatch


@dispatch.event(part_of="Driver")
class DriverRegistered:
    __version__ = 1

    driver_id = Identifier(required=True)
    mitra_id = Identifier(required=True)
    name = String(required=True)
    registered_at = DateTime(required=True)


@dispatch.event(part_of="Driver")
class DriverLinkedToService:
    """A driver became eligible for a service's orders."""

    __version__ = 1

    driver_id = Identifier(required=True)
    service_id = Identifier(required=True)
    linked_at = DateTime(required=True)


@dispatch.event(part_of="Driver")
class DriverDeactivated:
    __version__ = 1

    driver_id = Identifier(required=True)
    deactivated_at = DateTime(required=True)
