"""Service domain events."""

from protean.fields import DateTime, Identifier, String

from dispatch.domain import dispatch


@dispatch.event(part_of="Service")
class ServiceRegistered:
    """A mitra registered a new service."""

    __version__ = 1

    service_id = Identifier(required=True)
    mitra_id = Identifier(required=True)
    name = String(required=True)
    registered_at = DateTime(required=True)


@dispatch.event(part_of="Service")
class ServiceConfigReplaced:
    """A mitra replaced a service's configuration document."""

    __version__ = 1

    service_id = Identifier(required=True)
    mitra_id = Identifier(required=True)
    replaced_at = DateTime(required=True)


@dispatch.event(part_of="Service")
class ServiceAvailabilityChanged:
    """A service was activated or deactivated."""

    __version__ = 1

    service_id = Identifier(required=True)
    mitra_id = Identifier(required=True)
    availability = String(required=True)
    changed_at = DateTime(required=True)
