"""Order domain events — facts published when an order changes.

The order's own timeline (``OrderEvent`` entities) is the audit record; these
events are what other parts of the platform subscribe to.
"""

from protean.fields import DateTime, Identifier, Integer, String, Text

from dispatch.domain import dispatch


@dispatch.event(part_of="Order")
class OrderPlaced:
    __version__ = 1

    order_id = Identifier(required=True)
    service_id = Identifier(required=True)
    mitra_id = Identifier(required=True)
    orderer_identifier = String(required=True)
    estimated_cost = Integer(required=True)
    trust_level = String(required=True)
    cost_breakdown = Text(required=True)  # JSON object
    placed_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    old_status = String(required=True)
    new_status = String(required=True)
    actor_role = String(required=True)
    actor_id = String()
    reason = String(max_length=500)
    changed_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class DriverAssigned:
    __version__ = 1

    order_id = Identifier(required=True)
    mitra_id = Identifier(required=True)
    driver_id = Identifier(required=True)
    previous_driver_id = Identifier()
    assigned_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class OrderNoteAdded:
    __version__ = 1

    order_id = Identifier(required=True)
    author_role = String(required=True)
    note = Text(required=True)
    added_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class ProofPhotoAttached:
    __version__ = 1

    order_id = Identifier(required=True)
    storage_key = String(required=True, max_length=500)
    category = String(required=True)
    attached_at = DateTime(required=True)
