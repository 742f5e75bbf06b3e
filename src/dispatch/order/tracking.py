"""Read-side views of orders.

``track_order`` is the only view served without authentication, so it carries
display data only: no actor ids, no contact details, no service config.
"""

import json
import os

from protean.utils.globals import current_domain

from dispatch.driver.driver import Driver
from dispatch.order.event_log import EventType
from dispatch.order.lifecycle import DRIVER_ACTIVE_STATUSES, OrderStatus
from dispatch.order.order import Order
from dispatch.service.service import Service
from dispatch.utils.lookup import load

DEFAULT_TRACKING_EVENTS_LIMIT = 20

# Payload fields a public tracker may see, per event type
_PUBLIC_EVENT_FIELDS = {
    EventType.ORDER_CREATED: ("estimated_cost",),
    EventType.STATUS_UPDATE: ("old_status", "new_status", "reason"),
    EventType.PHOTO_UPLOADED: ("category",),
    EventType.LOCATION_UPDATE: ("lat", "lon"),
    EventType.NOTE_ADDED: ("note", "author_role"),
    EventType.ASSIGNMENT_CHANGED: (),
    EventType.TRUST_EVALUATION: ("level",),
}


def _iso(value):
    return value.isoformat() if value else None


def order_view(order: Order) -> dict:
    """Full current-state projection for the order's driver or mitra."""
    return {
        "order_id": str(order.id),
        "service_id": str(order.service_id),
        "driver_id": str(order.driver_id) if order.driver_id else None,
        "status": order.status,
        "orderer_identifier": order.orderer_identifier,
        "receiver_contact": order.receiver_contact,
        "details": json.loads(order.details_json),
        "estimated_cost": order.estimated_cost,
        "final_cost": order.final_cost,
        "talangan_amount": order.talangan_amount,
        "high_value": order.high_value,
        "payment_method": order.payment_method,
        "trust_level": order.trust_level,
        "created_at": _iso(order.created_at),
        "updated_at": _iso(order.updated_at),
        "scheduled_at": _iso(order.scheduled_at),
    }


def timeline_view(order: Order) -> list[dict]:
    return [
        {
            "sequence": entry.sequence,
            "event_type": entry.event_type,
            "actor_role": entry.actor_role,
            "actor_id": entry.actor_id,
            "occurred_at": _iso(entry.occurred_at),
            "data": json.loads(entry.data),
        }
        for entry in order.history()
    ]


def tracking_events_limit() -> int:
    return int(os.environ.get("DISPATCH_TRACKING_EVENTS_LIMIT", DEFAULT_TRACKING_EVENTS_LIMIT))


def _public_event(entry) -> dict:
    data = json.loads(entry.data)
    fields = _PUBLIC_EVENT_FIELDS.get(entry.event_type, ())
    return {
        "event_type": entry.event_type,
        "occurred_at": _iso(entry.occurred_at),
        "data": {key: data[key] for key in fields if key in data},
    }


def track_order(order_id: str) -> dict:
    """Public tracking projection with the most recent events first."""
    order = load(Order, order_id, "order")
    service = load(Service, str(order.service_id), "service")
    driver = None
    if order.driver_id:
        record = load(Driver, str(order.driver_id), "driver")
        driver = {"name": record.name, "vehicle_type": record.vehicle_type}

    details = order.details()
    recent = list(reversed(order.history()))[: tracking_events_limit()]
    return {
        "order_id": str(order.id),
        "status": order.status,
        "service": {"name": service.name},
        "driver": driver,
        "pickup_address": details.pickup.text,
        "dropoff_address": details.dropoff.text,
        "estimated_cost": order.estimated_cost,
        "final_cost": order.final_cost,
        "created_at": _iso(order.created_at),
        "updated_at": _iso(order.updated_at),
        "scheduled_at": _iso(order.scheduled_at),
        "events": [_public_event(entry) for entry in recent],
    }


def assigned_orders(driver: Driver) -> list[dict]:
    """Orders currently on a driver's work list, newest first."""
    active = {status.value for status in DRIVER_ACTIVE_STATUSES}
    records = current_domain.repository_for(Order)._dao.query.filter(driver_id=str(driver.id)).all().items
    orders = [o for o in records if o.status in active]
    orders.sort(key=lambda o: o.created_at, reverse=True)
    return [order_view(o) for o in orders]


def list_mitra_orders(
    mitra_id: str,
    status: OrderStatus | None = None,
    service_id: str | None = None,
    driver_id: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> dict:
    criteria = {"mitra_id": mitra_id}
    if status:
        criteria["status"] = status.value
    if service_id:
        criteria["service_id"] = service_id
    if driver_id:
        criteria["driver_id"] = driver_id
    records = current_domain.repository_for(Order)._dao.query.filter(**criteria).all().items
    records.sort(key=lambda o: o.created_at, reverse=True)

    start = (page - 1) * limit
    return {
        "orders": [order_view(o) for o in records[start : start + limit]],
        "page": page,
        "limit": limit,
        "total": len(records),
    }


def get_mitra_order(mitra_id: str, order_id: str) -> dict:
    order = load(Order, order_id, "order", mitra_id=mitra_id)
    return {**order_view(order), "timeline": timeline_view(order)}
