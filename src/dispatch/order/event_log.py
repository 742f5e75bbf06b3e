"""Order timeline payloads.

Each timeline entry stores its payload as JSON text next to an ``event_type``
tag. The tag selects exactly one of the payload models below, so reading an
entry back always yields a typed value.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class EventType:
    ORDER_CREATED = "ORDER_CREATED"
    STATUS_UPDATE = "STATUS_UPDATE"
    PHOTO_UPLOADED = "PHOTO_UPLOADED"
    LOCATION_UPDATE = "LOCATION_UPDATE"
    NOTE_ADDED = "NOTE_ADDED"
    ASSIGNMENT_CHANGED = "ASSIGNMENT_CHANGED"
    TRUST_EVALUATION = "TRUST_EVALUATION"


class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class OrderCreatedPayload(_Payload):
    event_type: Literal["ORDER_CREATED"] = "ORDER_CREATED"
    service_name: str
    estimated_cost: int
    cost_breakdown: dict
    payment_method: str
    high_value: bool
    talangan_amount: int
    trust: dict


class StatusUpdatePayload(_Payload):
    event_type: Literal["STATUS_UPDATE"] = "STATUS_UPDATE"
    old_status: str
    new_status: str
    reason: str | None = None


class PhotoUploadedPayload(_Payload):
    event_type: Literal["PHOTO_UPLOADED"] = "PHOTO_UPLOADED"
    storage_key: str
    category: Literal["PICKUP_PROOF", "DELIVERY_PROOF", "CONDITION_PROOF"]
    caption: str | None = None


class LocationUpdatePayload(_Payload):
    event_type: Literal["LOCATION_UPDATE"] = "LOCATION_UPDATE"
    lat: float
    lon: float


class NoteAddedPayload(_Payload):
    event_type: Literal["NOTE_ADDED"] = "NOTE_ADDED"
    note: str
    author_role: str


class AssignmentChangedPayload(_Payload):
    event_type: Literal["ASSIGNMENT_CHANGED"] = "ASSIGNMENT_CHANGED"
    old_driver_id: str | None = None
    new_driver_id: str | None = None
    reason: str


class TrustEvaluationPayload(_Payload):
    event_type: Literal["TRUST_EVALUATION"] = "TRUST_EVALUATION"
    level: str
    reasons: list[str]
    verification_requirements: list[str]
    notification_required: bool


EventPayload = Annotated[
    OrderCreatedPayload
    | StatusUpdatePayload
    | PhotoUploadedPayload
    | LocationUpdatePayload
    | NoteAddedPayload
    | AssignmentChangedPayload
    | TrustEvaluationPayload,
    Field(discriminator="event_type"),
]

_payload_adapter = TypeAdapter(EventPayload)


def serialize_payload(payload) -> str:
    return payload.model_dump_json()


def parse_payload(data: str):
    return _payload_adapter.validate_json(data)
