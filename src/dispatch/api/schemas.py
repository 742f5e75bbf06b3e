"""Pydantic API schemas for the Dispatch domain.

These are the external API contracts, kept apart from the domain commands.
Order details are passed through to the domain as JSON and validated there.
"""

from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class AddressRequest(BaseModel):
    text: str
    lat: float | None = None
    lon: float | None = None
    zone: str | None = None
    notes: str | None = None


class OrderDetailsRequest(BaseModel):
    pickup: AddressRequest
    dropoff: AddressRequest
    notes: str | None = None
    cargo_type_id: str | None = None
    facility_ids: list[str] = []
    item_count: int | None = None
    passenger_count: int | None = None
    scheduled_at: str | None = None
    driver_instructions: str | None = None


class PlaceOrderRequest(BaseModel):
    service_id: str
    orderer_identifier: str
    receiver_contact: str | None = None
    details: OrderDetailsRequest
    order_model: str | None = None
    talangan_amount: int = 0
    high_value: bool = False
    payment_method: str = "CASH"


class CostEstimateRequest(BaseModel):
    service_id: str
    details: OrderDetailsRequest


class UpdateStatusRequest(BaseModel):
    new_status: str
    notes: str | None = Field(default=None, max_length=255)
    photo_key: str | None = None
    lat: float | None = None
    lon: float | None = None
    expected_status: str | None = None


class RejectOrderRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=255)


class NoteRequest(BaseModel):
    note: str = Field(min_length=1)


class PhotoUploadRequest(BaseModel):
    filename: str


class AttachPhotoRequest(BaseModel):
    storage_key: str
    caption: str | None = None


class AssignDriverRequest(BaseModel):
    driver_id: str


class RegisterServiceRequest(BaseModel):
    name: str
    config: dict[str, Any]


class ReplaceServiceConfigRequest(BaseModel):
    config: dict[str, Any]


class RegisterDriverRequest(BaseModel):
    name: str
    phone: str | None = None
    vehicle_type: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class CostLineResponse(BaseModel):
    description: str
    amount: int


class CostBreakdownResponse(BaseModel):
    lines: list[CostLineResponse]
    total: int
    calculation_method: str
    distance_km: float | None = None
    applied_zone: str | None = None
    item_count: int | None = None


class TrustSummaryResponse(BaseModel):
    level: str
    required_actions: list[str]
    notification_required: bool


class PlaceOrderResponse(BaseModel):
    order_id: str
    status: str
    estimated_cost: int
    cost_breakdown: CostBreakdownResponse
    trust: TrustSummaryResponse
    notification_link: str | None = None
    tracking_url: str
    created_at: str
    scheduled_at: str | None = None


class OrderResponse(BaseModel):
    order_id: str
    service_id: str
    driver_id: str | None = None
    status: str
    orderer_identifier: str
    receiver_contact: str | None = None
    details: dict[str, Any]
    estimated_cost: int
    final_cost: int | None = None
    talangan_amount: int
    high_value: bool
    payment_method: str
    trust_level: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    scheduled_at: str | None = None


class TimelineEntryResponse(BaseModel):
    sequence: int
    event_type: str
    actor_role: str
    actor_id: str | None = None
    occurred_at: str
    data: dict[str, Any]


class OrderDetailResponse(OrderResponse):
    timeline: list[TimelineEntryResponse]


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    page: int
    limit: int
    total: int


class TrackingDriverResponse(BaseModel):
    name: str
    vehicle_type: str | None = None


class TrackingEventResponse(BaseModel):
    event_type: str
    occurred_at: str
    data: dict[str, Any]


class TrackingResponse(BaseModel):
    order_id: str
    status: str
    service: dict[str, str]
    driver: TrackingDriverResponse | None = None
    pickup_address: str
    dropoff_address: str
    estimated_cost: int
    final_cost: int | None = None
    created_at: str | None = None
    updated_at: str | None = None
    scheduled_at: str | None = None
    events: list[TrackingEventResponse]


class PhotoUploadResponse(BaseModel):
    storage_key: str


class IdResponse(BaseModel):
    id: str


class StatusResponse(BaseModel):
    status: str = "ok"
