"""FastAPI routes for the Dispatch domain.

Thin adapters that translate HTTP requests into domain commands and queries.
The mitra tenant arrives already resolved in the ``X-Mitra-Id`` header; the
acting driver is the ``driver_id`` path segment.
"""

import json

from fastapi import APIRouter, Header, Query
from protean.utils.globals import current_domain

from dispatch.api.schemas import (
    AssignDriverRequest,
    AttachPhotoRequest,
    CostBreakdownResponse,
    CostEstimateRequest,
    IdResponse,
    NoteRequest,
    OrderDetailResponse,
    OrderListResponse,
    OrderResponse,
    PhotoUploadRequest,
    PhotoUploadResponse,
    PlaceOrderRequest,
    PlaceOrderResponse,
    RegisterDriverRequest,
    RegisterServiceRequest,
    RejectOrderRequest,
    ReplaceServiceConfigRequest,
    StatusResponse,
    TrackingResponse,
    UpdateStatusRequest,
)
from dispatch.driver.management import DeactivateDriver, LinkDriverToService, RegisterDriver
from dispatch.order.assignment import AssignDriver
from dispatch.order.lifecycle import ActorRole, OrderStatus
from dispatch.order.notes import AddOrderNote
from dispatch.order.placement import PlaceOrder, estimate_cost
from dispatch.order.proofs import AttachProofPhoto, reserve_photo_key
from dispatch.order.status import UpdateOrderStatus, active_driver
from dispatch.order.tracking import assigned_orders, get_mitra_order, list_mitra_orders, track_order
from dispatch.service.management import (
    ActivateService,
    DeactivateService,
    RegisterService,
    ReplaceServiceConfig,
)

# ---------------------------------------------------------------------------
# Public order router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=PlaceOrderResponse)
async def place_order(body: PlaceOrderRequest) -> PlaceOrderResponse:
    """Place a new order against a service."""
    command = PlaceOrder(
        service_id=body.service_id,
        orderer_identifier=body.orderer_identifier,
        receiver_contact=body.receiver_contact,
        details=body.details.model_dump_json(),
        order_model=body.order_model,
        talangan_amount=body.talangan_amount,
        high_value=body.high_value,
        payment_method=body.payment_method,
    )
    result = current_domain.process(command, asynchronous=False)
    return PlaceOrderResponse(**result)


@order_router.post("/cost-estimate", response_model=CostBreakdownResponse)
async def cost_estimate(body: CostEstimateRequest) -> CostBreakdownResponse:
    """Price an order without placing it."""
    breakdown = estimate_cost(body.service_id, body.details.model_dump_json())
    return CostBreakdownResponse(**breakdown.model_dump(mode="json"))


@order_router.get("/{order_id}/track", response_model=TrackingResponse)
async def track(order_id: str) -> TrackingResponse:
    """Public tracking view. No authentication."""
    return TrackingResponse(**track_order(order_id))


# ---------------------------------------------------------------------------
# Driver router
# ---------------------------------------------------------------------------
driver_router = APIRouter(prefix="/drivers/{driver_id}/orders", tags=["driver-orders"])


def _update_status(driver_id: str, order_id: str, new_status: str, **extra) -> OrderResponse:
    command = UpdateOrderStatus(order_id=order_id, driver_id=driver_id, new_status=new_status, **extra)
    return OrderResponse(**current_domain.process(command, asynchronous=False))


@driver_router.get("/assigned", response_model=list[OrderResponse])
async def list_assigned(driver_id: str) -> list[OrderResponse]:
    """Orders currently assigned to the driver."""
    return [OrderResponse(**view) for view in assigned_orders(active_driver(driver_id))]


@driver_router.post("/{order_id}/accept", response_model=OrderResponse)
async def accept_order(driver_id: str, order_id: str) -> OrderResponse:
    return _update_status(driver_id, order_id, OrderStatus.ACCEPTED_BY_DRIVER.value)


@driver_router.post("/{order_id}/reject", response_model=OrderResponse)
async def reject_order(driver_id: str, order_id: str, body: RejectOrderRequest) -> OrderResponse:
    """Hand the order back to the mitra for reassignment."""
    return _update_status(driver_id, order_id, OrderStatus.REJECTED_BY_DRIVER.value, notes=body.reason)


@driver_router.post("/{order_id}/update-status", response_model=OrderResponse)
async def update_status(driver_id: str, order_id: str, body: UpdateStatusRequest) -> OrderResponse:
    """Advance the order, optionally with notes, a proof photo key and a location."""
    return _update_status(
        driver_id,
        order_id,
        body.new_status,
        notes=body.notes,
        photo_key=body.photo_key,
        lat=body.lat,
        lon=body.lon,
        expected_status=body.expected_status,
    )


@driver_router.post("/{order_id}/notes", status_code=201, response_model=StatusResponse)
async def add_driver_note(driver_id: str, order_id: str, body: NoteRequest) -> StatusResponse:
    command = AddOrderNote(
        order_id=order_id,
        author_role=ActorRole.DRIVER.value,
        author_id=driver_id,
        note=body.note,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="note_added")


@driver_router.post("/{order_id}/photo-uploads", response_model=PhotoUploadResponse)
async def request_photo_upload(driver_id: str, order_id: str, body: PhotoUploadRequest) -> PhotoUploadResponse:
    """Reserve a storage key for a proof photo."""
    return PhotoUploadResponse(storage_key=reserve_photo_key(driver_id, order_id, body.filename))


@driver_router.post("/{order_id}/photos", status_code=201, response_model=StatusResponse)
async def attach_photo(driver_id: str, order_id: str, body: AttachPhotoRequest) -> StatusResponse:
    command = AttachProofPhoto(
        order_id=order_id,
        driver_id=driver_id,
        storage_key=body.storage_key,
        caption=body.caption,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="photo_attached")


# ---------------------------------------------------------------------------
# Mitra router
# ---------------------------------------------------------------------------
mitra_router = APIRouter(prefix="/mitra", tags=["mitra"])


@mitra_router.get("/orders", response_model=OrderListResponse)
async def list_orders(
    x_mitra_id: str = Header(...),
    status: OrderStatus | None = None,
    service_id: str | None = None,
    driver_id: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> OrderListResponse:
    result = list_mitra_orders(
        x_mitra_id,
        status=status,
        service_id=service_id,
        driver_id=driver_id,
        page=page,
        limit=limit,
    )
    return OrderListResponse(**result)


@mitra_router.get("/orders/{order_id}", response_model=OrderDetailResponse)
async def get_order(order_id: str, x_mitra_id: str = Header(...)) -> OrderDetailResponse:
    """Order detail with its full timeline."""
    return OrderDetailResponse(**get_mitra_order(x_mitra_id, order_id))


@mitra_router.post("/orders/{order_id}/assign-driver", response_model=OrderResponse)
async def assign_driver(order_id: str, body: AssignDriverRequest, x_mitra_id: str = Header(...)) -> OrderResponse:
    command = AssignDriver(mitra_id=x_mitra_id, order_id=order_id, driver_id=body.driver_id)
    return OrderResponse(**current_domain.process(command, asynchronous=False))


@mitra_router.post("/orders/{order_id}/notes", status_code=201, response_model=StatusResponse)
async def add_mitra_note(order_id: str, body: NoteRequest, x_mitra_id: str = Header(...)) -> StatusResponse:
    command = AddOrderNote(
        order_id=order_id,
        author_role=ActorRole.MITRA.value,
        author_id=x_mitra_id,
        note=body.note,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="note_added")


@mitra_router.post("/services", status_code=201, response_model=IdResponse)
async def register_service(body: RegisterServiceRequest, x_mitra_id: str = Header(...)) -> IdResponse:
    command = RegisterService(mitra_id=x_mitra_id, name=body.name, config=json.dumps(body.config))
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@mitra_router.put("/services/{service_id}/config", response_model=StatusResponse)
async def replace_service_config(
    service_id: str, body: ReplaceServiceConfigRequest, x_mitra_id: str = Header(...)
) -> StatusResponse:
    command = ReplaceServiceConfig(mitra_id=x_mitra_id, service_id=service_id, config=json.dumps(body.config))
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="config_replaced")


@mitra_router.put("/services/{service_id}/activate", response_model=StatusResponse)
async def activate_service(service_id: str, x_mitra_id: str = Header(...)) -> StatusResponse:
    current_domain.process(ActivateService(mitra_id=x_mitra_id, service_id=service_id), asynchronous=False)
    return StatusResponse(status="active")


@mitra_router.put("/services/{service_id}/deactivate", response_model=StatusResponse)
async def deactivate_service(service_id: str, x_mitra_id: str = Header(...)) -> StatusResponse:
    current_domain.process(DeactivateService(mitra_id=x_mitra_id, service_id=service_id), asynchronous=False)
    return StatusResponse(status="inactive")


@mitra_router.post("/drivers", status_code=201, response_model=IdResponse)
async def register_driver(body: RegisterDriverRequest, x_mitra_id: str = Header(...)) -> IdResponse:
    command = RegisterDriver(
        mitra_id=x_mitra_id,
        name=body.name,
        phone=body.phone,
        vehicle_type=body.vehicle_type,
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@mitra_router.put("/drivers/{driver_id}/services/{service_id}", response_model=StatusResponse)
async def link_driver_to_service(driver_id: str, service_id: str, x_mitra_id: str = Header(...)) -> StatusResponse:
    command = LinkDriverToService(mitra_id=x_mitra_id, driver_id=driver_id, service_id=service_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="linked")


@mitra_router.put("/drivers/{driver_id}/deactivate", response_model=StatusResponse)
async def deactivate_driver(driver_id: str, x_mitra_id: str = Header(...)) -> StatusResponse:
    current_domain.process(DeactivateDriver(mitra_id=x_mitra_id, driver_id=driver_id), asynchronous=False)
    return StatusResponse(status="inactive")
