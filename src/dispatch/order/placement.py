"""PlaceOrder — validate, price, classify and persist a new order.

The pipeline runs in a fixed order: service lookup → config parse → payload
rules → cost → trust → one ``Order`` insert carrying its creation timeline.
Everything up to the insert is read-only, and the handler runs inside a
single unit of work, so a failure at any step leaves nothing behind.
"""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

from protean import handle
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from dispatch.domain import dispatch, logger
from dispatch.errors import BusinessRuleError
from dispatch.order.details import Placement, parse_details, parse_placement
from dispatch.order.order import Order
from dispatch.pricing.cost import CostBreakdown, compute_cost
from dispatch.service.config import DefaultTiming, FixedRouteConfig, ServiceConfig
from dispatch.service.service import Service
from dispatch.trust.evaluator import evaluate_trust, is_high_value
from dispatch.trust.links import tracking_url
from dispatch.utils.lookup import load


@dispatch.command(part_of="Order")
class PlaceOrder:
    service_id = Identifier(required=True)
    orderer_identifier = String(required=True, max_length=50)
    receiver_contact = String(max_length=50)
    details = Text(required=True)  # JSON OrderDetails
    order_model = String(max_length=50)
    talangan_amount = Integer(default=0)
    high_value = Boolean(default=False)
    payment_method = String(max_length=20, default="CASH")


def available_service(service_id: str) -> Service:
    service = load(Service, service_id, "service")
    if not service.is_active:
        raise BusinessRuleError(
            "Service is not currently available",
            code="SERVICE_UNAVAILABLE",
            details={"service_id": service_id},
        )
    return service


# ---------------------------------------------------------------------------
# Payload rules that depend on the service config
# ---------------------------------------------------------------------------
def _check_order_model(config: ServiceConfig, placement: Placement) -> None:
    if placement.order_model is not None and placement.order_model not in config.allowed_order_models:
        raise BusinessRuleError(
            f"Order model {placement.order_model.value} is not offered by this service",
            code="SELECTED_OPTION_NOT_ALLOWED",
            details={"order_model": placement.order_model.value},
        )


def _check_talangan(config: ServiceConfig, placement: Placement) -> None:
    amount = placement.talangan_amount
    if amount <= 0:
        return
    if not config.talangan.enabled:
        raise BusinessRuleError(
            "Talangan is not enabled for this service",
            code="TALANGAN_NOT_ENABLED",
        )
    cap = config.talangan.max_amount
    if cap is not None and amount > cap:
        raise BusinessRuleError(
            f"Talangan amount exceeds the service limit of Rp {cap:,}",
            code="TALANGAN_EXCEEDS_LIMIT",
            details={"talangan_amount": amount, "max_amount": cap},
        )


def _as_utc(moment: datetime) -> datetime:
    return moment.replace(tzinfo=UTC) if moment.tzinfo is None else moment


def _check_schedule(config: ServiceConfig, placement: Placement) -> None:
    if config.default_timing is DefaultTiming.SCHEDULED_TIME and placement.details.scheduled_at is None:
        raise BusinessRuleError(
            "This service only accepts scheduled orders",
            code="SCHEDULE_REQUIRED",
        )


def _check_fixed_route(route: FixedRouteConfig, placement: Placement) -> None:
    details = placement.details
    if route.requires_advance_booking and details.scheduled_at is None:
        raise BusinessRuleError(
            "Fixed-route trips must be booked in advance",
            code="SCHEDULE_REQUIRED",
        )
    if details.scheduled_at is not None and route.max_advance_booking_days is not None:
        horizon = datetime.now(UTC) + timedelta(days=route.max_advance_booking_days)
        if _as_utc(details.scheduled_at) > horizon:
            raise BusinessRuleError(
                f"Trips can be booked at most {route.max_advance_booking_days} days ahead",
                code="SCHEDULE_OUT_OF_RANGE",
                details={"max_advance_booking_days": route.max_advance_booking_days},
            )
    if route.max_passengers_per_trip is not None and (details.passenger_count or 1) > route.max_passengers_per_trip:
        raise BusinessRuleError(
            f"At most {route.max_passengers_per_trip} passengers per trip",
            code="PASSENGER_LIMIT_EXCEEDED",
            details={"max_passengers_per_trip": route.max_passengers_per_trip},
        )


# Rules per specialized config type; ambulance services add none
_SPECIALIZED_CHECKS = {
    "AMBULANCE": lambda specialized, placement: None,
    "FIXED_ROUTE": _check_fixed_route,
}


def check_placement_rules(config: ServiceConfig, placement: Placement) -> None:
    _check_order_model(config, placement)
    _check_talangan(config, placement)
    _check_schedule(config, placement)
    if config.specialized is not None:
        _SPECIALIZED_CHECKS[config.specialized.type](config.specialized, placement)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
def estimate_cost(service_id: str, details: str | dict) -> CostBreakdown:
    """Price an order without creating it."""
    service = available_service(service_id)
    return compute_cost(service.config(), parse_details(details))


# ---------------------------------------------------------------------------
# Command handler
# ---------------------------------------------------------------------------
@dispatch.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        placement = parse_placement(
            {
                "service_id": str(command.service_id),
                "orderer_identifier": command.orderer_identifier,
                "receiver_contact": command.receiver_contact,
                "details": parse_details(command.details),
                "order_model": command.order_model,
                "talangan_amount": command.talangan_amount or 0,
                "high_value": bool(command.high_value),
                "payment_method": command.payment_method or "CASH",
            }
        )
        service = available_service(placement.service_id)
        config = service.config()
        check_placement_rules(config, placement)
        breakdown = compute_cost(config, placement.details)

        order_id = str(uuid4())
        trust = evaluate_trust(config, placement, order_id)
        order = Order.place(
            order_id,
            service,
            placement,
            breakdown,
            trust,
            high_value=is_high_value(config, placement),
        )
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order placed",
            order_id=order_id,
            service_id=placement.service_id,
            mitra_id=str(service.mitra_id),
            estimated_cost=breakdown.total,
            trust_level=trust.level.value,
        )
        return {
            "order_id": order_id,
            "status": order.status,
            "estimated_cost": breakdown.total,
            "cost_breakdown": breakdown.model_dump(mode="json"),
            "trust": trust.summary(),
            "notification_link": trust.notification_link,
            "tracking_url": tracking_url(order_id),
            "created_at": order.created_at.isoformat(),
            "scheduled_at": order.scheduled_at.isoformat() if order.scheduled_at else None,
        }
