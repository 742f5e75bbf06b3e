"""Itemised order cost.

``compute_cost`` is a pure function of a parsed ``ServiceConfig`` and the
submitted ``OrderDetails``. Amounts are whole rupiah; every multiplication is
rounded half-up so a quote and a placement made with the same inputs always
agree to the last unit.

Line order:
    admin fee → distance or zone price → cargo handling → facilities → per-item
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, model_validator

from dispatch.errors import CostError
from dispatch.order.details import OrderDetails
from dispatch.pricing.geo import haversine_km
from dispatch.service.config import DistanceModel, ItemModel, ServiceConfig


class CostLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str
    amount: int


class CostBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    lines: tuple[CostLine, ...]
    total: int
    calculation_method: Literal["per_km", "zone"]
    distance_km: float | None = None
    applied_zone: str | None = None
    item_count: int | None = None

    @model_validator(mode="after")
    def _total_is_sum_of_lines(self):
        if self.total != sum(line.amount for line in self.lines):
            raise ValueError("total must equal the sum of line amounts")
        return self


def _rupiah(value) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _format_rp(amount: int) -> str:
    return f"Rp {amount:,}"


# ---------------------------------------------------------------------------
# Distance component
# ---------------------------------------------------------------------------
def _price_per_km(config: ServiceConfig, details: OrderDetails) -> tuple[CostLine, dict]:
    origin = details.pickup.coordinates
    destination = details.dropoff.coordinates
    if origin is None or destination is None:
        raise CostError(
            "Pickup and dropoff coordinates are required for per-kilometre pricing",
            code="MISSING_COORDINATES",
        )
    raw_distance = haversine_km(origin, destination)
    distance_km = round(raw_distance, 3)
    max_distance = config.coverage.max_distance_km
    if max_distance is not None and raw_distance > max_distance:
        raise CostError(
            f"Distance {distance_km:.2f} km exceeds the service coverage of {max_distance} km",
            code="DISTANCE_EXCEEDS_COVERAGE",
            details={"distance_km": distance_km, "max_distance_km": max_distance},
        )
    rate = config.pricing.per_km_rate
    line = CostLine(
        description=f"Distance ({distance_km:.2f} km x {_format_rp(rate)})",
        amount=_rupiah(Decimal(str(raw_distance)) * rate),
    )
    return line, {"calculation_method": "per_km", "distance_km": distance_km}


def _price_by_zone(config: ServiceConfig, details: OrderDetails) -> tuple[CostLine, dict]:
    origin_zone = details.pickup.zone
    destination_zone = details.dropoff.zone
    if not origin_zone or not destination_zone:
        raise CostError(
            "Pickup and dropoff zones are required for zone pricing",
            code="MISSING_ZONE",
        )
    entry = config.pricing.zone_price(origin_zone, destination_zone)
    if entry is None:
        raise CostError(
            f"No zone price from {origin_zone} to {destination_zone}",
            code="ZONE_PRICE_NOT_FOUND",
            details={"origin_zone": origin_zone, "destination_zone": destination_zone},
        )
    applied_zone = f"{origin_zone} -> {destination_zone}"
    line = CostLine(description=f"Zone ({applied_zone})", amount=entry.price)
    return line, {"calculation_method": "zone", "applied_zone": applied_zone}


_DISTANCE_PRICERS = {
    DistanceModel.PER_KM: _price_per_km,
    DistanceModel.ZONE: _price_by_zone,
}


# ---------------------------------------------------------------------------
# Selected options
# ---------------------------------------------------------------------------
def _not_allowed(kind: str, option_id: str) -> CostError:
    return CostError(
        f"Selected {kind} '{option_id}' is not offered by this service",
        code="SELECTED_OPTION_NOT_ALLOWED",
        details={kind: option_id},
    )


def _option_lines(config: ServiceConfig, details: OrderDetails) -> list[CostLine]:
    lines = []
    if details.cargo_type_id is not None:
        cargo = config.cargo_type(details.cargo_type_id)
        if cargo is None:
            raise _not_allowed("cargo_type", details.cargo_type_id)
        if cargo.handling_fee:
            lines.append(CostLine(description=f"Handling: {cargo.name}", amount=cargo.handling_fee))
    for facility_id in details.facility_ids:
        facility = config.facility(facility_id)
        if facility is None:
            raise _not_allowed("facility", facility_id)
        if facility.fee:
            lines.append(CostLine(description=f"Facility: {facility.name}", amount=facility.fee))
    return lines


def _item_line(config: ServiceConfig, details: OrderDetails) -> CostLine | None:
    pricing = config.pricing
    if pricing.item_model is not ItemModel.PER_ITEM or not details.item_count:
        return None
    return CostLine(
        description=f"Per item ({details.item_count} x {_format_rp(pricing.per_item_rate)})",
        amount=details.item_count * pricing.per_item_rate,
    )


def compute_cost(config: ServiceConfig, details: OrderDetails) -> CostBreakdown:
    lines = [CostLine(description="Admin fee", amount=config.pricing.admin_fee)]

    distance_line, meta = _DISTANCE_PRICERS[config.pricing.distance_model](config, details)
    lines.append(distance_line)
    lines.extend(_option_lines(config, details))

    item_line = _item_line(config, details)
    if item_line is not None:
        lines.append(item_line)

    return CostBreakdown(
        lines=tuple(lines),
        total=sum(line.amount for line in lines),
        item_count=details.item_count if item_line is not None else None,
        **meta,
    )
