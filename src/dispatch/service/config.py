"""Typed service configuration.

A mitra stores each service's configuration as a free-form JSON document.
``parse_service_config`` turns that document into an immutable
``ServiceConfig`` and rejects unknown keys, out-of-range enum values and
pricing blocks that contradict their declared distance model. Orders are
always priced against a freshly parsed config, never a cached one, because a
mitra may edit the document between a quote and a placement.
"""

import re
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from dispatch.errors import ServiceConfigError

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class BusinessModel(Enum):
    OWN_OPERATION = "OWN_OPERATION"
    PUBLIC_THIRD_PARTY = "PUBLIC_THIRD_PARTY"


class DriverGender(Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    ANY = "ANY"


class RouteModel(Enum):
    DYNAMIC_P2P = "DYNAMIC_P2P"
    FIXED_SCHEDULED = "FIXED_SCHEDULED"


class PrivacyModel(Enum):
    PRIVATE_SINGLE_ORDER = "PRIVATE_SINGLE_ORDER"
    SHARED_MULTI_ORDER = "SHARED_MULTI_ORDER"


class DefaultTiming(Enum):
    EXPRESS_NOW = "EXPRESS_NOW"
    SCHEDULED_TIME = "SCHEDULED_TIME"


class OrderModel(Enum):
    CALL_TO_ORDERER = "CALL_TO_ORDERER"
    PICKUP_DELIVER_OTHER = "PICKUP_DELIVER_OTHER"
    PICKUP_DELIVER_ORDERER = "PICKUP_DELIVER_ORDERER"


class OrderResponsibility(Enum):
    MEET_IN_PERSON = "MEET_IN_PERSON"
    REPRESENTED = "REPRESENTED"
    CONTACTLESS = "CONTACTLESS"


class DistanceModel(Enum):
    PER_KM = "PER_KM"
    ZONE = "ZONE"


class ItemModel(Enum):
    PER_ITEM = "PER_ITEM"


class EquipmentLevel(Enum):
    BASIC = "BASIC"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


class Weekday(Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------
class TalanganSettings(_Frozen):
    enabled: bool = False
    max_amount: int | None = Field(default=None, ge=0)


class Coverage(_Frozen):
    max_distance_km: float | None = Field(default=None, gt=0)
    cities: tuple[str, ...] = ()


class ZonePrice(_Frozen):
    origin_zone: str = Field(min_length=1)
    destination_zone: str = Field(min_length=1)
    price: int = Field(ge=0)


class Pricing(_Frozen):
    admin_fee: int = Field(default=0, ge=0)
    distance_model: DistanceModel
    per_km_rate: int | None = Field(default=None, ge=0)
    zone_prices: tuple[ZonePrice, ...] | None = None
    item_model: ItemModel | None = None
    per_item_rate: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _distance_block_matches_model(self):
        if self.distance_model is DistanceModel.PER_KM:
            if self.per_km_rate is None:
                raise ValueError("per_km_rate is required when distance_model is PER_KM")
            if self.zone_prices is not None:
                raise ValueError("zone_prices must be absent when distance_model is PER_KM")
        else:
            if not self.zone_prices:
                raise ValueError("zone_prices is required when distance_model is ZONE")
            if self.per_km_rate is not None:
                raise ValueError("per_km_rate must be absent when distance_model is ZONE")
        if self.item_model is not None and self.per_item_rate is None:
            raise ValueError("per_item_rate is required when item_model is set")
        return self

    def zone_price(self, origin_zone: str, destination_zone: str) -> ZonePrice | None:
        for entry in self.zone_prices or ():
            if entry.origin_zone == origin_zone and entry.destination_zone == destination_zone:
                return entry
        return None


class CargoType(_Frozen):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    handling_fee: int | None = Field(default=None, ge=0)


class Facility(_Frozen):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    fee: int | None = Field(default=None, ge=0)


class AmbulanceConfig(_Frozen):
    type: Literal["AMBULANCE"]
    is_emergency_service: bool = False
    equipment_level: EquipmentLevel
    personnel: tuple[str, ...] = ()


class ScheduledRun(_Frozen):
    day: Weekday
    start_time: str
    pickup_point: str = Field(min_length=1)
    dropoff_point: str = Field(min_length=1)

    @field_validator("start_time")
    @classmethod
    def _hhmm(cls, value: str) -> str:
        if not _HHMM.match(value):
            raise ValueError("start_time must be HH:MM")
        return value


class FixedRouteConfig(_Frozen):
    type: Literal["FIXED_ROUTE"]
    schedule: tuple[ScheduledRun, ...] = Field(min_length=1)
    max_passengers_per_trip: int | None = Field(default=None, ge=1)
    requires_advance_booking: bool = False
    max_advance_booking_days: int | None = Field(default=None, ge=1)


SpecializedConfig = Annotated[AmbulanceConfig | FixedRouteConfig, Field(discriminator="type")]


# ---------------------------------------------------------------------------
# Root document
# ---------------------------------------------------------------------------
class ServiceConfig(_Frozen):
    service_type_alias: str = Field(min_length=1)
    business_model: BusinessModel
    primary_vehicle: str = Field(min_length=1)
    driver_gender: DriverGender = DriverGender.ANY
    route_model: RouteModel
    privacy_model: PrivacyModel
    default_timing: DefaultTiming
    allowed_order_models: frozenset[OrderModel] = Field(min_length=1)
    order_responsibility: OrderResponsibility
    talangan: TalanganSettings = TalanganSettings()
    high_value_default: bool = False
    coverage: Coverage
    pricing: Pricing
    cargo_types: tuple[CargoType, ...] = ()
    facilities: tuple[Facility, ...] = ()
    specialized: SpecializedConfig | None = None

    @model_validator(mode="after")
    def _unique_option_ids(self):
        for label, options in (("cargo_types", self.cargo_types), ("facilities", self.facilities)):
            ids = [option.id for option in options]
            if len(ids) != len(set(ids)):
                raise ValueError(f"{label} ids must be unique")
        return self

    def cargo_type(self, cargo_id: str) -> CargoType | None:
        return next((c for c in self.cargo_types if c.id == cargo_id), None)

    def facility(self, facility_id: str) -> Facility | None:
        return next((f for f in self.facilities if f.id == facility_id), None)


def _field_path(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "__root__"


def parse_service_config(document: dict, service_id: str | None = None) -> ServiceConfig:
    """Validate a raw config document and return its typed form.

    Raises ``ServiceConfigError`` listing every offending field.
    """
    if not isinstance(document, dict):
        raise ServiceConfigError(
            "Service configuration must be a JSON object",
            details={"service_id": service_id},
        )
    try:
        return ServiceConfig.model_validate(document)
    except ValidationError as exc:
        errors = [{"field": _field_path(err["loc"]), "message": err["msg"]} for err in exc.errors()]
        raise ServiceConfigError(
            "Service configuration is invalid",
            details={"service_id": service_id, "errors": errors},
        ) from exc
