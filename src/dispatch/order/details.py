"""Order placement payload.

These models describe what a customer submits. They are validated inside the
domain (not only at the HTTP edge) so every entry point gets the same
field-level errors.
"""

import json
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from dispatch.errors import OrderValidationError
from dispatch.service.config import OrderModel

PHONE_PATTERN = r"^(\+62|62|0)[0-9]{8,13}$"


class PaymentMethod(Enum):
    CASH = "CASH"
    TRANSFER = "TRANSFER"
    EWALLET = "EWALLET"


class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class Address(_Payload):
    text: str = Field(min_length=1)
    lat: float | None = Field(default=None, ge=-90, le=90)
    lon: float | None = Field(default=None, ge=-180, le=180)
    zone: str | None = None
    notes: str | None = None

    @property
    def coordinates(self) -> tuple[float, float] | None:
        if self.lat is None or self.lon is None:
            return None
        return (self.lat, self.lon)


class OrderDetails(_Payload):
    pickup: Address
    dropoff: Address
    notes: str | None = None
    cargo_type_id: str | None = None
    facility_ids: tuple[str, ...] = ()
    item_count: int | None = Field(default=None, ge=1)
    passenger_count: int | None = Field(default=None, ge=1)
    scheduled_at: datetime | None = None
    driver_instructions: str | None = None


class Placement(_Payload):
    service_id: str = Field(min_length=1)
    orderer_identifier: str = Field(pattern=PHONE_PATTERN)
    receiver_contact: str | None = Field(default=None, pattern=PHONE_PATTERN)
    details: OrderDetails
    order_model: OrderModel | None = None
    talangan_amount: int = Field(default=0, ge=0)
    high_value: bool = False
    payment_method: PaymentMethod = PaymentMethod.CASH


def _raise_for(exc: ValidationError):
    fields = {}
    for err in exc.errors():
        path = ".".join(str(part) for part in err["loc"]) or "__root__"
        fields.setdefault(path, []).append(err["msg"])
    raise OrderValidationError("Order payload is invalid", details={"fields": fields}) from exc


def parse_details(raw: str | dict) -> OrderDetails:
    try:
        if isinstance(raw, str):
            return OrderDetails.model_validate_json(raw)
        return OrderDetails.model_validate(raw)
    except ValidationError as exc:
        _raise_for(exc)


def parse_placement(raw: dict) -> Placement:
    try:
        return Placement.model_validate(raw)
    except ValidationError as exc:
        _raise_for(exc)


def snapshot_details(details: OrderDetails) -> str:
    return json.dumps(details.model_dump(mode="json"), sort_keys=True)
