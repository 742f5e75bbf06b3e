"""Driver aggregate — a mitra's driver and the services they may fulfil."""

import json
from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Identifier, String, Text

from dispatch.domain import dispatch
from dispatch.driver.events import DriverDeactivated, DriverLinkedToService, DriverRegistered


@dispatch.aggregate
class Driver:
    mitra_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    phone = String(max_length=20)
    vehicle_type = String(max_length=100)
    is_active = Boolean(default=True)
    service_ids = Text(default="[]")  # JSON list of Service IDs
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(cls, mitra_id: str, name: str, phone: str | None = None, vehicle_type: str | None = None):
        now = datetime.now(UTC)
        driver = cls(
            mitra_id=mitra_id,
            name=name,
            phone=phone,
            vehicle_type=vehicle_type,
            is_active=True,
            service_ids="[]",
            created_at=now,
            updated_at=now,
        )
        driver.raise_(
            DriverRegistered(
                driver_id=str(driver.id),
                mitra_id=mitra_id,
                name=name,
                registered_at=now,
            )
        )
        return driver

    def linked_services(self) -> list[str]:
        return json.loads(self.service_ids) if self.service_ids else []

    def serves(self, service_id: str) -> bool:
        return str(service_id) in self.linked_services()

    def link_service(self, service_id: str) -> None:
        """Make the driver eligible for a service. Idempotent."""
        if self.serves(service_id):
            return
        now = datetime.now(UTC)
        self.service_ids = json.dumps([*self.linked_services(), str(service_id)])
        self.updated_at = now
        self.raise_(DriverLinkedToService(driver_id=str(self.id), service_id=str(service_id), linked_at=now))

    def deactivate(self) -> None:
        if not self.is_active:
            return
        now = datetime.now(UTC)
        self.is_active = False
        self.updated_at = now
        self.raise_(DriverDeactivated(driver_id=str(self.id), deactivated_at=now))
