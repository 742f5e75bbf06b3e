"""Service aggregate — a mitra's configured offering.

The configuration is kept as the raw JSON document the mitra submitted and is
re-parsed through ``parse_service_config`` every time an order operation needs
it.
"""

import json
from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Identifier, String, Text

from dispatch.domain import dispatch
from dispatch.errors import BusinessRuleError, ServiceConfigError
from dispatch.service.config import ServiceConfig, parse_service_config
from dispatch.service.events import ServiceAvailabilityChanged, ServiceConfigReplaced, ServiceRegistered


@dispatch.aggregate
class Service:
    mitra_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    config_json = Text(required=True)  # raw JSON document
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(cls, mitra_id: str, name: str, document: dict):
        """Register a service after checking its config document parses."""
        _check_document(document)
        now = datetime.now(UTC)
        service = cls(
            mitra_id=mitra_id,
            name=name,
            config_json=json.dumps(document),
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        service.raise_(
            ServiceRegistered(
                service_id=str(service.id),
                mitra_id=mitra_id,
                name=name,
                registered_at=now,
            )
        )
        return service

    def config(self) -> ServiceConfig:
        """Parse the stored document. Never cached."""
        try:
            document = json.loads(self.config_json)
        except (TypeError, ValueError) as exc:
            raise ServiceConfigError(
                "Service configuration is not valid JSON",
                details={"service_id": str(self.id)},
            ) from exc
        return parse_service_config(document, service_id=str(self.id))

    def replace_config(self, document: dict) -> None:
        _check_document(document)
        now = datetime.now(UTC)
        self.config_json = json.dumps(document)
        self.updated_at = now
        self.raise_(ServiceConfigReplaced(service_id=str(self.id), mitra_id=str(self.mitra_id), replaced_at=now))

    def activate(self) -> None:
        self._set_availability(True)

    def deactivate(self) -> None:
        self._set_availability(False)

    def _set_availability(self, active: bool) -> None:
        now = datetime.now(UTC)
        self.is_active = active
        self.updated_at = now
        self.raise_(
            ServiceAvailabilityChanged(
                service_id=str(self.id),
                mitra_id=str(self.mitra_id),
                availability="ACTIVE" if active else "INACTIVE",
                changed_at=now,
            )
        )


def _check_document(document: dict) -> None:
    # Submitted documents that fail to parse are client errors
    try:
        parse_service_config(document)
    except ServiceConfigError as exc:
        raise BusinessRuleError(exc.message, code=exc.code, details=exc.details) from exc
