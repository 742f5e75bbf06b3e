"""Service management — register, reconfigure and toggle availability."""

import json

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from dispatch.domain import dispatch, logger
from dispatch.service.service import Service
from dispatch.utils.lookup import load


@dispatch.command(part_of="Service")
class RegisterService:
    mitra_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    config = Text(required=True)  # JSON document


@dispatch.command(part_of="Service")
class ReplaceServiceConfig:
    mitra_id = Identifier(required=True)
    service_id = Identifier(required=True)
    config = Text(required=True)  # JSON document


@dispatch.command(part_of="Service")
class ActivateService:
    mitra_id = Identifier(required=True)
    service_id = Identifier(required=True)


@dispatch.command(part_of="Service")
class DeactivateService:
    mitra_id = Identifier(required=True)
    service_id = Identifier(required=True)


@dispatch.command_handler(part_of=Service)
class ServiceManagementHandler:
    @handle(RegisterService)
    def register(self, command):
        service = Service.register(
            mitra_id=str(command.mitra_id),
            name=command.name,
            document=json.loads(command.config),
        )
        current_domain.repository_for(Service).add(service)
        logger.info("Service registered", service_id=str(service.id), mitra_id=str(command.mitra_id))
        return str(service.id)

    @handle(ReplaceServiceConfig)
    def replace_config(self, command):
        service = load(Service, str(command.service_id), "service", mitra_id=str(command.mitra_id))
        service.replace_config(json.loads(command.config))
        current_domain.repository_for(Service).add(service)

    @handle(ActivateService)
    def activate(self, command):
        service = load(Service, str(command.service_id), "service", mitra_id=str(command.mitra_id))
        service.activate()
        current_domain.repository_for(Service).add(service)

    @handle(DeactivateService)
    def deactivate(self, command):
        service = load(Service, str(command.service_id), "service", mitra_id=str(command.mitra_id))
        service.deactivate()
        current_domain.repository_for(Service).add(service)
