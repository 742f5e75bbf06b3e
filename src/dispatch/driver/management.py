"""Driver management — registration, service eligibility and deactivation."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch, logger
from dispatch.driver.driver import Driver
from dispatch.service.service import Service
from dispatch.utils.lookup import load


@dispatch.command(part_of="Driver")
class RegisterDriver:
    mitra_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    phone = String(max_length=20)
    vehicle_type = String(max_length=100)


@dispatch.command(part_of="Driver")
class LinkDriverToService:
    mitra_id = Identifier(required=True)
    driver_id = Identifier(required=True)
    service_id = Identifier(required=True)


@dispatch.command(part_of="Driver")
class DeactivateDriver:
    mitra_id = Identifier(required=True)
    driver_id = Identifier(required=True)


@dispatch.command_handler(part_of=Driver)
class DriverManagementHandler:
    @handle(RegisterDriver)
    def register(self, command):
        driver = Driver.register(
            mitra_id=str(command.mitra_id),
            name=command.name,
            phone=command.phone,
            vehicle_type=command.vehicle_type,
        )
        current_domain.repository_for(Driver).add(driver)
        logger.info("Driver registered", driver_id=str(driver.id), mitra_id=str(command.mitra_id))
        return str(driver.id)

    @handle(LinkDriverToService)
    def link_service(self, command):
        mitra_id = str(command.mitra_id)
        driver = load(Driver, str(command.driver_id), "driver", mitra_id=mitra_id)
        # The service must belong to the same mitra
        load(Service, str(command.service_id), "service", mitra_id=mitra_id)
        driver.link_service(str(command.service_id))
        current_domain.repository_for(Driver).add(driver)

    @handle(DeactivateDriver)
    def deactivate(self, command):
        driver = load(Driver, str(command.driver_id), "driver", mitra_id=str(command.mitra_id))
        driver.deactivate()
        current_domain.repository_for(Driver).add(driver)
