"""AssignDriver — a mitra manually hands an order to one of its drivers."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from dispatch.domain import dispatch, logger
from dispatch.driver.driver import Driver
from dispatch.order.lifecycle import ActorRole, OrderStatus, check_transition
from dispatch.order.order import Order
from dispatch.order.tracking import order_view
from dispatch.utils.lookup import load


@dispatch.command(part_of="Order")
class AssignDriver:
    mitra_id = Identifier(required=True)
    order_id = Identifier(required=True)
    driver_id = Identifier(required=True)


@dispatch.command_handler(part_of=Order)
class AssignmentHandler:
    @handle(AssignDriver)
    def assign_driver(self, command):
        mitra_id = str(command.mitra_id)
        order = load(Order, str(command.order_id), "order", mitra_id=mitra_id)
        # Report an unassignable order before looking at the driver
        check_transition(order.current_status(), OrderStatus.DRIVER_ASSIGNED, ActorRole.MITRA)
        driver = load(Driver, str(command.driver_id), "driver", mitra_id=mitra_id)

        order.assign_driver(driver, mitra_id)
        current_domain.repository_for(Order).add(order)
        logger.info(
            "Driver assigned to order",
            order_id=str(order.id),
            driver_id=str(driver.id),
            mitra_id=mitra_id,
        )
        return order_view(order)
