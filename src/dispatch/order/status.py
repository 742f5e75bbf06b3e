"""UpdateOrderStatus — a driver moves an assigned order along its lifecycle.

The order is re-read inside the unit of work and the transition re-checked
against its stored status just before the write. A caller that passes
``expected_status`` is told about a lost race instead of having its change
applied to an order that already moved on.
"""

from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch, logger
from dispatch.driver.driver import Driver
from dispatch.errors import AuthorizationError, OrderValidationError, TransitionConflictError
from dispatch.order.lifecycle import OrderStatus
from dispatch.order.order import Order
from dispatch.order.tracking import order_view
from dispatch.utils.lookup import load


@dispatch.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    driver_id = Identifier(required=True)
    new_status = String(required=True, max_length=50)
    notes = String(max_length=255)
    photo_key = String(max_length=500)
    lat = Float(min_value=-90, max_value=90)
    lon = Float(min_value=-180, max_value=180)
    expected_status = String(max_length=50)


def active_driver(driver_id: str) -> Driver:
    driver = load(Driver, driver_id, "driver")
    if not driver.is_active:
        raise AuthorizationError("Driver is not active", code="DRIVER_INACTIVE", details={"driver_id": driver_id})
    return driver


def driver_order(driver: Driver, order_id: str) -> Order:
    """Load an order visible to the driver's mitra."""
    return load(Order, order_id, "order", mitra_id=str(driver.mitra_id))


def _target_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise OrderValidationError(
            f"Unknown order status {value}",
            details={"fields": {"new_status": [f"Unknown order status {value}"]}},
        ) from None


@dispatch.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        target = _target_status(command.new_status)
        if (command.lat is None) != (command.lon is None):
            raise OrderValidationError(
                "Latitude and longitude must be sent together",
                details={"fields": {"location": ["Latitude and longitude must be sent together"]}},
            )

        driver = active_driver(str(command.driver_id))
        order = driver_order(driver, str(command.order_id))
        if command.expected_status and order.status != command.expected_status:
            raise TransitionConflictError(
                "Order status changed before this update was applied",
                details={"expected_status": command.expected_status, "current_status": order.status},
            )

        previous = order.status
        order.driver_update(
            str(driver.id),
            target,
            notes=command.notes,
            photo_key=command.photo_key,
            lat=command.lat,
            lon=command.lon,
        )
        current_domain.repository_for(Order).add(order)
        logger.info(
            "Order status updated",
            order_id=str(order.id),
            driver_id=str(driver.id),
            old_status=previous,
            new_status=order.status,
        )
        return order_view(order)
