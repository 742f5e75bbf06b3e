"""AddOrderNote — drivers and mitras leave free-text notes on an order."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.order.lifecycle import ActorRole
from dispatch.order.order import Order
from dispatch.order.status import active_driver, driver_order
from dispatch.utils.lookup import load


@dispatch.command(part_of="Order")
class AddOrderNote:
    order_id = Identifier(required=True)
    author_role = String(required=True, choices=ActorRole)
    author_id = Identifier(required=True)  # driver id or mitra id
    note = Text(required=True)


@dispatch.command_handler(part_of=Order)
class OrderNoteHandler:
    @handle(AddOrderNote)
    def add_note(self, command):
        role = ActorRole(command.author_role)
        author_id = str(command.author_id)
        if role is ActorRole.DRIVER:
            order = driver_order(active_driver(author_id), str(command.order_id))
        else:
            order = load(Order, str(command.order_id), "order", mitra_id=author_id)
        order.add_note(command.note, role, author_id)
        current_domain.repository_for(Order).add(order)
