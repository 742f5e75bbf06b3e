"""Proof photos.

Drivers first reserve a storage key, upload the file straight to object
storage under that key, then attach the key to the order. The engine never
sees the bytes.
"""

import os
import re
from uuid import uuid4

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.errors import OrderValidationError
from dispatch.order.order import Order, proof_key_prefix
from dispatch.order.status import active_driver, driver_order

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}
_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")


def reserve_photo_key(driver_id: str, order_id: str, filename: str) -> str:
    """Return a fresh storage key for a proof photo of an assigned order."""
    driver = active_driver(driver_id)
    order = driver_order(driver, order_id)
    order.assert_assigned_to(driver_id)

    extension = os.path.splitext(filename)[1].lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise OrderValidationError(
            "Only jpg, jpeg, png and webp photos are accepted",
            code="INVALID_FILE_TYPE",
            details={"fields": {"filename": [f"Unsupported file type {extension or '(none)'}"]}},
        )
    safe_name = _UNSAFE.sub("_", os.path.basename(filename))[-100:]
    return f"{proof_key_prefix(str(order.mitra_id), str(order.id))}{uuid4().hex}-{safe_name}"


@dispatch.command(part_of="Order")
class AttachProofPhoto:
    order_id = Identifier(required=True)
    driver_id = Identifier(required=True)
    storage_key = String(required=True, max_length=500)
    caption = String(max_length=500)


@dispatch.command_handler(part_of=Order)
class ProofPhotoHandler:
    @handle(AttachProofPhoto)
    def attach(self, command):
        driver_id = str(command.driver_id)
        order = driver_order(active_driver(driver_id), str(command.order_id))
        order.attach_photo(driver_id, command.storage_key, command.caption)
        current_domain.repository_for(Order).add(order)
