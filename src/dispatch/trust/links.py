"""Receiver notification deep link.

Building the link is pure string work; sending it is left to the orderer's
own WhatsApp client.
"""

import os
from urllib.parse import quote

DEFAULT_TRACKING_BASE_URL = "https://treksistem.com/track"


def tracking_url(order_id: str) -> str:
    base = os.environ.get("DISPATCH_TRACKING_BASE_URL", DEFAULT_TRACKING_BASE_URL)
    return f"{base.rstrip('/')}/{order_id}"


def _notification_message(placement, order_id: str, service_alias: str, high_value: bool) -> str:
    description = service_alias
    if placement.talangan_amount > 0:
        description += f" (dengan talangan Rp {placement.talangan_amount:,})"
    if high_value:
        description += " - Barang Penting"

    details = placement.details
    lines = [
        "Halo!",
        "",
        f"Anda akan menerima kiriman *{description}* dari {placement.orderer_identifier} melalui platform Treksistem.",
        "",
        "*Detail Pengiriman:*",
        f"Order ID: {order_id}",
        f"Dari: {details.pickup.text}",
        f"Ke: {details.dropoff.text}",
    ]
    if details.notes:
        lines.append(f"Catatan: {details.notes}")
    lines += [
        "",
        f"*Lacak Pengiriman:* {tracking_url(order_id)}",
        "",
        "*Penting:*",
        "- Harap konfirmasi kesiapan menerima kepada pengirim",
        "- Periksa identitas driver saat pengantaran",
        "- Laporkan jika ada masalah melalui platform",
        "",
        "Terima kasih!",
        "- Tim Treksistem",
    ]
    return "\n".join(lines)


def receiver_notification_link(placement, order_id: str, service_alias: str, high_value: bool = False) -> str:
    phone = placement.receiver_contact.lstrip("+")
    text = quote(_notification_message(placement, order_id, service_alias, high_value), safe="")
    return f"whatsapp://send?phone={phone}&text={text}"
