# whatsapp.py
"""Order summary message and wa.me deep link.

Everything here is a pure function of the order and the store settings so the
message can be rebuilt at any time from what was stored with the order.
"""
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Tuple
from urllib.parse import urlencode

from schemas import StoreSettings

WHATSAPP_BASE_URL = "https://wa.me"
COUNTRY_CODE = "62"
TRUNK_PREFIX = "0"


def format_rupiah(amount) -> str:
    """10000 -> '10.000'. Rounded to whole rupiah."""
    value = Decimal(str(amount or 0)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{int(value):,}".replace(",", ".")


def normalize_phone_number(phone: str) -> str:
    digits = re.sub(r"[^0-9]", "", phone or "")
    if digits.startswith(TRUNK_PREFIX):
        digits = COUNTRY_CODE + digits[1:]
    return digits


def _field(order, name):
    # Orders come in as dicts from crud or as schema objects
    if isinstance(order, dict):
        return order.get(name)
    return getattr(order, name, None)


def build_order_message(order, settings: StoreSettings) -> str:
    store_name = settings.store_name
    delivery_type = _field(order, "delivery_type")
    address = _field(order, "customer_address")

    lines = [
        f"🛒 *Pesanan Baru dari {store_name}*",
        "",
        "📋 *Detail Pesanan:*",
        f"Nomor Pesanan: {_field(order, 'order_number')}",
        f"Nama: {_field(order, 'customer_name')}",
        f"No. HP: {_field(order, 'customer_phone')}",
    ]
    if delivery_type == "delivery" and address:
        lines.append(f"Alamat: {address}")
    lines.append(
        "Jenis Pengiriman: " + ("Antar ke Rumah" if delivery_type == "delivery" else "Ambil di Toko")
    )

    lines += ["", "🛍️ *Item Pesanan:*"]
    for item in _field(order, "items") or []:
        lines.append(
            f"• {_field(item, 'product_name')} - {_field(item, 'quantity')}x"
            f" @ Rp {format_rupiah(_field(item, 'product_price'))}"
            f" = Rp {format_rupiah(_field(item, 'total'))}"
        )

    lines += ["", "💰 *Ringkasan Biaya:*", f"Subtotal: Rp {format_rupiah(_field(order, 'subtotal'))}"]
    delivery_fee = Decimal(str(_field(order, "delivery_fee") or 0))
    if delivery_fee > 0:
        lines.append(f"Ongkir: Rp {format_rupiah(delivery_fee)}")
    lines += [f"**Total: Rp {format_rupiah(_field(order, 'total'))}**", ""]

    notes = _field(order, "notes")
    if notes:
        lines += [f"📝 *Catatan:* {notes}", ""]

    lines.append(f"Terima kasih telah berbelanja di {store_name}! 🙏")
    return "\n".join(lines)


def build_whatsapp_url(message: str, settings: StoreSettings) -> str:
    number = normalize_phone_number(settings.whatsapp_number)
    return f"{WHATSAPP_BASE_URL}/{number}?{urlencode({'text': message})}"


def build_order_notification(order, settings: StoreSettings) -> Tuple[str, str]:
    """Returns (message, deep_link) for an order with its items loaded."""
    message = build_order_message(order, settings)
    return message, build_whatsapp_url(message, settings)
