# test_whatsapp.py
from decimal import Decimal
from urllib.parse import urlparse, parse_qs

from schemas import StoreSettings
from whatsapp import (
    build_order_message,
    build_order_notification,
    build_whatsapp_url,
    format_rupiah,
    normalize_phone_number,
)

SETTINGS = StoreSettings(store_name="FreshMart", whatsapp_number="0812-3456-7890")


def make_order(**overrides):
    order = {
        "order_number": "ORD-001",
        "customer_name": "Budi",
        "customer_phone": "081111111111",
        "customer_address": "Jl. Mawar 1",
        "delivery_type": "delivery",
        "items": [
            {"product_name": "Apel", "product_price": Decimal("10000"), "quantity": 2, "total": Decimal("20000")},
        ],
        "subtotal": Decimal("20000"),
        "delivery_fee": Decimal("5000"),
        "total": Decimal("25000"),
        "notes": None,
    }
    order.update(overrides)
    return order


def test_format_rupiah_groups_thousands_with_dots():
    assert format_rupiah(0) == "0"
    assert format_rupiah(950) == "950"
    assert format_rupiah(Decimal("10000")) == "10.000"
    assert format_rupiah(1234567) == "1.234.567"


def test_format_rupiah_rounds_half_up():
    assert format_rupiah(Decimal("1499.50")) == "1.500"
    assert format_rupiah(Decimal("1499.49")) == "1.499"


def test_normalize_phone_number():
    assert normalize_phone_number("081234567890") == "6281234567890"
    assert normalize_phone_number("6281234567890") == "6281234567890"
    assert normalize_phone_number("+62 812-3456-7890") == "6281234567890"
    assert normalize_phone_number("") == ""


def test_message_contains_order_items_and_total():
    message = build_order_message(make_order(), SETTINGS)
    lines = message.split("\n")

    assert lines[0] == "🛒 *Pesanan Baru dari FreshMart*"
    assert "Nomor Pesanan: ORD-001" in lines
    assert "• Apel - 2x @ Rp 10.000 = Rp 20.000" in lines
    assert "Subtotal: Rp 20.000" in lines
    assert "Ongkir: Rp 5.000" in lines
    assert "**Total: Rp 25.000**" in lines
    assert "Alamat: Jl. Mawar 1" in lines
    assert "Jenis Pengiriman: Antar ke Rumah" in lines
    assert lines[-1] == "Terima kasih telah berbelanja di FreshMart! 🙏"


def test_pickup_message_omits_address_and_fee():
    order = make_order(
        delivery_type="pickup",
        delivery_fee=Decimal("0"),
        total=Decimal("20000"),
    )
    message = build_order_message(order, SETTINGS)

    assert "Alamat:" not in message
    assert "Ongkir:" not in message
    assert "Jenis Pengiriman: Ambil di Toko" in message
    assert "**Total: Rp 20.000**" in message


def test_notes_section_only_when_present():
    assert "Catatan" not in build_order_message(make_order(), SETTINGS)

    message = build_order_message(make_order(notes="Tolong dibungkus rapi"), SETTINGS)
    assert "📝 *Catatan:* Tolong dibungkus rapi" in message


def test_whatsapp_url_normalizes_number_and_encodes_message():
    url = build_whatsapp_url("Halo & terima kasih", SETTINGS)
    parsed = urlparse(url)

    assert parsed.scheme == "https"
    assert parsed.netloc == "wa.me"
    assert parsed.path == "/6281234567890"
    assert "Halo+%26+terima+kasih" in parsed.query
    assert parse_qs(parsed.query)["text"] == ["Halo & terima kasih"]


def test_notification_link_carries_the_message():
    message, url = build_order_notification(make_order(), SETTINGS)
    assert parse_qs(urlparse(url).query)["text"] == [message]


def test_formatter_accepts_objects():
    class Item:
        product_name = "Apel"
        product_price = 10000.0
        quantity = 2
        total = 20000.0

    class Order:
        order_number = "ORD-002"
        customer_name = "Sari"
        customer_phone = "0822"
        customer_address = None
        delivery_type = "pickup"
        items = [Item()]
        subtotal = 20000.0
        delivery_fee = 0.0
        total = 20000.0
        notes = ""

    message = build_order_message(Order(), SETTINGS)
    assert "• Apel - 2x @ Rp 10.000 = Rp 20.000" in message
    assert "Catatan" not in message
