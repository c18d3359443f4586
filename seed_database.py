# seed_database.py
import asyncio
import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select

from database import database, engine, Base
from models import Category, Product, Setting
from crud import SETTING_DEFINITIONS, slugify

logger = logging.getLogger(__name__)

SAMPLE_SETTINGS = {
    "store_name": "FreshMart Grocery",
    "whatsapp_number": "6281234567890",
    "delivery_fee": "5000",
    "store_address": "Jl. Contoh No. 123, Jakarta",
    "store_phone": "021-1234567",
}

# (name, icon, [(product, unit, price, discount_price)])
SAMPLE_CATALOG = [
    ("Sayuran Segar", "🥬", [
        ("Bayam Segar", "pack", "4500", None),
        ("Kangkung", "pack", "4000", None),
        ("Sawi Hijau", "pack", "5000", "4000"),
        ("Tomat", "kg", "18000", None),
        ("Wortel", "kg", "15000", None),
        ("Brokoli", "pcs", "22000", "19500"),
    ]),
    ("Buah-buahan", "🍎", [
        ("Apel Fuji", "kg", "42000", None),
        ("Jeruk Manis", "kg", "28000", "25000"),
        ("Pisang Cavendish", "pack", "24000", None),
        ("Anggur Hijau", "pack", "48000", None),
        ("Mangga Harum Manis", "kg", "30000", None),
    ]),
    ("Produk Susu", "🥛", [
        ("Susu UHT Full Cream", "box", "19500", None),
        ("Keju Cheddar", "pack", "32000", "29000"),
        ("Yogurt Greek", "pcs", "27000", None),
        ("Mentega Tawar", "pack", "36000", None),
    ]),
    ("Roti & Kue", "🍞", [
        ("Roti Tawar Gandum", "pcs", "17000", None),
        ("Roti Bakar", "pcs", "12000", None),
        ("Croissant", "pcs", "15000", "13000"),
        ("Donat Glazed", "box", "38000", None),
    ]),
    ("Daging & Unggas", "🥩", [
        ("Daging Sapi Segar", "kg", "135000", None),
        ("Ayam Broiler", "kg", "38000", None),
        ("Daging Kambing", "kg", "145000", None),
        ("Sosis Sapi", "pack", "26000", "23000"),
    ]),
    ("Ikan & Seafood", "🐟", [
        ("Ikan Salmon", "kg", "320000", None),
        ("Udang Segar", "kg", "95000", None),
        ("Cumi-cumi", "kg", "75000", "69000"),
        ("Ikan Tuna", "kg", "85000", None),
    ]),
    ("Makanan Kaleng", "🥫", [
        ("Kornet Sapi", "pcs", "24000", None),
        ("Sarden", "pcs", "12500", None),
        ("Tuna Kaleng", "pcs", "18000", None),
        ("Susu Kental Manis", "pcs", "11000", "9500"),
    ]),
    ("Bumbu & Rempah", "🧂", [
        ("Garam Dapur", "pack", "5000", None),
        ("Merica Hitam", "pack", "14000", None),
        ("Bawang Putih", "kg", "38000", None),
        ("Cabai Merah", "kg", "52000", None),
    ]),
]


async def create_sample_data(db):
    """Insert settings, categories and products when the catalog is empty."""
    category_count = await db.fetch_val(select(func.count()).select_from(Category))
    if category_count:
        logger.info("%d categories already exist, skipping sample data", category_count)
        return False

    now = datetime.now()
    async with db.transaction():
        for key, value in SAMPLE_SETTINGS.items():
            setting_type, description = SETTING_DEFINITIONS[key]
            existing = await db.fetch_one(select(Setting.id).where(Setting.key == key))
            if not existing:
                await db.execute(Setting.__table__.insert().values(
                    key=key, value=value, type=setting_type, description=description
                ))

        for position, (name, icon, products) in enumerate(SAMPLE_CATALOG, start=1):
            category_id = await db.execute(Category.__table__.insert().values(
                name=name,
                slug=slugify(name),
                description=f"Kategori {name}",
                icon=icon,
                is_active=True,
                sort_order=position,
                created_at=now,
            ))

            await db.execute_many(
                query=Product.__table__.insert(),
                values=[
                    {
                        "category_id": category_id,
                        "name": product_name,
                        "slug": slugify(f"{product_name}-{index}"),
                        "description": f"Produk berkualitas tinggi: {product_name}",
                        "price": Decimal(price),
                        "discount_price": Decimal(discount) if discount else None,
                        "unit": unit,
                        "stock": 50,
                        "minimum_stock": 5,
                        "is_active": True,
                        # First two products of every category are featured
                        "is_featured": index <= 2,
                        "sort_order": index,
                        "created_at": now,
                    }
                    for index, (product_name, unit, price, discount) in enumerate(products, start=1)
                ],
            )

    logger.info("Created %d sample categories", len(SAMPLE_CATALOG))
    return True


async def reset_database():
    logger.warning("Resetting database: dropping all tables")
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    await database.connect()
    try:
        await create_sample_data(database)
    finally:
        await database.disconnect()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(reset_database())
