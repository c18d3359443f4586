# crud.py
import logging
import math
import re
import unicodedata
import uuid
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List, Dict, Any, Callable, Iterable, Sequence

from sqlalchemy import func, select, update, delete, and_, or_
from databases import Database

from config import get_settings
from exceptions import ValidationError, NotFound, ConflictError
from models import Category, Product, Order, OrderItem, Setting
import schemas

logger = logging.getLogger(__name__)

ADMIN_PAGE_SIZE = 15
STORE_PAGE_SIZE = 12
FEATURED_LIMIT = 8
RELATED_LIMIT = 4
RECENT_ORDERS_LIMIT = 5
LOW_STOCK_LIMIT = 10

# ========== HELPERS ==========
def slugify(value: str) -> str:
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^a-zA-Z0-9\s-]", "", value).strip().lower()
    return re.sub(r"[\s_-]+", "-", value).strip("-")

def _money(value) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))

def _columns(table) -> List[str]:
    return [column.name for column in table.columns]

def _row(record, keys: Iterable[str]) -> Dict[str, Any]:
    return {key: record[key] for key in keys}

CATEGORY_KEYS = _columns(Category.__table__)
PRODUCT_KEYS = _columns(Product.__table__)
ORDER_KEYS = _columns(Order.__table__)
ORDER_ITEM_KEYS = _columns(OrderItem.__table__)

def _product_dict(record, with_category: bool = True) -> Dict[str, Any]:
    product = _row(record, PRODUCT_KEYS)
    product["price"] = _money(product["price"])
    product["discount_price"] = _money(product["discount_price"])
    product["final_price"] = (
        product["discount_price"] if product["discount_price"] is not None else product["price"]
    )
    product["is_on_sale"] = product["discount_price"] is not None
    product["image_url"] = (
        f"{get_settings().storage_url.rstrip('/')}/{product['image']}" if product["image"] else None
    )
    if with_category:
        product["category"] = {
            "id": product["category_id"],
            "name": record["category_name"],
            "slug": record["category_slug"],
            "icon": record["category_icon"],
        }
    return product

def _category_dict(record, with_count: bool = False) -> Dict[str, Any]:
    category = _row(record, CATEGORY_KEYS)
    if with_count:
        category["products_count"] = record["products_count"] or 0
    return category

def _order_dict(record) -> Dict[str, Any]:
    order = _row(record, ORDER_KEYS)
    for key in ("subtotal", "delivery_fee", "total"):
        order[key] = _money(order[key]) or Decimal("0")
    order["items"] = []
    return order

def _order_item_dict(record) -> Dict[str, Any]:
    item = _row(record, ORDER_ITEM_KEYS)
    item["product_price"] = _money(item["product_price"])
    item["total"] = _money(item["total"])
    return item

# Products are always listed together with their category summary
PRODUCT_FROM = Product.__table__.join(Category.__table__, Product.category_id == Category.id)
PRODUCT_SELECT = select(
    *Product.__table__.c,
    Category.name.label("category_name"),
    Category.slug.label("category_slug"),
    Category.icon.label("category_icon"),
).select_from(PRODUCT_FROM)

IN_STOCK = Product.stock > 0
LOW_STOCK = and_(Product.stock > 0, Product.stock <= Product.minimum_stock)
PRODUCT_STATUS_FILTERS = {
    "active": Product.is_active == True,
    "inactive": Product.is_active == False,
    "out_of_stock": Product.stock == 0,
    "low_stock": LOW_STOCK,
}

def _products_count(*conditions):
    return (
        select(func.count(Product.id))
        .where(Product.category_id == Category.id, *conditions)
        .scalar_subquery()
        .label("products_count")
    )

# ========== GENERIC LISTING ==========
class ListSpec:
    """How one entity is listed: base query, searchable columns, ordering and page size."""

    def __init__(self, query, from_clause, search_columns: Sequence, order_by: Sequence,
                 per_page: int, serialize: Callable):
        self.query = query
        self.from_clause = from_clause
        self.search_columns = search_columns
        self.order_by = order_by
        self.per_page = per_page
        self.serialize = serialize

STORE_PRODUCTS = ListSpec(
    query=PRODUCT_SELECT,
    from_clause=PRODUCT_FROM,
    search_columns=(Product.name, Product.description),
    order_by=(Product.is_featured.desc(), Product.sort_order, Product.name, Product.id),
    per_page=STORE_PAGE_SIZE,
    serialize=_product_dict,
)

ADMIN_PRODUCTS = ListSpec(
    query=PRODUCT_SELECT,
    from_clause=PRODUCT_FROM,
    search_columns=(Product.name, Product.description),
    order_by=(Product.sort_order, Product.name, Product.id),
    per_page=ADMIN_PAGE_SIZE,
    serialize=_product_dict,
)

ADMIN_CATEGORIES = ListSpec(
    query=select(*Category.__table__.c, _products_count()),
    from_clause=Category.__table__,
    search_columns=(Category.name, Category.description),
    order_by=(Category.sort_order, Category.name, Category.id),
    per_page=ADMIN_PAGE_SIZE,
    serialize=lambda record: _category_dict(record, with_count=True),
)

ADMIN_ORDERS = ListSpec(
    query=select(Order.__table__),
    from_clause=Order.__table__,
    search_columns=(Order.order_number, Order.customer_name, Order.customer_phone),
    order_by=(Order.created_at.desc(), Order.id.desc()),
    per_page=ADMIN_PAGE_SIZE,
    serialize=_order_dict,
)

def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

async def paginate(db: Database, spec: ListSpec, conditions: Sequence = (),
                   search: Optional[str] = None, page: int = 1) -> Dict[str, Any]:
    where = list(conditions)
    if search:
        pattern = f"%{_escape_like(search)}%"
        where.append(or_(*[column.ilike(pattern, escape="\\") for column in spec.search_columns]))

    count_query = select(func.count()).select_from(spec.from_clause)
    query = spec.query
    if where:
        count_query = count_query.where(*where)
        query = query.where(*where)

    total = await db.fetch_val(count_query) or 0
    per_page = spec.per_page
    page = max(1, page)
    offset = (page - 1) * per_page

    query = query.order_by(*spec.order_by).offset(offset).limit(per_page)
    records = await db.fetch_all(query)
    data = [spec.serialize(record) for record in records]

    return {
        "data": data,
        "current_page": page,
        "last_page": max(1, math.ceil(total / per_page)),
        "per_page": per_page,
        "total": total,
        "from": offset + 1 if data else None,
        "to": offset + len(data) if data else None,
    }

# ========== STORE SETTINGS ==========
SETTING_DEFINITIONS = {
    "store_name": ("string", "Store name"),
    "whatsapp_number": ("string", "WhatsApp number for orders"),
    "delivery_fee": ("number", "Delivery fee in IDR"),
    "store_address": ("string", "Store address"),
    "store_phone": ("string", "Store phone number"),
}

async def get_store_settings(db: Database) -> schemas.StoreSettings:
    records = await db.fetch_all(select(Setting.key, Setting.value))
    values = {
        record["key"]: record["value"]
        for record in records
        if record["key"] in SETTING_DEFINITIONS and record["value"] is not None
    }
    return schemas.StoreSettings(**values)

async def update_store_settings(db: Database, settings_update: schemas.StoreSettingsUpdate) -> schemas.StoreSettings:
    update_data = settings_update.model_dump(exclude_unset=True, exclude_none=True)

    async with db.transaction():
        for key, value in update_data.items():
            setting_type, description = SETTING_DEFINITIONS[key]
            existing = await db.fetch_one(select(Setting.id).where(Setting.key == key))
            if existing:
                query = update(Setting).where(Setting.key == key).values(
                    value=str(value), updated_at=datetime.now()
                )
            else:
                query = Setting.__table__.insert().values(
                    key=key, value=str(value), type=setting_type, description=description
                )
            await db.execute(query)

    logger.info("Store settings updated: %s", ", ".join(sorted(update_data)) or "nothing")
    return await get_store_settings(db)

# ========== CATEGORY CRUD ==========
async def _ensure_unique_slug(db: Database, model, slug: str, exclude_id: Optional[int] = None):
    if not slug:
        raise ValidationError({"slug": "Slug could not be generated from the name."})
    query = select(model.id).where(model.slug == slug)
    if exclude_id is not None:
        query = query.where(model.id != exclude_id)
    if await db.fetch_one(query):
        raise ValidationError({"slug": "Slug is already used."})

async def get_category(db: Database, category_id: int) -> Optional[dict]:
    query = select(*Category.__table__.c, _products_count()).where(Category.id == category_id)
    result = await db.fetch_one(query)
    return _category_dict(result, with_count=True) if result else None

async def get_category_detail(db: Database, category_id: int) -> Optional[dict]:
    category = await get_category(db, category_id)
    if not category:
        return None
    query = PRODUCT_SELECT.where(Product.category_id == category_id).order_by(
        Product.sort_order, Product.name, Product.id
    )
    category["products"] = [_product_dict(record) for record in await db.fetch_all(query)]
    return category

async def get_store_categories(db: Database) -> List[dict]:
    """Active categories, counting only the products a customer can buy."""
    query = select(*Category.__table__.c, _products_count(IN_STOCK, Product.is_active == True)).where(
        Category.is_active == True
    ).order_by(Category.sort_order, Category.name, Category.id)
    return [_category_dict(record, with_count=True) for record in await db.fetch_all(query)]

async def list_categories(db: Database, search: Optional[str] = None, page: int = 1) -> dict:
    return await paginate(db, ADMIN_CATEGORIES, search=search, page=page)

async def create_category(db: Database, category: schemas.CategoryCreate) -> dict:
    data = category.model_dump()
    if not data.get("slug"):
        data["slug"] = slugify(data["name"])
    await _ensure_unique_slug(db, Category, data["slug"])

    query = Category.__table__.insert().values(**data, created_at=datetime.now())
    category_id = await db.execute(query)
    logger.info("Category %s created (%s)", category_id, data["slug"])
    return await get_category(db, category_id)

async def update_category(db: Database, category_id: int, category_update: schemas.CategoryUpdate) -> dict:
    category = await get_category(db, category_id)
    if not category:
        raise NotFound("Category", category_id)

    update_data = category_update.model_dump(exclude_unset=True)
    for key in ("name", "is_active", "sort_order"):
        if key in update_data and update_data[key] is None:
            raise ValidationError({key: f"The {key} field may not be empty."})
    if "slug" in update_data and not update_data["slug"]:
        update_data["slug"] = slugify(update_data.get("name") or category["name"])
    if "slug" in update_data:
        await _ensure_unique_slug(db, Category, update_data["slug"], exclude_id=category_id)

    if update_data:
        query = update(Category).where(Category.id == category_id).values(
            **update_data, updated_at=datetime.now()
        )
        await db.execute(query)
    return await get_category(db, category_id)

async def delete_category(db: Database, category_id: int) -> None:
    category = await get_category(db, category_id)
    if not category:
        raise NotFound("Category", category_id)
    if category["products_count"] > 0:
        logger.warning("Refusing to delete category %s: %d products", category_id, category["products_count"])
        raise ConflictError("Cannot delete category with existing products.")

    await db.execute(delete(Category).where(Category.id == category_id))
    logger.info("Category %s deleted", category_id)

# ========== PRODUCT CRUD ==========
def _validate_discount(price: Decimal, discount_price: Optional[Decimal]):
    if discount_price is not None and discount_price >= price:
        raise ValidationError({"discount_price": "Discount price must be lower than the regular price."})

async def _ensure_category_exists(db: Database, category_id: int):
    if not await db.fetch_one(select(Category.id).where(Category.id == category_id)):
        raise ValidationError({"category_id": "Category not found."})

async def get_product(db: Database, product_id: int) -> Optional[dict]:
    result = await db.fetch_one(PRODUCT_SELECT.where(Product.id == product_id))
    return _product_dict(result) if result else None

async def get_product_by_slug(db: Database, slug: str) -> Optional[dict]:
    result = await db.fetch_one(PRODUCT_SELECT.where(Product.slug == slug))
    return _product_dict(result) if result else None

async def get_related_products(db: Database, product: dict, limit: int = RELATED_LIMIT) -> List[dict]:
    query = PRODUCT_SELECT.where(
        Product.is_active == True,
        IN_STOCK,
        Product.category_id == product["category_id"],
        Product.id != product["id"],
    ).order_by(Product.sort_order, Product.name, Product.id).limit(limit)
    return [_product_dict(record) for record in await db.fetch_all(query)]

async def get_featured_products(db: Database, limit: int = FEATURED_LIMIT) -> List[dict]:
    query = PRODUCT_SELECT.where(
        Product.is_active == True, Product.is_featured == True, IN_STOCK
    ).order_by(Product.sort_order, Product.name, Product.id).limit(limit)
    return [_product_dict(record) for record in await db.fetch_all(query)]

async def list_store_products(db: Database, search: Optional[str] = None,
                              category_id: Optional[int] = None, page: int = 1) -> dict:
    conditions = [Product.is_active == True, IN_STOCK]
    if category_id:
        conditions.append(Product.category_id == category_id)
    return await paginate(db, STORE_PRODUCTS, conditions, search=search, page=page)

async def list_products(db: Database, search: Optional[str] = None, category_id: Optional[int] = None,
                        status: Optional[str] = None, page: int = 1) -> dict:
    conditions = []
    if category_id:
        conditions.append(Product.category_id == category_id)
    if status in PRODUCT_STATUS_FILTERS:
        conditions.append(PRODUCT_STATUS_FILTERS[status])
    return await paginate(db, ADMIN_PRODUCTS, conditions, search=search, page=page)

async def create_product(db: Database, product: schemas.ProductCreate) -> dict:
    data = product.model_dump()
    await _ensure_category_exists(db, data["category_id"])
    _validate_discount(data["price"], data["discount_price"])
    if not data.get("slug"):
        data["slug"] = slugify(data["name"])
    await _ensure_unique_slug(db, Product, data["slug"])

    query = Product.__table__.insert().values(**data, created_at=datetime.now())
    product_id = await db.execute(query)
    logger.info("Product %s created (%s)", product_id, data["slug"])
    return await get_product(db, product_id)

async def update_product(db: Database, product_id: int, product_update: schemas.ProductUpdate) -> dict:
    product = await get_product(db, product_id)
    if not product:
        raise NotFound("Product", product_id)

    update_data = product_update.model_dump(exclude_unset=True)
    for key in ("category_id", "name", "price", "unit", "stock", "minimum_stock",
                "is_active", "is_featured", "sort_order"):
        if key in update_data and update_data[key] is None:
            raise ValidationError({key: f"The {key} field may not be empty."})

    if "category_id" in update_data:
        await _ensure_category_exists(db, update_data["category_id"])
    _validate_discount(
        update_data.get("price", product["price"]),
        update_data.get("discount_price", product["discount_price"]),
    )
    if "slug" in update_data and not update_data["slug"]:
        update_data["slug"] = slugify(update_data.get("name") or product["name"])
    if "slug" in update_data:
        await _ensure_unique_slug(db, Product, update_data["slug"], exclude_id=product_id)

    if update_data:
        query = update(Product).where(Product.id == product_id).values(
            **update_data, updated_at=datetime.now()
        )
        await db.execute(query)
    return await get_product(db, product_id)

async def delete_product(db: Database, product_id: int, storage=None) -> None:
    product = await get_product(db, product_id)
    if not product:
        raise NotFound("Product", product_id)

    ordered = await db.fetch_val(
        select(func.count()).select_from(OrderItem).where(OrderItem.product_id == product_id)
    )
    if ordered:
        logger.warning("Refusing to delete product %s: %d order items", product_id, ordered)
        raise ConflictError("Cannot delete product that has been ordered.")

    await db.execute(delete(Product).where(Product.id == product_id))
    if storage is not None:
        storage.delete(product["image"])
    logger.info("Product %s deleted", product_id)

async def set_product_image(db: Database, product_id: int, upload, storage) -> dict:
    product = await get_product(db, product_id)
    if not product:
        raise NotFound("Product", product_id)

    path = await storage.save(upload, folder="products")
    await db.execute(
        update(Product).where(Product.id == product_id).values(image=path, updated_at=datetime.now())
    )
    # The previous file goes only after the new path is stored
    storage.delete(product["image"])
    return await get_product(db, product_id)

async def remove_product_image(db: Database, product_id: int, storage) -> dict:
    product = await get_product(db, product_id)
    if not product:
        raise NotFound("Product", product_id)

    if product["image"]:
        await db.execute(
            update(Product).where(Product.id == product_id).values(image=None, updated_at=datetime.now())
        )
        storage.delete(product["image"])
    return await get_product(db, product_id)

# ========== ORDER DERIVATION ==========
def generate_order_number(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"ORD-{now.strftime('%Y%m%d')}-{uuid.uuid4().hex[:6].upper()}"

def calculate_delivery_fee(delivery_type: str, settings: schemas.StoreSettings) -> Decimal:
    if delivery_type == "delivery":
        return Decimal(str(settings.delivery_fee))
    return Decimal("0")

def build_order_items(cart: Sequence[schemas.CartLine], products: Dict[int, dict]) -> List[dict]:
    """Snapshot name and final price of every cart line. Raises NotFound on an unknown product."""
    items = []
    for line in cart:
        product = products.get(line.product_id)
        if product is None:
            raise NotFound("Product", line.product_id)
        price = product["final_price"]
        items.append({
            "product_id": product["id"],
            "product_name": product["name"],
            "product_price": price,
            "quantity": line.quantity,
            "total": price * line.quantity,
        })
    return items

def _validate_order(order: schemas.OrderCreate):
    errors = {}
    if not order.items:
        errors["items"] = "The order must contain at least one item."
    if order.delivery_type == "delivery" and not (order.customer_address or "").strip():
        errors["customer_address"] = "An address is required for delivery."
    if errors:
        raise ValidationError(errors)

async def create_order(db: Database, order: schemas.OrderCreate, settings: schemas.StoreSettings) -> dict:
    _validate_order(order)

    product_ids = sorted({line.product_id for line in order.items})
    now = datetime.now()

    async with db.transaction():
        records = await db.fetch_all(select(Product.__table__).where(Product.id.in_(product_ids)))
        products = {record["id"]: _product_dict(record, with_category=False) for record in records}
        items = build_order_items(order.items, products)

        subtotal = sum((item["total"] for item in items), Decimal("0"))
        delivery_fee = calculate_delivery_fee(order.delivery_type, settings)

        query = Order.__table__.insert().values(
            order_number=generate_order_number(now),
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            customer_address=order.customer_address if order.delivery_type == "delivery" else None,
            delivery_type=order.delivery_type,
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            total=subtotal + delivery_fee,
            status="pending",
            notes=order.notes or None,
            created_at=now,
        )
        order_id = await db.execute(query)

        await db.execute_many(
            query=OrderItem.__table__.insert(),
            values=[dict(item, order_id=order_id, created_at=now) for item in items],
        )

    created = await get_order(db, order_id)
    logger.info("Order %s created: %d items, total %s", created["order_number"], len(items), created["total"])
    return created

# ========== ORDER QUERIES ==========
async def _attach_items(db: Database, orders: List[dict]) -> List[dict]:
    if not orders:
        return orders
    by_id = {order["id"]: order for order in orders}
    query = select(OrderItem.__table__).where(OrderItem.order_id.in_(list(by_id))).order_by(OrderItem.id)
    for record in await db.fetch_all(query):
        by_id[record["order_id"]]["items"].append(_order_item_dict(record))
    return orders

async def get_order(db: Database, order_id: int) -> Optional[dict]:
    result = await db.fetch_one(select(Order.__table__).where(Order.id == order_id))
    if not result:
        return None
    return (await _attach_items(db, [_order_dict(result)]))[0]

async def get_order_by_number(db: Database, order_number: str) -> Optional[dict]:
    result = await db.fetch_one(select(Order.__table__).where(Order.order_number == order_number))
    if not result:
        return None
    return (await _attach_items(db, [_order_dict(result)]))[0]

async def list_orders(db: Database, search: Optional[str] = None, status: Optional[str] = None,
                      created_on: Optional[date] = None, page: int = 1) -> dict:
    conditions = []
    if status:
        conditions.append(Order.status == status)
    if created_on:
        conditions.append(func.date(Order.created_at) == created_on.isoformat())
    result = await paginate(db, ADMIN_ORDERS, conditions, search=search, page=page)
    await _attach_items(db, result["data"])
    return result

async def update_order_status(db: Database, order_id: int, status: str) -> dict:
    order = await get_order(db, order_id)
    if not order:
        raise NotFound("Order", order_id)

    query = update(Order).where(Order.id == order_id).values(status=status, updated_at=datetime.now())
    await db.execute(query)
    logger.info("Order %s status %s -> %s", order["order_number"], order["status"], status)
    return await get_order(db, order_id)

# ========== DASHBOARD STATS ==========
async def get_dashboard_stats(db: Database) -> dict:
    async def count(model, *conditions):
        query = select(func.count()).select_from(model)
        if conditions:
            query = query.where(*conditions)
        return await db.fetch_val(query) or 0

    today = date.today().isoformat()
    today_revenue = await db.fetch_val(
        select(func.coalesce(func.sum(Order.total), 0)).where(func.date(Order.created_at) == today)
    )

    return {
        "total_products": await count(Product),
        "active_products": await count(Product, Product.is_active == True),
        "out_of_stock": await count(Product, Product.stock == 0),
        "total_categories": await count(Category),
        "total_orders": await count(Order),
        "pending_orders": await count(Order, Order.status == "pending"),
        "today_orders": await count(Order, func.date(Order.created_at) == today),
        "today_revenue": float(today_revenue or 0),
    }

async def get_dashboard(db: Database) -> dict:
    recent = await db.fetch_all(
        select(Order.__table__).order_by(Order.created_at.desc(), Order.id.desc()).limit(RECENT_ORDERS_LIMIT)
    )
    recent_orders = await _attach_items(db, [_order_dict(record) for record in recent])

    low_stock = await db.fetch_all(
        PRODUCT_SELECT.where(LOW_STOCK).order_by(Product.stock, Product.name).limit(LOW_STOCK_LIMIT)
    )

    return {
        "stats": await get_dashboard_stats(db),
        "recent_orders": recent_orders,
        "low_stock_products": [_product_dict(record) for record in low_stock],
    }
