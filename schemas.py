# schemas.py
from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime
from decimal import Decimal

# Largest value the INTEGER columns round-trip on every supported backend
MAX_INT = 2**31 - 1

DeliveryType = Literal["pickup", "delivery"]
OrderStatus = Literal["pending", "confirmed", "preparing", "ready", "completed", "cancelled"]

# ========== CATEGORY SCHEMAS ==========
class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    icon: Optional[str] = Field(None, max_length=16)
    is_active: bool = True
    sort_order: int = Field(0, ge=0, le=MAX_INT)

class CategoryCreate(CategoryBase):
    pass

class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    icon: Optional[str] = Field(None, max_length=16)
    is_active: Optional[bool] = None
    sort_order: Optional[int] = Field(None, ge=0, le=MAX_INT)

class CategorySummary(BaseModel):
    id: int
    name: str
    slug: str
    icon: Optional[str] = None

class Category(CategoryBase):
    id: int
    slug: str
    products_count: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# ========== PRODUCT SCHEMAS ==========
class ProductBase(BaseModel):
    category_id: int = Field(..., ge=1, le=MAX_INT)
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    price: Decimal = Field(..., ge=0)
    discount_price: Optional[Decimal] = Field(None, ge=0)
    unit: str = Field(..., min_length=1, max_length=20)
    stock: int = Field(..., ge=0, le=MAX_INT)
    minimum_stock: int = Field(..., ge=0, le=MAX_INT)
    is_active: bool = True
    is_featured: bool = False
    sort_order: int = Field(0, ge=0, le=MAX_INT)

class ProductCreate(ProductBase):
    pass

class ProductUpdate(BaseModel):
    category_id: Optional[int] = Field(None, ge=1, le=MAX_INT)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    price: Optional[Decimal] = Field(None, ge=0)
    discount_price: Optional[Decimal] = Field(None, ge=0)
    unit: Optional[str] = Field(None, min_length=1, max_length=20)
    stock: Optional[int] = Field(None, ge=0, le=MAX_INT)
    minimum_stock: Optional[int] = Field(None, ge=0, le=MAX_INT)
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    sort_order: Optional[int] = Field(None, ge=0, le=MAX_INT)

class Product(BaseModel):
    id: int
    category_id: int
    name: str
    slug: str
    description: Optional[str] = None
    image: Optional[str] = None
    image_url: Optional[str] = None
    price: float
    discount_price: Optional[float] = None
    final_price: float
    is_on_sale: bool
    unit: str
    stock: int
    minimum_stock: int
    is_active: bool
    is_featured: bool
    sort_order: int
    category: Optional[CategorySummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class CategoryDetail(Category):
    products: List[Product] = []

# ========== ORDER SCHEMAS ==========
class CartLine(BaseModel):
    product_id: int = Field(..., ge=1, le=MAX_INT)
    quantity: int = Field(..., ge=1, le=MAX_INT)

class OrderCreate(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_phone: str = Field(..., min_length=1, max_length=20)
    customer_address: Optional[str] = Field(None, max_length=500)
    delivery_type: DeliveryType
    notes: Optional[str] = Field(None, max_length=500)
    items: List[CartLine] = []

class OrderItem(BaseModel):
    id: int
    product_id: int
    product_name: str
    product_price: float
    quantity: int
    total: float

    class Config:
        from_attributes = True

class Order(BaseModel):
    id: int
    order_number: str
    customer_name: str
    customer_phone: str
    customer_address: Optional[str] = None
    delivery_type: DeliveryType
    subtotal: float
    delivery_fee: float
    total: float
    status: OrderStatus = "pending"
    notes: Optional[str] = None
    items: List[OrderItem] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class OrderConfirmation(BaseModel):
    order: Order
    whatsapp_message: str
    whatsapp_url: str

class OrderStatusUpdate(BaseModel):
    status: OrderStatus

# ========== PAGINATION ==========
class PageMeta(BaseModel):
    current_page: int
    last_page: int
    per_page: int
    total: int
    from_: Optional[int] = Field(None, alias="from")
    to: Optional[int] = None

    class Config:
        populate_by_name = True

class ProductPage(PageMeta):
    data: List[Product]

class CategoryPage(PageMeta):
    data: List[Category]

class OrderPage(PageMeta):
    data: List[Order]

# ========== STOREFRONT ==========
class StoreFilters(BaseModel):
    search: Optional[str] = None
    category: Optional[int] = None

class StoreHome(BaseModel):
    categories: List[Category]
    featured_products: List[Product]
    products: ProductPage
    filters: StoreFilters

class ProductDetail(BaseModel):
    product: Product
    related_products: List[Product]

# ========== STORE SETTINGS ==========
class StoreSettings(BaseModel):
    """Read-only snapshot of the store configuration."""
    store_name: str = "Grocery Store"
    whatsapp_number: str = ""
    delivery_fee: Decimal = Decimal("5000")
    store_address: str = ""
    store_phone: str = ""

    class Config:
        frozen = True

class StoreSettingsResponse(BaseModel):
    store_name: str
    whatsapp_number: str
    delivery_fee: float
    store_address: str
    store_phone: str

class StoreSettingsUpdate(BaseModel):
    store_name: Optional[str] = Field(None, min_length=1, max_length=255)
    whatsapp_number: Optional[str] = Field(None, max_length=32)
    delivery_fee: Optional[Decimal] = Field(None, ge=0)
    store_address: Optional[str] = Field(None, max_length=500)
    store_phone: Optional[str] = Field(None, max_length=32)

# ========== DASHBOARD SCHEMAS ==========
class DashboardStats(BaseModel):
    total_products: int
    active_products: int
    out_of_stock: int
    total_categories: int
    total_orders: int
    pending_orders: int
    today_orders: int
    today_revenue: float

class Dashboard(BaseModel):
    stats: DashboardStats
    recent_orders: List[Order]
    low_stock_products: List[Product]
