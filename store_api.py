# store_api.py
import logging
from fastapi import APIRouter, Depends
from typing import List, Optional
from database import get_db
from dependencies import category_filter, get_store_settings, page_number
from exceptions import NotFound
from whatsapp import build_order_notification
import crud
import schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["store"])

# ========== CATALOG ==========
@router.get("/store", response_model=schemas.StoreHome)
async def store_home(
    search: Optional[str] = None,
    category: Optional[int] = Depends(category_filter),
    page: int = Depends(page_number),
    db = Depends(get_db)
):
    """Everything the storefront landing page needs in one call"""
    return {
        "categories": await crud.get_store_categories(db),
        "featured_products": await crud.get_featured_products(db),
        "products": await crud.list_store_products(db, search=search, category_id=category, page=page),
        "filters": {"search": search, "category": category},
    }

@router.get("/products", response_model=schemas.ProductPage)
async def read_products(
    search: Optional[str] = None,
    category: Optional[int] = Depends(category_filter),
    page: int = Depends(page_number),
    db = Depends(get_db)
):
    return await crud.list_store_products(db, search=search, category_id=category, page=page)

@router.get("/products/{slug}", response_model=schemas.ProductDetail)
async def read_product(slug: str, db = Depends(get_db)):
    product = await crud.get_product_by_slug(db, slug)
    if product is None:
        raise NotFound("Product", slug)
    return {
        "product": product,
        "related_products": await crud.get_related_products(db, product),
    }

@router.get("/categories", response_model=List[schemas.Category])
async def read_categories(db = Depends(get_db)):
    return await crud.get_store_categories(db)

# ========== ORDERS ==========
@router.post("/orders", response_model=schemas.OrderConfirmation, status_code=201)
async def create_order(
    order: schemas.OrderCreate,
    db = Depends(get_db),
    settings: schemas.StoreSettings = Depends(get_store_settings)
):
    logger.info("Creating order for %s (%d items, %s)", order.customer_name, len(order.items), order.delivery_type)

    db_order = await crud.create_order(db, order, settings)
    message, url = build_order_notification(db_order, settings)

    return {
        "order": db_order,
        "whatsapp_message": message,
        "whatsapp_url": url,
    }

@router.get("/orders/{order_number}", response_model=schemas.Order)
async def read_order(order_number: str, db = Depends(get_db)):
    db_order = await crud.get_order_by_number(db, order_number=order_number)
    if db_order is None:
        raise NotFound("Order", order_number)
    return db_order
