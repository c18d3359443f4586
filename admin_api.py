# admin_api.py
from fastapi import APIRouter, Depends, File, Query, UploadFile
from typing import Optional
from datetime import date
from database import get_db
from dependencies import RecordId, category_filter, get_image_storage, get_store_settings, page_number
from exceptions import NotFound
from uploads import ImageStorage
import crud
import schemas

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])

# ========== DASHBOARD ==========
@router.get("/dashboard", response_model=schemas.Dashboard)
async def get_dashboard(db = Depends(get_db)):
    return await crud.get_dashboard(db)

@router.get("/dashboard/stats", response_model=schemas.DashboardStats)
async def get_dashboard_stats(db = Depends(get_db)):
    return await crud.get_dashboard_stats(db)

# ========== CATEGORY MANAGEMENT ==========
@router.get("/categories", response_model=schemas.CategoryPage)
async def admin_read_categories(
    search: Optional[str] = None,
    page: int = Depends(page_number),
    db = Depends(get_db)
):
    return await crud.list_categories(db, search=search, page=page)

@router.post("/categories", response_model=schemas.Category, status_code=201)
async def admin_create_category(category: schemas.CategoryCreate, db = Depends(get_db)):
    return await crud.create_category(db, category)

@router.get("/categories/{category_id}", response_model=schemas.CategoryDetail)
async def admin_read_category(category_id: RecordId, db = Depends(get_db)):
    db_category = await crud.get_category_detail(db, category_id)
    if db_category is None:
        raise NotFound("Category", category_id)
    return db_category

@router.put("/categories/{category_id}", response_model=schemas.Category)
async def admin_update_category(
    category_id: RecordId,
    category_update: schemas.CategoryUpdate,
    db = Depends(get_db)
):
    return await crud.update_category(db, category_id, category_update)

@router.delete("/categories/{category_id}")
async def admin_delete_category(category_id: RecordId, db = Depends(get_db)):
    await crud.delete_category(db, category_id)
    return {"message": "Category deleted successfully"}

# ========== PRODUCT MANAGEMENT ==========
@router.get("/products", response_model=schemas.ProductPage)
async def admin_read_products(
    search: Optional[str] = None,
    category: Optional[int] = Depends(category_filter),
    status: Optional[str] = None,
    page: int = Depends(page_number),
    db = Depends(get_db)
):
    return await crud.list_products(db, search=search, category_id=category, status=status, page=page)

@router.post("/products", response_model=schemas.Product, status_code=201)
async def admin_create_product(product: schemas.ProductCreate, db = Depends(get_db)):
    return await crud.create_product(db, product)

@router.get("/products/{product_id}", response_model=schemas.Product)
async def admin_read_product(product_id: RecordId, db = Depends(get_db)):
    db_product = await crud.get_product(db, product_id)
    if db_product is None:
        raise NotFound("Product", product_id)
    return db_product

@router.put("/products/{product_id}", response_model=schemas.Product)
async def admin_update_product(
    product_id: RecordId,
    product_update: schemas.ProductUpdate,
    db = Depends(get_db)
):
    return await crud.update_product(db, product_id, product_update)

@router.delete("/products/{product_id}")
async def admin_delete_product(
    product_id: RecordId,
    db = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage)
):
    await crud.delete_product(db, product_id, storage)
    return {"message": "Product deleted successfully"}

@router.post("/products/{product_id}/image", response_model=schemas.Product)
async def admin_upload_product_image(
    product_id: RecordId,
    image: UploadFile = File(...),
    db = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage)
):
    return await crud.set_product_image(db, product_id, image, storage)

@router.delete("/products/{product_id}/image", response_model=schemas.Product)
async def admin_delete_product_image(
    product_id: RecordId,
    db = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage)
):
    return await crud.remove_product_image(db, product_id, storage)

# ========== ORDER MANAGEMENT ==========
@router.get("/orders", response_model=schemas.OrderPage)
async def admin_read_orders(
    search: Optional[str] = None,
    status: Optional[str] = None,
    created_on: Optional[date] = Query(None, alias="date"),
    page: int = Depends(page_number),
    db = Depends(get_db)
):
    return await crud.list_orders(db, search=search, status=status, created_on=created_on, page=page)

@router.get("/orders/{order_id}", response_model=schemas.Order)
async def admin_read_order(order_id: RecordId, db = Depends(get_db)):
    db_order = await crud.get_order(db, order_id)
    if db_order is None:
        raise NotFound("Order", order_id)
    return db_order

@router.patch("/orders/{order_id}", response_model=schemas.Order)
async def admin_update_order_status(
    order_id: RecordId,
    status_update: schemas.OrderStatusUpdate,
    db = Depends(get_db)
):
    return await crud.update_order_status(db, order_id, status_update.status)

# ========== STORE SETTINGS ==========
@router.get("/settings", response_model=schemas.StoreSettingsResponse)
async def admin_read_settings(settings: schemas.StoreSettings = Depends(get_store_settings)):
    return settings

@router.put("/settings", response_model=schemas.StoreSettingsResponse)
async def admin_update_settings(settings_update: schemas.StoreSettingsUpdate, db = Depends(get_db)):
    return await crud.update_store_settings(db, settings_update)
