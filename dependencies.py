# dependencies.py
from typing import Annotated, Optional

from fastapi import Depends, Path, Query

from config import Settings, get_settings
from database import get_db
from uploads import ImageStorage
import crud
import schemas

RecordId = Annotated[int, Path(ge=1, le=schemas.MAX_INT)]


async def get_store_settings(db = Depends(get_db)) -> schemas.StoreSettings:
    """Store settings are read fresh for every request so admin edits apply immediately."""
    return await crud.get_store_settings(db)


def get_image_storage(settings: Settings = Depends(get_settings)) -> ImageStorage:
    return ImageStorage(settings.upload_dir)


def page_number(page: int = Query(1, ge=1, le=schemas.MAX_INT)) -> int:
    return page


def category_filter(category: Optional[int] = Query(None, ge=1, le=schemas.MAX_INT)) -> Optional[int]:
    return category
