# uploads.py
import logging
import os
import uuid
from typing import Optional

from fastapi import UploadFile

from exceptions import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}
ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}
MAX_IMAGE_SIZE = 2048 * 1024  # 2 MB


class ImageStorage:
    """Stores uploaded images on the public disk under generated filenames."""

    def __init__(self, root: str):
        self.root = root

    def full_path(self, path: str) -> str:
        return os.path.join(self.root, *path.split("/"))

    async def save(self, upload: UploadFile, folder: str = "products") -> str:
        extension = os.path.splitext(upload.filename or "")[1].lower()
        if extension not in ALLOWED_IMAGE_EXTENSIONS or upload.content_type not in ALLOWED_IMAGE_TYPES:
            raise ValidationError({"image": "Image must be one of: jpeg, png, jpg, gif, webp."})

        content = await upload.read()
        if not content:
            raise ValidationError({"image": "Image file is empty."})
        if len(content) > MAX_IMAGE_SIZE:
            raise ValidationError({"image": "Image may not be larger than 2MB."})

        path = f"{folder}/{uuid.uuid4().hex}{extension}"
        target = self.full_path(path)
        os.makedirs(os.path.dirname(target), exist_ok=True)
        with open(target, "wb") as fh:
            fh.write(content)

        logger.info("Stored image %s (%d bytes)", path, len(content))
        return path

    def delete(self, path: Optional[str]) -> bool:
        if not path:
            return False
        target = self.full_path(path)
        if not os.path.isfile(target):
            return False
        os.remove(target)
        logger.info("Deleted image %s", path)
        return True
