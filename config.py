# config.py
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):

    # App
    app_name: str = "FreshMart Grocery API"
    app_version: str = "1.0.0"
    app_description: str = "Grocery storefront with WhatsApp ordering and an admin back office"

    # Database
    database_url: str = "sqlite:///./grocery_store.db"

    # Storage for uploaded product images
    upload_dir: str = "storage"
    storage_url: str = "/storage"

    # CORS
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    log_level: str = "INFO"
    seed_sample_data: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
