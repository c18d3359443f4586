# database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
import databases

from config import get_settings

DATABASE_URL = get_settings().database_url

# Render.com hands out postgres:// URLs
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# Sync engine is only used for DDL (create_all / drop_all)
engine = create_engine(DATABASE_URL, connect_args=connect_args)

database = databases.Database(DATABASE_URL)

Base = declarative_base()


async def get_db():
    return database
