# conftest.py
import os
import tempfile

# Point the app at a throwaway database before anything imports config
_TEST_DIR = tempfile.mkdtemp(prefix="grocery-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DIR, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_DIR, "storage")
os.environ["SEED_SAMPLE_DATA"] = "false"

import pytest
from fastapi.testclient import TestClient

from database import Base, engine, database
from main import app


@pytest.fixture
def client():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def upload_dir():
    return os.environ["UPLOAD_DIR"]


@pytest.fixture
def count_rows(client):
    """Count rows in a table through the app's own connection."""
    def count(table):
        return client.portal.call(database.fetch_val, f"SELECT COUNT(*) FROM {table}")
    return count


@pytest.fixture
def make_category(client):
    def make(**overrides):
        payload = {"name": "Buah-buahan", "icon": "🍎", "sort_order": 1}
        payload.update(overrides)
        response = client.post("/api/v1/admin/categories", json=payload)
        assert response.status_code == 201, response.text
        return response.json()
    return make


@pytest.fixture
def make_product(client, make_category):
    categories = {}

    def make(**overrides):
        if "category_id" not in overrides:
            if "default" not in categories:
                categories["default"] = make_category(name="Umum")
            overrides["category_id"] = categories["default"]["id"]
        payload = {
            "name": "Apel Fuji",
            "price": 10000,
            "unit": "kg",
            "stock": 50,
            "minimum_stock": 5,
        }
        payload.update(overrides)
        response = client.post("/api/v1/admin/products", json=payload)
        assert response.status_code == 201, response.text
        return response.json()
    return make
