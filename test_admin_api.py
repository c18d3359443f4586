# test_admin_api.py
from datetime import date

ADMIN = "/api/v1/admin"


def place_order(client, product_id, quantity=1, **overrides):
    payload = {
        "customer_name": "Sari",
        "customer_phone": "081300000000",
        "delivery_type": "pickup",
        "items": [{"product_id": product_id, "quantity": quantity}],
    }
    payload.update(overrides)
    response = client.post("/api/v1/orders", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["order"]


# ========== CATEGORIES ==========
def test_category_slug_is_generated_and_unique(client, make_category):
    category = make_category(name="Roti & Kue")
    assert category["slug"] == "roti-kue"

    response = client.post(f"{ADMIN}/categories", json={"name": "Roti & Kue"})
    assert response.status_code == 422
    assert "slug" in response.json()["errors"]


def test_category_crud(client, make_category, make_product):
    category = make_category(name="Susu", description="Produk susu")
    make_product(name="Keju", category_id=category["id"])

    detail = client.get(f"{ADMIN}/categories/{category['id']}").json()
    assert detail["products_count"] == 1
    assert [p["name"] for p in detail["products"]] == ["Keju"]

    response = client.put(f"{ADMIN}/categories/{category['id']}", json={"name": "Produk Susu", "slug": ""})
    assert response.status_code == 200
    assert response.json()["slug"] == "produk-susu"

    assert client.get(f"{ADMIN}/categories/9999").status_code == 404
    assert client.put(f"{ADMIN}/categories/9999", json={"name": "X"}).status_code == 404


def test_category_listing_search_and_counts(client, make_category, make_product):
    buah = make_category(name="Buah", sort_order=2)
    make_category(name="Sayur", sort_order=1, description="Sayuran segar")
    make_product(name="Apel", category_id=buah["id"])

    page = client.get(f"{ADMIN}/categories").json()
    assert [c["name"] for c in page["data"]] == ["Sayur", "Buah"]
    assert [c["products_count"] for c in page["data"]] == [0, 1]
    assert page["per_page"] == 15

    page = client.get(f"{ADMIN}/categories", params={"search": "segar"}).json()
    assert [c["name"] for c in page["data"]] == ["Sayur"]


def test_category_with_products_cannot_be_deleted(client, make_category, make_product):
    category = make_category(name="Buah")
    make_product(name="Apel", category_id=category["id"])

    response = client.delete(f"{ADMIN}/categories/{category['id']}")

    assert response.status_code == 409
    assert response.json()["detail"] == "Cannot delete category with existing products."
    assert client.get(f"{ADMIN}/categories/{category['id']}").status_code == 200


def test_empty_category_can_be_deleted(client, make_category):
    category = make_category(name="Kosong")

    assert client.delete(f"{ADMIN}/categories/{category['id']}").status_code == 200
    assert client.get(f"{ADMIN}/categories/{category['id']}").status_code == 404
    assert client.delete(f"{ADMIN}/categories/{category['id']}").status_code == 404


# ========== PRODUCTS ==========
def test_discount_must_be_below_price(client, make_category):
    category = make_category(name="Buah")
    payload = {
        "category_id": category["id"], "name": "Apel", "price": 10000, "discount_price": 10000,
        "unit": "kg", "stock": 1, "minimum_stock": 1,
    }

    response = client.post(f"{ADMIN}/products", json=payload)

    assert response.status_code == 422
    assert "discount_price" in response.json()["errors"]


def test_product_requires_existing_category(client):
    payload = {"category_id": 123, "name": "Apel", "price": 10000, "unit": "kg", "stock": 1, "minimum_stock": 1}
    response = client.post(f"{ADMIN}/products", json=payload)

    assert response.status_code == 422
    assert "category_id" in response.json()["errors"]


def test_negative_values_are_rejected(client, make_category):
    category = make_category(name="Buah")
    payload = {"category_id": category["id"], "name": "Apel", "price": -1, "unit": "kg", "stock": 1, "minimum_stock": 1}
    assert client.post(f"{ADMIN}/products", json=payload).status_code == 422


def test_oversized_integers_are_rejected(client, make_category, make_product):
    category = make_category(name="Buah")
    payload = {"category_id": category["id"], "name": "Apel", "price": 10000, "unit": "kg",
               "stock": 10**19, "minimum_stock": 1}
    assert client.post(f"{ADMIN}/products", json=payload).status_code == 422

    product = make_product(name="Jeruk")
    assert client.put(f"{ADMIN}/products/{product['id']}", json={"sort_order": 10**19}).status_code == 422
    assert client.put(f"{ADMIN}/categories/{category['id']}", json={"sort_order": 10**19}).status_code == 422
    assert client.get(f"{ADMIN}/products/{10**19}").status_code == 422
    assert client.get(f"{ADMIN}/orders/{10**19}").status_code == 422
    assert client.get(f"{ADMIN}/products", params={"category": 10**19}).status_code == 422


def test_product_slug_uniqueness(client, make_product):
    first = make_product(name="Apel Fuji")
    assert first["slug"] == "apel-fuji"

    response = client.post(f"{ADMIN}/products", json={
        "category_id": first["category_id"], "name": "Apel Fuji", "price": 1, "unit": "kg",
        "stock": 1, "minimum_stock": 1,
    })
    assert response.status_code == 422

    second = make_product(name="Apel Fuji", slug="apel-fuji-besar")
    assert second["slug"] == "apel-fuji-besar"

    response = client.put(f"{ADMIN}/products/{second['id']}", json={"slug": "apel-fuji"})
    assert response.status_code == 422


def test_product_update(client, make_product):
    product = make_product(name="Apel", price=10000)

    response = client.put(f"{ADMIN}/products/{product['id']}", json={"discount_price": 9000, "stock": 3})
    assert response.status_code == 200
    body = response.json()
    assert body["final_price"] == 9000
    assert body["stock"] == 3

    # Lowering the price below the existing discount is rejected
    response = client.put(f"{ADMIN}/products/{product['id']}", json={"price": 8000})
    assert response.status_code == 422

    assert client.put(f"{ADMIN}/products/9999", json={"stock": 1}).status_code == 404


def test_ordered_product_cannot_be_deleted(client, make_product):
    product = make_product(name="Apel")
    place_order(client, product["id"])

    response = client.delete(f"{ADMIN}/products/{product['id']}")

    assert response.status_code == 409
    assert response.json()["detail"] == "Cannot delete product that has been ordered."
    assert client.get(f"{ADMIN}/products/{product['id']}").status_code == 200


def test_unordered_product_can_be_deleted(client, make_product):
    product = make_product(name="Apel")

    assert client.delete(f"{ADMIN}/products/{product['id']}").status_code == 200
    assert client.get(f"{ADMIN}/products/{product['id']}").status_code == 404


# ========== ORDERS ==========
def test_order_listing_filters(client, make_product):
    product = make_product(name="Apel")
    first = place_order(client, product["id"], customer_name="Sari")
    second = place_order(client, product["id"], customer_name="Joko", customer_phone="085700000000")
    client.patch(f"{ADMIN}/orders/{second['id']}", json={"status": "confirmed"})

    page = client.get(f"{ADMIN}/orders").json()
    assert [o["id"] for o in page["data"]] == [second["id"], first["id"]]
    assert len(page["data"][0]["items"]) == 1

    assert [o["id"] for o in client.get(f"{ADMIN}/orders", params={"search": "joko"}).json()["data"]] == [second["id"]]
    assert [o["id"] for o in client.get(f"{ADMIN}/orders", params={"search": "0857"}).json()["data"]] == [second["id"]]
    assert [o["id"] for o in client.get(f"{ADMIN}/orders", params={"status": "pending"}).json()["data"]] == [first["id"]]

    today = date.today().isoformat()
    assert client.get(f"{ADMIN}/orders", params={"date": today}).json()["total"] == 2
    assert client.get(f"{ADMIN}/orders", params={"date": "2000-01-01"}).json()["total"] == 0


def test_order_status_update(client, make_product):
    product = make_product(name="Apel")
    order = place_order(client, product["id"])

    # Any status can follow any other
    for status in ("completed", "pending", "cancelled", "ready"):
        response = client.patch(f"{ADMIN}/orders/{order['id']}", json={"status": status})
        assert response.status_code == 200
        assert response.json()["status"] == status

    assert client.patch(f"{ADMIN}/orders/{order['id']}", json={"status": "shipped"}).status_code == 422
    assert client.patch(f"{ADMIN}/orders/9999", json={"status": "ready"}).status_code == 404


# ========== SETTINGS ==========
def test_settings_defaults_and_update(client):
    settings = client.get(f"{ADMIN}/settings").json()
    assert settings == {
        "store_name": "Grocery Store",
        "whatsapp_number": "",
        "delivery_fee": 5000,
        "store_address": "",
        "store_phone": "",
    }

    response = client.put(f"{ADMIN}/settings", json={"store_name": "FreshMart", "delivery_fee": 7000})
    assert response.status_code == 200
    assert response.json()["store_name"] == "FreshMart"

    client.put(f"{ADMIN}/settings", json={"delivery_fee": 8000})
    settings = client.get(f"{ADMIN}/settings").json()
    assert settings["store_name"] == "FreshMart"
    assert settings["delivery_fee"] == 8000


# ========== DASHBOARD ==========
def test_dashboard(client, make_product):
    apel = make_product(name="Apel", price=10000)
    make_product(name="Tomat", stock=2, minimum_stock=5)
    make_product(name="Mangga", stock=0, is_active=False)
    place_order(client, apel["id"], quantity=2)
    order = place_order(client, apel["id"])
    client.patch(f"{ADMIN}/orders/{order['id']}", json={"status": "completed"})

    body = client.get(f"{ADMIN}/dashboard").json()

    assert body["stats"] == {
        "total_products": 3,
        "active_products": 2,
        "out_of_stock": 1,
        "total_categories": 1,
        "total_orders": 2,
        "pending_orders": 1,
        "today_orders": 2,
        "today_revenue": 30000,
    }
    assert [o["id"] for o in body["recent_orders"]][0] == order["id"]
    assert [p["name"] for p in body["low_stock_products"]] == ["Tomat"]
