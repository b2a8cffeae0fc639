from decimal import Decimal


def test_create_product_defaults_stock_to_zero(client, admin_headers, category, supplier):
    response = client.post("/api/v1/products", json={
        "name": "Bolt",
        "category_id": category.id,
        "supplier_id": supplier.id,
        "cost_price": "0.10",
        "selling_price": "0.25",
    }, headers=admin_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["stock_level"] == 0
    assert Decimal(body["selling_price"]) == Decimal("0.25")


def test_create_product_rejects_negative_stock(client, admin_headers):
    response = client.post("/api/v1/products", json={"name": "Bolt", "stock_level": -1}, headers=admin_headers)
    assert response.status_code == 422


def test_create_product_unknown_category(client, admin_headers):
    response = client.post("/api/v1/products", json={"name": "Bolt", "category_id": 999}, headers=admin_headers)
    assert response.status_code == 404


def test_update_leaves_stock_alone(client, admin_headers, product):
    response = client.put(f"/api/v1/products/{product.id}", json={
        "id": product.id,
        "name": "Widget XL",
        "category_id": product.category_id,
        "supplier_id": product.supplier_id,
        "cost_price": "5.00",
        "selling_price": "8.00",
        "stock_level": 999,
    }, headers=admin_headers)
    assert response.status_code == 204

    body = client.get(f"/api/v1/products/{product.id}", headers=admin_headers).json()
    assert body["name"] == "Widget XL"
    assert body["stock_level"] == 10


def test_manual_stock_correction(client, admin_headers, product):
    response = client.put(f"/api/v1/products/{product.id}/stock", json={"stock_level": 3}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["stock_level"] == 3

    response = client.put(f"/api/v1/products/{product.id}/stock", json={"stock_level": -2}, headers=admin_headers)
    assert response.status_code == 422


def test_low_stock(client, admin_headers, product, other_product):
    response = client.get("/api/v1/products/low-stock", headers=admin_headers)
    assert [p["name"] for p in response.json()] == ["Gadget"]

    response = client.get("/api/v1/products/low-stock?threshold=11", headers=admin_headers)
    assert [p["name"] for p in response.json()] == ["Gadget", "Widget"]


def test_top_filter_and_dropdowns(client, admin_headers, product, other_product, category, supplier):
    top = client.get("/api/v1/products/top?n=1", headers=admin_headers).json()
    assert [p["name"] for p in top] == ["Widget"]

    found = client.get("/api/v1/products/filter?product_name=gad", headers=admin_headers).json()
    assert [p["id"] for p in found] == [other_product.id]

    by_category = client.get(f"/api/v1/products/by-category/{category.id}", headers=admin_headers).json()
    assert len(by_category) == 2

    options = client.get("/api/v1/products/dropdown/suppliers", headers=admin_headers).json()
    assert options == [{"id": supplier.id, "name": "Acme Supplies"}]


def test_delete_blocked_by_line_items(client, admin_headers, product, purchase):
    response = client.post("/api/v1/purchase-details", json={
        "purchase_id": purchase.id,
        "product_id": product.id,
        "quantity": 1,
        "unit_cost": "1.00",
    }, headers=admin_headers)
    assert response.status_code == 201

    response = client.delete(f"/api/v1/products/{product.id}", headers=admin_headers)
    assert response.status_code == 400


def test_delete(client, admin_headers, staff_headers, product):
    assert client.delete(f"/api/v1/products/{product.id}", headers=staff_headers).status_code == 403
    assert client.delete(f"/api/v1/products/{product.id}", headers=admin_headers).status_code == 204
    assert client.delete(f"/api/v1/products/{product.id}", headers=admin_headers).status_code == 404
