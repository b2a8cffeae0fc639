from decimal import Decimal

from stockapi.models import Product, PurchaseDetail


def stock_of(db, product_id):
    return db.query(Product.stock_level).filter(Product.id == product_id).scalar()


def create_purchase(client, headers, supplier, details):
    return client.post("/api/v1/purchases", json={
        "supplier_id": supplier.id,
        "details": details,
    }, headers=headers)


def test_create_purchase_with_inline_details(client, admin_headers, db_session, supplier, product, other_product):
    response = create_purchase(client, admin_headers, supplier, [
        {"product_id": product.id, "quantity": 5, "unit_cost": "4.00"},
        {"product_id": other_product.id, "quantity": 2, "unit_cost": "2.50"},
    ])

    assert response.status_code == 201
    body = response.json()
    assert Decimal(body["total_amount"]) == Decimal("25.00")
    assert len(body["details"]) == 2
    assert stock_of(db_session, product.id) == 15
    assert stock_of(db_session, other_product.id) == 6


def test_create_purchase_unknown_product_rolls_back(client, admin_headers, db_session, supplier, product):
    response = create_purchase(client, admin_headers, supplier, [
        {"product_id": product.id, "quantity": 5, "unit_cost": "4.00"},
        {"product_id": 999, "quantity": 1, "unit_cost": "1.00"},
    ])

    assert response.status_code == 404
    assert stock_of(db_session, product.id) == 10
    assert db_session.query(PurchaseDetail).count() == 0


def test_create_purchase_unknown_supplier(client, admin_headers):
    response = client.post("/api/v1/purchases", json={"supplier_id": 999}, headers=admin_headers)
    assert response.status_code == 404


def test_update_purchase_keeps_total(client, admin_headers, supplier, product):
    created = create_purchase(client, admin_headers, supplier, [
        {"product_id": product.id, "quantity": 2, "unit_cost": "4.00"},
    ]).json()

    response = client.put(f"/api/v1/purchases/{created['id']}", json={
        "id": created["id"],
        "supplier_id": supplier.id,
        "purchase_date": "2026-01-15T10:00:00",
    }, headers=admin_headers)
    assert response.status_code == 204

    body = client.get(f"/api/v1/purchases/{created['id']}", headers=admin_headers).json()
    assert body["purchase_date"].startswith("2026-01-15")
    assert Decimal(body["total_amount"]) == Decimal("8.00")


def test_delete_purchase_reverses_stock(client, admin_headers, db_session, supplier, product):
    created = create_purchase(client, admin_headers, supplier, [
        {"product_id": product.id, "quantity": 6, "unit_cost": "4.00"},
    ]).json()
    assert stock_of(db_session, product.id) == 16

    response = client.delete(f"/api/v1/purchases/{created['id']}", headers=admin_headers)

    assert response.status_code == 204
    assert stock_of(db_session, product.id) == 10
    assert db_session.query(PurchaseDetail).count() == 0


def test_purchase_queries(client, admin_headers, supplier, product, admin_user):
    create_purchase(client, admin_headers, supplier, [
        {"product_id": product.id, "quantity": 1, "unit_cost": "10.00"},
    ])
    create_purchase(client, admin_headers, supplier, [
        {"product_id": product.id, "quantity": 3, "unit_cost": "10.00"},
    ])

    summary = client.get("/api/v1/purchases/summary", headers=admin_headers).json()
    assert summary["total_purchases"] == 2
    assert Decimal(summary["total_amount"]) == Decimal("40.00")
    assert Decimal(summary["average_amount"]) == Decimal("20.00")

    by_supplier = client.get(f"/api/v1/purchases/by-supplier/{supplier.id}", headers=admin_headers).json()
    assert len(by_supplier) == 2

    recent = client.get("/api/v1/purchases/recent?days=7", headers=admin_headers).json()
    assert len(recent) == 2

    users = client.get("/api/v1/purchases/dropdown/users", headers=admin_headers).json()
    assert {"id": admin_user.id, "name": "admin"} in users


# ==================== Purchase details ====================

def test_purchase_detail_crud(client, admin_headers, db_session, purchase, product):
    response = client.post("/api/v1/purchase-details", json={
        "purchase_id": purchase.id,
        "product_id": product.id,
        "quantity": 5,
        "unit_cost": "4.00",
    }, headers=admin_headers)
    assert response.status_code == 201
    detail = response.json()
    assert Decimal(detail["sub_total"]) == Decimal("20.00")
    assert stock_of(db_session, product.id) == 15

    response = client.put(f"/api/v1/purchase-details/{detail['id']}", json={
        "id": detail["id"],
        "purchase_id": purchase.id,
        "product_id": product.id,
        "quantity": 8,
        "unit_cost": "4.00",
    }, headers=admin_headers)
    assert response.status_code == 204
    assert stock_of(db_session, product.id) == 18

    parent = client.get(f"/api/v1/purchases/{purchase.id}", headers=admin_headers).json()
    assert Decimal(parent["total_amount"]) == Decimal("32.00")

    response = client.delete(f"/api/v1/purchase-details/{detail['id']}", headers=admin_headers)
    assert response.status_code == 204
    assert stock_of(db_session, product.id) == 10


def test_purchase_detail_id_mismatch(client, admin_headers, purchase, product):
    response = client.put("/api/v1/purchase-details/1", json={
        "id": 2,
        "purchase_id": purchase.id,
        "product_id": product.id,
        "quantity": 1,
        "unit_cost": "1.00",
    }, headers=admin_headers)
    assert response.status_code == 400


def test_purchase_detail_rejects_zero_quantity(client, admin_headers, purchase, product):
    response = client.post("/api/v1/purchase-details", json={
        "purchase_id": purchase.id,
        "product_id": product.id,
        "quantity": 0,
        "unit_cost": "1.00",
    }, headers=admin_headers)
    assert response.status_code == 422


def test_purchase_detail_queries(client, admin_headers, purchase, product, other_product):
    for product_id, quantity in ((product.id, 2), (other_product.id, 4)):
        client.post("/api/v1/purchase-details", json={
            "purchase_id": purchase.id,
            "product_id": product_id,
            "quantity": quantity,
            "unit_cost": "3.00",
        }, headers=admin_headers)

    by_purchase = client.get(f"/api/v1/purchase-details/by-purchase/{purchase.id}", headers=admin_headers)
    assert len(by_purchase.json()) == 2

    assert client.get("/api/v1/purchase-details/by-purchase/999", headers=admin_headers).status_code == 404
    assert client.get("/api/v1/purchase-details/by-product/999", headers=admin_headers).status_code == 404

    summary = client.get(
        f"/api/v1/purchase-details/summary?purchase_id={purchase.id}", headers=admin_headers
    ).json()
    assert summary["total_items"] == 2
    assert summary["total_quantity"] == 6
    assert Decimal(summary["total_amount"]) == Decimal("18.00")
    assert Decimal(summary["average_unit_cost"]) == Decimal("3.00")

    filtered = client.get("/api/v1/purchase-details/filter?min_quantity=3", headers=admin_headers).json()
    assert [d["product_id"] for d in filtered] == [other_product.id]

    options = client.get("/api/v1/purchase-details/dropdown/purchases", headers=admin_headers).json()
    assert options[0]["id"] == purchase.id
    assert Decimal(options[0]["total_amount"]) == Decimal("18.00")


def test_purchase_detail_delete_requires_admin(client, admin_headers, staff_headers, purchase, product):
    detail = client.post("/api/v1/purchase-details", json={
        "purchase_id": purchase.id,
        "product_id": product.id,
        "quantity": 1,
        "unit_cost": "1.00",
    }, headers=admin_headers).json()

    response = client.delete(f"/api/v1/purchase-details/{detail['id']}", headers=staff_headers)
    assert response.status_code == 403
