def test_supplier_crud(client, admin_headers, admin_user):
    response = client.post("/api/v1/suppliers", json={
        "name": "Northwind",
        "contact": "555-0199",
        "address": "42 Harbour Rd",
        "user_id": admin_user.id,
    }, headers=admin_headers)
    assert response.status_code == 201
    supplier_id = response.json()["id"]

    response = client.put(f"/api/v1/suppliers/{supplier_id}", json={
        "id": supplier_id,
        "name": "Northwind Traders",
        "contact": "555-0199",
    }, headers=admin_headers)
    assert response.status_code == 204

    body = client.get(f"/api/v1/suppliers/{supplier_id}", headers=admin_headers).json()
    assert body["name"] == "Northwind Traders"

    assert client.delete(f"/api/v1/suppliers/{supplier_id}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/v1/suppliers/{supplier_id}", headers=admin_headers).status_code == 404


def test_create_supplier_unknown_user(client, admin_headers):
    response = client.post("/api/v1/suppliers", json={"name": "Ghost Co", "user_id": 999}, headers=admin_headers)
    assert response.status_code == 404


def test_delete_blocked_by_products(client, admin_headers, supplier, product):
    response = client.delete(f"/api/v1/suppliers/{supplier.id}", headers=admin_headers)
    assert response.status_code == 400


def test_search(client, admin_headers, supplier):
    found = client.get("/api/v1/suppliers/search?search_term=main", headers=admin_headers).json()
    assert [s["id"] for s in found] == [supplier.id]

    response = client.get("/api/v1/suppliers/search?search_term=%20", headers=admin_headers)
    assert response.status_code == 400

    response = client.get("/api/v1/suppliers/search", headers=admin_headers)
    assert response.status_code == 400


def test_with_counts(client, admin_headers, supplier, product, other_product, purchase):
    rows = client.get("/api/v1/suppliers/with-counts", headers=admin_headers).json()

    assert len(rows) == 1
    assert rows[0]["product_count"] == 2
    assert rows[0]["purchase_count"] == 1


def test_filter_and_by_user(client, admin_headers, supplier, admin_user):
    found = client.get("/api/v1/suppliers/filter?supplier_name=acme", headers=admin_headers).json()
    assert [s["id"] for s in found] == [supplier.id]

    by_user = client.get(f"/api/v1/suppliers/by-user/{admin_user.id}", headers=admin_headers).json()
    assert [s["id"] for s in by_user] == [supplier.id]
