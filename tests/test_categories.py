def test_paginated_list_envelope(client, admin_headers, admin_user):
    for i in range(7):
        response = client.post(
            "/api/v1/categories",
            json={"name": f"Category {i}", "user_id": admin_user.id},
            headers=admin_headers,
        )
        assert response.status_code == 201

    response = client.get("/api/v1/categories?pageNumber=2&pageSize=5", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["TotalRecords"] == 7
    assert body["PageSize"] == 5
    assert body["CurrentPage"] == 2
    assert body["TotalPages"] == 2
    assert [c["name"] for c in body["Categories"]] == ["Category 5", "Category 6"]


def test_get_update_and_missing(client, admin_headers, category):
    response = client.get(f"/api/v1/categories/{category.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Hardware"

    response = client.put(
        f"/api/v1/categories/{category.id}",
        json={"id": category.id, "name": "Tools"},
        headers=admin_headers,
    )
    assert response.status_code == 204
    assert client.get(f"/api/v1/categories/{category.id}", headers=admin_headers).json()["name"] == "Tools"

    assert client.get("/api/v1/categories/999", headers=admin_headers).status_code == 404


def test_update_id_mismatch(client, admin_headers, category):
    response = client.put(
        f"/api/v1/categories/{category.id}",
        json={"id": category.id + 1, "name": "Tools"},
        headers=admin_headers,
    )
    assert response.status_code == 400


def test_delete_blocked_by_products(client, admin_headers, category, product):
    response = client.delete(f"/api/v1/categories/{category.id}", headers=admin_headers)

    assert response.status_code == 400
    assert "has products" in response.json()["message"]


def test_delete_requires_admin(client, staff_headers, category):
    response = client.delete(f"/api/v1/categories/{category.id}", headers=staff_headers)
    assert response.status_code == 403


def test_delete(client, admin_headers, category):
    assert client.delete(f"/api/v1/categories/{category.id}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/v1/categories/{category.id}", headers=admin_headers).status_code == 404


def test_filter_and_product_count(client, admin_headers, category, product, other_product):
    response = client.get("/api/v1/categories/filter?category_name=hard", headers=admin_headers)
    assert [c["id"] for c in response.json()] == [category.id]

    response = client.get("/api/v1/categories/with-product-count", headers=admin_headers)
    assert response.json() == [{"id": category.id, "name": "Hardware", "product_count": 2}]
