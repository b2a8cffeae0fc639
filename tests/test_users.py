from stockapi.core.security import verify_password
from stockapi.models import User


def test_paginated_users(client, admin_headers, staff_user):
    body = client.get("/api/v1/users?pageNumber=1&pageSize=1", headers=admin_headers).json()

    assert body["TotalRecords"] == 2
    assert body["TotalPages"] == 2
    assert body["CurrentPage"] == 1
    assert [u["username"] for u in body["Users"]] == ["admin"]


def test_create_user_hashes_password(client, admin_headers, db_session):
    response = client.post("/api/v1/users", json={
        "username": "clerk",
        "password": "pa55word",
        "email": "clerk@example.com",
        "role": "Staff",
    }, headers=admin_headers)

    assert response.status_code == 201
    user = db_session.query(User).filter(User.username == "clerk").one()
    assert user.password_hash != "pa55word"
    assert verify_password("pa55word", user.password_hash)


def test_create_user_validation(client, admin_headers):
    response = client.post("/api/v1/users", json={
        "username": "clerk",
        "password": "short",
        "role": "Staff",
    }, headers=admin_headers)
    assert response.status_code == 422

    response = client.post("/api/v1/users", json={
        "username": "clerk",
        "password": "long-enough",
        "email": "not-an-email",
        "role": "Staff",
    }, headers=admin_headers)
    assert response.status_code == 422

    response = client.post("/api/v1/users", json={
        "username": "clerk",
        "password": "long-enough",
    }, headers=admin_headers)
    assert response.status_code == 422


def test_update_user_rehashes_given_password(client, admin_headers, db_session, staff_user):
    response = client.put(f"/api/v1/users/{staff_user.id}", json={
        "id": staff_user.id,
        "username": "staff",
        "role": "Staff",
        "password": "brand-new",
    }, headers=admin_headers)
    assert response.status_code == 204

    db_session.refresh(staff_user)
    assert verify_password("brand-new", staff_user.password_hash)


def test_update_user_id_mismatch(client, admin_headers, staff_user):
    response = client.put(f"/api/v1/users/{staff_user.id}", json={
        "id": staff_user.id + 10,
        "username": "staff",
        "role": "Staff",
    }, headers=admin_headers)
    assert response.status_code == 400


def test_filter_and_top(client, admin_headers, staff_user):
    staff = client.get("/api/v1/users/filter?role=Staff", headers=admin_headers).json()
    assert [u["username"] for u in staff] == ["staff"]

    top = client.get("/api/v1/users/top", headers=admin_headers).json()
    assert len(top) == 2


def test_delete_user(client, admin_headers, staff_headers, staff_user):
    assert client.delete(f"/api/v1/users/{staff_user.id}", headers=staff_headers).status_code == 403
    assert client.delete(f"/api/v1/users/{staff_user.id}", headers=admin_headers).status_code == 204


def test_delete_user_with_purchases_is_blocked(client, admin_headers, admin_user, purchase):
    response = client.delete(f"/api/v1/users/{admin_user.id}", headers=admin_headers)
    assert response.status_code == 400
