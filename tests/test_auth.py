from stockapi.core.security import create_access_token, decode_access_token


def test_register_creates_customer(client):
    response = client.post("/api/v1/auth/register", json={
        "username": "newbie",
        "password": "hunter22",
        "email": "newbie@example.com",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["username"] == "newbie"
    assert body["role"] == "Customer"
    assert "password" not in body
    assert "password_hash" not in body


def test_register_duplicate_username(client, admin_user):
    response = client.post("/api/v1/auth/register", json={"username": "admin", "password": "hunter22"})

    assert response.status_code == 400
    assert response.json()["message"] == "Username already exists"
    assert response.json()["success"] is False


def test_register_validates_input(client):
    response = client.post("/api/v1/auth/register", json={"username": "ab", "password": "123"})
    assert response.status_code == 422


def test_login_returns_token(client, admin_user):
    response = client.post("/api/v1/auth/login", json={"username": "admin", "password": "secret123"})

    assert response.status_code == 200
    body = response.json()
    assert body["username"] == "admin"
    assert body["role"] == "Admin"
    assert body["message"] == "Login successful"

    claims = decode_access_token(body["token"])
    assert claims["sub"] == str(admin_user.id)
    assert claims["role"] == "Admin"


def test_login_rejects_bad_password(client, admin_user):
    response = client.post("/api/v1/auth/login", json={"username": "admin", "password": "wrong-one"})
    assert response.status_code == 401


def test_me(client, admin_headers):
    response = client.get("/api/v1/auth/me", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["username"] == "admin"


def test_protected_route_requires_token(client):
    response = client.get("/api/v1/products")
    assert response.status_code in (401, 403)


def test_invalid_token_is_rejected(client, admin_user):
    response = client.get("/api/v1/products", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_token_for_unknown_user_is_rejected(client, db_session):
    token = create_access_token(data={"sub": "4242", "username": "ghost", "role": "Admin"})
    response = client.get("/api/v1/products", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
