from app.core.security import create_access_token


def test_register_login_me(client):
    register_payload = {
        "name": "Admin User",
        "email": "Admin@Example.com",
        "password": "password123",
        "role": "admin",
    }

    register_response = client.post("/api/auth/register", json=register_payload)
    assert register_response.status_code == 201
    data = register_response.json()
    assert data["email"] == "admin@example.com"
    assert data["role"] == "admin"

    login_response = client.post(
        "/api/auth/login",
        json={"email": "admin@example.com", "password": "password123", "role": "admin"},
    )
    assert login_response.status_code == 200
    login_data = login_response.json()
    assert login_data["token_type"] == "bearer"
    assert login_data["user"]["id"] == data["id"]

    token = login_data["access_token"]
    me_response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me_response.status_code == 200
    assert me_response.json()["email"] == "admin@example.com"


def test_duplicate_email_is_rejected(client):
    payload = {"name": "Student", "email": "s@example.com", "password": "password123", "role": "student"}
    assert client.post("/api/auth/register", json=payload).status_code == 201

    duplicate = client.post("/api/auth/register", json=payload)
    assert duplicate.status_code == 409


def test_login_rejects_wrong_password_and_role(client):
    payload = {"name": "Teacher", "email": "t@example.com", "password": "password123", "role": "teacher"}
    assert client.post("/api/auth/register", json=payload).status_code == 201

    wrong_password = client.post(
        "/api/auth/login",
        json={"email": "t@example.com", "password": "password999"},
    )
    assert wrong_password.status_code == 401

    wrong_role = client.post(
        "/api/auth/login",
        json={"email": "t@example.com", "password": "password123", "role": "admin"},
    )
    assert wrong_role.status_code == 403


def test_invalid_token_is_unauthorized(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_login_is_rate_limited(client):
    payload = {"name": "Student", "email": "limited@example.com", "password": "password123", "role": "student"}
    assert client.post("/api/auth/register", json=payload).status_code == 201

    statuses = [
        client.post(
            "/api/auth/login",
            json={"email": "limited@example.com", "password": "wrongpass1"},
        ).status_code
        for _ in range(13)
    ]
    assert statuses[:12] == [401] * 12
    assert statuses[12] == 429

    body = client.post("/api/auth/login", json={"email": "limited@example.com", "password": "password123"}).json()
    assert body["details"]["scope"] == "auth.login"


def test_token_issued_for_another_role_is_rejected(client):
    payload = {"name": "Student", "email": "stale@example.com", "password": "password123", "role": "student"}
    user = client.post("/api/auth/register", json=payload).json()

    forged = create_access_token(user["id"], role="admin")
    response = client.get("/api/exams/", headers={"Authorization": f"Bearer {forged}"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Token role no longer matches the account; log in again"

    matching = create_access_token(user["id"], role="student")
    assert client.get("/api/auth/me", headers={"Authorization": f"Bearer {matching}"}).status_code == 200
