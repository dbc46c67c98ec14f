from tests.conftest import ADMIN_KEY, PASSWORD, auth_headers, make_member


def test_register_member_starts_unapproved(client):
    response = client.post("/api/auth/register", json={
        "email": "Jean@Example.com",
        "password": PASSWORD,
        "full_name": "Jean Bosco",
        "phone": "0788000000",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["email"] == "jean@example.com"
    assert body["full_name"] == "Jean Bosco"
    assert body["is_approved"] is False
    assert body["roles"] == ["user"]


def test_register_duplicate_email(client, member):
    response = client.post("/api/auth/register", json={
        "email": "member@example.com", "password": PASSWORD, "full_name": "Someone Else",
    })

    assert response.status_code == 400
    assert response.json()["detail"] == "Email already registered"


def test_register_short_password_is_rejected(client):
    response = client.post("/api/auth/register", json={
        "email": "short@example.com", "password": "123", "full_name": "Short",
    })

    assert response.status_code == 422


def test_register_admin_requires_key(client):
    payload = {"email": "boss@example.com", "password": PASSWORD, "full_name": "Boss", "role": "admin"}

    wrong = client.post("/api/auth/register", json={**payload, "admin_key": "guess"})
    assert wrong.status_code == 400
    assert wrong.json()["detail"] == "Invalid admin key"

    right = client.post("/api/auth/register", json={**payload, "admin_key": ADMIN_KEY})
    assert right.status_code == 200
    assert right.json()["roles"] == ["admin", "user"]
    assert right.json()["is_approved"] is True


def test_login_and_me(client, member):
    response = client.post("/api/auth/login", json={"email": "member@example.com", "password": PASSWORD})

    assert response.status_code == 200
    token = response.json()["access_token"]
    assert response.json()["token_type"] == "bearer"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "member@example.com"
    assert me.json()["is_approved"] is True


def test_login_with_wrong_password(client, member):
    response = client.post("/api/auth/login", json={"email": "member@example.com", "password": "wrong-pass"})

    assert response.status_code == 401


def test_me_requires_token(client):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"}).status_code == 401


def test_update_profile(client, member_headers):
    response = client.put("/api/auth/profile", headers=member_headers, json={"full_name": "Aline U.", "phone": "0788111222"})

    assert response.status_code == 200
    assert response.json()["full_name"] == "Aline U."
    assert response.json()["phone"] == "0788111222"

    blank = client.put("/api/auth/profile", headers=member_headers, json={"full_name": "  "})
    assert blank.status_code == 400


def test_change_password(client, db):
    user = make_member(db, email="pw@example.com")
    headers = auth_headers(user)

    wrong = client.put("/api/auth/password", headers=headers, json={
        "current_password": "nope-nope", "new_password": "newsecret1",
    })
    assert wrong.status_code == 400
    assert wrong.json()["detail"] == "Current password is incorrect"

    ok = client.put("/api/auth/password", headers=headers, json={
        "current_password": PASSWORD, "new_password": "newsecret1",
    })
    assert ok.status_code == 200

    login = client.post("/api/auth/login", json={"email": "pw@example.com", "password": "newsecret1"})
    assert login.status_code == 200


def test_logout(client, member_headers):
    response = client.post("/api/auth/logout", headers=member_headers)

    assert response.status_code == 200
    assert response.json() == {"message": "Logged out"}


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["services"]["database"] == "connected"
