def _payload(**overrides):
    data = {
        "name": "Trattoria",
        "email": "owner@trattoria.example.com",
        "password": "secret123",
        "address": "12 Via Roma",
        "description": "Family restaurant",
        "role": "restaurant",
    }
    data.update(overrides)
    return data


def test_register_returns_user_without_password(anonymous):
    resp = anonymous.post("/register", json=_payload())

    assert resp.status_code == 201
    body = resp.json()
    assert body["name"] == "Trattoria"
    assert body["role"] == "restaurant"
    assert body["rating"] == 0.0
    assert body["ratingCount"] == 0
    assert "password" not in body
    assert "passwordHash" not in body


def test_register_logs_user_in(anonymous):
    anonymous.post("/register", json=_payload(role="ngo"))

    me = anonymous.get("/me")
    assert me.status_code == 200
    assert me.json()["role"] == "ngo"


def test_register_rejects_unknown_role(anonymous):
    resp = anonymous.post("/register", json=_payload(role="driver"))

    assert resp.status_code == 400
    assert "role" in resp.json()["error"]


def test_register_rejects_missing_fields(anonymous):
    data = _payload()
    del data["address"]
    resp = anonymous.post("/register", json=data)

    assert resp.status_code == 400
    assert "address" in resp.json()["error"]


def test_register_rejects_short_password(anonymous):
    resp = anonymous.post("/register", json=_payload(password="123"))
    assert resp.status_code == 400


def test_register_duplicate_email_conflicts(anonymous):
    assert anonymous.post("/register", json=_payload()).status_code == 201

    resp = anonymous.post("/register", json=_payload(name="Copycat"))
    assert resp.status_code == 409
    assert resp.json() == {"error": "User with this email already exists"}


def test_login_and_logout(app, anonymous):
    from fastapi.testclient import TestClient

    anonymous.post("/register", json=_payload())
    client = TestClient(app)

    bad = client.post("/login", json={"email": "owner@trattoria.example.com", "password": "nope"})
    assert bad.status_code == 401
    assert bad.json() == {"error": "Invalid email or password"}

    ok = client.post("/login", json={"email": "owner@trattoria.example.com", "password": "secret123"})
    assert ok.status_code == 200
    assert ok.json() == {"message": "Login successful", "role": "restaurant"}
    assert client.get("/me").json()["email"] == "owner@trattoria.example.com"

    client.post("/logout")
    assert client.get("/me").status_code == 401


def test_me_requires_session(anonymous):
    resp = anonymous.get("/me")
    assert resp.status_code == 401
    assert resp.json() == {"error": "Not logged in"}


def test_tampered_session_rejected(anonymous):
    resp = anonymous.get("/me", headers={"Cookie": "session=not-a-real-token"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid or expired session"}
