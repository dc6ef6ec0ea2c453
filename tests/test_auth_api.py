from app.domain.settings.repository import ADMIN_PASSWORD_HASH_KEY, SettingsRepository
from app.security_utils import legacy_password_hash, verify_jwt_token
from tests.helpers import user_headers


def test_first_time_setup(client):
    assert client.get("/auth/admin/status").json() == {"setup_required": True}

    response = client.post("/auth/admin/setup", json={"password": "correct horse"})

    assert response.status_code == 201
    assert verify_jwt_token(response.json()["token"])["role"] == "admin"
    assert response.json()["expires_in"] == 3600
    assert client.get("/auth/admin/status").json() == {"setup_required": False}


def test_setup_cannot_replace_existing_password(client):
    client.post("/auth/admin/setup", json={"password": "correct horse"})

    response = client.post("/auth/admin/setup", json={"password": "another password"})

    assert response.status_code == 409


def test_setup_rejects_short_password(client):
    response = client.post("/auth/admin/setup", json={"password": "short"})

    assert response.status_code == 422
    assert response.json()["message"] == "Password must be at least 8 characters"


def test_login_before_setup(client):
    response = client.post("/auth/admin/login", json={"password": "anything"})
    assert response.status_code == 409


def test_login(client):
    client.post("/auth/admin/setup", json={"password": "correct horse"})

    ok = client.post("/auth/admin/login", json={"password": "correct horse"})
    assert ok.status_code == 200
    token = ok.json()["token"]

    bad = client.post("/auth/admin/login", json={"password": "wrong horse"})
    assert bad.status_code == 401
    assert bad.json()["detail"] == "Invalid password"

    verified = client.get("/auth/admin/verify", headers={"Authorization": f"Bearer {token}"})
    assert verified.json()["valid"] is True
    assert verified.json()["expires_at"] == verify_jwt_token(token)["exp"]


def test_login_with_legacy_stored_hash(client, db):
    SettingsRepository.set_value(db, ADMIN_PASSWORD_HASH_KEY, legacy_password_hash("letmein"))

    assert client.post("/auth/admin/login", json={"password": "letmein"}).status_code == 200
    assert client.post("/auth/admin/login", json={"password": "letmeout"}).status_code == 401


def test_user_token_is_not_an_admin_token(client):
    response = client.get("/auth/admin/verify", headers=user_headers("ada@example.com"))
    assert response.status_code == 403


def test_admin_auth_needs_service_key(client_without_service_key):
    response = client_without_service_key.get("/auth/admin/status")
    assert response.status_code == 503
