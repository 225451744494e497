"""
Tests for self-registration.
"""
from spark_therapy.auth.models import User, UserRole
from spark_therapy.core.security import hash_refresh_token


def test_register_parent_logs_in(client, db):
    response = client.post("/api/v1/auth/register", json={
        "name": "Alice",
        "email": "Alice@Example.com",
        "password": "Secret123!",
    })
    assert response.status_code == 201
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"] and data["refresh_token"]
    assert data["user"]["email"] == "alice@example.com"
    assert data["user"]["role"] == "parent"
    assert data["user"]["last_login"] is not None

    user = db.query(User).filter(User.email == "alice@example.com").one()
    assert user.password_hash != "Secret123!"
    assert user.refresh_token_hash == hash_refresh_token(data["refresh_token"])


def test_response_never_exposes_secrets(register):
    data = register("bob@example.com")
    for field in ("password", "password_hash", "refresh_token_hash", "failed_login_attempts", "lock_until"):
        assert field not in data["user"]


def test_register_therapist_keeps_specialization(register):
    data = register("t@example.com", role="therapist", specialization="Occupational")
    assert data["user"]["specialization"] == "Occupational"


def test_specialization_dropped_for_parents(register):
    data = register("p@example.com", role="parent", specialization="Occupational")
    assert data["user"]["specialization"] is None


def test_duplicate_email_conflict(client, register):
    register("dup@example.com")
    response = client.post("/api/v1/auth/register", json={
        "name": "Again",
        "email": "DUP@example.com",
        "password": "Secret123!",
    })
    assert response.status_code == 409
    assert response.json()["code"] == "RESOURCE_CONFLICT"


def test_admin_with_correct_secret(register):
    data = register("root@example.com", role="admin")
    assert data["user"]["role"] == "admin"


def test_admin_with_wrong_secret_creates_nothing(client, db):
    response = client.post("/api/v1/auth/register", json={
        "name": "Mallory",
        "email": "mallory@example.com",
        "password": "Secret123!",
        "role": "admin",
        "adminSecretKey": "guess",
    })
    assert response.status_code == 403
    assert response.json()["code"] == "AUTH_FORBIDDEN"
    assert db.query(User).filter(User.email == "mallory@example.com").first() is None


def test_admin_without_secret_is_forbidden(client, db):
    response = client.post("/api/v1/auth/register", json={
        "name": "Mallory",
        "email": "mallory@example.com",
        "password": "Secret123!",
        "role": "admin",
    })
    assert response.status_code == 403
    assert db.query(User).filter(User.role == UserRole.ADMIN).count() == 0


def test_admin_registration_disabled_without_configured_secret(client, db, monkeypatch):
    from spark_therapy.config import settings
    monkeypatch.setattr(settings, "admin_secret_key", None)
    response = client.post("/api/v1/auth/register", json={
        "name": "Mallory",
        "email": "mallory@example.com",
        "password": "Secret123!",
        "role": "admin",
        "adminSecretKey": "anything",
    })
    assert response.status_code == 403


def test_short_password_rejected(client):
    response = client.post("/api/v1/auth/register", json={
        "name": "Shorty",
        "email": "short@example.com",
        "password": "123",
    })
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_unknown_role_rejected(client):
    response = client.post("/api/v1/auth/register", json={
        "name": "Someone",
        "email": "someone@example.com",
        "password": "Secret123!",
        "role": "superuser",
    })
    assert response.status_code == 422
