"""
Test configuration for the Spark Therapy API.
"""
import os

# Settings are read at import time; configure before importing the app
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ADMIN_SECRET_KEY"] = "test-admin-secret"
os.environ.pop("BOOTSTRAP_ADMIN_EMAIL", None)
os.environ.pop("BOOTSTRAP_ADMIN_PASSWORD", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from spark_therapy.database import Base, get_db
from spark_therapy.main import app
from spark_therapy.core.middleware import InMemoryRateLimiter, get_login_rate_limiter

ADMIN_SECRET = "test-admin-secret"
PASSWORD = "Secret123!"

# Create test database engine
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """
    Create a test client with a test database session and no login throttling.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    permissive_limiter = InMemoryRateLimiter(max_attempts=10_000, window_seconds=900)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_login_rate_limiter] = lambda: permissive_limiter

    with TestClient(app) as client:
        yield client

    app.dependency_overrides = {}


@pytest.fixture
def auth_header():
    """Build an Authorization header for a bearer token."""
    def _header(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}
    return _header


@pytest.fixture
def register(client):
    """
    Register a user through the API and return the response body.
    """
    def _register(email: str, role: str = "parent", password: str = PASSWORD, name: str = "Test User", **extra):
        payload = {"name": name, "email": email, "password": password, "role": role}
        if role == "admin":
            payload.setdefault("adminSecretKey", ADMIN_SECRET)
        payload.update(extra)
        response = client.post("/api/v1/auth/register", json=payload)
        assert response.status_code == 201, response.text
        return response.json()
    return _register


@pytest.fixture
def admin(register):
    return register("admin@example.com", role="admin", name="Clinic Admin")


@pytest.fixture
def therapist(register):
    return register("therapist@example.com", role="therapist", name="Theo Therapist", specialization="Speech")


@pytest.fixture
def parent(register):
    return register("parent@example.com", role="parent", name="Paula Parent")
