"""Shared fixtures: in-memory database, API client and seeded slots."""

import os

# Configuration is read at import time, so it has to be in place before the app loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DATABASE_SERVICE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BUSINESS_TIMEZONE"] = "UTC"
os.environ.pop("RESEND_API_KEY", None)
os.environ.pop("REDIS_URL", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app import rate_limiter  # noqa: E402
from app.database import Base, get_db, get_optional_admin_db  # noqa: E402
from app.main import app  # noqa: E402
from app.realtime import slot_changes  # noqa: E402
from app.security_utils import create_admin_token  # noqa: E402

engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def reset_state():
    Base.metadata.create_all(bind=engine)
    rate_limiter._limiter = rate_limiter.BookingRateLimiter()
    yield
    slot_changes._subscribers.clear()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_optional_admin_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def client_without_service_key():
    def no_admin_db():
        yield None

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_optional_admin_db] = no_admin_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {create_admin_token()}"}
