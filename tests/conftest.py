"""Shared test fixtures for the delivery management test suite.

Uses an in-memory SQLite database with StaticPool so all sessions share the
same connection (committed data is visible across sessions).
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config.database import get_db
from app.main import app
from app.modules.delivery.repository import (
    DeliveryRepository, ConfirmationRepository, NotificationRepository
)
from app.modules.delivery.service import DeliveryService
from app.shared.database.models import Base


# ---------------------------------------------------------------------------
# In-memory SQLite test engine (shared via StaticPool)
# ---------------------------------------------------------------------------

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(autouse=True)
def _setup_db():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def db():
    """Yield a fresh Session for direct repository/service tests."""
    session = TestSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def delivery_repo(db):
    return DeliveryRepository(db)


@pytest.fixture
def confirmation_repo(db):
    return ConfirmationRepository(db)


@pytest.fixture
def notification_repo(db):
    return NotificationRepository(db)


@pytest.fixture
def service(delivery_repo, confirmation_repo, notification_repo):
    return DeliveryService(
        delivery_repository=delivery_repo,
        confirmation_repository=confirmation_repo,
        notification_repository=notification_repo,
        require_completed_for_confirmation=False,
        pickup_claim_attempts=3,
    )


@pytest.fixture
def client():
    """TestClient wired to the FastAPI app with test DB override."""

    def _override_get_db():
        session = TestSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

