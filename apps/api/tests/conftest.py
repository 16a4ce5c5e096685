from __future__ import annotations

import os

# The app builds its engine at import time; keep it off PostgreSQL in tests
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_FORMAT", "text")

from datetime import date
from decimal import Decimal
from typing import Generator
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.auth.utils import create_access_token
from app.common.models import Base, Event, User

# Use in-memory SQLite for tests
TEST_DB_URL = "sqlite:///:memory:"
engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Create a fresh database for each test.

    Tables are created before the test and dropped afterwards so every test
    starts from an empty ledger.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create a test client with dependency overrides."""

    def get_test_db():
        yield db

    from app.common.db import get_db

    app.dependency_overrides[get_db] = get_test_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def admin_user(db: Session) -> User:
    """Create an administrator."""
    user = User(
        id=uuid4(),
        name="Ada Admin",
        email="admin@example.com",
        role="ADMIN",
        active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def alumni_user(db: Session) -> User:
    """Create an alumni member."""
    user = User(
        id=uuid4(),
        name="Alex Alumnus",
        email="alex@example.com",
        role="ALUMNI",
        active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def other_alumni_user(db: Session) -> User:
    """Create a second alumni member."""
    user = User(
        id=uuid4(),
        name="Sam Second",
        email="sam@example.com",
        role="ALUMNI",
        active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def test_event(db: Session) -> Event:
    """Create an event expenses can be attached to."""
    event = Event(id=uuid4(), name="Homecoming 2024", date=date(2024, 10, 5))
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def _token_for(user: User) -> str:
    return create_access_token({"sub": str(user.id), "user_id": str(user.id)})


@pytest.fixture
def admin_token(admin_user: User) -> str:
    """Return access token for admin user."""
    return _token_for(admin_user)


@pytest.fixture
def alumni_token(alumni_user: User) -> str:
    """Return access token for alumni user."""
    return _token_for(alumni_user)


@pytest.fixture
def admin_headers(admin_token: str) -> dict:
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def alumni_headers(alumni_token: str) -> dict:
    return {"Authorization": f"Bearer {alumni_token}"}


@pytest.fixture
def expense_payload() -> dict:
    """A valid expense create payload."""
    return {
        "amount": Decimal("120.00"),
        "vendor": "Print Shop",
        "purpose": "Event flyers",
        "description": None,
        "date": date(2024, 9, 1),
        "category": "Printing",
        "bucket": "LIFT",
        "event_id": None,
    }
