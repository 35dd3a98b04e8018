"""Pytest fixtures: SQLite database for fast, isolated tests."""
import os

SQLITE_URL = "sqlite:///./test.db"
os.environ.setdefault("DATABASE_URL", SQLITE_URL)

import pytest  # noqa: E402
from datetime import datetime, timezone, timedelta  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from circle.database import Base, get_db  # noqa: E402
from circle.main import app  # noqa: E402

# Import all models so they register with Base.metadata
from circle.models.user import User                      # noqa: F401,E402
from circle.models.circle import Circle, CircleMember      # noqa: F401,E402
from circle.models.event import Event                      # noqa: F401,E402
from circle.models.rsvp import Rsvp                        # noqa: F401,E402
from circle.models.payment import Payment                  # noqa: F401,E402
from circle.models.rsvp_history import RsvpHistoryEntry    # noqa: F401,E402


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session, closed after the test."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_engine):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers: create records via the API, return the JSON response dict
# ---------------------------------------------------------------------------
def create_test_user(client: TestClient, name: str = "Test User") -> dict:
    """Helper: POST /api/users and return response JSON."""
    resp = client.post("/api/users/", json={"display_name": name})
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_circle(client: TestClient, creator_id: str, name: str = "Test Circle", **extra) -> dict:
    """Helper: POST /api/circles and return response JSON."""
    resp = client.post("/api/circles/", json={"name": name, "created_by": creator_id, **extra})
    assert resp.status_code == 201, resp.text
    return resp.json()


def add_test_member(client: TestClient, circle: dict, user_id: str, role: str = "member") -> dict:
    """Helper: owner adds a user to the circle."""
    resp = client.post(
        f"/api/circles/{circle['circle_id']}/members?actor_user_id={circle['created_by']}",
        json={"user_id": user_id, "role": role},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_event(
    client: TestClient,
    circle: dict,
    title: str = "Practice",
    deadline_offset_hours: int = 24,
    start_offset_hours: int = 48,
    **fields,
) -> dict:
    """Helper: owner creates an event; negative offsets put times in the past."""
    now = datetime.now(timezone.utc)
    payload = {
        "circle_id": circle["circle_id"],
        "title": title,
        "start_time_utc": (now + timedelta(hours=start_offset_hours)).isoformat(),
        "rsvp_deadline": (now + timedelta(hours=deadline_offset_hours)).isoformat(),
        "created_by": circle["created_by"],
        "fee": 1000,
    }
    payload.update(fields)
    resp = client.post("/api/events/", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def rsvp(client: TestClient, event: dict, user_id: str, status: str, **extra):
    """Helper: POST an RSVP and return the raw response."""
    return client.post(
        f"/api/events/{event['event_id']}/rsvp",
        json={"user_id": user_id, "status": status, **extra},
    )
