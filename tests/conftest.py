"""
Shared fixtures: an isolated in-memory database per test, a TestClient wired
to it, and small factories for users and shifts.
"""

from __future__ import annotations

import os

# Settings are read at import time, so they must be in place before charity_hub loads
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ALLOWED_ORIGINS", "*")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-charity-hub-tests")
os.environ.setdefault("RATE_LIMIT_REQUESTS", "10000")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import date, time, timedelta  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import Any, Callable, Generator, Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402

from charity_hub.db.engine import build_engine  # noqa: E402
from charity_hub.db.readers.shifts import get_shift  # noqa: E402
from charity_hub.db.readers.users import get_user_by_id  # noqa: E402
from charity_hub.db.writers.shifts import insert_shift  # noqa: E402
from charity_hub.db.writers.users import insert_user, upsert_volunteer_profile  # noqa: E402
from charity_hub.dependencies import (  # noqa: E402
    get_db_engine,
    get_export_storage,
    get_upload_storage,
)
from charity_hub.main import app, rate_limiter  # noqa: E402
from charity_hub.models.registry import metadata  # noqa: E402
from charity_hub.security import create_access_token, hash_password  # noqa: E402
from charity_hub.services.storage import LocalFileStorage  # noqa: E402
from charity_hub.utils.datetime import utc_now  # noqa: E402

DEFAULT_PASSWORD = "correct-horse-battery"


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Fresh in-memory SQLite database with every table created."""
    test_engine = build_engine("sqlite://")
    metadata.create_all(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def client(engine: Engine, tmp_path: Path) -> Generator[TestClient, None, None]:
    """FastAPI test client bound to the per-test database and temp storage."""
    app.dependency_overrides[get_db_engine] = lambda: engine
    app.dependency_overrides[get_upload_storage] = lambda: LocalFileStorage(tmp_path / "uploads")
    app.dependency_overrides[get_export_storage] = lambda: LocalFileStorage(tmp_path / "exports")
    rate_limiter.reset()

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(engine: Engine) -> Callable[..., dict[str, Any]]:
    """Factory creating a user (and a volunteer profile for volunteers)."""
    counter = {"n": 0}

    def _make(
        role: str = "volunteer",
        email: Optional[str] = None,
        status: str = "active",
        skills: Optional[str] = None,
        preferred_roles: Optional[str] = None,
        first_name: str = "Test",
    ) -> dict[str, Any]:
        counter["n"] += 1
        with engine.begin() as conn:
            user_id = insert_user(
                conn,
                {
                    "first_name": first_name,
                    "last_name": f"User{counter['n']}",
                    "email": email or f"{role}{counter['n']}@charityhub.org",
                    "password_hash": hash_password(DEFAULT_PASSWORD),
                    "role": role,
                    "status": status,
                },
            )
            if role == "volunteer":
                upsert_volunteer_profile(
                    conn,
                    user_id,
                    {"skills": skills, "preferred_roles": preferred_roles, "status": "active"},
                )
            user = get_user_by_id(conn, user_id)
        assert user is not None
        return user

    return _make


@pytest.fixture
def auth_headers() -> Callable[[dict[str, Any]], dict[str, str]]:
    """Build an Authorization header for a user row."""

    def _headers(user: dict[str, Any]) -> dict[str, str]:
        token, _, _ = create_access_token(user["id"], user["role"])
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def shift_day() -> date:
    """A date comfortably outside the two hour signup cutoff."""
    return utc_now().date() + timedelta(days=3)


@pytest.fixture
def make_shift(engine: Engine, shift_day: date) -> Callable[..., dict[str, Any]]:
    """Factory creating a fixed shift by default; pass type="flexible" plus slot fields."""

    def _make(**overrides: Any) -> dict[str, Any]:
        values: dict[str, Any] = {
            "date": shift_day,
            "start_time": time(9, 0),
            "end_time": time(12, 0),
            "location": "Main Food Bank",
            "description": "Sorting donations",
            "role": "Food Distribution",
            "max_volunteers": 1,
            "type": "fixed",
        }
        values.update(overrides)
        if values["type"] == "flexible":
            values.setdefault("flexible_slots", 2)
            values.setdefault("minimum_hours", 1.0)
            values.setdefault("maximum_hours", 4.0)
        with engine.begin() as conn:
            shift_id = insert_shift(conn, values)
            shift = get_shift(conn, shift_id)
        assert shift is not None
        return shift

    return _make


@pytest.fixture
def user_password() -> str:
    """Plaintext password every factory-made user is created with."""
    return DEFAULT_PASSWORD
