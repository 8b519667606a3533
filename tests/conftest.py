"""
Pytest fixtures for LDGrowth tests. Every test that touches the database
gets a temporary SQLite file.
"""

from __future__ import annotations

from datetime import date

import pytest


@pytest.fixture
def ldgrowth_db(tmp_path, monkeypatch):
    """
    Point the engine at a temporary SQLite DB and create tables.
    Resets the engine cache so each test gets a fresh DB. Unset DATABASE_URL so we use SQLite.
    """
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("NOTIFY_WEBHOOK_URL", raising=False)
    monkeypatch.setenv("LDGROWTH_DB_PATH", str(tmp_path / "ldgrowth.db"))
    monkeypatch.setenv("SURVEY_AUTOMATION_ENABLED", "0")

    from backend_ldgrowth.database import init_db, reset_engine_for_test

    reset_engine_for_test()
    init_db()
    yield
    reset_engine_for_test()


@pytest.fixture
def store(ldgrowth_db):
    """A store with its Director: {"store": ..., "director": ...}."""
    from backend_ldgrowth.users.service import create_store

    return create_store("Main Street", "01234", "Dana Director", "dana@example.com")


@pytest.fixture
def director(store):
    return store["director"]


@pytest.fixture
def leader(director):
    from backend_ldgrowth.users.service import create_user

    return create_user(
        director,
        "Lee Leader",
        "lee@example.com",
        position="Leader",
        department="Management",
        employment_type="Full-time",
        hire_date=date(2022, 1, 10),
    )


@pytest.fixture
def team_members(director):
    """Two FOH team members and one BOH team member."""
    from backend_ldgrowth.users.service import create_user

    return [
        create_user(director, "Ana Front", "ana@example.com", hire_date=date(2024, 1, 1)),
        create_user(director, "Ben Front", "ben@example.com", employment_type="Full-time"),
        create_user(director, "Cam Back", "cam@example.com", department="Back of House"),
    ]


@pytest.fixture
def client(ldgrowth_db):
    """FastAPI TestClient. Depends on ldgrowth_db so the temp DB is set before the app runs."""
    from fastapi.testclient import TestClient

    from backend_ldgrowth.api_server.server import app

    return TestClient(app)


@pytest.fixture
def auth():
    """Build Bearer headers for a user dict carrying api_token."""

    def _headers(user: dict) -> dict[str, str]:
        return {"Authorization": f"Bearer {user['api_token']}"}

    return _headers
