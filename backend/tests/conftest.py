"""Shared test fixtures for the Problem Box backend test suite.

API tests run against a throwaway SQLite file created for the session. Every
test starts from empty tables. Tree, selection and store tests need no
database; they build forests with ``helpers``.
"""

import os
import tempfile

# Force auth off and point at a scratch database before any app imports.
_TEST_DIR = tempfile.mkdtemp(prefix="problembox-tests-")
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL",
    f"sqlite:///{os.path.join(_TEST_DIR, 'test.db')}",
)
os.environ["AUTH_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from problembox.core.config import settings
from problembox.core.token_factory import create_token
from problembox.database import SessionLocal, get_db
from problembox.main import app
from problembox.middleware.request_context import rate_limiter

# Child tables first.
_CLEAN_TABLES = ["favorites", "tree_nodes", "problems", "profiles"]


@pytest.fixture(autouse=True)
def _clean_tables():
    """Empty all data tables before each test.

    Runs before the test (not after) so a failing test leaves its data behind
    for debugging.
    """
    db = SessionLocal()
    try:
        for table in _CLEAN_TABLES:
            db.execute(text(f"DELETE FROM {table}"))
        db.commit()
    finally:
        db.close()
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db):
    """FastAPI TestClient with the DB dependency overridden to use the test session."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    rate_limiter.reset()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers() -> dict:
    """Bearer headers for the local user (only checked when auth is enabled)."""
    token = create_token(subject=settings.default_user_id, secret=settings.jwt_secret_key)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_enabled(monkeypatch):
    """Turn bearer-token auth on for one test."""
    monkeypatch.setattr(settings, "auth_enabled", True)
    yield
