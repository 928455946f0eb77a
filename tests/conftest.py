"""
tests/conftest.py -- Shared test fixtures for the portfolio integration tests.

This module provides:
  - make_settings(): explicit Settings pointing at a fresh in-memory DB
  - app: create_app() plus the web router, with one seeded admin account
  - api_client: TestClient for JSON API tests
  - web_client: TestClient with follow_redirects=False for page/guard tests
  - admin_client: api_client that has already logged in (cookie set)
  - fake_mailer: MagicMock standing in for core.mailer.Mailer

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process. Each
test gets its own name, so no state leaks between tests.

The rate limiter is a process-wide singleton; it is reset before every test.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from unittest.mock import MagicMock

# Set DEBUG before any core import so get_settings() (used by the CLI under
# test) can auto-generate JWT_SECRET instead of raising.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import create_app
from auth.models import AdminCredential
from auth.passwords import hash_password
from auth.store import AdminStore
from core.config import Settings
from web.routes import router as web_router

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"
ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "correct-pw"

# Hashed once per session; bcrypt is deliberately slow.
_ADMIN_HASH = hash_password(ADMIN_PASSWORD)


def memory_db_url(name: str) -> str:
    return f"sqlite:///file:{name}?mode=memory&cache=shared&uri=true"


def make_settings(**overrides) -> Settings:
    """Return Settings for a test app backed by a fresh named in-memory DB."""
    values = {
        "debug": True,
        "jwt_secret": TEST_SECRET,
        "database_url": memory_db_url(f"test_{uuid.uuid4().hex}"),
        "mailer_from": "",
        "mailer_password": "",
    }
    values.update(overrides)
    return Settings(**values)


def _login(client: TestClient, username: str = ADMIN_USERNAME, password: str = ADMIN_PASSWORD):
    return client.post("/api/auth/login", json={"username": username, "password": password})


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_limiter() -> None:
    limiter.reset()


@pytest.fixture
def login():
    """Return a helper that posts credentials to /api/auth/login (seeded admin by default)."""
    return _login


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def admin_store(settings: Settings) -> Generator[AdminStore, None, None]:
    """Seeded credential store. Held open for the whole test so the
    shared-memory database outlives the app's own connections."""
    store = AdminStore(settings.database_url)
    store.create_admin(AdminCredential(username=ADMIN_USERNAME, hashed_password=_ADMIN_HASH))
    yield store
    store.close()


@pytest.fixture
def app(settings: Settings, admin_store: AdminStore) -> FastAPI:
    application = create_app(settings)
    application.include_router(web_router, tags=["Web UI"])
    return application


@pytest.fixture
def api_client(app: FastAPI) -> Generator[TestClient, None, None]:
    with TestClient(app) as client:
        yield client


@pytest.fixture
def web_client(app: FastAPI) -> Generator[TestClient, None, None]:
    """follow_redirects=False is essential for guard tests: we assert on
    redirect *locations*, which are invisible once the client follows them."""
    with TestClient(app, follow_redirects=False) as client:
        yield client


@pytest.fixture
def admin_client(api_client: TestClient) -> TestClient:
    resp = _login(api_client)
    assert resp.status_code == 200, resp.text
    return api_client


@pytest.fixture
def fake_mailer(app: FastAPI, api_client: TestClient) -> MagicMock:
    """Replace the mailer the lifespan created. Requests api_client first so
    the lifespan has already run."""
    mailer = MagicMock()
    mailer.enabled = True
    app.state.mailer = mailer
    return mailer
