"""
tests/conftest.py -- Shared test fixtures for the storefront integration tests.

This module provides:
  - users / products: FakeCollections seeded from tests/fakes.py
  - _make_test_storage(): isolated named shared-memory SQLite local storage
  - _patch_lifespan(): wires test storage and fake collections into app.state
  - web_client: TestClient with follow_redirects=False for page route tests
  - api_client: TestClient for JSON API tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.

Clients are function-scoped: httpx keeps cookies in the client jar, so a
login in one test would otherwise leak a session into the next.

LOGIN_RATE_LIMIT is raised before any app import so the shared in-memory
limiter never throttles the suite.
"""

from __future__ import annotations

import itertools
import os
from collections.abc import Generator
from contextlib import asynccontextmanager

os.environ.setdefault("LOGIN_RATE_LIMIT", "10000/minute")
os.environ.setdefault("STORAGE_DB_URL", "sqlite:///file:condestyle_test_default?mode=memory&cache=shared&uri=true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.service import AuthService
from auth.storage import LocalStorage
from fakes import SEED_PRODUCTS, SEED_USERS, FakeCollection

# Mount the web router once; guard with try/except to handle the already-
# included case if conftest is imported multiple times in the same session.
try:
    from web.routes import router as web_router

    if not any(getattr(r, "path", None) == "/productos" for r in app.routes):
        app.include_router(web_router, tags=["Web UI"])
except ImportError:
    pass


@pytest.fixture
def users() -> FakeCollection:
    return FakeCollection("users", SEED_USERS)


@pytest.fixture
def products() -> FakeCollection:
    return FakeCollection("products", SEED_PRODUCTS)


# ---------------------------------------------------------------------------
# Storage and lifespan helpers
# ---------------------------------------------------------------------------

_db_counter = itertools.count(1)


def _make_test_storage(db_suffix: str) -> LocalStorage:
    """Create an isolated named shared-memory SQLite LocalStorage.

    Args:
        db_suffix: Unique string appended to the DB name so tests don't share state.
    """
    url = f"sqlite:///file:test_storage_{db_suffix}_{next(_db_counter)}?mode=memory&cache=shared&uri=true"
    return LocalStorage(url)


def _patch_lifespan(storage: LocalStorage, products: FakeCollection, users: FakeCollection):
    """Return an async context manager that replaces the real lifespan.

    Wires test storage and fake collections into app.state so TestClient
    routes never touch the network or the real storage DB.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.storage = storage
        app.state.products = products
        app.state.users = users
        app.state.auth = AuthService(users)
        yield

    return test_lifespan


@pytest.fixture
def storage() -> Generator[LocalStorage, None, None]:
    s = _make_test_storage("unit")
    yield s
    s.close()


@pytest.fixture
def web_client(products: FakeCollection, users: FakeCollection) -> Generator[TestClient, None, None]:
    """TestClient for page routes.

    follow_redirects=False is essential: we assert on redirect *locations*
    (e.g. 302 to /login), which are invisible once the client follows them.
    """
    storage = _make_test_storage("web")
    app.router.lifespan_context = _patch_lifespan(storage, products, users)
    with TestClient(app, base_url="http://localhost", follow_redirects=False, raise_server_exceptions=True) as client:
        yield client
    storage.close()


@pytest.fixture
def api_client(products: FakeCollection, users: FakeCollection) -> Generator[TestClient, None, None]:
    storage = _make_test_storage("api")
    app.router.lifespan_context = _patch_lifespan(storage, products, users)
    with TestClient(app, base_url="http://localhost", raise_server_exceptions=True) as client:
        yield client
    storage.close()
