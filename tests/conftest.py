"""
tests/conftest.py -- Shared test fixtures for AdminDesk integration tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for admins + directory
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - seed_users(): loads a small, known user directory
  - api_client: TestClient plus a logged-in admin's bearer token

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

The DEBUG env var must be set before any api/core import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set DEBUG before any api/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import Admin
from auth.store import AdminStore
from auth.tokens import TokenIssuer, hash_password
from core.config import get_settings, now_epoch
from directory.models import User
from directory.store import UserDirectoryStore

ADMIN_EMAIL = "root@admindesk.test"
ADMIN_PASSWORD = "rootpass123"

# Known directory used by the directory route tests. Country values are
# chosen so that the fragment "us" hits three records (USA,
# Russia, Australia) and misses two.
SEED_USERS = [
    User(
        name="Alice Smith",
        email="asmith@example.com",
        age=34,
        gender="female",
        country="USA",
        city="Austin",
        company="Acme",
    ),
    User(
        name="Carol Jones",
        email="alice@x.com",
        age=29,
        gender="female",
        country="Russia",
        city="Moscow",
        company="Globex",
    ),
    User(name="Bob", email="bob@x.com", age=41, gender="male", country="Australia", city="Sydney", company="Initech"),
    User(name="Dan Brown", email="dan@x.com", age=52, gender="male", country="Canada", city="Toronto", company="Umbrella"),
    User(name="Eve", email="eve@x.com", age=23, gender="female", country="Germany", city="Berlin", company="Hooli"),
]


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[AdminStore, UserDirectoryStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    admin_url = f"sqlite:///file:test_admins_{db_suffix}?mode=memory&cache=shared&uri=true"
    directory_url = f"sqlite:///file:test_users_{db_suffix}?mode=memory&cache=shared&uri=true"
    return AdminStore(db_url=admin_url), UserDirectoryStore(db_url=directory_url)


def _patch_lifespan(admin_store: AdminStore, directory: UserDirectoryStore, issuer: TokenIssuer):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores and issuer into app.state so TestClient
    routes see isolated test DBs rather than the on-disk databases.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = get_settings()
        app.state.token_issuer = issuer
        app.state.admin_store = admin_store
        app.state.directory = directory
        yield

    return test_lifespan


def seed_users(directory: UserDirectoryStore) -> list[str]:
    return [directory.create_user(u) for u in SEED_USERS]


def make_admin(admin_store: AdminStore, email: str, password: str, name: str = "Root") -> Admin:
    """Insert an active admin directly through the store and return it."""
    admin_id = str(uuid.uuid4())
    admin = Admin(
        id=admin_id,
        name=name,
        email=email,
        gender="other",
        hashed_password=hash_password(password),
        created_by=admin_id,
        created_at=now_epoch(),
    )
    admin_store.create_admin(admin)
    return admin


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, str, str], None, None]:
    """Yield (client, token, admin_id) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers but use isolated in-memory stores. The
    admin is created and logged in (token issued and stored) before the
    client starts, and the directory is seeded with SEED_USERS.
    """
    suffix = request.module.__name__.rsplit(".", 1)[-1]
    admin_store, directory = _make_test_stores(suffix)
    issuer = TokenIssuer(get_settings().secret_key, expire_seconds=3600)

    admin = make_admin(admin_store, ADMIN_EMAIL, ADMIN_PASSWORD)
    token = issuer.issue(admin.id)
    admin_store.set_token(admin.id, token)
    seed_users(directory)

    app.router.lifespan_context = _patch_lifespan(admin_store, directory, issuer)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, admin.id

    admin_store.close()
    directory.close()
