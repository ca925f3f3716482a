"""
tests/conftest.py -- Shared test fixtures for SessionAuth.

This module provides:
  - db:      isolated named shared-memory SQLite database, schema provisioned
  - clock:   controllable UTC clock injected into the session store
  - service: AuthService over db + clock with a cheap (4-round) bcrypt hasher
  - client:  TestClient over the real FastAPI app with a patched lifespan
  - make_client(): same as client, for tests that need TestClient options

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

The DEBUG env var must be set before any auth/api import so get_settings()
auto-generates SECRET_KEY instead of raising ValueError.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

# CRITICAL: Set DEBUG before any auth/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.sessions import SessionStore
from auth.store import AccountStore
from core.database import Database


class FakeClock:
    """Deterministic replacement for datetime.now(timezone.utc)."""

    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def _patch_lifespan(db: Database, service: AuthService):
    """Return an async context manager that replaces the real lifespan.

    Wires the test database and service into app.state so TestClient routes
    hit real handlers against isolated storage. No purge task is started.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.db = db
        app.state.auth_service = service
        app.state.purge_task = None
        yield

    return test_lifespan


@pytest.fixture
def db() -> Generator[Database, None, None]:
    url = f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    database = Database(url)
    AccountStore(database).initialize()
    SessionStore(database).initialize()
    yield database
    database.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def hasher() -> PasswordHasher:
    # Minimum bcrypt cost keeps the suite fast; production default is 10.
    return PasswordHasher(rounds=4)


@pytest.fixture
def service(db: Database, clock: FakeClock, hasher: PasswordHasher) -> AuthService:
    return AuthService(
        accounts=AccountStore(db),
        sessions=SessionStore(db, clock=clock),
        hasher=hasher,
    )


@pytest.fixture
def make_client(db: Database, service: AuthService):
    """Factory for TestClients bound to this test's db and service."""
    opened: list[TestClient] = []

    def _make(**kwargs) -> TestClient:
        app.router.lifespan_context = _patch_lifespan(db, service)
        client = TestClient(app, **kwargs)
        client.__enter__()
        opened.append(client)
        return client

    yield _make
    for client in opened:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client(raise_server_exceptions=True)
