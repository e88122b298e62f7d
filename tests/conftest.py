"""
Shared test fixtures.

Provides:
  • a temporary SQLite database (via app lifespan or ``_init_db``)
  • an email outbox that captures status emails instead of sending them
  • FastAPI TestClients for a signed-in user, an admin and a guest

The client fixtures run the full lifespan (DB init / shutdown) and seed
two facilities: Court 7 (500/hour, available) and Court 8 (maintenance).
"""

from __future__ import annotations

from functools import partial
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from arena_booking import db
from arena_booking.dependencies import get_current_user, get_optional_user
from arena_booking.main import app
from arena_booking.models import UserInfo
from tests.mocks.models import (
    MOCK_ADMIN,
    MOCK_DIRECTORY_USER,
    MOCK_FACILITY,
    MOCK_FACILITY_CLOSED,
    MOCK_FACILITY_OFFLINE,
    MOCK_USER,
)


# ── Helpers ────────────────────────────────────────────────────────────────


async def seed_store() -> None:
    """Insert the standard facilities and directory user."""
    for facility in (MOCK_FACILITY, MOCK_FACILITY_CLOSED, MOCK_FACILITY_OFFLINE):
        await db.create_facility(
            facility.name,
            facility.hourly_rate,
            status=facility.status,
            facility_id=facility.id,
        )
    await db.upsert_user(MOCK_DIRECTORY_USER)


def _sign_in(user: UserInfo | None) -> None:
    """Override both auth dependencies so requests run as *user*."""
    app.dependency_overrides.clear()
    if user is None:
        return

    async def _mock_user():
        return user

    app.dependency_overrides[get_current_user] = _mock_user
    app.dependency_overrides[get_optional_user] = _mock_user


# ── Fixtures ───────────────────────────────────────────────────────────────


@pytest.fixture()
def outbox(monkeypatch) -> AsyncMock:
    """Captures send_status_email calls made by the notifier."""
    mock_send = AsyncMock()
    monkeypatch.setattr("arena_booking.services.notifier.send_status_email", mock_send)
    return mock_send


@pytest.fixture()
def _test_env(monkeypatch, tmp_path, outbox):
    """
    Internal fixture that points the app at a temp database, captures
    emails and disables rate limiting.
    """
    import arena_booking.db as db_mod

    monkeypatch.setattr(db_mod, "DB_PATH", str(tmp_path / "test.db"))

    # ── Disable rate limiting in tests ────────────────────────────────
    from arena_booking.rate_limit import limiter as _limiter
    monkeypatch.setattr(_limiter, "enabled", False)

    return outbox


@pytest.fixture()
async def _init_db(_test_env):
    """Open the temp database in the test's event loop and seed it."""
    await db.init_db()
    await seed_store()
    yield
    await db.close_db()


@pytest.fixture()
def sign_in():
    """Switch the signed-in user mid-test: ``sign_in(MOCK_ADMIN)``."""
    yield _sign_in
    app.dependency_overrides.clear()


def _open_client(user: UserInfo | None):
    _sign_in(user)
    with TestClient(app, raise_server_exceptions=False) as tc:
        tc.portal.call(seed_store)
        yield tc
    app.dependency_overrides.clear()


@pytest.fixture()
def client(_test_env) -> TestClient:
    """TestClient signed in as MOCK_USER, with a seeded temp DB."""
    yield from _open_client(MOCK_USER)


@pytest.fixture()
def admin_client(_test_env) -> TestClient:
    """TestClient signed in as MOCK_ADMIN."""
    yield from _open_client(MOCK_ADMIN)


@pytest.fixture()
def unauthed_client(_test_env) -> TestClient:
    """
    TestClient without auth overrides – requests carry no identity
    unless a session cookie is set.
    """
    yield from _open_client(None)


@pytest.fixture()
def run(client):
    """Run a coroutine function on the client's event loop."""

    def _run(func, *args, **kwargs):
        return client.portal.call(partial(func, *args, **kwargs))

    return _run
