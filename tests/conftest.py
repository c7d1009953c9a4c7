"""
Shared test fixtures.

Provides:
  • `database` – an initialised temporary SQLite database for service tests
  • `client`   – a FastAPI TestClient running the full lifespan against a
                 temporary database, with auth bypassed and courts seeded
  • `seed`     – runs a coroutine on the client's event loop, for seeding
                 rows through the same connection the app uses
"""

from __future__ import annotations

from functools import partial

import pytest
from fastapi.testclient import TestClient

from court_reservations import db
from court_reservations.dependencies import get_current_user
from court_reservations.main import app
from tests.mocks.models import MOCK_USER, seed_courts


# ── Fixtures ───────────────────────────────────────────────────────────────


@pytest.fixture()
def _test_env(monkeypatch, tmp_path):
    """
    Internal fixture that points the DB at a temp file and disables rate
    limiting so the app lifespan runs cleanly in isolation.
    """
    # ── Temp database ─────────────────────────────────────────────────
    import court_reservations.db as db_mod

    monkeypatch.setattr(db_mod, "DB_PATH", str(tmp_path / "test.db"))

    # ── Disable rate limiting in tests ────────────────────────────────
    from court_reservations.rate_limit import limiter as _limiter
    monkeypatch.setattr(_limiter, "enabled", False)


@pytest.fixture()
async def database(_test_env):
    """Initialised database with the mock courts, for service-level tests."""
    await db.init_db()
    await seed_courts()
    yield
    await db.close_db()


@pytest.fixture()
def client(_test_env) -> TestClient:
    """
    FastAPI TestClient with a temp DB, seeded courts and auth bypassed.

    Uses a context manager so the lifespan runs (DB init/shutdown).
    """
    async def _mock_current_user():
        return MOCK_USER

    app.dependency_overrides[get_current_user] = _mock_current_user

    with TestClient(app, raise_server_exceptions=False) as tc:
        tc.portal.call(seed_courts)
        yield tc

    app.dependency_overrides.clear()


@pytest.fixture()
def unauthed_client(_test_env) -> TestClient:
    """
    TestClient without auth overrides; requests are rejected unless
    a session cookie is provided.
    """
    app.dependency_overrides.clear()

    with TestClient(app, raise_server_exceptions=False) as tc:
        tc.portal.call(seed_courts)
        yield tc

    app.dependency_overrides.clear()


@pytest.fixture()
def seed(client):
    """Call ``seed(coro_fn, *args, **kwargs)`` to run it on the app's loop."""
    def _run(fn, *args, **kwargs):
        return client.portal.call(partial(fn, *args, **kwargs))

    return _run
