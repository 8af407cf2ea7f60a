"""
Shared test fixtures.

Provides:
  • a temporary SQLite database seeded with the default catalog
  • a fixed clock (Tuesday 10 March 2026, 14:20 Costa Rica time)
  • recording notification and in-memory document sinks
  • a FastAPI TestClient wired to all of the above

The `client` fixture runs the full lifespan (DB init / registry load /
shutdown) so that every endpoint works against the temp database.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from courtbook import catalog, db
from courtbook.dependencies import get_current_user
from courtbook.main import app
from courtbook.services import clock as clock_mod
from courtbook.services import documents, notifications
from courtbook.services.clock import FixedClock
from courtbook.services.registry import registry
from tests.mocks.models import FIXED_NOW, MOCK_USER
from tests.mocks.services import InMemoryDocumentSink, RecordingNotificationSink


# ── Fixtures ───────────────────────────────────────────────────────────────


@pytest.fixture()
def fixed_clock(monkeypatch) -> FixedClock:
    fixed = FixedClock(FIXED_NOW)
    monkeypatch.setattr(clock_mod, "clock", fixed)
    return fixed


@pytest.fixture()
def sink(monkeypatch) -> RecordingNotificationSink:
    recording = RecordingNotificationSink()
    monkeypatch.setattr(notifications, "_sink", recording)
    return recording


@pytest.fixture()
def document_sink(monkeypatch) -> InMemoryDocumentSink:
    memory = InMemoryDocumentSink()
    monkeypatch.setattr(documents, "_sink", memory)
    return memory


@pytest.fixture()
def catalog_registry(fixed_clock):
    """Registry loaded from the default catalog, no database needed."""
    registry.load_catalog(
        list(catalog.DEFAULT_COURTS),
        list(catalog.DEFAULT_GROUPS),
        list(catalog.DEFAULT_SCHEDULES),
    )
    return registry


@pytest.fixture()
async def booking_db(monkeypatch, tmp_path, fixed_clock, sink, document_sink):
    """Initialized temp database with the registry loaded from it."""
    monkeypatch.setattr(db, "DB_PATH", str(tmp_path / "test.db"))
    await db.init_db()
    await registry.load()
    yield
    await db.close_db()


@pytest.fixture()
def _test_env(monkeypatch, tmp_path, fixed_clock, sink, document_sink):
    """
    Internal fixture that patches the DB path, clock and sinks so that the
    app lifespan runs cleanly against a temp database.
    """
    monkeypatch.setattr(db, "DB_PATH", str(tmp_path / "test.db"))

    # ── Disable rate limiting in tests ────────────────────────────────
    from courtbook.rate_limit import limiter as _limiter
    monkeypatch.setattr(_limiter, "enabled", False)

    return sink


@pytest.fixture()
def client(_test_env) -> TestClient:
    """
    FastAPI TestClient with temp DB and staff auth bypassed.

    Uses a context manager so the lifespan runs (DB init/shutdown).
    """
    async def _mock_current_user():
        return MOCK_USER

    app.dependency_overrides[get_current_user] = _mock_current_user

    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc

    app.dependency_overrides.clear()


@pytest.fixture()
def unauthed_client(_test_env) -> TestClient:
    """
    TestClient without auth overrides: staff requests are rejected unless
    a session cookie is provided.
    """
    app.dependency_overrides.clear()

    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc

    app.dependency_overrides.clear()
