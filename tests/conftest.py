"""
Shared pytest fixtures for the event ledger test suite.

This module provides fixtures that are automatically available to all test files:
- Temporary SQLite databases wired through ``use_test_database``
- In-memory blob stores
- FastAPI TestClient factories with and without an API key

Every fixture is function-scoped so each test gets an empty ledger.
"""

import shutil
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from event_ledger.api.server import create_app
from event_ledger.blob import InMemoryBlobStore
from event_ledger.config import ServerConfig, use_test_database
from event_ledger.db import events_repo
from event_ledger.db.schema import init_database
from event_ledger.db.store import SQLiteEventStore
from tests.constants import TEST_API_KEY

# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def temp_db_path() -> Generator[Path, None, None]:
    """
    Create a temporary database path for testing.

    The config system points at the temporary file for the duration of the
    test and is restored afterwards.

    Yields:
        Path to temporary database file
    """
    temp_dir = tempfile.mkdtemp()
    temp_db = Path(temp_dir) / "test_ledger.db"

    with use_test_database(temp_db):
        yield temp_db

    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture(scope="function")
def test_db(temp_db_path: Path) -> Generator[None, None, None]:
    """Initialize an empty events table in the temporary database."""
    init_database()
    yield


@pytest.fixture(scope="function")
def seed_event(test_db) -> Callable[..., None]:
    """
    Insert rows directly with explicit timestamps.

    Example:
        seed_event("evt_1", "2026-01-01T00:00:00.000Z", {"type": "a"})
    """
    from event_ledger.codec import encode_payload

    def _seed(event_id: str, ts: str, payload=None) -> None:
        events_repo.insert_event(event_id, ts, encode_payload(payload))

    return _seed


# ============================================================================
# BLOB FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def blob_store() -> InMemoryBlobStore:
    """Empty process-local blob store."""
    return InMemoryBlobStore()


# ============================================================================
# FASTAPI TEST CLIENT FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def make_client(test_db) -> Callable[..., TestClient]:
    """
    Factory for TestClients over the temporary database.

    Args (of the returned callable):
        api_key: Configured shared secret; ``None`` disables authentication.
        blob_store: Injected blob backend; ``None`` means inline-only mode.
        raise_server_exceptions: Passed through to TestClient.
        **overrides: ``section__field=value`` pairs applied to a fresh
            ServerConfig, e.g. ``blob__inline_max_bytes=64``.
    """

    def _make(
        *,
        api_key: str | None = None,
        blob_store=None,
        store=None,
        raise_server_exceptions: bool = True,
        **overrides,
    ) -> TestClient:
        cfg = ServerConfig()
        cfg.security.api_key = api_key
        for name, value in overrides.items():
            section, field_name = name.split("__", 1)
            setattr(getattr(cfg, section), field_name, value)
        app = create_app(
            store=store or SQLiteEventStore(max_limit=cfg.query.max_limit),
            blob_store=blob_store,
            cfg=cfg,
        )
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)

    return _make


@pytest.fixture(scope="function")
def test_client(make_client) -> TestClient:
    """TestClient with authentication disabled and no blob store."""
    return make_client()


@pytest.fixture(scope="function")
def auth_client(make_client) -> TestClient:
    """TestClient requiring ``TEST_API_KEY``."""
    return make_client(api_key=TEST_API_KEY)


@pytest.fixture(scope="function")
def blob_client(make_client, blob_store) -> TestClient:
    """TestClient with the in-memory blob store attached."""
    return make_client(blob_store=blob_store)
