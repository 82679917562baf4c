"""Pytest configuration for test isolation.

The database client caches one engine per URL, and settings and owner
defaults are read from the environment. To keep tests hermetic, every test
starts with no cached engine, no ``DATABASE_URL`` and no ingest-related
environment overrides.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from ledger_db.client import dispose_engine

from tests.helpers.db import bootstrap_sqlite_db

_ENV_VARS = (
    "DATABASE_URL",
    "INGEST_USER_ID",
    "INGEST_INSERT_BATCH_SIZE",
    "INGEST_FETCH_PAGE_SIZE",
    "STATEMENT_INGEST_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop any shared engine and ingest env vars around each test."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    dispose_engine()
    yield
    dispose_engine()


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """A fresh file-backed SQLite database with the full schema."""

    return bootstrap_sqlite_db(tmp_path / "ledger.sqlite3")
