"""Engine and session helpers for the ledger database.

Every request runs inside :func:`session_scope`, which commits on success and
rolls back on any exception::

    from ledger_db.client import session_scope

    with session_scope() as session:
        session.get(Upload, upload_id)

Engines are cached per URL. SQLite connections get ``PRAGMA foreign_keys``
switched on because the schema relies on ``ON DELETE CASCADE`` (staging rows
follow their upload) and ``ON DELETE SET NULL`` (ledger provenance).
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

_ENGINES: dict[str, Engine] = {}
_SESSION_MAKERS: dict[str, sessionmaker[Session]] = {}


def resolve_database_url(override: str | None = None) -> str:
    """Explicit ``override`` first, then ``DATABASE_URL``."""

    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set; cannot open the ledger database")
    return url


def _enable_sqlite_foreign_keys(dbapi_conn, _record) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def get_engine(*, database_url: str | None = None) -> Engine:
    url = resolve_database_url(database_url)
    engine = _ENGINES.get(url)
    if engine is not None:
        return engine

    engine = create_engine(url, pool_pre_ping=True)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    _ENGINES[url] = engine
    _SESSION_MAKERS[url] = sessionmaker(bind=engine, expire_on_commit=False, class_=Session)
    return engine


def dispose_engine() -> None:
    """Dispose every cached engine; the next call builds fresh ones.

    Tests and one-off scripts that switch databases call this between runs.
    """

    for engine in _ENGINES.values():
        engine.dispose()
    _ENGINES.clear()
    _SESSION_MAKERS.clear()


def get_session(*, database_url: str | None = None) -> Session:
    url = resolve_database_url(database_url)
    get_engine(database_url=url)
    return _SESSION_MAKERS[url]()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Provide a transactional scope around one request."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_schema(*, database_url: str | None = None) -> Engine:
    """Create all ledger tables directly from the ORM metadata.

    For throwaway SQLite databases (tests, local previews). Real deployments
    run the Alembic migrations under ``libs/db/alembic`` instead.
    """

    from .models.finance import Base

    engine = get_engine(database_url=database_url)
    Base.metadata.create_all(bind=engine)
    return engine


__all__ = [
    "create_schema",
    "dispose_engine",
    "get_engine",
    "get_session",
    "resolve_database_url",
    "session_scope",
]
