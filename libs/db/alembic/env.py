"""Alembic environment for the ledger schema.

The URL comes from ``DATABASE_URL`` (a ``.env`` found from the working
directory is loaded first), falling back to ``sqlalchemy.url`` in
``alembic.ini``. SQLite runs in batch mode so column/constraint changes are
emitted as table rebuilds.
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from dotenv import find_dotenv, load_dotenv
from sqlalchemy import create_engine, make_url, pool

import ledger_db
from ledger_db.client import resolve_database_url

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

dotenv_path = find_dotenv(usecwd=True)
if dotenv_path:
    load_dotenv(dotenv_path=dotenv_path, override=False)

target_metadata = ledger_db.metadata


def _url() -> str:
    return resolve_database_url(
        os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url") or None
    )


def _configure(*, dialect: str, **kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=dialect == "sqlite",
        **kwargs,
    )


def run_migrations_offline() -> None:
    url = make_url(_url())
    _configure(dialect=url.get_backend_name(), url=url, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        _configure(dialect=connection.dialect.name, connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
