"""Runtime settings for the import workflow.

Values come from the environment (a local ``.env`` is loaded by the CLI
before this module is consulted). Only I/O bounds live here; the database URL
is owned by :mod:`ledger_db.client`.

- ``INGEST_INSERT_BATCH_SIZE``: rows per ledger/staging bulk insert (500).
- ``INGEST_FETCH_PAGE_SIZE``: rows per page when re-reading staging rows,
  ledger hashes or ledger history (1000).
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .logging_setup import get_logger

logger = get_logger(__name__)

DEFAULT_INSERT_BATCH_SIZE = 500
DEFAULT_FETCH_PAGE_SIZE = 1000


def _positive_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer; using %d", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive; using %d", name, raw, default)
        return default
    return value


@dataclass(frozen=True, slots=True)
class Settings:
    insert_batch_size: int = DEFAULT_INSERT_BATCH_SIZE
    fetch_page_size: int = DEFAULT_FETCH_PAGE_SIZE

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            insert_batch_size=_positive_int_env(
                "INGEST_INSERT_BATCH_SIZE", DEFAULT_INSERT_BATCH_SIZE
            ),
            fetch_page_size=_positive_int_env("INGEST_FETCH_PAGE_SIZE", DEFAULT_FETCH_PAGE_SIZE),
        )


__all__ = ["DEFAULT_FETCH_PAGE_SIZE", "DEFAULT_INSERT_BATCH_SIZE", "Settings"]
