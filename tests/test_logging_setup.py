from __future__ import annotations

import io
import logging
from collections.abc import Iterator

import pytest

from statement_ingest.logging_setup import configure_logging, get_logger, resolve_level


@pytest.fixture(autouse=True)
def _restore_package_logger() -> Iterator[None]:
    pkg_logger = logging.getLogger("statement_ingest")
    saved = (list(pkg_logger.handlers), pkg_logger.level, pkg_logger.propagate)
    yield
    pkg_logger.handlers[:] = saved[0]
    pkg_logger.setLevel(saved[1])
    pkg_logger.propagate = saved[2]


@pytest.mark.parametrize(
    ("level", "expected"),
    [
        ("debug", logging.DEBUG),
        (" WARNING ", logging.WARNING),
        ("15", 15),
        (logging.ERROR, logging.ERROR),
        ("chatty", logging.INFO),
    ],
)
def test_resolve_level(level: int | str, expected: int) -> None:
    assert resolve_level(level) == expected


def test_resolve_level_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    assert resolve_level() == logging.INFO
    monkeypatch.setenv("STATEMENT_INGEST_LOG_LEVEL", "error")
    assert resolve_level() == logging.ERROR


def test_configure_routes_module_loggers_to_one_stream() -> None:
    first, second = io.StringIO(), io.StringIO()

    configure_logging("INFO", stream=first)
    configure_logging("INFO", stream=second)
    get_logger("statement_ingest.staging").info("Staged %d rows", 3)
    get_logger("statement_ingest.commit").debug("hidden")

    pkg_handlers = logging.getLogger("statement_ingest").handlers
    assert len(pkg_handlers) == 1
    assert first.getvalue() == ""
    assert "INFO [statement_ingest.staging] Staged 3 rows" in second.getvalue()
    assert "hidden" not in second.getvalue()
