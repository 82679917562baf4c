"""Logging for the ``statement_ingest`` package.

Library modules only ever call ``get_logger(__name__)``; they never attach
handlers. Entrypoints (the CLI, a host web app) call ``configure_logging()``
at startup, which installs one stream handler on the ``statement_ingest``
package logger. Calling it again swaps that handler rather than stacking a
second one, so a long-lived host can re-point logging at a new stream.

Level resolution: explicit ``level`` argument, then the
``STATEMENT_INGEST_LOG_LEVEL`` environment variable, then ``INFO``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "statement_ingest"
LEVEL_ENV_VAR = "STATEMENT_INGEST_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class _PackageHandler(logging.StreamHandler):
    """Marker type so reconfiguration finds the handler it installed."""


def resolve_level(level: int | str | None = None) -> int:
    if level is None:
        level = os.getenv(LEVEL_ENV_VAR)
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    text = level.strip().upper()
    if text.isdigit():
        return int(text)
    return logging.getLevelNamesMapping().get(text, logging.INFO)


def configure_logging(
    level: int | str | None = None,
    *,
    stream: IO[str] | None = None,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Handler:
    """Route package logs to ``stream`` (``sys.stderr`` by default).

    Returns the installed handler. The package logger stops propagating to the
    root logger so host applications with their own root handler do not print
    every import message twice.
    """

    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    for existing in list(pkg_logger.handlers):
        if isinstance(existing, (_PackageHandler, logging.NullHandler)):
            pkg_logger.removeHandler(existing)

    resolved = resolve_level(level)
    handler = _PackageHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt))

    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(resolved)
    pkg_logger.propagate = False
    return handler


def get_logger(name: str) -> logging.Logger:
    """Logger for a module inside the package.

    Until an entrypoint configures logging, the package logger carries a
    ``NullHandler`` so library use stays silent.
    """

    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    if not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
