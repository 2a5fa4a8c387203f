"""Log handler setup for tallyo entrypoints.

The CLI callback and :func:`tallyo.server.create_app` call
:func:`configure_logging`; everything else logs through
:func:`get_logger` and stays silent until one of them has run.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "tallyo"
_LEVEL_ENV = "TALLYO_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def _level_from_name(value: str) -> int | None:
    value = value.strip().upper()
    if value.isdigit():
        return int(value)
    numeric = getattr(logging, value, None)
    return numeric if isinstance(numeric, int) else None


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        parsed = _level_from_name(level)
        if parsed is not None:
            return parsed
    env_val = os.getenv(_LEVEL_ENV)
    if env_val:
        parsed = _level_from_name(env_val)
        if parsed is not None:
            return parsed
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Send ``tallyo.*`` records to ``stream``. Later calls are no-ops.

    ``level`` may be a number or a name such as ``"DEBUG"``; when it is missing
    or unrecognised, ``TALLYO_LOG_LEVEL`` is consulted, then ``INFO``.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)

    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Logger for a tallyo module; unconfigured output goes to a ``NullHandler``."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
