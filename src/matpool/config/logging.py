"""Shared logging helpers for matpool."""

from __future__ import annotations

import logging
import os

from .errors import ConfigurationError

_NOISY_LOGGERS = ("alembic.runtime.migration", "sqlalchemy.engine")


def resolve_log_level(level: int | str | None = None) -> int:
    """Turn a level name or number into a ``logging`` level.

    ``None`` reads ``MATPOOL_LOG_LEVEL`` and defaults to INFO.
    """

    if level is None:
        level = os.getenv("MATPOOL_LOG_LEVEL", "").strip() or logging.INFO
    if isinstance(level, int):
        return level
    resolved = logging.getLevelNamesMapping().get(level.upper())
    if resolved is None:
        raise ConfigurationError(f"Unknown log level: {level}")
    return resolved


def configure_logging(*, level: int | str | None = None, force: bool = False) -> None:
    """Initialise the root logger once with a terse CLI format.

    Migration and engine chatter is held at WARNING unless the root level is DEBUG.
    Pass ``force=True`` to reconfigure during tests or specialised entry points.
    """

    resolved = resolve_log_level(level)
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    if resolved > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
