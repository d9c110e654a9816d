"""Logging setup and boxed metadata summaries."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

_WIDTH = 64
_KEY_WIDTH = 32
_VALUE_WIDTH = 31

_LOGGER_NAME = "pulsesift"


def init_logging() -> logging.Logger:
    """Show messages of level INFO and above; return the package logger."""
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.INFO)
    return logger


def format_block(title: str, meta: Mapping | Iterable[tuple[object, object]]) -> str:
    """Render a title bar, one "key : value" line per entry and a closing bar."""
    items = meta.items() if isinstance(meta, Mapping) else meta
    lines = "".join(
        f"{str(key):<{_KEY_WIDTH}}:{str(value):<{_VALUE_WIDTH}}\n" for key, value in items
    )
    size = len(title)
    head = title.rjust(max(0, (_WIDTH + size) // 2), "=")
    tail = "=" * max(0, (_WIDTH - size) // 2)
    return "\n" + head + tail + "\n" + lines + "=" * _WIDTH


def log_block(
    title: str,
    meta: Mapping | Iterable[tuple[object, object]],
    logger: logging.Logger | None = None,
) -> None:
    """Log a formatted block at INFO level."""
    (logger or logging.getLogger(_LOGGER_NAME)).info(format_block(title, meta))