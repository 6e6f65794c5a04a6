"""Logging setup for aspmailer.

Every module logs through the standard library ``logging`` package under the
``aspmailer`` namespace. This module registers the extra ``TRACE`` level used
for SMTP conversation dumps and installs a Rich console handler on demand.

Examples:
    >>> from aspmailer.logging import init_logging
    >>> logger = init_logging(preset="dev")  # doctest: +SKIP
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from rich.logging import RichHandler

from aspmailer.config import get_config
from aspmailer.exceptions import ConfigNotLoadedError

#: Below DEBUG, used for SMTP protocol dumps.
TRACE_LEVEL = 5

ROOT_LOGGER_NAME = "aspmailer"

logging.addLevelName(TRACE_LEVEL, "TRACE")

FALLBACK_PRESETS: dict[str, dict[str, Any]] = {
    "dev": {"console": {"level": "DEBUG", "show_path": True}},
    "prod": {"console": {"level": "WARNING", "show_path": False, "tracebacks_show_locals": False}},
    "debug": {"console": {"level": "TRACE", "show_path": True, "tracebacks_show_locals": True}},
}

_root_logger: logging.Logger | None = None


def _resolve_level(level: str | int) -> int:
    """Translate a level name (``TRACE``, ``INFO``...) to its numeric value."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def init_logging(
    *,
    preset: str | None = None,
    config: Mapping[str, Any] | None = None,
) -> logging.Logger:
    """Configure the ``aspmailer`` logger with a Rich console handler.

    When neither argument is given, the ``logging`` section of the loaded
    configuration (see :func:`aspmailer.config.load_config`) is used.

    Args:
        preset: One of ``dev``, ``prod`` or ``debug``.
        config: Explicit settings, e.g. ``{"console": {"level": "INFO"}}``.
            Values here override the preset.

    Returns:
        The configured ``aspmailer`` logger.

    Raises:
        ValueError: If the preset or level name is unknown.
    """
    global _root_logger  # pylint: disable=global-statement

    if preset is None and config is None:
        try:
            section = get_config().logging
        except ConfigNotLoadedError:
            section = None
        if section:
            preset = section.get("preset")
            config = section

    console: dict[str, Any] = {"level": "INFO", "show_path": False, "tracebacks_show_locals": False}
    if preset is not None:
        if preset not in FALLBACK_PRESETS:
            raise ValueError(f"Unknown logging preset: {preset!r}")
        console.update(FALLBACK_PRESETS[preset]["console"])
    if config:
        console.update(config.get("console") or {})

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in logger.handlers[:]:
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        level=_resolve_level(console["level"]),
        show_path=bool(console["show_path"]),
        rich_tracebacks=True,
        tracebacks_show_locals=bool(console["tracebacks_show_locals"]),
    )
    logger.addHandler(handler)
    logger.setLevel(TRACE_LEVEL)
    _root_logger = logger
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the ``aspmailer`` namespace.

    Args:
        name: Child name. Names already prefixed with ``aspmailer`` are kept.

    Returns:
        The requested logger, or the package root logger when *name* is None.
    """
    if name is None:
        return _root_logger or logging.getLogger(ROOT_LOGGER_NAME)
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


__all__ = [
    "FALLBACK_PRESETS",
    "ROOT_LOGGER_NAME",
    "TRACE_LEVEL",
    "get_logger",
    "init_logging",
]
