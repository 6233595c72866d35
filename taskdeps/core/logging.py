"""
Logging setup for hosts embedding the engine.
"""

from __future__ import annotations

import logging
from typing import Optional

import structlog

from taskdeps.core.config import LOG_LEVELS, get_settings


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """Configure structlog with the specified level and format.

    Falls back to ``Settings.log_level`` / ``Settings.log_format``.
    """
    settings = get_settings()
    level = level or settings.log_level
    fmt = fmt or settings.log_format
    if level.lower() not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {level!r}")

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
    )
