"""Structured logging utilities."""

from __future__ import annotations

import logging
import sys
from typing import Any, Optional

from guestdesk.utils.config import get_settings


_LOGGER_INITIALIZED = False


def configure_logging(level: Optional[str] = None) -> None:
    """Configure process-wide logging once, honouring LOG_LEVEL."""

    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    settings = get_settings()
    resolved_level = (level or settings.log_level).upper()

    logging.basicConfig(
        level=resolved_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    _LOGGER_INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger for the requested module."""
    configure_logging()
    return logging.getLogger(name)


def log_event(
    logger: logging.Logger,
    event: str,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """Emit `event | key=value | ...` with fields in call order."""
    if not logger.isEnabledFor(level):
        return
    parts = [event, *(f"{key}={value}" for key, value in fields.items())]
    logger.log(level, " | ".join(parts))
