"""Logging configuration helpers."""

from __future__ import annotations

import logging
import logging.config
from typing import Any

from .config import LoggingSettings

# httpx logs every catalog request at INFO; crawls issue dozens of them.
_QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "pdfminer")


def _structured_formatter() -> dict[str, Any]:
    """Return a dictConfig fragment for key=value structured logs."""
    return {
        "format": "ts={asctime} level={levelname} logger={name} msg={message!r}",
        "style": "{",
    }


def _plain_formatter() -> dict[str, Any]:
    """Return a dictConfig fragment for human readable logs."""
    return {
        "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
    }


def configure_logging(settings: LoggingSettings) -> None:
    """Configure application logging according to provided settings."""
    formatter = _structured_formatter() if settings.structured else _plain_formatter()
    quiet_level = "DEBUG" if settings.level.upper() == "DEBUG" else "WARNING"

    dict_config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": formatter,
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": settings.level,
            },
        },
        "loggers": {name: {"level": quiet_level} for name in _QUIET_LOGGERS},
        "root": {
            "handlers": ["console"],
            "level": settings.level,
        },
    }

    logging.config.dictConfig(dict_config)


__all__ = ["configure_logging"]
