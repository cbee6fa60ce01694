"""Tests for logging utilities."""

from __future__ import annotations

import logging

from frame_intake.core.config import LoggingSettings
from frame_intake.core.logging import configure_logging


def test_configure_logging_sets_root_level() -> None:
    """configure_logging should set the root logger level according to settings."""

    settings = LoggingSettings(level="DEBUG", structured=False)
    configure_logging(settings)
    assert logging.getLogger().level == logging.DEBUG


def test_http_loggers_are_quieted_outside_debug() -> None:
    configure_logging(LoggingSettings(level="INFO", structured=True))
    assert logging.getLogger().level == logging.INFO
    assert logging.getLogger("httpx").level == logging.WARNING
