"""Core utilities for configuration, logging, and dependency wiring."""

from .config import AppSettings, load_app_settings
from .container import ServiceContainer
from .interfaces import (
    CatalogError,
    ClassificationAmbiguous,
    EnrichmentMiss,
    LifecycleConflict,
    ParseFailure,
)
from .logging import configure_logging

__all__ = [
    "AppSettings",
    "CatalogError",
    "ClassificationAmbiguous",
    "EnrichmentMiss",
    "LifecycleConflict",
    "ParseFailure",
    "ServiceContainer",
    "configure_logging",
    "load_app_settings",
]
