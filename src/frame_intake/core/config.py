"""Application configuration models and loader utilities."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

from dotenv import dotenv_values
from pydantic import BaseModel, Field

DEFAULT_DENY_DOMAINS: tuple[str, ...] = (
    "gmail.com",
    "yahoo.com",
    "outlook.com",
    "hotmail.com",
    "icloud.com",
    "aol.com",
    "live.com",
    "me.com",
    "yesnickvision.com",
    "tatumeyecare.com",
    "pveyecare.com",
    "mohaveeyecenter.com",
    "opticalshop.com",
    "myshop.com",
    "system.local",
)


class StorageSettings(BaseModel):
    """Settings for local persistence."""

    db_path: Path = Field(
        default=Path("./frame_intake.db"), description="SQLite database path"
    )


class LoggingSettings(BaseModel):
    """Logging preferences."""

    level: str = Field(default="INFO", description="Root logging level")
    structured: bool = Field(
        default=False, description="Toggle JSON structured logging"
    )


class ClassifierSettings(BaseModel):
    """Settings controlling vendor identification."""

    profiles_path: Path | None = Field(
        default=None,
        description="Optional JSON file replacing the built-in vendor profiles",
    )
    min_confidence: int = Field(
        default=60,
        ge=0,
        le=100,
        description="Lowest confidence accepted before a message needs triage",
    )
    deny_domains: list[str] = Field(
        default_factory=lambda: list(DEFAULT_DENY_DOMAINS),
        description="Personal and customer domains never reported as original sender",
    )
    scan_limit: int = Field(
        default=1000,
        ge=100,
        description="Characters scanned for a forwarding marker",
    )


class CatalogSettings(BaseModel):
    """Settings for vendor catalog search endpoints."""

    endpoints: dict[str, str] = Field(
        default_factory=lambda: {
            "safilo": "https://www.mysafilo.com/US/api/CatalogAPI/filter",
            "kenmark": "https://www.kenmarkeyewear.com/US/api/CatalogAPI/filter",
            "lamyamerica": "https://www.lamyamerica.com/US/api/CatalogAPI/filter",
            "modern_optical": "https://modernoptical.com/US/api/CatalogAPI/filter",
        },
        description="Vendor code to product-search endpoint",
    )
    timeout_seconds: float = Field(
        default=20.0, gt=0, description="Per-request timeout"
    )
    max_retries: int = Field(
        default=3, ge=1, description="Attempts per search before giving up"
    )
    retry_delay_seconds: float = Field(
        default=2.0, ge=0, description="Base delay for linear retry backoff"
    )
    rate_limit_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Minimum spacing between outbound requests to one vendor",
    )
    batch_size: int = Field(
        default=50, ge=1, description="Catalog rows written per crawl batch"
    )
    batch_pause_seconds: float = Field(
        default=0.5, ge=0, description="Pause between crawl write batches"
    )


class EnrichmentSettings(BaseModel):
    """Settings for confirmation-time catalog enrichment."""

    enabled: bool = Field(default=True, description="Toggle confirm enrichment")
    vendors: list[str] = Field(
        default_factory=lambda: [
            "safilo",
            "kenmark",
            "lamyamerica",
            "modern_optical",
        ],
        description="Vendor codes whose items are enriched on confirmation",
    )


class AppSettings(BaseModel):
    """Aggregated application configuration."""

    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    classifier: ClassifierSettings = Field(default_factory=ClassifierSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    enrichment: EnrichmentSettings = Field(default_factory=EnrichmentSettings)


ENV_PREFIX = "FRAME_INTAKE_"
_LIST_FIELDS = {"deny_domains", "vendors"}


def _normalize_key(raw_key: str) -> list[str]:
    """Convert an environment variable key into a nested attribute path."""
    trimmed = raw_key.removeprefix(ENV_PREFIX)
    return [segment.lower() for segment in trimmed.split("__") if segment]


def _merge_into_tree(tree: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a value to a nested dictionary given a path."""
    cursor = tree
    for segment in path[:-1]:
        next_node = cursor.setdefault(segment, {})
        cursor = cast(dict[str, Any], next_node)
    cursor[path[-1]] = value


def _coerce_value(path: list[str], value: Any) -> Any:
    if not isinstance(value, str):
        return value
    if value == "":
        return None
    if path[-1] in _LIST_FIELDS:
        return [part.strip() for part in value.split(",") if part.strip()]
    lowercase_value = value.lower()
    if lowercase_value == "true":
        return True
    if lowercase_value == "false":
        return False
    return value


def _collect_env_values(
    env_file: Path | str | None, include_environment: bool = True
) -> dict[str, Any]:
    """Load configuration values from environment variables and optional file."""
    collected: dict[str, Any] = {}

    file_values = {}
    if env_file:
        env_path = Path(env_file)
        if env_path.is_file():
            file_values = {
                key: value
                for key, value in dotenv_values(env_path).items()
                if key and key.startswith(ENV_PREFIX)
            }

    env_values = (
        {key: value for key, value in os.environ.items() if key.startswith(ENV_PREFIX)}
        if include_environment
        else {}
    )

    combined: dict[str, Any] = {**file_values, **env_values}

    for key, value in combined.items():
        path = _normalize_key(key)
        if not path:
            continue
        _merge_into_tree(collected, path, _coerce_value(path, value))

    return collected


@lru_cache(maxsize=1)
def load_app_settings(
    env_file: Path | str | None = None,
    include_environment: bool = True,
    **overrides: Any,
) -> AppSettings:
    """Load application settings, applying env files and overrides."""
    collected = _collect_env_values(env_file, include_environment)
    if overrides:
        collected.update(overrides)
    return AppSettings.model_validate(collected)


__all__ = [
    "AppSettings",
    "CatalogSettings",
    "ClassifierSettings",
    "DEFAULT_DENY_DOMAINS",
    "EnrichmentSettings",
    "LoggingSettings",
    "StorageSettings",
    "load_app_settings",
]
