"""Datetime helpers shared across the application."""

from __future__ import annotations

import re
from datetime import UTC, datetime

__all__ = [
    "normalize_order_date",
    "parse_datetime",
    "serialize_datetime",
    "utc_now",
]

_ORDER_DATE_FORMATS: tuple[str, ...] = (
    "%m/%d/%Y",
    "%m/%d/%y",
    "%Y-%m-%d",
    "%m-%d-%Y",
    "%d-%m-%Y",
    "%B %d, %Y",
    "%b %d, %Y",
)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(tz=UTC)


def serialize_datetime(value: datetime | None) -> str | None:
    """Serialise ``value`` to ISO 8601 in UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.isoformat()
    return value.astimezone(UTC).isoformat()


def parse_datetime(value: str | None, *, assume_utc: bool = False) -> datetime | None:
    """Parse an ISO 8601 string into a ``datetime`` instance."""
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None and assume_utc:
        return parsed.replace(tzinfo=UTC)
    return parsed


def normalize_order_date(raw: str | None) -> str | None:
    """Return a vendor order date as ``YYYY-MM-DD`` when recognisable.

    Vendors print dates in several layouts. Unrecognised values are returned
    stripped rather than dropped so nothing on the order is lost.
    """
    if raw is None:
        return None
    cleaned = re.sub(r"\s+", " ", raw).strip()
    if not cleaned:
        return None
    for fmt in _ORDER_DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date().isoformat()
        except ValueError:
            continue
    return cleaned
