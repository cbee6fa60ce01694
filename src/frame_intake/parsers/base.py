"""Parser protocol, registry and shared extraction helpers."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Protocol

from bs4 import BeautifulSoup, Tag

from frame_intake.core.interfaces import ParseFailure
from frame_intake.core.models import InboundMessage, LineItem, ParsedOrder
from frame_intake.ingestion.normalizer import html_to_text

LOGGER = logging.getLogger(__name__)

UNKNOWN_BRAND = "Unknown"

_SIZE_FULL = re.compile(r"^\s*(\d{2})\s*[-/xX□]\s*(\d{1,2})\s*(?:[-/\s]\s*(\d{3}))?\s*$")
_SIZE_COMPACT = re.compile(r"^\s*(\d{2})(\d{2})\s*$")


class VendorParser(Protocol):
    """Extraction routine turning one vendor's format into a ParsedOrder."""

    vendor_code: str

    def parse(self, message: InboundMessage) -> ParsedOrder:
        """Return the canonical order; raise ParseFailure if the item anchor is absent."""
        raise NotImplementedError


class ParserRegistry:
    """Typed lookup table from vendor code to parser."""

    def __init__(self, parsers: Iterable[VendorParser] = ()) -> None:
        self._parsers: dict[str, VendorParser] = {}
        for parser in parsers:
            self.register(parser)

    def register(self, parser: VendorParser) -> None:
        if parser.vendor_code in self._parsers:
            LOGGER.warning("Replacing parser registered for %s", parser.vendor_code)
        self._parsers[parser.vendor_code] = parser

    def get(self, vendor_code: str) -> VendorParser | None:
        return self._parsers.get(vendor_code)

    def codes(self) -> tuple[str, ...]:
        return tuple(self._parsers)

    def parse(self, vendor_code: str, message: InboundMessage) -> ParsedOrder:
        parser = self.get(vendor_code)
        if parser is None:
            raise ParseFailure(vendor_code, "no parser registered for vendor")
        order = parser.parse(message)
        LOGGER.info(
            "Parsed %s order %s with %d item(s)",
            vendor_code,
            order.order_number,
            len(order.items),
        )
        return order


@dataclass(frozen=True, slots=True)
class SizeParts:
    eye: str | None
    bridge: str | None
    temple: str | None


def split_size(raw: str | None) -> SizeParts:
    """Split ``55-16-140``, ``55/16 140``, ``55-16`` or ``5516`` into parts."""
    if not raw:
        return SizeParts(None, None, None)
    match = _SIZE_FULL.match(raw)
    if match:
        return SizeParts(match.group(1), match.group(2), match.group(3))
    match = _SIZE_COMPACT.match(raw)
    if match:
        return SizeParts(match.group(1), match.group(2), None)
    return SizeParts(None, None, None)


def parse_quantity(text: str | int | float | None) -> int:
    """Return a positive integer quantity, defaulting to 1."""
    if isinstance(text, (int, float)):
        value = int(text)
        return value if value > 0 else 1
    if not text:
        return 1
    match = re.search(r"\d+(?:\.\d+)?", text)
    if match is None:
        return 1
    value = int(float(match.group(0)))
    return value if value > 0 else 1


def parse_price(text: str | None) -> float | None:
    """Extract a numeric amount from ``$1,234.50`` or ``120.00 USD``."""
    if not text:
        return None
    cleaned = re.sub(r"[$£€\s,]", "", text)
    match = re.search(r"\d+(?:\.\d+)?", cleaned)
    if match is None:
        return None
    return float(match.group(0))


def lookup_brand(
    candidate: str | None,
    prefixes: Mapping[str, str],
    fallback: str = UNKNOWN_BRAND,
) -> tuple[str, str | None]:
    """Match the longest known prefix; return ``(brand, prefix)``.

    Prefixes are compared as whole words against the upper-cased candidate.
    """
    if not candidate:
        return fallback, None
    upper = candidate.strip().upper()
    for prefix in sorted(prefixes, key=len, reverse=True):
        if upper == prefix or upper.startswith(prefix + " ") or upper.startswith(prefix + "-"):
            return prefixes[prefix], prefix
    return fallback, None


def make_item(
    *,
    brand: str | None,
    model: str | None,
    fallback_brand: str = UNKNOWN_BRAND,
    size: str | None = None,
    quantity: str | int | None = None,
    **fields: object,
) -> LineItem:
    """Build a LineItem, decomposing the size and defaulting the brand."""
    raw_size = size.strip() if isinstance(size, str) and size.strip() else None
    parts = split_size(raw_size)
    return LineItem(
        brand=(brand or "").strip() or fallback_brand,
        model=(model or "").strip(),
        size=raw_size,
        eye_size=parts.eye,
        bridge=parts.bridge,
        temple=parts.temple,
        quantity=parse_quantity(quantity),
        **fields,  # type: ignore[arg-type]
    )


def soup_of(html: str | None) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def cell_text(node: Tag | None) -> str:
    """Return whitespace-collapsed text of a tag."""
    if node is None:
        return ""
    return re.sub(r"\s+", " ", node.get_text(" ")).strip()


def message_text(message: InboundMessage) -> str:
    """Return the plain body, deriving it from HTML when absent."""
    if message.html:
        return html_to_text(message.html)
    return message.text or ""


def search(pattern: str, text: str, flags: int = re.IGNORECASE) -> str | None:
    """Return the first group of ``pattern`` in ``text`` stripped, or ``None``."""
    match = re.search(pattern, text, flags)
    if match is None:
        return None
    value = match.group(1).strip()
    return value or None


def require_items(vendor_code: str, found: bool, anchor: str) -> None:
    if not found:
        raise ParseFailure(vendor_code, f"{anchor} not found")


__all__ = [
    "ParserRegistry",
    "SizeParts",
    "UNKNOWN_BRAND",
    "VendorParser",
    "cell_text",
    "lookup_brand",
    "make_item",
    "message_text",
    "parse_price",
    "parse_quantity",
    "require_items",
    "search",
    "soup_of",
    "split_size",
]
