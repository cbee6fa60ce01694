"""Etnia Barcelona sales-order PDFs."""

from __future__ import annotations

import re

from frame_intake.core.datetime_utils import normalize_order_date
from frame_intake.core.models import InboundMessage, LineItem, ParsedOrder

from .base import make_item, require_items, search
from .pdf import attachment_text

VENDOR_CODE = "etnia_barcelona"
BRAND = "Etnia Barcelona"

_ITEM_START = re.compile(r"^(\d{2}/\d{2}/\d{4})(\d+)")
_UPC = re.compile(r"^\d{13}$")
_PRICE_LINE = re.compile(r"^\d+\.\d+\s*PC")
_PRICE = re.compile(r"([\d.]+)\s*PC([\d.]+)\s*USD([\d.]+)%([\d.]+)\s*USD")
_SIZE = re.compile(r"(\d{2}-\d{2}-\d{3})")
# "RANIA 53O TQGR - METAL OPTICAL TURQUOISE. GREEN 53-19-142 (O)"
_DESC_CAPS = re.compile(
    r"^.+?\s+-\s+([A-Z]+)\s+(OPTICAL|SUN)\s+(?!Frame\s)(.+?)\s+(\d{2}-\d{2}-\d{3})"
)
# "COCO Grey Havana - Acetate Optical Frame 51-16-140"
_DESC_FRAME = re.compile(
    r"^(.+?)\s+-\s+([A-Za-z]+)\s+(Optical|Sun)\s+Frame\s+(\d{2}-\d{2}-\d{3})", re.IGNORECASE
)
# "ROADRUNNER 56O HVGR - acetate optical frame havana verde 56-16-148"
_DESC_LOWER = re.compile(
    r"^.+?\s+-\s+([a-z]+)\s+(optical|sun)\s+frame\s+(.+?)\s+(\d{2}-\d{2}-\d{3})", re.IGNORECASE
)
_MAX_DESCRIPTION_LINES = 4


class EtniaBarcelonaParser:
    """Parse item blocks from an Etnia Barcelona sales order."""

    vendor_code = VENDOR_CODE

    def parse(self, message: InboundMessage) -> ParsedOrder:
        return self.parse_text(attachment_text(VENDOR_CODE, message))

    def parse_text(self, text: str) -> ParsedOrder:
        lines = [line.strip() for line in text.splitlines()]
        require_items(
            VENDOR_CODE,
            any(_ITEM_START.match(line) for line in lines),
            "sales order item block",
        )
        order_date = search(r"Date[ \t]+(\d{2}/\d{2}/\d{4})", text) or search(
            r"\n(\d{2}/\d{2}/\d{4})\n", text
        )
        return ParsedOrder(
            vendor_code=VENDOR_CODE,
            order_number=search(r"Sales Order\s+(\d+)", text),
            order_date=normalize_order_date(order_date),
            account_number=search(r"Customer ID\s+(\d+)", text),
            customer_name=search(r"Billing Address:\s*\n\s*([A-Z][A-Z ]+)\s*\n", text, 0),
            customer_code=search(r"Customer Reference\s+([\w\-]+)", text),
            items=tuple(_parse_items(lines)),
            metadata={
                "ship_to": search(r"Shipping Address:\s*\n\s*([A-Z][A-Z ]+)\s*\n", text, 0),
            },
        )


def _parse_items(lines: list[str]) -> list[LineItem]:
    items: list[LineItem] = []
    index = 0
    while index < len(lines):
        start = _ITEM_START.match(lines[index])
        if start is None or index + 1 >= len(lines):
            index += 1
            continue
        model_line = lines[index + 1]
        cursor = index + 2
        description: list[str] = []
        while cursor < len(lines) and len(description) < _MAX_DESCRIPTION_LINES:
            line = lines[cursor]
            if _UPC.match(line) or _PRICE_LINE.match(line) or _ITEM_START.match(line):
                break
            description.append(line)
            cursor += 1
        upc_line = lines[cursor] if cursor < len(lines) else ""
        price_line = lines[cursor + 1] if cursor + 1 < len(lines) else ""
        item = _build_item(model_line, " ".join(description), upc_line, price_line)
        if item is not None:
            items.append(item)
        index = cursor + 2
    return items


def _build_item(
    model_line: str, description: str, upc_line: str, price_line: str
) -> LineItem | None:
    model_match = re.match(r"^[\d\s]+(.+)$", model_line)
    if model_match is None:
        return None
    full_model = model_match.group(1).strip()
    model_name = re.split(r"\s+\d+", full_model)[0]

    color: str | None = None
    size: str | None = None
    caps = _DESC_CAPS.match(description)
    framed = _DESC_FRAME.match(description)
    lower = _DESC_LOWER.match(description)
    if caps:
        color = re.sub(r"\s*\(\w\)\s*$", "", caps.group(3)).rstrip(".").strip()
        size = caps.group(4)
    elif framed:
        size = framed.group(4)
        parts = framed.group(1).split(maxsplit=1)
        model_name = parts[0]
        color = parts[1] if len(parts) > 1 else None
    elif lower:
        color = lower.group(3)
        size = lower.group(4)
    else:
        size_only = _SIZE.search(description)
        size = size_only.group(1) if size_only else None
        color = re.sub(r"\s*\(\w\)\s*$", "", description).strip() or None

    upc_match = re.search(r"(\d{13})", upc_line)
    price_match = _PRICE.search(price_line)
    color_code = re.search(r"([A-Z]{4,6})$", full_model)
    return make_item(
        brand=BRAND,
        model=model_name or full_model,
        size=size,
        quantity=price_match.group(1) if price_match else None,
        color=color,
        color_code=color_code.group(1) if color_code else None,
        upc=upc_match.group(1) if upc_match else None,
        sku=f"ETNIA_BARCELONA-{full_model.replace(' ', '_')}",
        wholesale_price=float(price_match.group(2)) if price_match else None,
    )


__all__ = ["EtniaBarcelonaParser"]
