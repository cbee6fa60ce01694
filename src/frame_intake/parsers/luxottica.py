"""Luxottica cart confirmations (preformatted HTML)."""

from __future__ import annotations

import re

from bs4 import NavigableString

from frame_intake.core.datetime_utils import normalize_order_date
from frame_intake.core.models import InboundMessage, LineItem, ParsedOrder

from .base import cell_text, make_item, parse_price, require_items, search, soup_of

VENDOR_CODE = "luxottica"

_BRAND_NAMES = {
    "DOLCE E GABBANA": "Dolce & Gabbana",
    "D&G": "Dolce & Gabbana",
    "RAYBAN": "Ray-Ban",
    "RAY-BAN": "Ray-Ban",
    "POLO": "Polo Ralph Lauren",
}
_HEADER_MARK = "@@"
_BRAND_HEADER = re.compile(r"^([A-Z][A-Z\s&\-]*)\s*\((\d+)\)$")
_MODEL_HEADER_COLLECTION = re.compile(r"^(.+?)\s*-\s*([^(]+)\s*\((\d+)\)")
_MODEL_HEADER = re.compile(r"^(.+?)\s*\((\d+)\)")
_ITEM_LINE = re.compile(r"^(\d+)\s+(\d+)\s+USD\s+([\d,]+\.\d{2})\s+(\d+)\s+([\d\-]+)")
_COLOR_LINE = re.compile(r"^(\w+)\s*-\s*(.+)$")


def normalize_brand(raw: str) -> str:
    """Map Luxottica's catalogue spellings onto retail brand names."""
    upper = " ".join(raw.upper().split())
    if upper in _BRAND_NAMES:
        return _BRAND_NAMES[upper]
    return upper.title()


class LuxotticaParser:
    """Parse brand, model and colour sections of a Luxottica cart email."""

    vendor_code = VENDOR_CODE

    def parse(self, message: InboundMessage) -> ParsedOrder:
        lines = _content_lines(message.html or "")
        text = "\n".join(line for line in lines if not line.startswith(_HEADER_MARK))
        items = _parse_items(lines)
        require_items(
            VENDOR_CODE,
            any(line.startswith(_HEADER_MARK) for line in lines),
            "brand and model sections",
        )

        agent = re.search(r"Agent reference:\s*([^(\n]+)\s*\((\d+)\)", text)
        return ParsedOrder(
            vendor_code=VENDOR_CODE,
            order_number=search(r"Cart number:\s*(\d+)", text),
            order_date=normalize_order_date(search(r"Order date:\s*([\d\-]+)", text)),
            account_number=search(r"Customer code:\s*(\d+)", text),
            customer_name=search(r"Customer Reference:[ \t]*([^\n]+?)(?:\s*Customer code|$)", text, re.I | re.M),
            placed_by=agent.group(1).strip() if agent else None,
            items=tuple(items),
            metadata={
                "rep_code": agent.group(2) if agent else None,
                "payment_terms": search(r"Payment terms:[ \t]*([^\n]+?)(?:\s*Promo code|$)", text, re.I | re.M),
                "promo_code": search(r"Promo code:\s*(\d+)", text),
                "total_value": parse_price(search(r"Total:\s*([\d,]+\.\d{2})\s*USD", text)),
            },
        )


def _content_lines(html: str) -> list[str]:
    """Flatten the <pre> block into lines, marking size-5 font headers."""
    soup = soup_of(html)
    container = soup.find("pre") or soup
    for font in container.find_all("font", attrs={"size": "5"}):
        font.replace_with(NavigableString(f"\n{_HEADER_MARK}{cell_text(font)}\n"))
    for br in container.find_all("br"):
        br.replace_with(NavigableString("\n"))
    raw_lines = container.get_text().splitlines()
    return [line.strip() for line in raw_lines if line.strip()]


def _parse_items(lines: list[str]) -> list[LineItem]:
    items: list[LineItem] = []
    brand: str | None = None
    model: str | None = None
    color_code: str | None = None
    color: str | None = None

    for line in lines:
        if line.startswith("Total Number of Items"):
            break
        if line.startswith(_HEADER_MARK):
            header = line[len(_HEADER_MARK) :].strip()
            brand_match = _BRAND_HEADER.match(header)
            if brand_match and not header[0].isdigit():
                brand = normalize_brand(brand_match.group(1))
                model = color_code = color = None
                continue
            # "0BE1375 - DOUGLAS (1)" carries a collection name after the model.
            model_match = _MODEL_HEADER_COLLECTION.match(header) or _MODEL_HEADER.match(header)
            model = model_match.group(1).strip() if model_match else header
            color_code = color = None
            continue

        item_match = _ITEM_LINE.match(line)
        if item_match:
            if model is None or color_code is None:
                continue
            eye, upc, price, quantity, _ship_date = item_match.groups()
            brand_name = brand or "Luxottica"
            item = make_item(
                brand=brand_name,
                model=model,
                size=eye,
                quantity=quantity,
                color=color,
                color_code=color_code,
                upc=upc,
                wholesale_price=parse_price(price),
                sku=re.sub(r"\s+", "_", f"{brand_name}-{model}-{color_code}-{eye}"),
            )
            item.eye_size = eye
            items.append(item)
            continue

        color_match = _COLOR_LINE.match(line)
        if color_match and model is not None:
            color_code = color_match.group(1).strip()
            color = color_match.group(2).strip()
    return items


__all__ = ["LuxotticaParser", "normalize_brand"]
