"""Marchon order confirmations."""

from __future__ import annotations

import re
from urllib.parse import parse_qs, urlsplit

from frame_intake.core.datetime_utils import normalize_order_date
from frame_intake.core.models import InboundMessage, LineItem, ParsedOrder
from frame_intake.ingestion.normalizer import unwrap_url

from .base import cell_text, make_item, message_text, require_items, search, soup_of

VENDOR_CODE = "marchon"
DEFAULT_BRAND = "Marchon"

BRAND_PREFIXES = {
    "SF": "Salvatore Ferragamo",
    "CKJ": "Calvin Klein Jeans",
    "CK": "Calvin Klein",
    "NIKE": "Nike",
    "NK": "Nike",
    "COL": "Columbia",
    "C": "Columbia",
    "DRAGON": "Dragon",
    "DG": "Dragon",
    "FLEXON": "Flexon",
    "FL": "Flexon",
    "LACOSTE": "Lacoste",
    "L": "Lacoste",
    "LO": "Longchamp",
    "MNYC": "Marchon NYC",
    "MNY": "Marchon NYC",
    "NW": "Nine West",
    "SKAGA": "Skaga",
    "SEAN": "Sean John",
    "JOE": "Joe by Joseph Abboud",
    "JSK": "JS Kids",
    "MCM": "MCM",
    "CHLOE": "Chloe",
    "CH": "Chloe",
    "LIU": "Liu Jo",
    "KARL": "Karl Lagerfeld",
    "KL": "Karl Lagerfeld",
    "DKNY": "DKNY",
    "DK": "Donna Karan",
}

_HEADER_BACKGROUND = "#B2B4B2"
_EYE_SIZE = re.compile(r"\((\d+)\s*eye\)", re.IGNORECASE)


def brand_for_model(model: str) -> str:
    """Longest matching style prefix wins; ``CKJ`` beats ``CK`` beats ``C``."""
    upper = model.upper()
    for prefix in sorted(BRAND_PREFIXES, key=len, reverse=True):
        if upper.startswith(prefix):
            return BRAND_PREFIXES[prefix]
    return DEFAULT_BRAND


def product_params(url: str | None) -> dict[str, str]:
    """Return ``frame``, ``coll``, ``pickColor`` and ``pickSize`` from a product link."""
    if not url:
        return {}
    query = parse_qs(urlsplit(unwrap_url(url)).query)
    return {
        key: values[0]
        for key, values in query.items()
        if key in {"frame", "coll", "pickColor", "pickSize"} and values
    }


class MarchonParser:
    """Parse the style table of a Marchon order confirmation."""

    vendor_code = VENDOR_CODE

    def parse(self, message: InboundMessage) -> ParsedOrder:
        soup = soup_of(message.html)
        text = message_text(message)
        header_rows = [row for row in soup.find_all("tr") if _is_header_row(row)]
        items = _dedupe(_parse_rows(soup))
        require_items(VENDOR_CODE, bool(header_rows or items), "style table")

        customer = re.search(r"Customer[:\s]*\n\s*([^(\n]+?)\s*\((\d+)\)", text, re.IGNORECASE)
        return ParsedOrder(
            vendor_code=VENDOR_CODE,
            order_number=search(r"Order ID[:\s]*([A-Z0-9]+)", text),
            order_date=normalize_order_date(search(r"\bDATE[:\s]*([\d-]+)", text)),
            account_number=customer.group(2) if customer else None,
            customer_name=customer.group(1).strip() if customer else None,
            placed_by=search(r"SALES REP[:\s]*([^\n]+)", text),
            items=tuple(items),
            metadata={
                "terms": search(r"Terms Requested[: \t]*([^\n]+)", text),
                "promotions": search(r"Promotions Applied[: \t]*([^\n]+)", text),
                "order_note": search(r"Order Note[: \t]*(?:Note[: \t]*)?([^\n]+)", text),
            },
        )


def _is_header_row(row) -> bool:
    background = (row.get("bgcolor") or "").upper()
    style = row.get("style") or ""
    return background == _HEADER_BACKGROUND or "178, 180, 178" in style


def _parse_rows(soup) -> list[LineItem]:
    items: list[LineItem] = []
    for row in soup.find_all("tr"):
        if _is_header_row(row):
            continue
        cells = row.find_all("td", recursive=False)
        if len(cells) != 3:
            continue
        quantity = cell_text(cells[2])
        if not quantity.isdigit() or int(quantity) == 0:
            continue
        style_lines = [line.strip() for line in cells[1].get_text("\n").splitlines() if line.strip()]
        style_text = " ".join(style_lines)
        eye_match = _EYE_SIZE.search(style_text)
        if eye_match is None:
            continue
        style_and_color = style_text[: eye_match.start()].strip()
        if not style_and_color:
            continue
        model, _, color = style_and_color.partition(" ")

        link = cells[0].find("a")
        params = product_params(link.get("href") if link is not None else None)
        eye = eye_match.group(1)
        pick_size = params.get("pickSize", "")
        size = pick_size if len(pick_size) == 4 and pick_size.startswith(eye) else eye
        item = make_item(
            brand=brand_for_model(model),
            model=params.get("frame") or model,
            size=size,
            quantity=quantity,
            color=color.strip() or None,
            color_code=params.get("pickColor"),
        )
        item.eye_size = item.eye_size or eye
        items.append(item)
    return items


def _dedupe(items: list[LineItem]) -> list[LineItem]:
    """Nested tables repeat rows; keep the first copy of each model, colour and size."""
    seen: set[tuple[str, str, str]] = set()
    unique: list[LineItem] = []
    for item in items:
        key = (item.model, item.color_code or item.color or "", item.eye_size or "")
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


__all__ = ["BRAND_PREFIXES", "MarchonParser", "brand_for_model", "product_params"]
