"""Modern Optical web-order emails."""

from __future__ import annotations

import re

from frame_intake.core.datetime_utils import normalize_order_date
from frame_intake.core.models import InboundMessage, LineItem, ParsedOrder

from .base import cell_text, make_item, message_text, require_items, search, soup_of

VENDOR_CODE = "modern_optical"

COLOR_ABBREVIATIONS = {
    "BLK": "Black",
    "BLACK": "Black",
    "GM": "Gunmetal",
    "GUN": "Gunmetal",
    "GUNMETAL": "Gunmetal",
    "SIL": "Silver",
    "SILVER": "Silver",
    "GLD": "Gold",
    "GOLD": "Gold",
    "BR": "Brown",
    "BROWN": "Brown",
    "BL": "Blue",
    "BLUE": "Blue",
    "GR": "Gray",
    "GRAY": "Gray",
    "GREY": "Grey",
    "GN": "Green",
    "GREEN": "Green",
    "RD": "Red",
    "RED": "Red",
    "WH": "White",
    "WHITE": "White",
    "CL": "Clear",
    "CLEAR": "Clear",
    "TORT": "Tortoise",
    "TORTOISE": "Tortoise",
    "DEMI": "Demi",
    "NAVY": "Navy",
    "NVY": "Navy",
    "AQUA": "Aqua",
    "TEAL": "Teal",
    "PINK": "Pink",
    "PK": "Pink",
    "RUST": "Rust",
    "BURG": "Burgundy",
    "BURGUNDY": "Burgundy",
    "FADE": "Fade",
    "CRY": "Crystal",
    "CRYST": "Crystal",
    "CRYSTAL": "Crystal",
}

_CUSTOMER = re.compile(r"([A-Z][A-Z0-9\s&.,'@-]+?)\s*\((\d{4,6})\)")


def normalize_color(raw: str | None) -> str | None:
    """Expand abbreviations word by word: ``BLK/GM`` becomes ``Black/Gunmetal``."""
    if not raw:
        return None

    def expand(word: str) -> str:
        upper = word.upper()
        return COLOR_ABBREVIATIONS.get(upper, word.capitalize())

    parts = []
    for chunk in raw.split("/"):
        parts.append(" ".join(expand(word) for word in chunk.split()))
    return "/".join(parts)


class ModernOpticalParser:
    """Parse the line-item table of a Modern Optical order."""

    vendor_code = VENDOR_CODE

    def parse(self, message: InboundMessage) -> ParsedOrder:
        soup = soup_of(message.html)
        text = message_text(message)
        items = _parse_rows(soup)
        require_items(VENDOR_CODE, bool(soup.select("tbody tr")), "line item table")

        customer_name, account_number = _customer(soup, text)
        return ParsedOrder(
            vendor_code=VENDOR_CODE,
            order_number=search(r"Order\s*(?:Number|#)?\s*:?\s*(\d+)", text),
            order_date=normalize_order_date(search(r"Date:\s*([\d/]+)", text)),
            account_number=account_number,
            customer_name=customer_name,
            placed_by=search(r"Placed By Rep:[ \t]*([^\n]+)", text),
            items=tuple(items),
            metadata={"total_pieces_reported": search(r"Total Pieces:\s*(\d+)", text)},
        )


def _customer(soup, text: str) -> tuple[str | None, str | None]:
    heading = soup.find(lambda tag: tag.name == "h3" and cell_text(tag) == "Customer")
    candidates = []
    if heading is not None:
        paragraph = heading.find_next("p")
        if paragraph is not None:
            candidates.append(cell_text(paragraph))
    candidates.append(text)
    for candidate in candidates:
        match = _CUSTOMER.search(candidate)
        if match:
            return match.group(1).strip(), match.group(2)
    return None, search(r"Account\s*#?\s*:?\s*(\d{4,6})\b", text)


def _parse_rows(soup) -> list[LineItem]:
    items: list[LineItem] = []
    for row in soup.select("tbody tr"):
        cells = row.find_all("td")
        if len(cells) < 5:
            continue
        model_cell, color_cell, size_cell, qty_cell = (cell_text(cell) for cell in cells[1:5])
        if not (model_cell and color_cell and size_cell) or " - " not in model_cell:
            continue
        if "Model" in model_cell or "Image" in model_cell:
            continue
        brand, model = (part.strip() for part in model_cell.split(" - ", 1))
        items.append(
            make_item(
                brand=brand,
                model=model,
                size=size_cell,
                quantity=qty_cell,
                color=normalize_color(color_cell),
                color_code=color_cell,
                sku=re.sub(r"[\s/]+", "_", f"{brand}-{model}-{color_cell}"),
            )
        )
    return items


__all__ = ["COLOR_ABBREVIATIONS", "ModernOpticalParser", "normalize_color"]
