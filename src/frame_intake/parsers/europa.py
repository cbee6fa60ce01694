"""Europa eyewear order emails."""

from __future__ import annotations

import re

from frame_intake.core.datetime_utils import normalize_order_date
from frame_intake.core.models import InboundMessage, LineItem, ParsedOrder

from .base import cell_text, make_item, message_text, require_items, search, soup_of

VENDOR_CODE = "europa"
DEFAULT_BRAND = "Europa"

_HEADER_STYLES = ("204", "11, 27, 87")
_COLOR = re.compile(r"^(\d+)\s+(.+)$")


class EuropaParser:
    """Parse the Order Items table of a Europa confirmation."""

    vendor_code = VENDOR_CODE

    def parse(self, message: InboundMessage) -> ParsedOrder:
        soup = soup_of(message.html)
        text = message_text(message)
        items_table = _section_table(soup, "Order Items")
        require_items(VENDOR_CODE, items_table is not None, "Order Items table")

        customer = _data_row(_section_table(soup, "Customer"), 8)
        ship_to = _data_row(_section_table(soup, "Ship Address"), 6)
        return ParsedOrder(
            vendor_code=VENDOR_CODE,
            order_number=search(r"Order\s*#[:\s]*(\d+)", text),
            order_date=normalize_order_date(search(r"\bDate[:\s]*([\d/]+)", text)),
            account_number=customer[0] if customer else None,
            customer_name=customer[1] if customer else None,
            placed_by=search(r"Order Placed By Rep[: \t]*([^\n]+)", text),
            items=tuple(_parse_items(items_table)),
            metadata={
                "terms": search(r"\bTerms[: \t]*([^\n]+)", text),
                "ship_method": search(r"Ship Method[: \t]*([^\n]+)", text),
                "ship_to": ship_to[0] if ship_to else None,
            },
        )


def _section_table(soup, heading: str):
    """Innermost table whose own cell reads exactly ``heading``."""
    for cell in soup.find_all("td"):
        if cell.find("table") is None and cell_text(cell) == heading:
            return cell.find_parent("table")
    return None


def _is_header_cell(cell) -> bool:
    style = cell.get("style") or ""
    classes = cell.get("class") or []
    if any("header" in name for name in classes):
        return True
    return "background" in style and any(marker in style for marker in _HEADER_STYLES)


def _data_row(table, width: int) -> list[str] | None:
    if table is None:
        return None
    for row in table.find_all("tr"):
        cells = row.find_all("td")
        if len(cells) >= width and not _is_header_cell(cells[0]):
            return [cell_text(cell) for cell in cells]
    return None


def _parse_items(table) -> list[LineItem]:
    items: list[LineItem] = []
    for row in table.find_all("tr"):
        cells = row.find_all("td")
        if len(cells) < 5 or _is_header_cell(cells[0]) or cells[0].get("colspan"):
            continue
        model_cell, color_cell, size_cell, qty_cell = (cell_text(cell) for cell in cells[1:5])
        if not model_cell or "Displays / POP" in model_cell:
            continue
        availability = cell_text(cells[5]) if len(cells) > 5 else ""

        brand, model = DEFAULT_BRAND, model_cell
        if " - " in model_cell:
            brand, model = (part.strip() for part in model_cell.split(" - ", 1))

        # "1 Black - Green Nylon Polarized - ST": the code leads, lens details trail.
        color_code, color = None, color_cell
        color_match = _COLOR.match(color_cell)
        if color_match:
            color_code, color = color_match.group(1), color_match.group(2)

        items.append(
            make_item(
                brand=brand,
                model=model,
                fallback_brand=DEFAULT_BRAND,
                size=size_cell,
                quantity=qty_cell,
                color=color or None,
                color_code=color_code,
                in_stock=availability.lower() != "back-ordered",
            )
        )
    return items


__all__ = ["EuropaParser"]
