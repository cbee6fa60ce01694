"""I-Deal Optics web order emails."""

from __future__ import annotations

import re

from frame_intake.core.datetime_utils import normalize_order_date
from frame_intake.core.models import InboundMessage, LineItem, ParsedOrder

from .base import cell_text, make_item, require_items, soup_of

VENDOR_CODE = "ideal_optics"
BRAND = "Ideal Optics"

_ORDER_LABELS = {
    "Web Order #": "order_number",
    "Order Date": "order_date",
    "Ordered By": "ordered_by",
    "Purchase Order": "purchase_order",
    "Ship Method": "ship_method",
    "Promotional Code": "promotional_code",
}
_HEADER_BACKGROUNDS = ("CCCCCC", "rgb(204, 204, 204)", "rgb(204,204,204)")
_ACCOUNT_HEADERS = {"Account", "Contact Name"}


class IdealOpticsParser:
    """Parse label/value order info and the Style Name item table."""

    vendor_code = VENDOR_CODE

    def parse(self, message: InboundMessage) -> ParsedOrder:
        soup = soup_of(message.html)
        items_table = _table_with_cell(soup, "Style Name")
        require_items(VENDOR_CODE, items_table is not None, "Style Name items table")

        info = _order_info(soup)
        account, contact = _account_info(soup)
        return ParsedOrder(
            vendor_code=VENDOR_CODE,
            order_number=info.get("order_number"),
            order_date=normalize_order_date(info.get("order_date")),
            account_number=account,
            customer_name=contact,
            placed_by=info.get("ordered_by"),
            items=tuple(_parse_items(items_table)),
            metadata={
                "purchase_order": info.get("purchase_order"),
                "ship_method": info.get("ship_method"),
                "promotional_code": info.get("promotional_code"),
            },
        )


def _table_with_cell(soup, label: str):
    for cell in soup.find_all("td"):
        if cell_text(cell) == label:
            return cell.find_parent("table")
    return None


def _order_info(soup) -> dict[str, str]:
    info: dict[str, str] = {}
    for cell in soup.find_all("td"):
        text = cell_text(cell)
        for label, key in _ORDER_LABELS.items():
            if key in info or label not in text or len(text) > len(label) + 2:
                continue
            value_cell = cell.find_next_sibling("td")
            value = cell_text(value_cell)
            if value:
                info[key] = value
    return info


def _account_info(soup) -> tuple[str | None, str | None]:
    table = None
    for cell in soup.find_all("td"):
        if cell_text(cell) == "Account Information":
            table = cell.find_parent("table")
            break
    if table is None:
        return None, None
    for row in table.find_all("tr"):
        cells = row.find_all("td")
        if len(cells) < 2 or cells[0].find(["strong", "b"]) is not None:
            continue
        first = cell_text(cells[0])
        if not first or first in _ACCOUNT_HEADERS or "Account Information" in first:
            continue
        if len(first) < 20:
            return first, cell_text(cells[1]) or None
    return None, None


def _is_header_cell(cell) -> bool:
    style = cell.get("style") or ""
    classes = cell.get("class") or []
    return "x_secondaryheader" in classes or any(
        marker in style for marker in _HEADER_BACKGROUNDS
    )


def _parse_items(table) -> list[LineItem]:
    items: list[LineItem] = []
    for row in table.find_all("tr"):
        cells = row.find_all("td")
        if len(cells) < 4 or _is_header_cell(cells[0]):
            continue
        style_name, color, size, quantity = (cell_text(cell) for cell in cells[:4])
        lowered = style_name.lower()
        if not style_name or style_name == "Style Name" or "total" in lowered or "quantity" in lowered:
            continue
        items.append(
            make_item(
                brand=BRAND,
                model=style_name,
                size=size,
                quantity=quantity,
                color=color or None,
                sku=re.sub(r"\s+", "-", f"{style_name}-{color}-{size}"),
            )
        )
    return items


__all__ = ["IdealOpticsParser"]
