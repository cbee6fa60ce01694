"""ClearVision CVOGo order emails."""

from __future__ import annotations

import re

from frame_intake.core.datetime_utils import normalize_order_date
from frame_intake.core.models import InboundMessage, LineItem, ParsedOrder

from .base import cell_text, lookup_brand, make_item, message_text, parse_price, require_items, search, soup_of

VENDOR_CODE = "clearvision"
DEFAULT_BRAND = "ClearVision"

BRAND_PREFIXES = {
    "ADV": "Advantage",
    "ASP": "Aspire",
    "DD": "Dilli Dalli",
    "JMC": "Jessica McClintock",
    "JM": "Jessica McClintock",
    "IZX": "Izod Xtreme",
    "IZ": "Izod",
    "PT": "Project Runway",
    "OP": "OP Ocean Pacific",
    "CVO": "CVO",
    "BD": "BD Eyewear",
}

_TRAILING_SIZE = re.compile(r"(\d{2})[/\-](\d{1,2})[/\-](\d{2,3})$")
_REP_IN_SUBJECT = re.compile(r"(?:[A-Za-z]+,\s*)?([A-Za-z]+\s+[A-Za-z]+)\s*-\s*New\s*CVOGo", re.IGNORECASE)


def split_description(description: str, model: str) -> tuple[str | None, str | None, str | None]:
    """Split ``ADV MT69 GUNMETAL MATTE/GREEN 54/17/145`` into brand, colour and size."""
    size_match = _TRAILING_SIZE.search(description)
    size = "/".join(size_match.groups()) if size_match else None
    remainder = description[: size_match.start()].strip() if size_match else description.strip()

    brand, prefix = lookup_brand(remainder, BRAND_PREFIXES, fallback="")
    if prefix:
        remainder = remainder[len(prefix) :].strip()
    if model and remainder.upper().startswith(model.upper()):
        remainder = remainder[len(model) :].strip()
    return brand or None, remainder or None, size


class ClearVisionParser:
    """Parse the SKU/model/qty table of a CVOGo order."""

    vendor_code = VENDOR_CODE

    def parse(self, message: InboundMessage) -> ParsedOrder:
        soup = soup_of(message.html)
        text = message_text(message)
        table = _items_table(soup)
        require_items(VENDOR_CODE, table is not None, "SKU/Model/Qty items table")

        rep = _REP_IN_SUBJECT.search(message.subject or "") or _REP_IN_SUBJECT.search(text)
        order_number = search(r"Order\s*(?:Reference\s*)?#[:\s]*(\d+)", text) or search(
            r"CVOGo\s*Order[:\s]*(\d+)", f"{message.subject}\n{text}"
        )
        return ParsedOrder(
            vendor_code=VENDOR_CODE,
            order_number=order_number,
            order_date=normalize_order_date(search(r"\bDate[:\s]*([\d/]+)", text)),
            account_number=search(r"Customer\s*ID[:\s]*(\d+)", text),
            customer_name=search(r"Customer(?!\s*ID)[: \t]+([^\n]+?)(?:\s*Customer Email|$)", text, re.I | re.M),
            placed_by=rep.group(1).strip() if rep else None,
            items=tuple(_parse_items(table)),
            metadata={
                "territory": search(r"Territory[:\s]*(\d+)", text),
                "terms": search(r"\bTerms[: \t]*([^\n]+)", text),
                "ship_via": search(r"Ship\s*Via[: \t]*([^\n]+)", text),
            },
        )


def _items_table(soup):
    for table in soup.find_all("table"):
        first_row = table.find("tr")
        if first_row is None:
            continue
        headers = [cell_text(cell).lower() for cell in first_row.find_all(["th", "td"])]
        if "sku" in headers and "model" in headers and any("qty" in header for header in headers):
            return table
    return None


def _parse_items(table) -> list[LineItem]:
    items: list[LineItem] = []
    for row in table.find_all("tr")[1:]:
        cells = row.find_all("td")
        if not cells or cells[0].get("colspan") or len(cells) < 6:
            continue
        # line no | image | sku | model | description | qty | list price
        sku, model, description, quantity = (cell_text(cell) for cell in cells[2:6])
        if not sku or not model:
            continue
        price = cell_text(cells[6]) if len(cells) > 6 else None

        described_brand, color, size = split_description(description, model)
        sku_brand = next(
            (
                BRAND_PREFIXES[prefix]
                for prefix in sorted(BRAND_PREFIXES, key=len, reverse=True)
                if sku.upper().startswith(prefix)
            ),
            None,
        )
        items.append(
            make_item(
                brand=described_brand or sku_brand,
                model=model,
                fallback_brand=DEFAULT_BRAND,
                size=size,
                quantity=quantity,
                color=color,
                sku=sku,
                wholesale_price=parse_price(price),
            )
        )
    return items


__all__ = ["BRAND_PREFIXES", "ClearVisionParser", "split_description"]
