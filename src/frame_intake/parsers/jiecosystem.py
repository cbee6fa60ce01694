"""Receipts from the shared jiecosystem storefront (Kenmark, L'amy America).

Both vendors send the same table layout: image | model | colour | size | qty.
The product image URL ends with the frame's UPC, which is the only stable
identifier these emails carry.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import unquote

from frame_intake.core.datetime_utils import normalize_order_date
from frame_intake.core.models import InboundMessage, LineItem, ParsedOrder
from frame_intake.ingestion.normalizer import unwrap_url

from .base import cell_text, make_item, message_text, require_items, search, soup_of

LOGGER = logging.getLogger(__name__)

_COLOR = re.compile(r"^([A-Z0-9]{2,4})\s+(.+)$")


class JiecosystemParser:
    """Parse a jiecosystem receipt; subclasses fill in the vendor specifics."""

    vendor_code = ""
    default_brand = ""
    image_segment = ""
    account_pattern = r"\d{5,10}"
    order_number_pattern = r"(?:Receipt for Order Number|Order Number)[:\s]*(\d+)"

    def parse(self, message: InboundMessage) -> ParsedOrder:
        soup = soup_of(message.html)
        text = message_text(message)
        rows = soup.select("tbody tr")
        require_items(self.vendor_code, bool(rows), "order items table")
        items = [item for item in (self._parse_row(row) for row in rows) if item is not None]

        customer = self._customer_block(soup, "Customer")
        ship_to = self._customer_block(soup, "Ship To")
        name_match = re.search(
            rf"([A-Z][A-Za-z0-9\s&.,'-]+?)\s*\(({self.account_pattern})\)", customer or text
        )
        account = search(rf"\(({self.account_pattern})\)", text, 0)
        missing_upc = sum(1 for item in items if not item.upc)
        if missing_upc:
            LOGGER.info("%s order has %d item(s) without a UPC", self.vendor_code, missing_upc)

        return ParsedOrder(
            vendor_code=self.vendor_code,
            order_number=search(self.order_number_pattern, text),
            order_date=normalize_order_date(search(r"Date:\s*([\d/]+)", text)),
            account_number=name_match.group(2) if name_match else account,
            customer_name=name_match.group(1).strip() if name_match else None,
            placed_by=search(r"Placed By Rep:[ \t]*([^\n]+)", text),
            items=tuple(items),
            metadata={
                "customer_phone": search(r"Phone:\s*([0-9().\s-]+?)\s*$", customer or "", re.M),
                "ship_to": ship_to,
            },
        )

    def _customer_block(self, soup, heading: str) -> str | None:
        for header in soup.find_all("h3"):
            if cell_text(header).lower() == heading.lower():
                paragraph = header.find_next_sibling("p")
                return cell_text(paragraph) or None if paragraph is not None else None
        return None

    def _parse_row(self, row) -> LineItem | None:
        cells = row.find_all("td")
        if len(cells) < 5:
            return None
        model_cell, color_cell, size_cell, qty_cell = (cell_text(cell) for cell in cells[1:5])
        if not (model_cell and color_cell and qty_cell):
            return None
        if "Model" in model_cell or "Image" in model_cell:
            return None

        brand, model = self.default_brand, model_cell
        if " - " in model_cell:
            brand, model = (part.strip() for part in model_cell.split(" - ", 1))

        color_code, color = None, color_cell
        color_match = _COLOR.match(color_cell)
        if color_match:
            color_code, color = color_match.group(1), color_match.group(2)

        item = make_item(
            brand=brand,
            model=model,
            fallback_brand=self.default_brand,
            size=size_cell,
            quantity=qty_cell,
            color=color,
            color_code=color_code,
            upc=self._image_upc(cells[0]),
        )
        if item.eye_size is None and size_cell.isdigit():
            item.eye_size = size_cell
        return item

    def _image_upc(self, cell) -> str | None:
        image = cell.find("img")
        source = image.get("src") if image is not None else None
        if not source:
            return None
        decoded = unquote(unwrap_url(source))
        return search(rf"/{self.image_segment}/(\d+)", decoded)


class KenmarkParser(JiecosystemParser):
    vendor_code = "kenmark"
    default_brand = "Kenmark"
    image_segment = "kenmark"


class LamyAmericaParser(JiecosystemParser):
    vendor_code = "lamyamerica"
    default_brand = "L'amy America"
    image_segment = "lamy"
    account_pattern = r"[A-Z0-9]{8,10}"
    order_number_pattern = r"(?:EyeRep Order Number|Order Number)[:\s]*(\d+)"


__all__ = ["JiecosystemParser", "KenmarkParser", "LamyAmericaParser"]
