"""Safilo order PDFs."""

from __future__ import annotations

import re

from frame_intake.core.datetime_utils import normalize_order_date
from frame_intake.core.models import InboundMessage, LineItem, ParsedOrder

from .base import UNKNOWN_BRAND, make_item, require_items, search
from .pdf import attachment_text

VENDOR_CODE = "safilo"

# prefix -> (brand, model token count, prefix is part of the model)
_MODEL_LAYOUT: dict[str, tuple[str, int, bool]] = {
    "CARRERA": ("Carrera", 1, False),
    "VICTORY": ("Carrera", 3, True),
    "CARDUC": ("Carrera Ducati", 2, True),
    "CH": ("Chesterfield", 2, True),
    "KS": ("Kate Spade", 3, True),
    "KSP": ("Kate Spade", 2, True),
    "CATRINA": ("Kate Spade", 1, True),
    "JOLIET": ("Kate Spade", 1, True),
    "MIS": ("Missoni", 2, True),
    "BOSS": ("Hugo Boss", 2, True),
    "HG": ("Hugo", 2, True),
    "MJ": ("Marc Jacobs", 2, True),
    "PLD": ("Polaroid", 2, True),
    "FOS": ("Fossil", 2, True),
    "LS": ("Levi's", 2, True),
    "JC": ("Jimmy Choo", 2, True),
}

_SIZE = re.compile(r"(\d{2})/(\d{2})\s+(\d{3})")
_DATE_STAMP = re.compile(r"\d{5}/\d{2}/\d{4}\.?")
_DATE_ONLY = re.compile(r"^\d{1,2}/\d{1,2}/\d{2,4}$")
_SKIP_MARKERS = ("total", "*date available", "page ")
_MAX_CONTINUATION = 4


class SafiloParser:
    """Parse the frame list from a Safilo order confirmation PDF."""

    vendor_code = VENDOR_CODE

    def parse(self, message: InboundMessage) -> ParsedOrder:
        return self.parse_text(attachment_text(VENDOR_CODE, message))

    def parse_text(self, text: str) -> ParsedOrder:
        lines = [line.strip() for line in text.splitlines()]
        header = _parse_header(lines, text)
        start = next(
            (index + 1 for index, line in enumerate(lines) if "Item Description" in line),
            None,
        )
        require_items(VENDOR_CODE, start is not None, "Item Description section")
        items = _parse_frames(lines[start:])
        return ParsedOrder(
            vendor_code=VENDOR_CODE,
            order_number=header["order_number"] or header["eyerep_number"],
            order_date=normalize_order_date(header["order_date"]),
            account_number=header["account_number"],
            customer_name=header["customer_name"],
            customer_code=header["customer_code"],
            placed_by=header["placed_by"],
            items=tuple(items),
            metadata={
                "eyerep_order_number": header["eyerep_number"],
                "placed_by_number": header["placed_by_number"],
            },
        )


def _value_after(lines: list[str], label: str, offset: int) -> str | None:
    for index, line in enumerate(lines):
        if line == label and index + offset < len(lines):
            return lines[index + offset] or None
    return None


def _parse_header(lines: list[str], text: str) -> dict[str, str | None]:
    header: dict[str, str | None] = {
        "account_number": search(r"Account Number:?[ \t]*(\d{6,})", text),
        "order_number": search(r"Order Reference Number:?[ \t]*(\d+)", text),
        "eyerep_number": search(r"EyeRep Order Number:?[ \t]*(\d+)", text),
        "order_date": search(r"Date:[ \t]*(\d{2}/\d{2}/\d{4})", text),
        "customer_name": None,
        "customer_code": None,
        "placed_by": None,
        "placed_by_number": None,
    }

    # Labels stacked above their values: account, EyeRep number, reference number.
    for index, line in enumerate(lines):
        if line == "Account Number:" and index + 5 < len(lines):
            header["account_number"] = header["account_number"] or lines[index + 3] or None
            header["eyerep_number"] = header["eyerep_number"] or lines[index + 4] or None
            header["order_number"] = header["order_number"] or lines[index + 5] or None
            break

    if header["order_date"] is None:
        for offset in (1, 2):
            candidate = _value_after(lines, "Date:", offset)
            if candidate and re.search(r"\d{2}/\d{2}/\d{4}", candidate):
                header["order_date"] = candidate
                break

    placed_by = search(r"Placed By:[ \t]*(\S.*)", text) or _value_after(lines, "Placed By:", 2)
    if placed_by:
        match = re.match(r"^(\d+)\s+(.+)$", placed_by)
        if match:
            header["placed_by_number"] = match.group(1)
            header["placed_by"] = match.group(2).strip()
        else:
            header["placed_by"] = placed_by

    customer = re.search(r"Customer:\s*([^(\n]+)\s*\(([^)]+)\)", text)
    if customer:
        header["customer_name"] = customer.group(1).strip()
        header["customer_code"] = customer.group(2).strip()
    return header


def _parse_frames(lines: list[str]) -> list[LineItem]:
    items: list[LineItem] = []
    buffer: list[str] = []
    for line in lines:
        lowered = line.lower()
        if not line or any(marker in lowered for marker in _SKIP_MARKERS):
            buffer.clear()
            continue
        if _DATE_ONLY.match(line):
            continue
        if line.split()[0].upper() in _MODEL_LAYOUT:
            buffer = [line]
        else:
            buffer.append(line)
        joined = " ".join(buffer)
        if _SIZE.search(joined):
            item = _parse_frame_line(joined)
            if item is not None:
                items.append(item)
            buffer.clear()
        elif len(buffer) >= _MAX_CONTINUATION:
            buffer = buffer[-1:]
    return items


def _parse_frame_line(line: str) -> LineItem | None:
    line = _DATE_STAMP.sub("", line)
    line = re.sub(r"\s+", " ", line).strip()
    size_match = _SIZE.search(line)
    if size_match is None:
        return None
    tokens = line[: size_match.start()].split()
    if len(tokens) < 2:
        return None

    brand, model_tokens, prefix_in_model = _MODEL_LAYOUT.get(
        tokens[0].upper(), (UNKNOWN_BRAND, 2, True)
    )
    start = 0 if prefix_in_model else 1
    end = min(start + model_tokens, len(tokens))
    model = " ".join(tokens[start:end])
    color_code = tokens[end] if end < len(tokens) else None
    color = " ".join(tokens[end + 1 :]).replace("_", " ").strip() or None

    eye, bridge, temple = size_match.groups()
    return make_item(
        brand=brand,
        model=model,
        size=f"{eye}/{bridge}/{temple}",
        quantity=1,
        color=color,
        color_code=color_code,
    )


__all__ = ["SafiloParser"]
