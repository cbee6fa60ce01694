"""Tests for the PDF vendor parsers through their text entry points."""

from __future__ import annotations

import pytest

from frame_intake.core.interfaces import ParseFailure
from frame_intake.core.models import InboundMessage
from frame_intake.parsers import EtniaBarcelonaParser, SafiloParser

SAFILO_TEXT = """SAFILO USA
Account Number: 0001234567
Order Reference Number: 4455667
EyeRep Order Number: 998877
Date: 03/15/2024
Placed By: 1234 Jane Rep
Customer: BRIGHT EYES OPTICAL (BE100)
Item Description
CARRERA 8860 807 BLACK 55/18 145
03/20/2024
MJ 1034/S
0VK PINK_GOLD 54/17 145
Total 2
"""


def test_safilo_parser_reads_header_and_frames() -> None:
    order = SafiloParser().parse_text(SAFILO_TEXT)

    assert order.order_number == "4455667"
    assert order.order_date == "2024-03-15"
    assert order.account_number == "0001234567"
    assert order.customer_name == "BRIGHT EYES OPTICAL"
    assert order.customer_code == "BE100"
    assert order.placed_by == "Jane Rep"
    assert order.metadata["eyerep_order_number"] == "998877"
    assert order.metadata["placed_by_number"] == "1234"
    assert len(order.items) == 2

    carrera, marc = order.items
    assert (carrera.brand, carrera.model, carrera.color_code, carrera.color) == (
        "Carrera",
        "8860",
        "807",
        "BLACK",
    )
    assert (carrera.eye_size, carrera.bridge, carrera.temple) == ("55", "18", "145")
    assert (marc.brand, marc.model, marc.color_code, marc.color) == (
        "Marc Jacobs",
        "MJ 1034/S",
        "0VK",
        "PINK GOLD",
    )


def test_safilo_without_item_section_fails() -> None:
    with pytest.raises(ParseFailure):
        SafiloParser().parse_text("Order Reference Number: 1\n")


def test_safilo_message_without_pdf_fails() -> None:
    message = InboundMessage(sender=None, subject="Order", text="no attachment", html=None)
    with pytest.raises(ParseFailure, match="PDF attachment not found"):
        SafiloParser().parse(message)


ETNIA_TEXT = """Sales Order 700123
Date 02/01/2024
Customer ID 445566
Customer Reference PO-77
Billing Address:
SUNNY OPTICS
Shipping Address:
SUNNY OPTICS WEST
02/01/20241
1 RANIA 53O TQGR
RANIA 53O TQGR - METAL OPTICAL TURQUOISE. GREEN 53-19-142 (O)
8434567890123
2.00PC95.00USD0.00%190.00USD
02/01/20242
1 COCO 51O GRHV
COCO Grey Havana - Acetate Optical Frame 51-16-140
8434567890124
1.00PC80.00USD0.00%80.00USD
"""


def test_etnia_parser_reads_item_blocks() -> None:
    order = EtniaBarcelonaParser().parse_text(ETNIA_TEXT)

    assert order.order_number == "700123"
    assert order.order_date == "2024-02-01"
    assert order.account_number == "445566"
    assert order.customer_code == "PO-77"
    assert order.customer_name == "SUNNY OPTICS"
    assert order.metadata["ship_to"] == "SUNNY OPTICS WEST"
    assert order.total_pieces == 3

    rania, coco = order.items
    assert rania.brand == "Etnia Barcelona"
    assert rania.model == "RANIA"
    assert rania.color == "TURQUOISE. GREEN"
    assert rania.color_code == "TQGR"
    assert rania.upc == "8434567890123"
    assert rania.wholesale_price == 95.0
    assert rania.sku == "ETNIA_BARCELONA-RANIA_53O_TQGR"
    assert (rania.eye_size, rania.bridge, rania.temple) == ("53", "19", "142")
    assert coco.model == "COCO"
    assert coco.color == "Grey Havana"
    assert coco.eye_size == "51"


def test_etnia_without_item_blocks_fails() -> None:
    with pytest.raises(ParseFailure):
        EtniaBarcelonaParser().parse_text("Sales Order 1\n")
