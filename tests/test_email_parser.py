"""Tests for RFC822 message decoding."""

from __future__ import annotations

from email.message import EmailMessage

from frame_intake.ingestion import EmailParser


def _raw_message() -> bytes:
    message = EmailMessage()
    message["From"] = "Shop Owner <owner@gmail.com>"
    message["To"] = "intake@shop.example"
    message["Subject"] = "Fwd: Safilo order SO-1001"
    message.set_content("See attached order.")
    message.add_alternative("<p>See attached <b>order</b>.</p>", subtype="html")
    message.add_attachment(
        b"%PDF-1.4 fake",
        maintype="application",
        subtype="pdf",
        filename="order.pdf",
    )
    return message.as_bytes()


def test_parse_extracts_headers_bodies_and_attachments() -> None:
    parsed = EmailParser().parse(_raw_message())

    assert parsed.sender == "owner@gmail.com"
    assert parsed.recipient == "intake@shop.example"
    assert parsed.subject == "Fwd: Safilo order SO-1001"
    assert parsed.text == "See attached order."
    assert parsed.html == "<p>See attached <b>order</b>.</p>"
    assert len(parsed.attachments) == 1
    attachment = parsed.pdf_attachment
    assert attachment is not None
    assert attachment.file_name == "order.pdf"
    assert attachment.content == b"%PDF-1.4 fake"


def test_parse_plain_message_without_attachments() -> None:
    raw = b"From: orders@mysafilo.com\r\nSubject: Order\r\n\r\nOrder has been received\r\n"

    parsed = EmailParser().parse(raw)

    assert parsed.sender == "orders@mysafilo.com"
    assert parsed.recipient is None
    assert parsed.text == "Order has been received"
    assert parsed.html is None
    assert parsed.attachments == ()
    assert parsed.pdf_attachment is None
