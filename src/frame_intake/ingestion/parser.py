"""Utilities for turning raw RFC822 messages into inbound messages."""

from __future__ import annotations

from collections.abc import Iterable
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from email.utils import getaddresses

from ..core.models import Attachment, InboundMessage


class EmailParser:
    """Convert raw email payloads into :class:`InboundMessage` values."""

    def __init__(self) -> None:
        self._parser = BytesParser(policy=policy.default)

    def parse(self, payload: bytes) -> InboundMessage:
        """Parse raw RFC822 bytes, keeping attachment content for PDF parsers."""
        message = self._parser.parsebytes(payload)
        body_text, body_html = _extract_bodies(message)
        return InboundMessage(
            sender=_take_first_address(message.get("From")),
            subject=message.get("Subject"),
            text=body_text,
            html=body_html,
            attachments=tuple(_collect_attachments(message)),
            recipient=_take_first_address(message.get("To")),
        )


def _extract_addresses(headers: Iterable[str]) -> Iterable[str]:
    for _, email_address in getaddresses(headers):
        if email_address:
            yield email_address


def _take_first_address(header_value: str | None) -> str | None:
    if header_value is None:
        return None
    addresses = list(_extract_addresses([header_value]))
    return addresses[0] if addresses else None


def _collapse_chunks(chunks: Iterable[str], separator: str) -> str | None:
    filtered_chunks = [chunk for chunk in chunks if chunk]
    if not filtered_chunks:
        return None
    return separator.join(filtered_chunks)


def _extract_bodies(message: EmailMessage) -> tuple[str | None, str | None]:
    plain_chunks: list[str] = []
    html_chunks: list[str] = []

    for part in message.walk():
        if part.is_multipart():
            continue
        if part.get_content_disposition() == "attachment":
            continue
        try:
            content_obj = part.get_content()
        except LookupError:
            continue
        if not isinstance(content_obj, str):
            continue
        content = content_obj.strip()
        content_type = part.get_content_type()
        if content_type == "text/plain":
            plain_chunks.append(content)
        elif content_type == "text/html":
            html_chunks.append(content)

    return _collapse_chunks(plain_chunks, "\n\n"), _collapse_chunks(html_chunks, "\n")


def _collect_attachments(message: EmailMessage) -> Iterable[Attachment]:
    for part in message.iter_attachments():
        payload = part.get_payload(decode=True) or b""
        if not isinstance(payload, bytes):
            continue
        yield Attachment(
            file_name=part.get_filename(),
            content_type=part.get_content_type(),
            content=payload,
        )


__all__ = ["EmailParser"]
