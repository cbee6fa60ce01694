"""PDF text extraction for vendors that attach their order as a PDF."""

from __future__ import annotations

import io
import logging

import pdfplumber

from frame_intake.core.interfaces import ParseFailure
from frame_intake.core.models import InboundMessage

LOGGER = logging.getLogger(__name__)


def extract_pdf_text(pdf_bytes: bytes) -> str:
    """Return the text of every page joined by newlines."""
    with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
        text_parts = []
        for page in pdf.pages:
            page_text = page.extract_text()
            if page_text:
                text_parts.append(page_text)
    return "\n".join(text_parts)


def attachment_text(vendor_code: str, message: InboundMessage) -> str:
    """Return the text of the message's PDF attachment or raise ParseFailure."""
    attachment = message.pdf_attachment
    if attachment is None:
        raise ParseFailure(vendor_code, "PDF attachment not found")
    try:
        text = extract_pdf_text(attachment.content)
    except Exception as exc:  # pylint: disable=broad-except
        LOGGER.warning(
            "Unable to read PDF %s for %s", attachment.file_name, vendor_code, exc_info=True
        )
        raise ParseFailure(vendor_code, f"unreadable PDF attachment: {exc}") from exc
    if not text.strip():
        raise ParseFailure(vendor_code, "PDF attachment contains no text")
    LOGGER.debug("Extracted %d characters from %s", len(text), attachment.file_name)
    return text


__all__ = ["attachment_text", "extract_pdf_text"]
