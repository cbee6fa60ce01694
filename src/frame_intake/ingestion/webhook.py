"""Inbound webhook payload model."""

from __future__ import annotations

import base64
import binascii
import logging

from pydantic import BaseModel, ConfigDict, Field

from frame_intake.core.models import Attachment, InboundMessage

LOGGER = logging.getLogger(__name__)


class WebhookHeaders(BaseModel):
    """Envelope headers forwarded by the mail relay."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    to: str | None = None
    sender: str | None = Field(default=None, alias="from")
    subject: str | None = None


class WebhookAttachment(BaseModel):
    """Attachment with base64 encoded content."""

    model_config = ConfigDict(extra="ignore")

    content: str = ""
    file_name: str | None = None
    content_type: str | None = None

    def decode(self) -> bytes | None:
        try:
            return base64.b64decode(self.content, validate=False)
        except (binascii.Error, ValueError):
            LOGGER.warning("Skipping attachment %s with invalid base64", self.file_name)
            return None


class WebhookPayload(BaseModel):
    """Transport-independent inbound message payload."""

    model_config = ConfigDict(extra="ignore")

    headers: WebhookHeaders = Field(default_factory=WebhookHeaders)
    plain: str | None = None
    html: str | None = None
    attachments: list[WebhookAttachment] = Field(default_factory=list)

    def to_message(self) -> InboundMessage:
        attachments: list[Attachment] = []
        for attachment in self.attachments:
            content = attachment.decode()
            if content is None:
                continue
            attachments.append(
                Attachment(
                    file_name=attachment.file_name,
                    content_type=attachment.content_type,
                    content=content,
                )
            )
        return InboundMessage(
            sender=self.headers.sender,
            subject=self.headers.subject,
            text=self.plain,
            html=self.html,
            attachments=tuple(attachments),
            recipient=self.headers.to,
        )


__all__ = ["WebhookAttachment", "WebhookHeaders", "WebhookPayload"]
