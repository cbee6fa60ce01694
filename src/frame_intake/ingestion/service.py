"""End-to-end handling of one inbound vendor message."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from frame_intake.core.interfaces import ClassificationAmbiguous, InventoryRepository, ParseFailure
from frame_intake.core.models import ClassificationResult, InboundMessage, IngestionResult
from frame_intake.lifecycle.manager import OrderLifecycleManager

from .classifier import VendorClassifier, require_vendor
from .normalizer import normalize_html

if TYPE_CHECKING:
    from frame_intake.parsers.base import ParserRegistry

LOGGER = logging.getLogger(__name__)


class IngestionService:
    """Classify, record, parse and hand a message to the lifecycle manager.

    The message row is kept whatever happens so unrecognised or unparseable
    mail can be triaged by hand.
    """

    def __init__(
        self,
        classifier: VendorClassifier,
        registry: ParserRegistry,
        repository: InventoryRepository,
        lifecycle: OrderLifecycleManager,
        *,
        min_confidence: int = 60,
    ) -> None:
        self._classifier = classifier
        self._registry = registry
        self._repository = repository
        self._lifecycle = lifecycle
        self._min_confidence = min_confidence

    def ingest(self, account_id: str, message: InboundMessage) -> IngestionResult:
        # Forwarding headers are stripped by normalisation, so classify the raw message.
        classification = self._classifier.classify(message)
        try:
            vendor_code = require_vendor(classification, self._min_confidence)
        except ClassificationAmbiguous as exc:
            message_id = self._repository.record_message(
                account_id, message, classification, "unrecognized", str(exc)
            )
            LOGGER.warning("Message %s left for triage: %s", message_id, exc)
            return IngestionResult(
                message_id=message_id,
                parse_status="unrecognized",
                classification=classification,
                error=str(exc),
            )

        message_id = self._repository.record_message(account_id, message, classification, "parsed")
        normalized = replace(message, html=normalize_html(message.html))
        try:
            parsed = self._registry.parse(vendor_code, normalized)
            order, created = self._lifecycle.ingest(account_id, parsed, message_id)
        except ParseFailure as exc:
            LOGGER.warning("Message %s from %s failed to parse: %s", message_id, vendor_code, exc)
            return self._failed(message_id, classification, str(exc))
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.exception("Unexpected error ingesting message %s from %s", message_id, vendor_code)
            return self._failed(message_id, classification, f"{type(exc).__name__}: {exc}")

        if not created:
            self._repository.update_message_status(message_id, "duplicate")
            return IngestionResult(
                message_id=message_id,
                parse_status="duplicate",
                classification=classification,
                order=order,
            )
        return IngestionResult(
            message_id=message_id,
            parse_status="parsed",
            classification=classification,
            order=order,
        )

    def _failed(
        self, message_id: int, classification: ClassificationResult, error: str
    ) -> IngestionResult:
        self._repository.update_message_status(message_id, "failed", error)
        return IngestionResult(
            message_id=message_id,
            parse_status="failed",
            classification=classification,
            error=error,
        )


__all__ = ["IngestionService"]
