"""Protocol interfaces and pipeline error taxonomy."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Protocol

from .models import (
    CatalogEntry,
    CatalogProduct,
    ClassificationResult,
    InboundMessage,
    InventoryRecord,
    InventoryStatus,
    OrderHistoryEntry,
    OrderRecord,
    OrderStatus,
    ParsedOrder,
    ParseStatus,
)


class ClassificationAmbiguous(RuntimeError):
    """Raised when no vendor could be identified with usable confidence."""

    def __init__(self, result: ClassificationResult, message: str) -> None:
        super().__init__(message)
        self.result = result


class ParseFailure(RuntimeError):
    """Raised when a known vendor's message lacks a required structural anchor."""

    def __init__(self, vendor_code: str, reason: str) -> None:
        super().__init__(f"{vendor_code}: {reason}")
        self.vendor_code = vendor_code
        self.reason = reason


class EnrichmentMiss(RuntimeError):
    """Raised inside the enrichment service when no catalog data is usable."""


class LifecycleConflict(RuntimeError):
    """Raised when an operation would violate the inventory state lattice."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class CatalogError(RuntimeError):
    """Raised when a vendor catalog request fails after retries."""


class CatalogSearchClient(Protocol):
    """Abstraction over a vendor product-search endpoint."""

    vendor_code: str

    def search(self, term: str) -> list[CatalogProduct]:
        """Return products whose model matches ``term``."""
        raise NotImplementedError


class CatalogRepository(Protocol):
    """Persistence for the catalog cache."""

    def upsert_catalog_entries(self, entries: Sequence[CatalogEntry]) -> int:
        """Insert or overwrite entries on their composite key."""
        raise NotImplementedError

    def find_catalog_entries(self, vendor_code: str, model: str) -> list[CatalogEntry]:
        """Return cached variants for a vendor model."""
        raise NotImplementedError


class InventoryRepository(Protocol):
    """Persistence for messages, orders, inventory and order history."""

    def record_message(
        self,
        account_id: str,
        message: InboundMessage,
        classification: ClassificationResult,
        parse_status: ParseStatus,
        error: str | None = None,
    ) -> int:
        """Store an inbound message for audit and triage."""
        raise NotImplementedError

    def update_message_status(
        self, message_id: int, parse_status: ParseStatus, error: str | None = None
    ) -> None:
        """Update the triage status of a stored message."""
        raise NotImplementedError

    def find_order(
        self, account_id: str, order_number: str, vendor_code: str | None = None
    ) -> OrderRecord | None:
        """Look an order up by its natural key."""
        raise NotImplementedError

    def find_orders(self, account_id: str, order_number: str) -> list[OrderRecord]:
        """Return all orders with ``order_number``, one per vendor."""
        raise NotImplementedError

    def fetch_order(self, order_id: int) -> OrderRecord | None:
        """Retrieve an order by identifier."""
        raise NotImplementedError

    def create_order(
        self, account_id: str, parsed: ParsedOrder, message_id: int | None
    ) -> OrderRecord:
        """Persist an order with its items in ``pending`` status."""
        raise NotImplementedError

    def list_items(
        self, order_id: int, statuses: Iterable[InventoryStatus] | None = None
    ) -> list[InventoryRecord]:
        """Return inventory rows belonging to an order."""
        raise NotImplementedError

    def fetch_item(self, item_id: int) -> InventoryRecord | None:
        """Retrieve a single inventory row."""
        raise NotImplementedError

    def confirm_items(
        self,
        order: OrderRecord,
        updates: Mapping[int, Mapping[str, Any]],
        history: OrderHistoryEntry | None,
    ) -> list[int]:
        """Flip pending rows to current and append history atomically."""
        raise NotImplementedError

    def transition_item(
        self,
        item_id: int,
        from_statuses: Sequence[InventoryStatus],
        to_status: InventoryStatus,
    ) -> bool:
        """Move a row between statuses; ``False`` if it was not in ``from_statuses``."""
        raise NotImplementedError

    def archive_order(self, order: OrderRecord, history: OrderHistoryEntry) -> int:
        """Archive an order and its unsold items; return items archived."""
        raise NotImplementedError

    def set_order_status(self, order_id: int, status: OrderStatus) -> None:
        """Store the derived status of an order."""
        raise NotImplementedError

    def append_history(self, entry: OrderHistoryEntry) -> OrderHistoryEntry:
        """Append an audit row."""
        raise NotImplementedError

    def list_history(self, order_id: int) -> list[OrderHistoryEntry]:
        """Return audit rows for an order, oldest first."""
        raise NotImplementedError

    def delete_order(self, order_id: int) -> bool:
        """Remove an order and its rows."""
        raise NotImplementedError


__all__ = [
    "CatalogError",
    "CatalogRepository",
    "CatalogSearchClient",
    "ClassificationAmbiguous",
    "EnrichmentMiss",
    "InventoryRepository",
    "LifecycleConflict",
    "ParseFailure",
]
