"""Order and inventory lifecycle: pending, current, sold, archived."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from frame_intake.core.interfaces import InventoryRepository, LifecycleConflict, ParseFailure
from frame_intake.core.datetime_utils import utc_now
from frame_intake.core.models import (
    ConfirmResult,
    InventoryRecord,
    InventoryStatus,
    LineItem,
    OrderHistoryEntry,
    OrderRecord,
    OrderStatus,
    ParsedOrder,
)

if TYPE_CHECKING:
    from frame_intake.catalog.enrichment import EnrichmentService

LOGGER = logging.getLogger(__name__)

_ENRICHED_FIELDS = (
    "color",
    "color_code",
    "eye_size",
    "bridge",
    "temple",
    "upc",
    "sku",
    "wholesale_price",
    "msrp",
    "in_stock",
    "enriched",
    "confidence_score",
    "match_type",
)


def derive_order_status(records: Iterable[InventoryRecord]) -> OrderStatus:
    """``pending`` until something is received, ``confirmed`` once nothing is pending.

    Items archived straight from pending were never received and do not count
    towards confirmation.
    """
    values = list(records)
    if not any(record.received for record in values):
        return "pending"
    if any(record.status == "pending" for record in values):
        return "partial"
    return "confirmed"


def enrichment_fields(item: LineItem) -> dict[str, Any]:
    data = asdict(item)
    return {name: data[name] for name in _ENRICHED_FIELDS}


class OrderLifecycleManager:
    """Owns every status change of orders and their inventory rows."""

    def __init__(
        self,
        repository: InventoryRepository,
        enrichment: EnrichmentService | None = None,
        *,
        enrich_vendors: Sequence[str] = (),
    ) -> None:
        self._repository = repository
        self._enrichment = enrichment
        self._enrich_vendors = frozenset(enrich_vendors)

    # Orders ------------------------------------------------------------------
    def ingest(
        self, account_id: str, parsed: ParsedOrder, message_id: int | None = None
    ) -> tuple[OrderRecord, bool]:
        """Create the order with pending items; ``(existing, False)`` for a duplicate."""
        if not parsed.order_number:
            raise ParseFailure(parsed.vendor_code, "order number not found")
        existing = self._repository.find_order(account_id, parsed.order_number, parsed.vendor_code)
        if existing is not None:
            LOGGER.info(
                "Order %s from %s already ingested as #%s",
                parsed.order_number,
                parsed.vendor_code,
                existing.id,
            )
            return existing, False
        order = self._repository.create_order(account_id, parsed, message_id)
        self._repository.append_history(
            self._history(order, "ingested", len(parsed.items), f"{parsed.total_pieces} piece(s)")
        )
        LOGGER.info(
            "Ingested %s order %s with %d pending item(s)",
            order.vendor_code,
            order.order_number,
            len(parsed.items),
        )
        return order, True

    def confirm_order(
        self,
        account_id: str,
        order_number: str,
        item_ids: Sequence[int] | None = None,
        *,
        vendor_code: str | None = None,
    ) -> ConfirmResult:
        """Move pending items (all, or ``item_ids``) into current stock.

        Items already received are skipped rather than reported as errors so a
        repeated confirmation is harmless.
        """
        order = self._locate_order(account_id, order_number, vendor_code)
        order_id = _persisted_id(order)
        if order.status == "archived":
            raise LifecycleConflict(f"order {order_number} is archived")

        items = self._repository.list_items(order_id)
        by_id = {record.id: record for record in items}
        if item_ids is None:
            scope = items
        else:
            unknown = [item_id for item_id in item_ids if item_id not in by_id]
            if unknown:
                raise LifecycleConflict(
                    f"item(s) {', '.join(str(i) for i in unknown)} do not belong to order {order_number}"
                )
            scope = [by_id[item_id] for item_id in dict.fromkeys(item_ids)]

        selected = [record for record in scope if record.status == "pending"]
        skipped = [record.id for record in scope if record.status != "pending"]
        updates, enriched_ids = self._enrich(order, selected)

        history = self._history(order, "confirmed", len(selected))
        confirmed = self._repository.confirm_items(order, updates, history)
        skipped.extend(record.id for record in selected if record.id not in confirmed)

        records = self._repository.list_items(order_id)
        status = derive_order_status(records)
        self._repository.set_order_status(order_id, status)
        LOGGER.info(
            "Confirmed %d item(s) on %s order %s; status %s",
            len(confirmed),
            order.vendor_code,
            order_number,
            status,
        )
        return ConfirmResult(
            order_number=order_number,
            order_status=status,
            confirmed_ids=tuple(confirmed),
            skipped_ids=tuple(item_id for item_id in skipped if item_id is not None),
            enriched_count=len(enriched_ids.intersection(confirmed)),
            pending_count=sum(1 for record in records if record.status == "pending"),
        )

    def archive_order(self, order_id: int) -> int:
        """Archive the order with its pending and current items; return items archived."""
        order = self._require_order(order_id)
        if order.status == "archived":
            LOGGER.info("Order %s is already archived", order.order_number)
            return 0
        archived = self._repository.archive_order(order, self._history(order, "archived", 0))
        LOGGER.info("Archived order %s and %d item(s)", order.order_number, archived)
        return archived

    def delete_order(self, order_id: int) -> None:
        order = self._require_order(order_id)
        if order.status != "archived":
            raise LifecycleConflict(
                f"order {order.order_number} must be archived before it is deleted"
            )
        item_count = len(self._repository.list_items(order_id))
        self._repository.append_history(self._history(order, "deleted", item_count))
        self._repository.delete_order(order_id)
        LOGGER.info("Deleted order %s", order.order_number)

    def describe_order(
        self, account_id: str, order_number: str, *, vendor_code: str | None = None
    ) -> tuple[OrderRecord, list[InventoryRecord], list[OrderHistoryEntry]]:
        order = self._locate_order(account_id, order_number, vendor_code)
        order_id = _persisted_id(order)
        return (
            order,
            self._repository.list_items(order_id),
            self._repository.list_history(order_id),
        )

    # Items -------------------------------------------------------------------
    def mark_sold(self, item_id: int) -> InventoryRecord:
        return self._transition(item_id, ("current",), "sold")

    def archive_item(self, item_id: int) -> InventoryRecord:
        return self._transition(item_id, ("pending", "current"), "archived")

    def restore_item(self, item_id: int) -> InventoryRecord:
        return self._transition(item_id, ("archived",), "current")

    # Internal helpers --------------------------------------------------------
    def _enrich(
        self, order: OrderRecord, selected: list[InventoryRecord]
    ) -> tuple[dict[int, dict[str, Any]], set[int]]:
        updates: dict[int, dict[str, Any]] = {}
        enriched: set[int] = set()
        enrichment = self._enrichment if order.vendor_code in self._enrich_vendors else None
        for record in selected:
            if record.id is None:
                raise ValueError(f"inventory row on order {order.order_number} has no id")
            updates[record.id] = {}
            if enrichment is None:
                continue
            try:
                result = enrichment.enrich_item(record.item, order.vendor_code)
            except Exception:  # pylint: disable=broad-except
                LOGGER.exception(
                    "Enrichment failed for item %s on order %s", record.id, order.order_number
                )
                continue
            if result.enriched:
                updates[record.id] = enrichment_fields(result.item)
                enriched.add(record.id)
        return updates, enriched

    def _transition(
        self,
        item_id: int,
        from_statuses: tuple[InventoryStatus, ...],
        to_status: InventoryStatus,
    ) -> InventoryRecord:
        record = self._repository.fetch_item(item_id)
        if record is None:
            raise LifecycleConflict(f"item {item_id} not found")
        order = self._require_order(record.order_id)
        if order.status == "archived" and to_status != "archived":
            raise LifecycleConflict(f"order {order.order_number} is archived")
        if not self._repository.transition_item(item_id, from_statuses, to_status):
            raise LifecycleConflict(f"item {item_id} is {record.status}; cannot move to {to_status}")
        if order.status != "archived":
            records = self._repository.list_items(record.order_id)
            self._repository.set_order_status(record.order_id, derive_order_status(records))
        updated = self._repository.fetch_item(item_id)
        if updated is None:
            raise LifecycleConflict(f"item {item_id} not found")
        return updated

    def _locate_order(
        self, account_id: str, order_number: str, vendor_code: str | None
    ) -> OrderRecord:
        if vendor_code is not None:
            found = self._repository.find_order(account_id, order_number, vendor_code)
            matches = [found] if found is not None else []
        else:
            matches = self._repository.find_orders(account_id, order_number)
        if not matches:
            raise LifecycleConflict(f"order {order_number} not found for account {account_id}")
        if len(matches) > 1:
            vendors = ", ".join(order.vendor_code for order in matches)
            raise LifecycleConflict(
                f"order number {order_number} matches several vendors ({vendors}); specify vendor"
            )
        return matches[0]

    def _require_order(self, order_id: int) -> OrderRecord:
        order = self._repository.fetch_order(order_id)
        if order is None:
            raise LifecycleConflict(f"order {order_id} not found")
        return order

    @staticmethod
    def _history(
        order: OrderRecord, action: str, item_count: int, detail: str | None = None
    ) -> OrderHistoryEntry:
        return OrderHistoryEntry(
            id=None,
            order_id=_persisted_id(order),
            action=action,
            item_count=item_count,
            vendor_code=order.vendor_code,
            recorded_at=utc_now(),
            detail=detail,
        )


def _persisted_id(order: OrderRecord) -> int:
    if order.id is None:
        raise ValueError(f"order {order.order_number} has not been stored")
    return order.id


__all__ = ["OrderLifecycleManager", "derive_order_status", "enrichment_fields"]
