"""SQLite-backed inventory and catalog repository implementation."""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from types import TracebackType
from typing import Any, cast

from ..core.config import StorageSettings
from ..core.datetime_utils import parse_datetime, serialize_datetime, utc_now
from ..core.interfaces import CatalogRepository, InventoryRepository
from ..core.models import (
    CatalogEntry,
    ClassificationResult,
    InboundMessage,
    InventoryRecord,
    InventoryStatus,
    LineItem,
    OrderHistoryEntry,
    OrderRecord,
    OrderStatus,
    ParsedOrder,
    ParseStatus,
)

LOGGER = logging.getLogger(__name__)

_ITEM_COLUMNS = (
    "brand",
    "model",
    "color",
    "color_code",
    "size",
    "eye_size",
    "bridge",
    "temple",
    "quantity",
    "upc",
    "sku",
    "wholesale_price",
    "msrp",
    "in_stock",
    "enriched",
    "confidence_score",
    "match_type",
)
_ENRICHABLE_COLUMNS = frozenset(_ITEM_COLUMNS) - {"brand", "model", "quantity"}
_CATALOG_COLUMNS = (
    "vendor_code",
    "model",
    "color",
    "eye_size",
    "brand",
    "color_code",
    "bridge",
    "temple",
    "sku",
    "upc",
    "wholesale",
    "msrp",
    "material",
    "in_stock",
    "verified",
    "confidence_score",
    "data_source",
    "updated_at",
)


class SqliteInventoryRepository(InventoryRepository, CatalogRepository):
    """Persist messages, orders, inventory and the catalog cache using SQLite."""

    def __init__(self, settings: StorageSettings) -> None:
        """Initialise the repository and apply migrations."""
        self._settings = settings
        db_path = Path(settings.db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = sqlite3.connect(
            db_path,
            detect_types=sqlite3.PARSE_DECLTYPES,
            check_same_thread=False,
        )
        self._connection.row_factory = sqlite3.Row
        self._enable_foreign_keys()
        self._apply_migrations()
        self._ensure_indexes()

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> SqliteInventoryRepository:
        """Enter context manager scope."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Ensure the connection is closed when exiting context manager."""
        self.close()

    # Messages ----------------------------------------------------------------
    def record_message(
        self,
        account_id: str,
        message: InboundMessage,
        classification: ClassificationResult,
        parse_status: ParseStatus,
        error: str | None = None,
    ) -> int:
        """Store an inbound message for audit and triage."""
        with self._connection:
            cur = self._connection.execute(
                """
                INSERT INTO messages (
                    account_id,
                    sender,
                    original_sender,
                    subject,
                    vendor_code,
                    confidence,
                    tier,
                    forwarded,
                    parse_status,
                    error,
                    received_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                RETURNING id
                """,
                (
                    account_id,
                    message.sender,
                    classification.original_sender,
                    message.subject,
                    classification.vendor_code,
                    classification.confidence,
                    classification.tier,
                    1 if classification.forwarded else 0,
                    parse_status,
                    error,
                    serialize_datetime(utc_now()),
                ),
            )
            row = cur.fetchone()
        return int(row["id"])

    def update_message_status(
        self, message_id: int, parse_status: ParseStatus, error: str | None = None
    ) -> None:
        with self._connection:
            self._connection.execute(
                "UPDATE messages SET parse_status = ?, error = ? WHERE id = ?",
                (parse_status, error, message_id),
            )

    def fetch_message_status(self, message_id: int) -> tuple[ParseStatus, str | None] | None:
        cur = self._connection.execute(
            "SELECT parse_status, error FROM messages WHERE id = ?", (message_id,)
        )
        row = cur.fetchone()
        if row is None:
            return None
        return cast(ParseStatus, row["parse_status"]), row["error"]

    # Orders --------------------------------------------------------------------
    def find_order(
        self, account_id: str, order_number: str, vendor_code: str | None = None
    ) -> OrderRecord | None:
        """Look an order up by account and order number, optionally per vendor."""
        query = "SELECT * FROM orders WHERE account_id = ? AND order_number = ?"
        params: list[Any] = [account_id, order_number]
        if vendor_code is not None:
            query += " AND vendor_code = ?"
            params.append(vendor_code)
        cur = self._connection.execute(query + " ORDER BY id LIMIT 1", params)
        row = cur.fetchone()
        return _row_to_order(row) if row else None

    def find_orders(self, account_id: str, order_number: str) -> list[OrderRecord]:
        """Return every vendor's order sharing ``order_number`` within an account."""
        cur = self._connection.execute(
            "SELECT * FROM orders WHERE account_id = ? AND order_number = ? ORDER BY id",
            (account_id, order_number),
        )
        return [_row_to_order(row) for row in cur.fetchall()]

    def fetch_order(self, order_id: int) -> OrderRecord | None:
        cur = self._connection.execute("SELECT * FROM orders WHERE id = ?", (order_id,))
        row = cur.fetchone()
        return _row_to_order(row) if row else None

    def create_order(
        self, account_id: str, parsed: ParsedOrder, message_id: int | None
    ) -> OrderRecord:
        """Persist an order and its items in ``pending`` status in one transaction."""
        if not parsed.order_number:
            raise ValueError("Order number is required")
        now = serialize_datetime(utc_now())
        try:
            with self._connection:
                cur = self._connection.execute(
                    """
                    INSERT INTO orders (
                        account_id,
                        vendor_code,
                        order_number,
                        status,
                        order_date,
                        customer_name,
                        customer_code,
                        account_number,
                        placed_by,
                        total_pieces,
                        metadata,
                        message_id,
                        created_at,
                        updated_at
                    ) VALUES (?, ?, ?, 'pending', ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    RETURNING id
                    """,
                    (
                        account_id,
                        parsed.vendor_code,
                        parsed.order_number,
                        parsed.order_date,
                        parsed.customer_name,
                        parsed.customer_code,
                        parsed.account_number,
                        parsed.placed_by,
                        parsed.total_pieces,
                        json.dumps(parsed.metadata, default=str),
                        message_id,
                        now,
                        now,
                    ),
                )
                order_id = int(cur.fetchone()["id"])
                for item in parsed.items:
                    self._insert_item(account_id, order_id, parsed.vendor_code, item, now)
        except sqlite3.IntegrityError as e:
            LOGGER.error(
                "Database integrity error persisting order %s: %s",
                parsed.order_number,
                e,
                exc_info=True,
            )
            raise ValueError(f"Failed to persist order {parsed.order_number}: {e}") from e
        except sqlite3.OperationalError as e:
            LOGGER.error(
                "Database operational error persisting order %s: %s",
                parsed.order_number,
                e,
                exc_info=True,
            )
            raise ValueError(f"Database error persisting order {parsed.order_number}: {e}") from e
        LOGGER.debug("Persisted order %s with %d item(s)", parsed.order_number, len(parsed.items))
        order = self.fetch_order(order_id)
        if order is None:
            raise ValueError(f"Order {parsed.order_number} vanished after insert")
        return order

    def set_order_status(self, order_id: int, status: OrderStatus) -> None:
        with self._connection:
            self._connection.execute(
                "UPDATE orders SET status = ?, updated_at = ? WHERE id = ?",
                (status, serialize_datetime(utc_now()), order_id),
            )

    def archive_order(self, order: OrderRecord, history: OrderHistoryEntry) -> int:
        """Archive the order and its pending or current items; sold items stay sold."""
        now = serialize_datetime(utc_now())
        with self._connection:
            cur = self._connection.execute(
                """
                UPDATE inventory SET status = 'archived', updated_at = ?
                WHERE order_id = ? AND status IN ('pending', 'current')
                """,
                (now, order.id),
            )
            archived = cur.rowcount
            self._connection.execute(
                "UPDATE orders SET status = 'archived', updated_at = ? WHERE id = ?",
                (now, order.id),
            )
            self._insert_history(history, item_count=archived)
        return archived

    def delete_order(self, order_id: int) -> bool:
        with self._connection:
            cur = self._connection.execute("DELETE FROM orders WHERE id = ?", (order_id,))
        return cur.rowcount > 0

    # Inventory -------------------------------------------------------------------
    def list_items(
        self, order_id: int, statuses: Iterable[InventoryStatus] | None = None
    ) -> list[InventoryRecord]:
        query = "SELECT * FROM inventory WHERE order_id = ?"
        params: list[Any] = [order_id]
        if statuses is not None:
            wanted = list(statuses)
            if not wanted:
                return []
            query += f" AND status IN ({', '.join('?' for _ in wanted)})"
            params.extend(wanted)
        cur = self._connection.execute(query + " ORDER BY id", params)
        return [_row_to_item(row) for row in cur.fetchall()]

    def fetch_item(self, item_id: int) -> InventoryRecord | None:
        cur = self._connection.execute("SELECT * FROM inventory WHERE id = ?", (item_id,))
        row = cur.fetchone()
        return _row_to_item(row) if row else None

    def confirm_items(
        self,
        order: OrderRecord,
        updates: Mapping[int, Mapping[str, Any]],
        history: OrderHistoryEntry | None,
    ) -> list[int]:
        """Flip still-pending rows to current, merge enrichment and append one history row.

        Rows that are no longer pending are left untouched, so repeating a
        confirmation never confirms an item twice.
        """
        confirmed: list[int] = []
        now = serialize_datetime(utc_now())
        with self._connection:
            for item_id, fields in updates.items():
                columns = [name for name in fields if name in _ENRICHABLE_COLUMNS]
                assignments = "".join(f", {name} = ?" for name in columns)
                values = [_to_column(fields[name]) for name in columns]
                cur = self._connection.execute(
                    f"""
                    UPDATE inventory
                    SET status = 'current', updated_at = ?, confirmed_at = ?{assignments}
                    WHERE id = ? AND order_id = ? AND status = 'pending'
                    """,
                    (now, now, *values, item_id, order.id),
                )
                if cur.rowcount:
                    confirmed.append(item_id)
            if history is not None and confirmed:
                self._insert_history(history, item_count=len(confirmed))
        return confirmed

    def transition_item(
        self,
        item_id: int,
        from_statuses: Sequence[InventoryStatus],
        to_status: InventoryStatus,
    ) -> bool:
        if not from_statuses:
            return False
        placeholders = ", ".join("?" for _ in from_statuses)
        with self._connection:
            cur = self._connection.execute(
                f"""
                UPDATE inventory SET status = ?, updated_at = ?
                WHERE id = ? AND status IN ({placeholders})
                """,
                (to_status, serialize_datetime(utc_now()), item_id, *from_statuses),
            )
        return cur.rowcount > 0

    # History ---------------------------------------------------------------------
    def append_history(self, entry: OrderHistoryEntry) -> OrderHistoryEntry:
        with self._connection:
            history_id = self._insert_history(entry)
        return OrderHistoryEntry(
            id=history_id,
            order_id=entry.order_id,
            action=entry.action,
            item_count=entry.item_count,
            vendor_code=entry.vendor_code,
            recorded_at=entry.recorded_at,
            detail=entry.detail,
        )

    def list_history(self, order_id: int) -> list[OrderHistoryEntry]:
        cur = self._connection.execute(
            "SELECT * FROM order_history WHERE order_id = ? ORDER BY id", (order_id,)
        )
        return [
            OrderHistoryEntry(
                id=row["id"],
                order_id=row["order_id"],
                action=row["action"],
                item_count=row["item_count"],
                vendor_code=row["vendor_code"],
                recorded_at=parse_datetime(row["recorded_at"], assume_utc=True) or utc_now(),
                detail=row["detail"],
            )
            for row in cur.fetchall()
        ]

    # Catalog cache ---------------------------------------------------------------
    def upsert_catalog_entries(self, entries: Sequence[CatalogEntry]) -> int:
        """Insert or refresh catalog rows; manually curated rows are not overwritten by API data."""
        if not entries:
            return 0
        placeholders = ", ".join("?" for _ in _CATALOG_COLUMNS)
        updates = ",\n".join(
            f"{name}=excluded.{name}"
            for name in _CATALOG_COLUMNS
            if name not in {"vendor_code", "model", "color", "eye_size"}
        )
        statement = f"""
            INSERT INTO catalog_entries ({", ".join(_CATALOG_COLUMNS)})
            VALUES ({placeholders})
            ON CONFLICT(vendor_code, model, color, eye_size) DO UPDATE SET
            {updates}
            WHERE catalog_entries.data_source != 'manual' OR excluded.data_source = 'manual'
        """
        now = serialize_datetime(utc_now())
        written = 0
        try:
            with self._connection:
                for entry in entries:
                    cur = self._connection.execute(statement, _catalog_row(entry, now))
                    written += cur.rowcount
        except sqlite3.OperationalError as e:
            LOGGER.error("Database error writing catalog entries: %s", e, exc_info=True)
            raise ValueError(f"Database error writing catalog entries: {e}") from e
        return written

    def find_catalog_entries(self, vendor_code: str, model: str) -> list[CatalogEntry]:
        cur = self._connection.execute(
            """
            SELECT * FROM catalog_entries
            WHERE vendor_code = ? AND model = ?
            ORDER BY color, eye_size
            """,
            (vendor_code, model),
        )
        return [_row_to_catalog_entry(row) for row in cur.fetchall()]

    def count_catalog_entries(self, vendor_code: str | None = None) -> int:
        if vendor_code is None:
            cur = self._connection.execute("SELECT COUNT(*) FROM catalog_entries")
        else:
            cur = self._connection.execute(
                "SELECT COUNT(*) FROM catalog_entries WHERE vendor_code = ?", (vendor_code,)
            )
        return int(cur.fetchone()[0])

    def close(self) -> None:
        """Close the underlying SQLite connection."""
        self._connection.close()

    # Internal helpers --------------------------------------------------------
    def _enable_foreign_keys(self) -> None:
        with self._connection:
            self._connection.execute("PRAGMA foreign_keys = ON")

    def _apply_migrations(self) -> None:
        schema_dir = Path(__file__).resolve().parent / "schema"
        for migration in sorted(schema_dir.glob("*.sql")):
            LOGGER.debug("Applying migration %s", migration.name)
            script = migration.read_text(encoding="utf-8")
            with self._connection:
                self._connection.executescript(script)

    def _ensure_indexes(self) -> None:
        statements = (
            "CREATE INDEX IF NOT EXISTS idx_inventory_order_status ON inventory(order_id, status)",
            "CREATE INDEX IF NOT EXISTS idx_inventory_account_status ON inventory(account_id, status)",
            "CREATE INDEX IF NOT EXISTS idx_order_history_order ON order_history(order_id, id)",
            "CREATE INDEX IF NOT EXISTS idx_catalog_vendor_model ON catalog_entries(vendor_code, model)",
        )
        with self._connection:
            for statement in statements:
                self._connection.execute(statement)

    def _insert_item(
        self, account_id: str, order_id: int, vendor_code: str, item: LineItem, now: str | None
    ) -> None:
        values = [_to_column(getattr(item, name)) for name in _ITEM_COLUMNS]
        self._connection.execute(
            f"""
            INSERT INTO inventory (
                account_id, order_id, vendor_code, {", ".join(_ITEM_COLUMNS)},
                status, created_at, updated_at
            ) VALUES (?, ?, ?, {", ".join("?" for _ in _ITEM_COLUMNS)}, 'pending', ?, ?)
            """,
            (account_id, order_id, vendor_code, *values, now, now),
        )

    def _insert_history(self, entry: OrderHistoryEntry, item_count: int | None = None) -> int:
        cur = self._connection.execute(
            """
            INSERT INTO order_history (
                order_id, action, item_count, vendor_code, detail, recorded_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            RETURNING id
            """,
            (
                entry.order_id,
                entry.action,
                entry.item_count if item_count is None else item_count,
                entry.vendor_code,
                entry.detail,
                serialize_datetime(entry.recorded_at),
            ),
        )
        return int(cur.fetchone()["id"])


def _to_column(value: Any) -> Any:
    if isinstance(value, bool):
        return 1 if value else 0
    return value


def _optional_bool(value: Any) -> bool | None:
    if value is None:
        return None
    return bool(value)


def _row_to_order(row: sqlite3.Row) -> OrderRecord:
    return OrderRecord(
        id=row["id"],
        account_id=row["account_id"],
        vendor_code=row["vendor_code"],
        order_number=row["order_number"],
        status=cast(OrderStatus, row["status"]),
        order_date=row["order_date"],
        customer_name=row["customer_name"],
        customer_code=row["customer_code"],
        account_number=row["account_number"],
        placed_by=row["placed_by"],
        total_pieces=row["total_pieces"],
        message_id=row["message_id"],
        created_at=parse_datetime(row["created_at"], assume_utc=True),
    )


def _row_to_item(row: sqlite3.Row) -> InventoryRecord:
    item = LineItem(
        brand=row["brand"],
        model=row["model"],
        color=row["color"],
        color_code=row["color_code"],
        size=row["size"],
        eye_size=row["eye_size"],
        bridge=row["bridge"],
        temple=row["temple"],
        quantity=row["quantity"],
        upc=row["upc"],
        sku=row["sku"],
        wholesale_price=row["wholesale_price"],
        msrp=row["msrp"],
        in_stock=_optional_bool(row["in_stock"]),
        enriched=bool(row["enriched"]),
        confidence_score=row["confidence_score"],
        match_type=row["match_type"],
    )
    return InventoryRecord(
        id=row["id"],
        account_id=row["account_id"],
        order_id=row["order_id"],
        vendor_code=row["vendor_code"],
        item=item,
        status=cast(InventoryStatus, row["status"]),
        created_at=parse_datetime(row["created_at"], assume_utc=True),
        updated_at=parse_datetime(row["updated_at"], assume_utc=True),
        confirmed_at=parse_datetime(row["confirmed_at"], assume_utc=True),
    )


def _catalog_row(entry: CatalogEntry, now: str | None) -> tuple[Any, ...]:
    values = {
        "vendor_code": entry.vendor_code,
        "model": entry.model,
        "color": entry.color or "",
        "eye_size": entry.eye_size or "",
        "brand": entry.brand,
        "color_code": entry.color_code,
        "bridge": entry.bridge,
        "temple": entry.temple,
        "sku": entry.sku,
        "upc": entry.upc,
        "wholesale": entry.wholesale,
        "msrp": entry.msrp,
        "material": entry.material,
        "in_stock": _to_column(entry.in_stock),
        "verified": _to_column(entry.verified),
        "confidence_score": entry.confidence_score,
        "data_source": entry.data_source,
        "updated_at": serialize_datetime(entry.updated_at) if entry.updated_at else now,
    }
    return tuple(values[name] for name in _CATALOG_COLUMNS)


def _row_to_catalog_entry(row: sqlite3.Row) -> CatalogEntry:
    return CatalogEntry(
        vendor_code=row["vendor_code"],
        model=row["model"],
        color=row["color"],
        eye_size=row["eye_size"],
        brand=row["brand"],
        color_code=row["color_code"],
        bridge=row["bridge"],
        temple=row["temple"],
        sku=row["sku"],
        upc=row["upc"],
        wholesale=row["wholesale"],
        msrp=row["msrp"],
        material=row["material"],
        in_stock=_optional_bool(row["in_stock"]),
        verified=bool(row["verified"]),
        confidence_score=row["confidence_score"],
        data_source=row["data_source"],
        updated_at=parse_datetime(row["updated_at"], assume_utc=True),
    )


__all__ = ["SqliteInventoryRepository"]
