"""Core domain models used across the application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

ClassificationTier = Literal["domain", "signature", "weak-keyword", "none"]
InventoryStatus = Literal["pending", "current", "sold", "archived"]
OrderStatus = Literal["pending", "partial", "confirmed", "archived"]
ParseStatus = Literal["parsed", "duplicate", "unrecognized", "failed"]
MatchType = Literal["cache", "exact", "fuzzy", "fallback"]


@dataclass(frozen=True, slots=True)
class VendorProfile:
    """Identification rules for a single vendor."""

    code: str
    name: str
    domains: tuple[str, ...] = ()
    body_signatures: tuple[str, ...] = ()
    subject_keywords: tuple[str, ...] = ()
    body_keywords: tuple[str, ...] = ()
    required_matches: int = 2
    keyword_weight: int = 60
    parser: str | None = None

    @property
    def parser_code(self) -> str:
        """Registry key of the parser bound to this vendor."""
        return self.parser or self.code


@dataclass(slots=True)
class Attachment:
    """Binary attachment delivered with an inbound message."""

    file_name: str | None
    content_type: str | None
    content: bytes

    @property
    def is_pdf(self) -> bool:
        content_type = (self.content_type or "").lower()
        file_name = (self.file_name or "").lower()
        return content_type == "application/pdf" or file_name.endswith(".pdf")


@dataclass(slots=True)
class InboundMessage:
    """Raw message under ingestion. Never persisted as-is."""

    sender: str | None
    subject: str | None
    text: str | None
    html: str | None
    attachments: tuple[Attachment, ...] = ()
    recipient: str | None = None

    @property
    def pdf_attachment(self) -> Attachment | None:
        for attachment in self.attachments:
            if attachment.is_pdf:
                return attachment
        return None


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """Outcome of running the vendor classification cascade."""

    vendor_code: str | None
    confidence: int
    tier: ClassificationTier
    forwarded: bool = False
    outer_sender: str | None = None
    original_sender: str | None = None
    signals: tuple[str, ...] = ()


# pylint: disable=too-many-instance-attributes
@dataclass(slots=True)
class LineItem:
    """A single frame line on a vendor order."""

    brand: str
    model: str
    color: str | None = None
    color_code: str | None = None
    size: str | None = None
    eye_size: str | None = None
    bridge: str | None = None
    temple: str | None = None
    quantity: int = 1
    upc: str | None = None
    sku: str | None = None
    wholesale_price: float | None = None
    msrp: float | None = None
    in_stock: bool | None = None
    enriched: bool = False
    confidence_score: int | None = None
    match_type: MatchType | None = None


@dataclass(slots=True)
class ParsedOrder:
    """Canonical order extracted from any vendor format."""

    vendor_code: str
    order_number: str | None
    order_date: str | None = None
    account_number: str | None = None
    customer_name: str | None = None
    customer_code: str | None = None
    placed_by: str | None = None
    items: tuple[LineItem, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def total_pieces(self) -> int:
        return sum(item.quantity for item in self.items)


# pylint: disable=too-many-instance-attributes
@dataclass(slots=True)
class InventoryRecord:
    """Persisted projection of a line item with its lifecycle status."""

    id: int | None
    account_id: str
    order_id: int
    vendor_code: str
    item: LineItem
    status: InventoryStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None
    confirmed_at: datetime | None = None

    @property
    def received(self) -> bool:
        """Whether the item ever reached current stock."""
        return self.confirmed_at is not None or self.status in ("current", "sold")


@dataclass(slots=True)
class OrderRecord:
    """Stored order header."""

    id: int | None
    account_id: str
    vendor_code: str
    order_number: str
    status: OrderStatus
    order_date: str | None = None
    customer_name: str | None = None
    customer_code: str | None = None
    account_number: str | None = None
    placed_by: str | None = None
    total_pieces: int = 0
    message_id: int | None = None
    created_at: datetime | None = None


@dataclass(slots=True)
class OrderHistoryEntry:
    """Append-only audit row describing a lifecycle action on an order."""

    id: int | None
    order_id: int
    action: str
    item_count: int
    vendor_code: str
    recorded_at: datetime
    detail: str | None = None


@dataclass(slots=True)
class CatalogVariant:
    """One colour and size combination offered for a catalog product."""

    color_code: str | None
    color_name: str | None
    eye_size: str | None = None
    bridge: str | None = None
    temple: str | None = None
    sku: str | None = None
    upc: str | None = None
    wholesale: float | None = None
    msrp: float | None = None
    in_stock: bool | None = None
    material: str | None = None


@dataclass(slots=True)
class CatalogProduct:
    """A style returned by a vendor product search."""

    style_code: str
    collection: str | None
    variants: tuple[CatalogVariant, ...] = ()

    @property
    def model_key(self) -> str:
        return " ".join(self.style_code.split()).upper()


# pylint: disable=too-many-instance-attributes
@dataclass(slots=True)
class CatalogEntry:
    """Cached catalog variant keyed by vendor, model, colour and eye size."""

    vendor_code: str
    model: str
    color: str
    eye_size: str
    brand: str | None = None
    color_code: str | None = None
    bridge: str | None = None
    temple: str | None = None
    sku: str | None = None
    upc: str | None = None
    wholesale: float | None = None
    msrp: float | None = None
    material: str | None = None
    in_stock: bool | None = None
    verified: bool = False
    confidence_score: int | None = None
    data_source: Literal["api", "manual"] = "api"
    updated_at: datetime | None = None

    def as_variant(self) -> CatalogVariant:
        return CatalogVariant(
            color_code=self.color_code,
            color_name=self.color or None,
            eye_size=self.eye_size or None,
            bridge=self.bridge,
            temple=self.temple,
            sku=self.sku,
            upc=self.upc,
            wholesale=self.wholesale,
            msrp=self.msrp,
            in_stock=self.in_stock,
            material=self.material,
        )


@dataclass(slots=True)
class EnrichedItem:
    """Result of looking a line item up in a vendor catalog."""

    item: LineItem
    enriched: bool
    match_type: MatchType | None = None
    confidence: int = 0
    entry: CatalogEntry | None = None


@dataclass(slots=True)
class CrawlReport:
    """Summary of a full catalog crawl."""

    vendor_code: str
    terms_searched: int = 0
    failed_terms: list[str] = field(default_factory=list)
    unique_products: int = 0
    entries_upserted: int = 0


@dataclass(slots=True)
class ConfirmResult:
    """Outcome of confirming some or all pending items of an order."""

    order_number: str
    order_status: OrderStatus
    confirmed_ids: tuple[int, ...]
    skipped_ids: tuple[int, ...]
    enriched_count: int
    pending_count: int


@dataclass(slots=True)
class IngestionResult:
    """Outcome of taking a single inbound message through the pipeline."""

    message_id: int
    parse_status: ParseStatus
    classification: ClassificationResult
    order: OrderRecord | None = None
    error: str | None = None
