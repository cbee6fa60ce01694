"""FastAPI application exposing webhook intake and the order lifecycle."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any, TypeVar

from fastapi import Depends, FastAPI, Request, status as http_status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from frame_intake.bootstrap import build_container
from frame_intake.core import (
    AppSettings,
    LifecycleConflict,
    ServiceContainer,
    configure_logging,
    load_app_settings,
)
from frame_intake.core.datetime_utils import serialize_datetime
from frame_intake.core.models import (
    ClassificationResult,
    ConfirmResult,
    InventoryRecord,
    OrderHistoryEntry,
    OrderRecord,
)
from frame_intake.ingestion import IngestionService, VendorClassifier, WebhookPayload
from frame_intake.lifecycle import OrderLifecycleManager

LOGGER = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_DEFAULT_ENV_FILE = _PROJECT_ROOT / ".env"
_ENV_FILE_OVERRIDE_VAR = "FRAME_INTAKE_ENV_FILE"

_T = TypeVar("_T")


class ConfirmRequest(BaseModel):
    """Body of a confirmation call; omit ``item_ids`` to receive everything."""

    item_ids: list[int] | None = None
    vendor_code: str | None = None


def create_app(
    settings: AppSettings | None = None, container: ServiceContainer | None = None
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app_settings = settings or load_app_settings(env_file=_resolve_env_file())
    configure_logging(app_settings.logging)
    services = container or build_container(app_settings)
    app = FastAPI(title="Frame Intake")
    # Repository calls share one SQLite connection; run them one at a time off the loop.
    store_lock = asyncio.Lock()

    async def run_blocking(func: Callable[..., _T], *args: Any, **kwargs: Any) -> _T:
        async with store_lock:
            return await asyncio.to_thread(func, *args, **kwargs)

    def get_ingestion() -> Iterator[IngestionService]:
        yield services.resolve("ingestion")

    def get_classifier() -> Iterator[VendorClassifier]:
        yield services.resolve("classifier")

    def get_lifecycle() -> Iterator[OrderLifecycleManager]:
        yield services.resolve("lifecycle")

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        services.close()
        LOGGER.info("Services closed")

    @app.exception_handler(LifecycleConflict)
    async def lifecycle_conflict(_request: Request, exc: LifecycleConflict) -> JSONResponse:
        LOGGER.info("Rejected lifecycle change: %s", exc.reason)
        return JSONResponse(
            status_code=http_status.HTTP_409_CONFLICT,
            content={"success": False, "error": exc.reason},
        )

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok"}

    @app.post("/webhook/{account_id}")
    async def webhook(
        account_id: str,
        payload: WebhookPayload,
        ingestion: IngestionService = Depends(get_ingestion),  # noqa: B008
    ) -> dict[str, Any]:
        """Ingest one forwarded vendor message; triage outcomes still answer 200."""
        result = await run_blocking(ingestion.ingest, account_id, payload.to_message())
        return {
            "messageId": result.message_id,
            "parseStatus": result.parse_status,
            "classification": _serialize_classification(result.classification),
            "order": _serialize_order(result.order) if result.order else None,
            "error": result.error,
        }

    @app.post("/classify")
    async def classify(
        payload: WebhookPayload,
        classifier: VendorClassifier = Depends(get_classifier),  # noqa: B008
    ) -> dict[str, Any]:
        return _serialize_classification(classifier.classify(payload.to_message()))

    @app.post("/accounts/{account_id}/orders/{order_number}/confirm")
    async def confirm_order(
        account_id: str,
        order_number: str,
        body: ConfirmRequest | None = None,
        lifecycle: OrderLifecycleManager = Depends(get_lifecycle),  # noqa: B008
    ) -> dict[str, Any]:
        request = body or ConfirmRequest()
        result = await run_blocking(
            lifecycle.confirm_order,
            account_id,
            order_number,
            request.item_ids,
            vendor_code=request.vendor_code,
        )
        return _serialize_confirm(result)

    @app.get("/accounts/{account_id}/orders/{order_number}")
    async def order_detail(
        account_id: str,
        order_number: str,
        vendor: str | None = None,
        lifecycle: OrderLifecycleManager = Depends(get_lifecycle),  # noqa: B008
    ) -> dict[str, Any]:
        order, items, history = await run_blocking(
            lifecycle.describe_order, account_id, order_number, vendor_code=vendor
        )
        return {
            "order": _serialize_order(order),
            "items": [_serialize_item(record) for record in items],
            "history": [_serialize_history(entry) for entry in history],
        }

    @app.post("/orders/{order_id}/archive")
    async def archive_order(
        order_id: int,
        lifecycle: OrderLifecycleManager = Depends(get_lifecycle),  # noqa: B008
    ) -> dict[str, Any]:
        archived = await run_blocking(lifecycle.archive_order, order_id)
        return {"success": True, "orderId": order_id, "archivedItems": archived}

    @app.delete("/orders/{order_id}")
    async def delete_order(
        order_id: int,
        lifecycle: OrderLifecycleManager = Depends(get_lifecycle),  # noqa: B008
    ) -> dict[str, Any]:
        await run_blocking(lifecycle.delete_order, order_id)
        return {"success": True, "orderId": order_id}

    @app.post("/items/{item_id}/sold")
    async def mark_sold(
        item_id: int,
        lifecycle: OrderLifecycleManager = Depends(get_lifecycle),  # noqa: B008
    ) -> dict[str, Any]:
        return _serialize_item(await run_blocking(lifecycle.mark_sold, item_id))

    @app.post("/items/{item_id}/archive")
    async def archive_item(
        item_id: int,
        lifecycle: OrderLifecycleManager = Depends(get_lifecycle),  # noqa: B008
    ) -> dict[str, Any]:
        return _serialize_item(await run_blocking(lifecycle.archive_item, item_id))

    @app.post("/items/{item_id}/restore")
    async def restore_item(
        item_id: int,
        lifecycle: OrderLifecycleManager = Depends(get_lifecycle),  # noqa: B008
    ) -> dict[str, Any]:
        return _serialize_item(await run_blocking(lifecycle.restore_item, item_id))

    return app


def _serialize_classification(result: ClassificationResult) -> dict[str, Any]:
    return {
        "vendorCode": result.vendor_code,
        "confidence": result.confidence,
        "tier": result.tier,
        "forwarded": result.forwarded,
        "outerSender": result.outer_sender,
        "originalSender": result.original_sender,
        "signals": list(result.signals),
    }


def _serialize_order(order: OrderRecord) -> dict[str, Any]:
    return {
        "id": order.id,
        "accountId": order.account_id,
        "vendorCode": order.vendor_code,
        "orderNumber": order.order_number,
        "status": order.status,
        "orderDate": order.order_date,
        "customerName": order.customer_name,
        "customerCode": order.customer_code,
        "accountNumber": order.account_number,
        "placedBy": order.placed_by,
        "totalPieces": order.total_pieces,
        "messageId": order.message_id,
        "createdAt": serialize_datetime(order.created_at),
    }


def _serialize_item(record: InventoryRecord) -> dict[str, Any]:
    item = record.item
    return {
        "id": record.id,
        "orderId": record.order_id,
        "vendorCode": record.vendor_code,
        "status": record.status,
        "brand": item.brand,
        "model": item.model,
        "color": item.color,
        "colorCode": item.color_code,
        "size": item.size,
        "eyeSize": item.eye_size,
        "bridge": item.bridge,
        "temple": item.temple,
        "quantity": item.quantity,
        "upc": item.upc,
        "sku": item.sku,
        "wholesalePrice": item.wholesale_price,
        "msrp": item.msrp,
        "inStock": item.in_stock,
        "enriched": item.enriched,
        "confidenceScore": item.confidence_score,
        "matchType": item.match_type,
        "updatedAt": serialize_datetime(record.updated_at),
    }


def _serialize_history(entry: OrderHistoryEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "action": entry.action,
        "itemCount": entry.item_count,
        "vendorCode": entry.vendor_code,
        "recordedAt": serialize_datetime(entry.recorded_at),
        "detail": entry.detail,
    }


def _serialize_confirm(result: ConfirmResult) -> dict[str, Any]:
    return {
        "orderNumber": result.order_number,
        "orderStatus": result.order_status,
        "confirmedIds": list(result.confirmed_ids),
        "skippedIds": list(result.skipped_ids),
        "enrichedCount": result.enriched_count,
        "pendingCount": result.pending_count,
    }


def _resolve_env_file() -> Path:
    override = os.getenv(_ENV_FILE_OVERRIDE_VAR)
    if override:
        return Path(override)
    return _DEFAULT_ENV_FILE


__all__ = ["ConfirmRequest", "create_app"]
