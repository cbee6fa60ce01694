"""Integration tests for the FastAPI web application."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from fastapi.testclient import TestClient

from frame_intake.bootstrap import build_container
from frame_intake.core.config import AppSettings, EnrichmentSettings, StorageSettings
from frame_intake.core.models import InboundMessage, IngestionResult
from frame_intake.web import create_app

MODERN_OPTICAL_HTML = """
<h3>Customer</h3><p>BRIGHT EYES OPTICAL (12345)</p>
<p>Order Number: 556677</p>
<p>Date: 03/01/2024</p>
<p>Placed By Rep: Dana Smith</p>
<table>
<thead><tr><th>Image</th><th>Model</th><th>Color</th><th>Size</th><th>Qty</th></tr></thead>
<tbody>
<tr><td><img src="a.jpg"></td><td>Modern Times - Avid</td><td>BLK/GM</td><td>52-18-140</td><td>2</td></tr>
<tr><td></td><td>B.M.E.C. - BIG SMOOTH</td><td>TORT</td><td>58</td><td>1</td></tr>
</tbody>
</table>
<p>Total Pieces: 3</p>
"""


def _settings(tmp_path: Path) -> AppSettings:
    return AppSettings(
        storage=StorageSettings(db_path=tmp_path / "web.db"),
        enrichment=EnrichmentSettings(enabled=False),
    )


def _client(tmp_path: Path) -> TestClient:
    return TestClient(create_app(_settings(tmp_path)))


def _payload(sender: str = "orders@modernoptical.com", html: str = MODERN_OPTICAL_HTML) -> dict:
    return {
        "headers": {"from": sender, "to": "intake@shop.example", "subject": "Receipt for order"},
        "html": html,
    }


def test_health(tmp_path: Path) -> None:
    response = _client(tmp_path).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_webhook_ingests_and_order_can_be_confirmed(tmp_path: Path) -> None:
    client = _client(tmp_path)

    response = client.post("/webhook/acct-1", json=_payload())

    assert response.status_code == 200
    payload = response.json()
    assert payload["parseStatus"] == "parsed"
    assert payload["classification"]["vendorCode"] == "modern_optical"
    assert payload["classification"]["tier"] == "domain"
    assert payload["order"]["orderNumber"] == "556677"
    assert payload["order"]["status"] == "pending"
    assert payload["order"]["totalPieces"] == 3

    detail = client.get("/accounts/acct-1/orders/556677").json()
    item_ids = [item["id"] for item in detail["items"]]
    assert [item["status"] for item in detail["items"]] == ["pending", "pending"]
    assert detail["history"][0]["action"] == "ingested"

    confirm = client.post(
        "/accounts/acct-1/orders/556677/confirm", json={"item_ids": item_ids[:1]}
    )
    assert confirm.status_code == 200
    assert confirm.json()["orderStatus"] == "partial"
    assert confirm.json()["confirmedIds"] == item_ids[:1]
    assert confirm.json()["pendingCount"] == 1

    rest = client.post("/accounts/acct-1/orders/556677/confirm")
    assert rest.json()["orderStatus"] == "confirmed"
    assert rest.json()["skippedIds"] == []

    sold = client.post(f"/items/{item_ids[0]}/sold")
    assert sold.status_code == 200
    assert sold.json()["status"] == "sold"


def test_duplicate_and_unrecognised_messages_answer_200(tmp_path: Path) -> None:
    client = _client(tmp_path)
    client.post("/webhook/acct-1", json=_payload())

    duplicate = client.post("/webhook/acct-1", json=_payload())
    unknown = client.post(
        "/webhook/acct-1", json=_payload(sender="friend@example.org", html="<p>Dinner?</p>")
    )

    assert duplicate.status_code == 200
    assert duplicate.json()["parseStatus"] == "duplicate"
    assert unknown.status_code == 200
    assert unknown.json()["parseStatus"] == "unrecognized"
    assert unknown.json()["order"] is None


def test_lifecycle_conflicts_map_to_409(tmp_path: Path) -> None:
    client = _client(tmp_path)
    order_id = client.post("/webhook/acct-1", json=_payload()).json()["order"]["id"]

    premature = client.delete(f"/orders/{order_id}")
    assert premature.status_code == 409
    assert premature.json()["success"] is False

    archived = client.post(f"/orders/{order_id}/archive")
    assert archived.json() == {"success": True, "orderId": order_id, "archivedItems": 2}

    deleted = client.delete(f"/orders/{order_id}")
    assert deleted.status_code == 200
    assert deleted.json()["success"] is True

    missing = client.post("/accounts/acct-1/orders/556677/confirm")
    assert missing.status_code == 409


def test_classify_endpoint(tmp_path: Path) -> None:
    response = _client(tmp_path).post("/classify", json=_payload())

    assert response.status_code == 200
    assert response.json()["vendorCode"] == "modern_optical"
    assert response.json()["confidence"] == 95


class LoopRecordingIngestion:
    """Delegates to the real service and notes whether an event loop was running."""

    def __init__(self, inner: Any) -> None:
        self.inner = inner
        self.ran_on_loop: list[bool] = []

    def ingest(self, account_id: str, message: InboundMessage) -> IngestionResult:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self.ran_on_loop.append(False)
        else:
            self.ran_on_loop.append(True)
        return self.inner.ingest(account_id, message)


def test_webhook_ingestion_runs_off_the_event_loop(tmp_path: Path) -> None:
    settings = _settings(tmp_path)
    container = build_container(settings)
    recording = LoopRecordingIngestion(container.resolve("ingestion"))
    container.register_instance("ingestion", recording)
    client = TestClient(create_app(settings, container))

    response = client.post("/webhook/acct-1", json=_payload())

    assert response.json()["parseStatus"] == "parsed"
    assert recording.ran_on_loop == [False]


def test_order_detail_can_be_scoped_by_vendor(tmp_path: Path) -> None:
    client = _client(tmp_path)
    client.post("/webhook/acct-1", json=_payload())

    detail = client.get("/accounts/acct-1/orders/556677", params={"vendor": "modern_optical"})
    other = client.get("/accounts/acct-1/orders/556677", params={"vendor": "safilo"})

    assert detail.status_code == 200
    assert detail.json()["order"]["vendorCode"] == "modern_optical"
    assert other.status_code == 409
