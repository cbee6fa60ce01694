"""Tests for the vendor catalog HTTP client and its retry policy."""

from __future__ import annotations

import json

import httpx
import pytest

from frame_intake.catalog import CatalogClientFactory, RetryPolicy, VendorCatalogClient
from frame_intake.catalog.client import build_search_payload, decode_products
from frame_intake.core.config import CatalogSettings
from frame_intake.core.interfaces import CatalogError

SEARCH_RESPONSE = [
    {
        "styleCode": "CA 8036",
        "collectionName": "Carrera",
        "colorGroup": [
            {
                "color": "807",
                "colorName": "Black",
                "sizes": [
                    {
                        "a": "55",
                        "dbl": "17",
                        "temple": "145",
                        "upc": "716736123456",
                        "sku": "CA8036-807-55",
                        "price": "92.50",
                        "msrp": 185,
                        "isInStock": True,
                    },
                    {"eyeSize": "57", "bridge": "17", "price": 0, "isInStock": False},
                ],
            }
        ],
    },
    {"styleCode": "", "colorGroup": []},
    "not a product",
]


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _client(handler, **kwargs) -> VendorCatalogClient:
    clock = kwargs.pop("clock", FakeClock())
    return VendorCatalogClient(
        "safilo",
        "https://catalog.example.com/filter",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        clock=clock,
        sleep=clock.sleep,
        **kwargs,
    )


def test_retry_policy_backs_off_linearly_then_reraises() -> None:
    sleeps: list[float] = []
    calls = {"count": 0}

    def flaky() -> str:
        calls["count"] += 1
        raise ConnectionError("down")

    policy = RetryPolicy(attempts=3, delay_seconds=2.0, retry_on=(ConnectionError,), sleep=sleeps.append)

    with pytest.raises(ConnectionError):
        policy.call(flaky)

    assert calls["count"] == 3
    assert sleeps == [2.0, 4.0]


def test_retry_policy_returns_first_success_and_ignores_other_errors() -> None:
    sleeps: list[float] = []
    outcomes = iter([ConnectionError("blip"), "ok"])

    def sometimes() -> str:
        outcome = next(outcomes)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    policy = RetryPolicy(attempts=3, delay_seconds=1.0, retry_on=(ConnectionError,), sleep=sleeps.append)
    assert policy.call(sometimes) == "ok"
    assert sleeps == [1.0]

    def broken() -> None:
        raise KeyError("not retried")

    with pytest.raises(KeyError):
        policy.call(broken)
    assert sleeps == [1.0]


def test_retry_policy_requires_an_attempt() -> None:
    with pytest.raises(ValueError):
        RetryPolicy(attempts=0)


def test_search_payload_leaves_every_filter_open() -> None:
    payload = build_search_payload("CA")

    assert payload["search"] == "CA"
    assert payload["Collections"] == []
    assert payload["COUNTRYOFORIGIN"] == []
    assert payload["InStock"] is False
    assert payload["ASizes"] == {"min": -1, "max": -1}
    assert len(payload) == 13 + 5 + 4 + 1


def test_decode_products_flattens_colour_groups() -> None:
    products = decode_products(SEARCH_RESPONSE)

    assert len(products) == 1
    product = products[0]
    assert product.style_code == "CA 8036"
    assert product.model_key == "CA 8036"
    assert product.collection == "Carrera"
    first, second = product.variants
    assert (first.color_code, first.color_name) == ("807", "Black")
    assert (first.eye_size, first.bridge, first.temple) == ("55", "17", "145")
    assert first.wholesale == 92.5
    assert first.msrp == 185.0
    assert first.in_stock is True
    assert second.eye_size == "57"
    assert second.wholesale is None
    assert second.in_stock is False


def test_decode_products_ignores_unexpected_shapes() -> None:
    assert decode_products({"error": "nope"}) == []
    assert decode_products(None) == []


def test_search_posts_payload_and_decodes() -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json=SEARCH_RESPONSE)

    client = _client(handler)
    products = client.search("CA 8036")

    assert [product.style_code for product in products] == ["CA 8036"]
    assert seen[0]["search"] == "CA 8036"


def test_search_throttles_consecutive_requests() -> None:
    clock = FakeClock()
    client = _client(lambda request: httpx.Response(200, json=[]), clock=clock, rate_limit_seconds=1.5)

    client.search("A")
    client.search("B")
    clock.now += 5
    client.search("C")

    assert clock.sleeps == [1.5]


def test_search_retries_server_errors_then_raises_catalog_error() -> None:
    clock = FakeClock()
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(503)

    client = _client(
        handler,
        clock=clock,
        rate_limit_seconds=0,
        retry=RetryPolicy(attempts=3, delay_seconds=2.0, retry_on=(httpx.HTTPError,), sleep=clock.sleep),
    )

    with pytest.raises(CatalogError):
        client.search("A")

    assert calls["count"] == 3
    assert clock.sleeps == [2.0, 4.0]


def test_search_recovers_after_transient_failure() -> None:
    responses = iter([httpx.Response(500), httpx.Response(200, json=SEARCH_RESPONSE)])
    clock = FakeClock()
    client = _client(
        lambda request: next(responses),
        clock=clock,
        rate_limit_seconds=0,
        retry=RetryPolicy(attempts=2, delay_seconds=1.0, retry_on=(httpx.HTTPError,), sleep=clock.sleep),
    )

    assert len(client.search("CA")) == 1


def test_invalid_json_is_a_catalog_error() -> None:
    client = _client(lambda request: httpx.Response(200, text="<html>maintenance</html>"))

    with pytest.raises(CatalogError):
        client.search("A")


def test_factory_caches_clients_and_skips_unconfigured_vendors() -> None:
    settings = CatalogSettings(endpoints={"safilo": "https://catalog.example.com/filter"})
    http_client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[])))
    factory = CatalogClientFactory(settings, http_client=http_client)

    first = factory.for_vendor("safilo")
    assert first is not None
    assert factory.for_vendor("safilo") is first
    assert factory.for_vendor("marchon") is None

    factory.close()
    assert not http_client.is_closed
