"""HTTP client for vendor product-search endpoints."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import httpx

from frame_intake.core.config import CatalogSettings
from frame_intake.core.interfaces import CatalogError
from frame_intake.core.models import CatalogProduct, CatalogVariant

from .retry import RetryPolicy

LOGGER = logging.getLogger(__name__)

_FILTER_LISTS = (
    "Collections",
    "ColorFamily",
    "Shapes",
    "FrameTypes",
    "Genders",
    "FrameMaterials",
    "FrontMaterials",
    "HingeTypes",
    "RimTypes",
    "TempleMaterials",
    "LensMaterials",
    "FITTING",
    "COUNTRYOFORIGIN",
)
_FILTER_FLAGS = ("NewStyles", "BestSellers", "RxAvailable", "InStock", "Readers")
_FILTER_RANGES = ("ASizes", "BSizes", "EDSizes", "DBLSizes")

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
}


def build_search_payload(term: str) -> dict[str, Any]:
    """Return the catalog filter body with every filter left open."""
    payload: dict[str, Any] = {name: [] for name in _FILTER_LISTS}
    payload.update({name: False for name in _FILTER_FLAGS})
    payload.update({name: {"min": -1, "max": -1} for name in _FILTER_RANGES})
    payload["search"] = term
    return payload


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _amount(value: Any) -> float | None:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    return amount if amount > 0 else None


def decode_products(data: Any) -> list[CatalogProduct]:
    """Decode the search response into products with flattened variants."""
    if not isinstance(data, list):
        LOGGER.debug("Catalog response is not a product list: %s", type(data).__name__)
        return []
    products: list[CatalogProduct] = []
    for raw in data:
        if not isinstance(raw, dict) or not _text(raw.get("styleCode")):
            continue
        variants: list[CatalogVariant] = []
        for group in raw.get("colorGroup") or ():
            for size in group.get("sizes") or ():
                variants.append(
                    CatalogVariant(
                        color_code=_text(group.get("color")),
                        color_name=_text(group.get("colorName") or group.get("color")),
                        eye_size=_text(size.get("eyeSize") or size.get("a")),
                        bridge=_text(size.get("bridge") or size.get("dbl")),
                        temple=_text(size.get("temple")),
                        sku=_text(size.get("sku")),
                        upc=_text(size.get("upc")),
                        wholesale=_amount(size.get("wholesale")) or _amount(size.get("price")),
                        msrp=_amount(size.get("msrp")),
                        in_stock=bool(size.get("isInStock", False)),
                        material=_text(size.get("material")),
                    )
                )
        products.append(
            CatalogProduct(
                style_code=str(raw["styleCode"]).strip(),
                collection=_text(raw.get("collectionName")),
                variants=tuple(variants),
            )
        )
    return products


class VendorCatalogClient:
    """Search one vendor's catalog, throttled and retried."""

    def __init__(
        self,
        vendor_code: str,
        endpoint: str,
        *,
        timeout_seconds: float = 20.0,
        rate_limit_seconds: float = 1.0,
        retry: RetryPolicy | None = None,
        http_client: httpx.Client | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.vendor_code = vendor_code
        self._endpoint = endpoint
        self._rate_limit = rate_limit_seconds
        self._retry = retry or RetryPolicy(retry_on=(httpx.HTTPError,))
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            timeout=timeout_seconds, headers=DEFAULT_HEADERS
        )
        self._clock = clock
        self._sleep = sleep
        self._last_request: float | None = None

    def search(self, term: str) -> list[CatalogProduct]:
        """Return the products matching ``term``; raise CatalogError on failure."""
        try:
            data = self._retry.call(self._post, term)
        except httpx.HTTPError as exc:
            LOGGER.error("Catalog search for %r at %s failed: %s", term, self.vendor_code, exc)
            raise CatalogError(f"{self.vendor_code} search for {term!r} failed: {exc}") from exc
        products = decode_products(data)
        LOGGER.debug("%s search %r returned %d product(s)", self.vendor_code, term, len(products))
        return products

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _throttle(self) -> None:
        if self._last_request is not None:
            wait = self._rate_limit - (self._clock() - self._last_request)
            if wait > 0:
                self._sleep(wait)
        self._last_request = self._clock()

    def _post(self, term: str) -> Any:
        self._throttle()
        response = self._client.post(self._endpoint, json=build_search_payload(term))
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as exc:
            raise CatalogError(f"{self.vendor_code} returned invalid JSON") from exc


class CatalogClientFactory:
    """Build one client per configured vendor and reuse it."""

    def __init__(
        self,
        settings: CatalogSettings,
        *,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings
        self._http_client = http_client
        self._sleep = sleep
        self._clients: dict[str, VendorCatalogClient] = {}

    def for_vendor(self, vendor_code: str) -> VendorCatalogClient | None:
        """Return the vendor's client, or ``None`` when it has no endpoint."""
        if vendor_code in self._clients:
            return self._clients[vendor_code]
        endpoint = self._settings.endpoints.get(vendor_code)
        if not endpoint:
            return None
        client = VendorCatalogClient(
            vendor_code,
            endpoint,
            timeout_seconds=self._settings.timeout_seconds,
            rate_limit_seconds=self._settings.rate_limit_seconds,
            retry=RetryPolicy(
                attempts=self._settings.max_retries,
                delay_seconds=self._settings.retry_delay_seconds,
                retry_on=(httpx.HTTPError,),
                sleep=self._sleep,
            ),
            http_client=self._http_client,
            sleep=self._sleep,
        )
        self._clients[vendor_code] = client
        return client

    def close(self) -> None:
        for client in self._clients.values():
            client.close()
        self._clients.clear()


__all__ = [
    "CatalogClientFactory",
    "VendorCatalogClient",
    "build_search_payload",
    "decode_products",
]
