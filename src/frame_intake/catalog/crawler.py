"""Exhaustive catalog crawl that seeds the enrichment cache."""

from __future__ import annotations

import logging
import string
import time
from collections.abc import Callable, Iterable

from frame_intake.core.interfaces import CatalogError, CatalogRepository, CatalogSearchClient
from frame_intake.core.models import CatalogEntry, CatalogProduct, CrawlReport

from .entries import catalog_entries

LOGGER = logging.getLogger(__name__)

CRAWL_TERMS: tuple[str, ...] = tuple(string.ascii_uppercase) + tuple(string.digits)


class CatalogCrawler:
    """Search every single-character term and cache each distinct style."""

    def __init__(
        self,
        catalog: CatalogRepository,
        clients: Callable[[str], CatalogSearchClient | None],
        *,
        batch_size: int = 50,
        batch_pause_seconds: float = 0.5,
        terms: Iterable[str] = CRAWL_TERMS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self._catalog = catalog
        self._clients = clients
        self._batch_size = batch_size
        self._batch_pause = batch_pause_seconds
        self._terms = tuple(terms)
        self._sleep = sleep

    def crawl_full_catalog(self, vendor_code: str) -> CrawlReport:
        client = self._clients(vendor_code)
        if client is None:
            raise CatalogError(f"no catalog endpoint configured for {vendor_code}")

        report = CrawlReport(vendor_code=vendor_code)
        products: dict[str, CatalogProduct] = {}
        for term in self._terms:
            report.terms_searched += 1
            try:
                found = client.search(term)
            except CatalogError as exc:
                LOGGER.warning("Crawl term %r failed for %s: %s", term, vendor_code, exc)
                report.failed_terms.append(term)
                continue
            new = 0
            for product in found:
                if product.model_key not in products:
                    products[product.model_key] = product
                    new += 1
            LOGGER.info(
                "Crawl %s term %r: %d result(s), %d new, %d unique so far",
                vendor_code,
                term,
                len(found),
                new,
                len(products),
            )

        report.unique_products = len(products)
        entries = [
            entry for product in products.values() for entry in catalog_entries(vendor_code, product)
        ]
        report.entries_upserted = self._write_batches(entries)
        LOGGER.info(
            "Crawl of %s finished: %d product(s), %d entr(ies), %d failed term(s)",
            vendor_code,
            report.unique_products,
            report.entries_upserted,
            len(report.failed_terms),
        )
        return report

    def _write_batches(self, entries: list[CatalogEntry]) -> int:
        written = 0
        for start in range(0, len(entries), self._batch_size):
            if start and self._batch_pause > 0:
                self._sleep(self._batch_pause)
            written += self._catalog.upsert_catalog_entries(entries[start : start + self._batch_size])
        return written


__all__ = ["CRAWL_TERMS", "CatalogCrawler"]
