"""Fill missing identifiers and prices on line items from vendor catalogs."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace

from frame_intake.core.interfaces import (
    CatalogError,
    CatalogRepository,
    CatalogSearchClient,
    EnrichmentMiss,
)
from frame_intake.core.models import CatalogEntry, CatalogProduct, EnrichedItem, LineItem
from frame_intake.parsers.base import UNKNOWN_BRAND

from .entries import catalog_entries, model_key
from .matching import DEFAULT_WEIGHTS, MatchWeights, VariantMatch, select_variant

LOGGER = logging.getLogger(__name__)

ClientLookup = Callable[[str], CatalogSearchClient | None]


def search_terms(item: LineItem) -> list[str]:
    """Model first, then brand-qualified model."""
    terms = [item.model.strip()]
    if item.brand and item.brand != UNKNOWN_BRAND:
        qualified = f"{item.brand} {item.model}".strip()
        if not item.model.upper().startswith(item.brand.split()[0].upper()):
            terms.append(qualified)
    return [term for term in dict.fromkeys(terms) if term]


def merge_variant(item: LineItem, match: VariantMatch) -> LineItem:
    """Copy catalog data onto ``item`` without overwriting what the vendor sent.

    A fallback match only knows the model, so only model-level prices carry over.
    """
    variant = match.variant
    enriched = replace(
        item,
        wholesale_price=item.wholesale_price or variant.wholesale,
        msrp=item.msrp or variant.msrp,
        enriched=True,
        confidence_score=match.confidence,
        match_type=match.match_type,
    )
    if match.match_type == "fallback":
        return enriched
    return replace(
        enriched,
        upc=item.upc or variant.upc,
        sku=item.sku or variant.sku,
        color=item.color or variant.color_name,
        color_code=item.color_code or variant.color_code,
        eye_size=item.eye_size or variant.eye_size,
        bridge=item.bridge or variant.bridge,
        temple=item.temple or variant.temple,
        in_stock=variant.in_stock if variant.in_stock is not None else item.in_stock,
    )


class EnrichmentService:
    """Look items up in the catalog cache, then the live vendor catalog."""

    def __init__(
        self,
        catalog: CatalogRepository,
        clients: ClientLookup,
        *,
        weights: MatchWeights = DEFAULT_WEIGHTS,
    ) -> None:
        self._catalog = catalog
        self._clients = clients
        self._weights = weights

    def enrich_item(self, item: LineItem, vendor_code: str) -> EnrichedItem:
        """Return the enriched copy, or the original item with ``enriched=False``."""
        try:
            return self._enrich(item, vendor_code)
        except EnrichmentMiss as miss:
            LOGGER.info("No catalog match for %s %s: %s", vendor_code, item.model, miss)
        except CatalogError as exc:
            LOGGER.warning("Catalog lookup failed for %s %s: %s", vendor_code, item.model, exc)
        return EnrichedItem(item=item, enriched=False)

    def _enrich(self, item: LineItem, vendor_code: str) -> EnrichedItem:
        if not item.model:
            raise EnrichmentMiss("item has no model")
        cached = self._from_cache(item, vendor_code)
        if cached is not None:
            return cached

        client = self._clients(vendor_code)
        if client is None:
            raise EnrichmentMiss(f"no catalog client configured for {vendor_code}")
        product = self._search(client, item)
        entries = catalog_entries(vendor_code, product)
        if entries:
            self._catalog.upsert_catalog_entries(entries)
        match = select_variant(item, product.variants, self._weights)
        if match is None:
            raise EnrichmentMiss(f"{product.style_code} has no variants")
        entry = _entry_for(entries, match)
        LOGGER.debug(
            "Matched %s %s to %s (%s, %d)",
            vendor_code,
            item.model,
            product.style_code,
            match.match_type,
            match.confidence,
        )
        return EnrichedItem(
            item=merge_variant(item, match),
            enriched=True,
            match_type=match.match_type,
            confidence=match.confidence,
            entry=entry,
        )

    def _from_cache(self, item: LineItem, vendor_code: str) -> EnrichedItem | None:
        entries = self._catalog.find_catalog_entries(vendor_code, model_key(item.model))
        if not entries:
            return None
        match = select_variant(item, [entry.as_variant() for entry in entries], self._weights)
        if match is None or match.match_type == "fallback":
            return None
        cache_match = VariantMatch(match.variant, match.confidence, "cache")
        return EnrichedItem(
            item=merge_variant(item, cache_match),
            enriched=True,
            match_type="cache",
            confidence=match.confidence,
            entry=_entry_for(entries, match),
        )

    def _search(self, client: CatalogSearchClient, item: LineItem) -> CatalogProduct:
        """Return the product whose style is the item's model.

        Vendor search is a substring filter, so results for other styles that
        merely contain the model are ignored.
        """
        terms = search_terms(item)
        wanted = {model_key(term) for term in terms}
        for term in terms:
            for product in client.search(term):
                if product.model_key in wanted:
                    return product
        raise EnrichmentMiss(f"search returned no product for model {item.model!r}")


def _entry_for(entries: list[CatalogEntry], match: VariantMatch) -> CatalogEntry | None:
    for entry in entries:
        if entry.as_variant() == match.variant:
            return entry
    return None


__all__ = ["EnrichmentService", "merge_variant", "search_terms"]
