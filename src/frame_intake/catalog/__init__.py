"""Vendor catalog search, variant matching and enrichment."""

from .client import CatalogClientFactory, VendorCatalogClient
from .crawler import CatalogCrawler
from .enrichment import EnrichmentService
from .matching import MatchWeights, score_variant, select_variant
from .retry import RetryPolicy

__all__ = [
    "CatalogClientFactory",
    "CatalogCrawler",
    "EnrichmentService",
    "MatchWeights",
    "RetryPolicy",
    "VendorCatalogClient",
    "score_variant",
    "select_variant",
]
