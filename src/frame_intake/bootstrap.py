"""Wire settings into a service container shared by the CLI and the web app."""

from __future__ import annotations

import logging

from frame_intake.catalog import CatalogClientFactory, CatalogCrawler, EnrichmentService
from frame_intake.core.config import AppSettings
from frame_intake.core.container import ServiceContainer
from frame_intake.ingestion import (
    ForwardingUnwrapper,
    IngestionService,
    VendorClassifier,
    load_vendor_profiles,
)
from frame_intake.lifecycle import OrderLifecycleManager
from frame_intake.parsers import default_registry
from frame_intake.storage import SqliteInventoryRepository

LOGGER = logging.getLogger(__name__)


def _classifier(container: ServiceContainer) -> VendorClassifier:
    settings: AppSettings = container.resolve("settings")
    profiles = load_vendor_profiles(settings.classifier.profiles_path)
    unwrapper = ForwardingUnwrapper(
        settings.classifier.deny_domains, scan_limit=settings.classifier.scan_limit
    )
    LOGGER.debug("Loaded %d vendor profiles", len(profiles))
    return VendorClassifier(profiles, unwrapper)


def _enrichment(container: ServiceContainer) -> EnrichmentService | None:
    settings: AppSettings = container.resolve("settings")
    if not settings.enrichment.enabled:
        LOGGER.info("Catalog enrichment disabled")
        return None
    factory: CatalogClientFactory = container.resolve("catalog_clients")
    return EnrichmentService(container.resolve("repository"), factory.for_vendor)


def _lifecycle(container: ServiceContainer) -> OrderLifecycleManager:
    settings: AppSettings = container.resolve("settings")
    return OrderLifecycleManager(
        container.resolve("repository"),
        container.resolve("enrichment"),
        enrich_vendors=settings.enrichment.vendors,
    )


def _ingestion(container: ServiceContainer) -> IngestionService:
    settings: AppSettings = container.resolve("settings")
    return IngestionService(
        container.resolve("classifier"),
        container.resolve("registry"),
        container.resolve("repository"),
        container.resolve("lifecycle"),
        min_confidence=settings.classifier.min_confidence,
    )


def _crawler(container: ServiceContainer) -> CatalogCrawler:
    settings: AppSettings = container.resolve("settings")
    factory: CatalogClientFactory = container.resolve("catalog_clients")
    return CatalogCrawler(
        container.resolve("repository"),
        factory.for_vendor,
        batch_size=settings.catalog.batch_size,
        batch_pause_seconds=settings.catalog.batch_pause_seconds,
    )


def build_container(settings: AppSettings) -> ServiceContainer:
    """Register every service lazily; nothing touches disk or network until resolved."""
    container = ServiceContainer()
    container.register_instance("settings", settings)
    container.register("repository", lambda c: SqliteInventoryRepository(settings.storage))
    container.register("classifier", _classifier)
    container.register("registry", lambda c: default_registry())
    container.register("catalog_clients", lambda c: CatalogClientFactory(settings.catalog))
    container.register("enrichment", _enrichment)
    container.register("lifecycle", _lifecycle)
    container.register("ingestion", _ingestion)
    container.register("crawler", _crawler)
    return container


__all__ = ["build_container"]
