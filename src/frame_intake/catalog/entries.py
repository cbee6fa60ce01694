"""Flatten catalog products into cache rows."""

from __future__ import annotations

from frame_intake.core.models import CatalogEntry, CatalogProduct


def model_key(model: str) -> str:
    return " ".join(model.split()).upper()


def catalog_entries(vendor_code: str, product: CatalogProduct) -> list[CatalogEntry]:
    """One entry per colour group and size; missing colour or eye size key as ``""``."""
    entries: list[CatalogEntry] = []
    for variant in product.variants:
        entries.append(
            CatalogEntry(
                vendor_code=vendor_code,
                model=product.model_key,
                color=variant.color_name or variant.color_code or "",
                eye_size=variant.eye_size or "",
                brand=product.collection,
                color_code=variant.color_code,
                bridge=variant.bridge,
                temple=variant.temple,
                sku=variant.sku,
                upc=variant.upc,
                wholesale=variant.wholesale,
                msrp=variant.msrp,
                material=variant.material,
                in_stock=variant.in_stock,
                verified=bool(variant.upc),
                data_source="api",
            )
        )
    return entries


__all__ = ["catalog_entries", "model_key"]
