"""Score catalog variants against a parsed line item."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from frame_intake.core.models import CatalogVariant, LineItem, MatchType

FALLBACK_CONFIDENCE = 10


@dataclass(frozen=True, slots=True)
class MatchWeights:
    exact_color: int = 40
    color_code: int = 30
    color_substring: int = 20
    eye_size: int = 30
    bridge: int = 5
    temple: int = 5


DEFAULT_WEIGHTS = MatchWeights()


@dataclass(frozen=True, slots=True)
class VariantMatch:
    variant: CatalogVariant
    confidence: int
    match_type: MatchType


def normalize_color(value: str | None) -> str:
    """Lower-case and collapse separators so ``BLACK/GOLD`` equals ``black gold``."""
    if not value:
        return ""
    return " ".join(re.split(r"[\s/_\-]+", value.lower())).strip()


def _same(left: str | None, right: str | None) -> bool:
    return bool(left) and bool(right) and str(left).strip().upper() == str(right).strip().upper()


def score_variant(
    item: LineItem, variant: CatalogVariant, weights: MatchWeights = DEFAULT_WEIGHTS
) -> tuple[int, bool]:
    """Return ``(score, exact)`` where ``exact`` means the colour itself matched."""
    score = 0
    exact = False
    item_color = normalize_color(item.color)
    # Some catalogs only send the colour name in the code field.
    names = [
        name
        for name in (normalize_color(variant.color_name), normalize_color(variant.color_code))
        if name
    ]
    if item_color and names:
        if item_color in names:
            score += weights.exact_color
            exact = True
        elif any(item_color in name or name in item_color for name in names):
            score += weights.color_substring
    if _same(item.color_code, variant.color_code):
        score += weights.color_code
        exact = True
    if _same(item.eye_size, variant.eye_size):
        score += weights.eye_size
    if _same(item.bridge, variant.bridge):
        score += weights.bridge
    if _same(item.temple, variant.temple):
        score += weights.temple
    return score, exact


def select_variant(
    item: LineItem,
    variants: Sequence[CatalogVariant],
    weights: MatchWeights = DEFAULT_WEIGHTS,
) -> VariantMatch | None:
    """Pick the highest scoring variant; the first variant is a low-confidence fallback."""
    if not variants:
        return None
    best: VariantMatch | None = None
    best_score = 0
    for variant in variants:
        score, exact = score_variant(item, variant, weights)
        if score > best_score:
            best_score = score
            best = VariantMatch(variant, min(score, 100), "exact" if exact else "fuzzy")
    if best is not None:
        return best
    return VariantMatch(variants[0], FALLBACK_CONFIDENCE, "fallback")


__all__ = [
    "DEFAULT_WEIGHTS",
    "FALLBACK_CONFIDENCE",
    "MatchWeights",
    "VariantMatch",
    "normalize_color",
    "score_variant",
    "select_variant",
]
