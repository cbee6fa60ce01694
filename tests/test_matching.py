"""Tests for catalog variant scoring."""

from __future__ import annotations

from frame_intake.catalog.client import decode_products
from frame_intake.catalog.matching import (
    FALLBACK_CONFIDENCE,
    MatchWeights,
    normalize_color,
    score_variant,
    select_variant,
)
from frame_intake.core.models import CatalogVariant, LineItem


def _variant(**overrides) -> CatalogVariant:
    data = {"color_code": None, "color_name": None}
    data.update(overrides)
    return CatalogVariant(**data)


def test_normalize_color_collapses_separators() -> None:
    assert normalize_color("BLACK/GOLD") == "black gold"
    assert normalize_color("  Havana_Brown ") == "havana brown"
    assert normalize_color(None) == ""


def test_exact_colour_and_size_score() -> None:
    item = LineItem(brand="Carrera", model="CA 8036", color="Black", eye_size="55", bridge="17")
    variant = _variant(color_name="BLACK", eye_size="55", bridge="17", temple="145")

    assert score_variant(item, variant) == (40 + 30 + 5, True)


def test_colour_code_counts_as_exact() -> None:
    item = LineItem(brand="Carrera", model="CA 8036", color_code="807")
    variant = _variant(color_code="807", color_name="Black")

    assert score_variant(item, variant) == (30, True)


def test_substring_colour_is_fuzzy() -> None:
    item = LineItem(brand="Carrera", model="CA 8036", color="Havana", eye_size="55")
    variants = [
        _variant(color_name="Black", eye_size="53"),
        _variant(color_name="Dark Havana", eye_size="55"),
    ]

    match = select_variant(item, variants)

    assert match is not None
    assert match.variant is variants[1]
    assert match.confidence == 20 + 30
    assert match.match_type == "fuzzy"


def test_best_exact_variant_wins() -> None:
    item = LineItem(brand="Carrera", model="CA 8036", color="Black", eye_size="57")
    variants = [
        _variant(color_name="Black", eye_size="55"),
        _variant(color_name="Black", eye_size="57"),
    ]

    match = select_variant(item, variants)

    assert match is not None
    assert match.variant is variants[1]
    assert match.match_type == "exact"
    assert match.confidence == 70


def test_no_signal_falls_back_to_first_variant() -> None:
    item = LineItem(brand="Carrera", model="CA 8036", color="Red")
    variants = [_variant(color_name="Blue"), _variant(color_name="Green")]

    match = select_variant(item, variants)

    assert match is not None
    assert match.variant is variants[0]
    assert match.match_type == "fallback"
    assert match.confidence == FALLBACK_CONFIDENCE


def test_no_variants_means_no_match() -> None:
    assert select_variant(LineItem(brand="X", model="Y"), []) is None


def test_confidence_is_capped() -> None:
    weights = MatchWeights(exact_color=90, eye_size=90)
    item = LineItem(brand="X", model="Y", color="Black", eye_size="50")

    match = select_variant(item, [_variant(color_name="Black", eye_size="50")], weights)

    assert match is not None
    assert match.confidence == 100


def test_colour_group_name_from_search_response_is_matched() -> None:
    (product,) = decode_products(
        [
            {
                "styleCode": "KM101",
                "colorGroup": [
                    {"color": "Tortoise", "sizes": [{"eyeSize": "52", "upc": "111"}]},
                    {"color": "Black", "sizes": [{"eyeSize": "52", "upc": "222"}]},
                ],
            }
        ]
    )
    item = LineItem(brand="Kenmark", model="KM101", color="Black")

    match = select_variant(item, product.variants)

    assert match is not None
    assert match.variant.upc == "222"
    assert match.match_type == "exact"
    assert match.confidence == 40


def test_colour_only_in_code_field_still_scores() -> None:
    item = LineItem(brand="Kenmark", model="KM101", color="Havana")
    variant = _variant(color_code="Dark Havana")

    assert score_variant(item, variant) == (20, False)
