"""Vendor parsers and the registry that dispatches to them."""

from __future__ import annotations

from .base import ParserRegistry, VendorParser, split_size
from .clearvision import ClearVisionParser
from .etnia import EtniaBarcelonaParser
from .europa import EuropaParser
from .ideal_optics import IdealOpticsParser
from .jiecosystem import KenmarkParser, LamyAmericaParser
from .luxottica import LuxotticaParser
from .marchon import MarchonParser
from .modern_optical import ModernOpticalParser
from .safilo import SafiloParser


def default_registry() -> ParserRegistry:
    """Return a registry holding one parser per supported vendor."""
    return ParserRegistry(
        [
            SafiloParser(),
            LuxotticaParser(),
            ModernOpticalParser(),
            EtniaBarcelonaParser(),
            EuropaParser(),
            IdealOpticsParser(),
            LamyAmericaParser(),
            KenmarkParser(),
            MarchonParser(),
            ClearVisionParser(),
        ]
    )


__all__ = [
    "ClearVisionParser",
    "EtniaBarcelonaParser",
    "EuropaParser",
    "IdealOpticsParser",
    "KenmarkParser",
    "LamyAmericaParser",
    "LuxotticaParser",
    "MarchonParser",
    "ModernOpticalParser",
    "ParserRegistry",
    "SafiloParser",
    "VendorParser",
    "default_registry",
    "split_size",
]
