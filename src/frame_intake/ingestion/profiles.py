"""Built-in vendor identification profiles and JSON profile loading."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from frame_intake.core.models import VendorProfile

LOGGER = logging.getLogger(__name__)

# List order is the domain and signature tie-break: earlier vendors win.
DEFAULT_PROFILES: tuple[VendorProfile, ...] = (
    VendorProfile(
        code="safilo",
        name="Safilo",
        domains=("safilo.com", "mysafilo.com"),
        body_signatures=("safilo usa, inc", "safilo usa inc", "safilo.com", "mysafilo.com"),
        subject_keywords=("safilo", "mysafilo"),
        body_keywords=("safilo", "order has been received"),
    ),
    VendorProfile(
        code="luxottica",
        name="Luxottica",
        domains=("luxottica.com", "us.luxottica.com", "my.luxottica.com"),
        body_signatures=("my.luxottica.com", "luxottica group", "cart number"),
        subject_keywords=("luxottica", "cart number", "order confirmation"),
        body_keywords=("luxottica", "customer code", "agent reference"),
    ),
    VendorProfile(
        code="modern_optical",
        name="Modern Optical",
        domains=("modernoptical.com",),
        body_signatures=("custsvc@modernoptical.com", "modernoptical.com", "modern optical"),
        subject_keywords=("modern optical", "receipt for order number"),
        body_keywords=("custsvc@modernoptical.com", "order number", "placed by rep"),
    ),
    VendorProfile(
        code="etnia_barcelona",
        name="Etnia Barcelona",
        domains=("etniabarcelona.com", "etnia.es"),
        body_signatures=(
            "etnia barcelona llc",
            "etnia eyewear culture",
            "extranet-etniabarcelona.com",
            "etniabarcelona.com",
            "etnia barcelona",
        ),
        subject_keywords=("etnia", "order"),
        body_keywords=("etnia barcelona", "etnia eyewear", "trusting in etnia"),
    ),
    VendorProfile(
        code="europa",
        name="Europa",
        domains=("europaeye.com",),
        body_signatures=("europaeye.com", "europa sales representative"),
        subject_keywords=("europa", "customer receipt", "receipt for order"),
        body_keywords=("europaeye.com", "order placed by rep", "europa"),
    ),
    VendorProfile(
        code="ideal_optics",
        name="Ideal Optics",
        domains=("i-dealoptics.com", "idealoptics.com"),
        body_signatures=("i-deal optics", "ideal optics", "i-dealoptics.com"),
        subject_keywords=("ideal optics", "i-deal", "order confirmation"),
        body_keywords=("i-deal optics", "ideal optics", "order number"),
    ),
    VendorProfile(
        code="lamyamerica",
        name="L'Amy America",
        domains=("lamyamerica.com", "lamy-america.com"),
        body_signatures=("l'amy america", "lamy america", "lamyamerica.com"),
        subject_keywords=("lamy", "l'amy", "order confirmation"),
        body_keywords=("lamy america", "l'amy america", "order number"),
    ),
    VendorProfile(
        code="kenmark",
        name="Kenmark Eyewear",
        domains=("kenmarkeyewear.com",),
        body_signatures=(
            "kenmark eyewear",
            "kenmarkeyewear.com",
            "imageserver.jiecosystem.net/image/kenmark/",
        ),
        subject_keywords=("kenmark eyewear", "kenmark", "receipt for order number"),
        body_keywords=("kenmark", "order number", "placed by rep"),
    ),
    VendorProfile(
        code="marchon",
        name="Marchon",
        domains=("marchon.com", "marchoneyewear.com", "altaireyewear.com"),
        body_signatures=("marchon order confirmation", "marchon eyewear", "1-800-645-1300"),
        subject_keywords=("marchon", "marchon order confirmation"),
        body_keywords=("marchon", "order id:", "sales rep:", "rep stock order"),
    ),
    VendorProfile(
        code="clearvision",
        name="ClearVision Optical",
        domains=("cvoptical.com",),
        body_signatures=("clearvision optical", "cvoptical.com", "cvogo order"),
        subject_keywords=("cvogo", "clearvision"),
        body_keywords=("clearvision", "customer id", "territory"),
    ),
)


class _ProfileModel(BaseModel):
    code: str
    name: str
    domains: list[str] = Field(default_factory=list)
    body_signatures: list[str] = Field(default_factory=list)
    subject_keywords: list[str] = Field(default_factory=list)
    body_keywords: list[str] = Field(default_factory=list)
    required_matches: int = Field(default=2, ge=1)
    keyword_weight: int = Field(default=60, ge=60, le=75)
    parser: str | None = None

    def to_profile(self) -> VendorProfile:
        return VendorProfile(
            code=self.code,
            name=self.name,
            domains=tuple(domain.lower() for domain in self.domains),
            body_signatures=tuple(sig.lower() for sig in self.body_signatures),
            subject_keywords=tuple(word.lower() for word in self.subject_keywords),
            body_keywords=tuple(word.lower() for word in self.body_keywords),
            required_matches=self.required_matches,
            keyword_weight=self.keyword_weight,
            parser=self.parser,
        )


def load_vendor_profiles(path: Path | str | None = None) -> tuple[VendorProfile, ...]:
    """Return profiles from a JSON list file, or the built-in set.

    The file must hold a JSON array of profile objects; its order is the
    classification tie-break order.
    """
    if path is None:
        return DEFAULT_PROFILES
    profile_path = Path(path)
    try:
        raw = json.loads(profile_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Unable to read vendor profiles from {profile_path}") from exc
    if not isinstance(raw, list):
        raise ValueError(f"Vendor profile file {profile_path} must contain a list")
    try:
        profiles = tuple(_ProfileModel.model_validate(entry).to_profile() for entry in raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid vendor profile in {profile_path}: {exc}") from exc
    LOGGER.info("Loaded %d vendor profiles from %s", len(profiles), profile_path)
    return profiles


__all__ = ["DEFAULT_PROFILES", "load_vendor_profiles"]
