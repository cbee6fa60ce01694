"""Three-tier vendor classification cascade."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Literal

from frame_intake.core.interfaces import ClassificationAmbiguous
from frame_intake.core.models import (
    ClassificationResult,
    ClassificationTier,
    InboundMessage,
    VendorProfile,
)

from .normalizer import html_to_text
from .unwrapper import ForwardingUnwrapper, extract_domain

LOGGER = logging.getLogger(__name__)

TieBreak = Literal["first", "highest"]


@dataclass(frozen=True, slots=True)
class MessageView:
    """Pre-computed, lower-cased views of a message shared by all tiers."""

    sender: str | None
    domain: str | None
    subject: str
    body: str


@dataclass(frozen=True, slots=True)
class TierMatch:
    """A profile that satisfied a tier, with its match strength."""

    profile: VendorProfile
    strength: int
    signals: tuple[str, ...]


TierMatcher = Callable[[MessageView, VendorProfile], TierMatch | None]
WeightFn = Callable[[TierMatch], int]


@dataclass(frozen=True)
class TierRule:
    """One step of the cascade: a predicate, a weight and a tie-break rule.

    ``first`` keeps the earliest matching profile in list order.
    ``highest`` keeps the strongest match, then falls back to list order.
    """

    tier: ClassificationTier
    matcher: TierMatcher
    weight: WeightFn
    tie_break: TieBreak = "first"

    def evaluate(
        self, view: MessageView, profiles: Sequence[VendorProfile]
    ) -> TierMatch | None:
        best: TierMatch | None = None
        for profile in profiles:
            match = self.matcher(view, profile)
            if match is None:
                continue
            if self.tie_break == "first":
                return match
            if best is None or match.strength > best.strength:
                best = match
        return best


def normalize_text(text: str | None) -> str:
    """Lower-case and collapse whitespace."""
    if not text:
        return ""
    return re.sub(r"\s+", " ", text).strip().lower()


def match_domain(view: MessageView, profile: VendorProfile) -> TierMatch | None:
    if not view.domain:
        return None
    for vendor_domain in profile.domains:
        candidate = vendor_domain.lower()
        if view.domain == candidate or candidate in view.domain:
            return TierMatch(profile, 1, (f"domain:{candidate}",))
    return None


def match_signature(view: MessageView, profile: VendorProfile) -> TierMatch | None:
    found = tuple(
        signature
        for signature in profile.body_signatures
        if normalize_text(signature) and normalize_text(signature) in view.body
    )
    if not found:
        return None
    return TierMatch(profile, len(found), tuple(f"signature:{sig}" for sig in found))


def match_keywords(view: MessageView, profile: VendorProfile) -> TierMatch | None:
    subject_hits = [word for word in profile.subject_keywords if word.lower() in view.subject]
    body_hits = [word for word in profile.body_keywords if word.lower() in view.body]
    count = len(subject_hits) + len(body_hits)
    if count == 0 or count < profile.required_matches:
        return None
    signals = tuple(f"subject:{word}" for word in subject_hits) + tuple(
        f"body:{word}" for word in body_hits
    )
    return TierMatch(profile, count, signals)


def _keyword_weight(match: TierMatch) -> int:
    return max(60, min(75, match.profile.keyword_weight))


DEFAULT_RULES: tuple[TierRule, ...] = (
    TierRule("domain", match_domain, lambda _match: 95, "first"),
    TierRule("signature", match_signature, lambda _match: 85, "first"),
    TierRule("weak-keyword", match_keywords, _keyword_weight, "highest"),
)


class VendorClassifier:
    """Assign a vendor and confidence to inbound messages."""

    def __init__(
        self,
        profiles: Sequence[VendorProfile],
        unwrapper: ForwardingUnwrapper | None = None,
        *,
        rules: Sequence[TierRule] | None = None,
    ) -> None:
        self._profiles: tuple[VendorProfile, ...] = tuple(profiles)
        self._unwrapper = unwrapper or ForwardingUnwrapper()
        self._rules: tuple[TierRule, ...] = tuple(rules) if rules is not None else DEFAULT_RULES

    @property
    def profiles(self) -> tuple[VendorProfile, ...]:
        return self._profiles

    def refresh(self, profiles: Sequence[VendorProfile]) -> None:
        """Replace the profile set used by subsequent classifications."""
        self._profiles = tuple(profiles)
        LOGGER.info("Vendor classifier refreshed with %d profiles", len(self._profiles))

    def profile(self, code: str) -> VendorProfile | None:
        for profile in self._profiles:
            if profile.code == code:
                return profile
        return None

    def classify(self, message: InboundMessage) -> ClassificationResult:
        """Run the cascade, stopping at the first tier that matches."""
        plain = message.text or html_to_text(message.html)
        original_sender = self._unwrapper.unwrap(plain)
        outer_sender = message.sender
        resolved = original_sender or outer_sender
        view = MessageView(
            sender=resolved,
            domain=extract_domain(resolved),
            subject=normalize_text(message.subject),
            body=normalize_text(" ".join(part for part in (plain, message.html) if part)),
        )

        for rule in self._rules:
            match = rule.evaluate(view, self._profiles)
            if match is None:
                continue
            result = ClassificationResult(
                vendor_code=match.profile.code,
                confidence=rule.weight(match),
                tier=rule.tier,
                forwarded=original_sender is not None,
                outer_sender=outer_sender,
                original_sender=original_sender,
                signals=match.signals,
            )
            LOGGER.debug(
                "Classified message from %s as %s via %s (%d)",
                resolved,
                result.vendor_code,
                result.tier,
                result.confidence,
            )
            return result

        LOGGER.info("No vendor matched message from %s", resolved)
        return ClassificationResult(
            vendor_code=None,
            confidence=0,
            tier="none",
            forwarded=original_sender is not None,
            outer_sender=outer_sender,
            original_sender=original_sender,
        )


def require_vendor(result: ClassificationResult, min_confidence: int) -> str:
    """Return the vendor code or raise ``ClassificationAmbiguous``."""
    if result.vendor_code is None:
        raise ClassificationAmbiguous(result, "Unrecognized vendor")
    if result.confidence < min_confidence:
        raise ClassificationAmbiguous(
            result,
            f"Vendor {result.vendor_code} matched at {result.confidence}, "
            f"below the {min_confidence} threshold",
        )
    return result.vendor_code


__all__ = [
    "DEFAULT_RULES",
    "MessageView",
    "TierMatch",
    "TierRule",
    "VendorClassifier",
    "match_domain",
    "match_keywords",
    "match_signature",
    "normalize_text",
    "require_vendor",
]
