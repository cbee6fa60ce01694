"""Recover the originating sender of forwarded vendor emails."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from frame_intake.core.config import DEFAULT_DENY_DOMAINS

LOGGER = logging.getLogger(__name__)

_FORWARD_MARKERS = re.compile(
    r"(?:begin forwarded message"
    r"|-{2,}\s*original message\s*-{2,}"
    r"|-{2,}\s*forwarded message\s*-{2,}"
    r"|forwarded message)",
    re.IGNORECASE,
)
_FROM_LINE = re.compile(r"^[ \t>*]*from:\**[ \t]*(?P<value>.+)$", re.IGNORECASE | re.MULTILINE)
_ADDRESS = re.compile(r"[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}", re.IGNORECASE)
_DOMAIN = re.compile(r"@([^>\s\]]+)")
_MAX_DEPTH = 8


def extract_domain(address: str | None) -> str | None:
    """Return the lower-cased domain of an email address or header value."""
    if not address:
        return None
    match = _DOMAIN.search(address)
    if match is None:
        return None
    return match.group(1).strip().strip(".>").lower() or None


def extract_address(header_value: str | None) -> str | None:
    """Pull a bare address out of ``Name <addr>`` or ``addr [mailto:addr]``."""
    if not header_value:
        return None
    match = _ADDRESS.search(header_value)
    return match.group(0).lower() if match else None


class ForwardingUnwrapper:
    """Find the deepest non-personal sender inside forwarded message bodies."""

    def __init__(
        self,
        deny_domains: Iterable[str] = DEFAULT_DENY_DOMAINS,
        *,
        scan_limit: int = 1000,
    ) -> None:
        self._deny_domains = tuple(domain.lower().lstrip("@") for domain in deny_domains)
        self._scan_limit = scan_limit

    def is_denied(self, address: str | None) -> bool:
        """Return ``True`` for personal, webmail or known customer addresses."""
        domain = extract_domain(address)
        if domain is None:
            return True
        return any(
            domain == denied or domain.endswith("." + denied)
            for denied in self._deny_domains
        )

    def unwrap(self, body: str | None) -> str | None:
        """Return the original sender of a forwarded body, or ``None``."""
        if not body or not isinstance(body, str):
            return None
        sender = self._unwrap(body, depth=0)
        if sender:
            LOGGER.debug("Recovered original sender %s", sender)
        return sender

    def _unwrap(self, body: str, depth: int) -> str | None:
        if depth >= _MAX_DEPTH:
            return None
        marker = _FORWARD_MARKERS.search(body[: self._scan_limit])
        if marker is None:
            return None

        remainder = body[marker.end() :]
        for from_line in _FROM_LINE.finditer(remainder):
            address = extract_address(from_line.group("value"))
            if address is None or self.is_denied(address):
                continue
            deeper = self._unwrap(remainder[from_line.end() :], depth + 1)
            return deeper or address
        return None


__all__ = ["ForwardingUnwrapper", "extract_address", "extract_domain"]
