"""Inbound message handling: decoding, unwrapping, classification."""

from .classifier import VendorClassifier, require_vendor
from .parser import EmailParser
from .profiles import DEFAULT_PROFILES, load_vendor_profiles
from .service import IngestionService
from .unwrapper import ForwardingUnwrapper
from .webhook import WebhookPayload

__all__ = [
    "DEFAULT_PROFILES",
    "EmailParser",
    "ForwardingUnwrapper",
    "IngestionService",
    "VendorClassifier",
    "WebhookPayload",
    "load_vendor_profiles",
    "require_vendor",
]
