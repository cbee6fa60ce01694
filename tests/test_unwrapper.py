"""Tests for recovering the original sender of forwarded mail."""

from __future__ import annotations

from frame_intake.ingestion.unwrapper import ForwardingUnwrapper, extract_address, extract_domain


def test_extract_helpers_handle_display_names() -> None:
    assert extract_domain("Orders <Orders@MySafilo.com>") == "mysafilo.com"
    assert extract_address("Jane Buyer <jane@shop.com> [mailto:jane@shop.com]") == "jane@shop.com"
    assert extract_domain(None) is None
    assert extract_address("no address here") is None


def test_unwrap_returns_vendor_sender_from_forwarded_body() -> None:
    body = (
        "FYI see below\n"
        "---------- Forwarded message ---------\n"
        "From: Safilo Orders <orders@mysafilo.com>\n"
        "Subject: Your order\n"
    )
    assert ForwardingUnwrapper().unwrap(body) == "orders@mysafilo.com"


def test_unwrap_skips_personal_and_customer_domains() -> None:
    body = (
        "Begin forwarded message:\n"
        "From: Front Desk <desk@gmail.com>\n"
        "From: Kenmark <noreply@kenmarkeyewear.com>\n"
    )
    assert ForwardingUnwrapper().unwrap(body) == "noreply@kenmarkeyewear.com"


def test_unwrap_follows_nested_forwards_to_deepest_sender() -> None:
    body = (
        "-----Original Message-----\n"
        "From: rep@europaeye.com\n"
        "some text\n"
        "-----Original Message-----\n"
        "From: system@marchon.com\n"
    )
    assert ForwardingUnwrapper().unwrap(body) == "system@marchon.com"


def test_unwrap_ignores_markers_beyond_scan_limit() -> None:
    body = ("x" * 200) + "\nForwarded message\nFrom: orders@mysafilo.com\n"
    unwrapper = ForwardingUnwrapper(scan_limit=100)
    assert unwrapper.unwrap(body) is None
    assert ForwardingUnwrapper().unwrap(body) == "orders@mysafilo.com"


def test_unwrap_without_marker_or_body_returns_none() -> None:
    unwrapper = ForwardingUnwrapper()
    assert unwrapper.unwrap("From: orders@mysafilo.com") is None
    assert unwrapper.unwrap(None) is None
    assert unwrapper.unwrap("") is None


def test_custom_deny_list_and_subdomains() -> None:
    unwrapper = ForwardingUnwrapper(["@example.org"])
    assert unwrapper.is_denied("a@mail.example.org")
    assert not unwrapper.is_denied("a@gmail.com")
    assert unwrapper.is_denied("not-an-address")
