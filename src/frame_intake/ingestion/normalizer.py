"""Clean forwarded HTML bodies before classification and parsing."""

from __future__ import annotations

import re
from typing import Literal
from urllib.parse import parse_qs, unquote, urlparse

from bs4 import BeautifulSoup, Comment

MailProvider = Literal["gmail", "outlook", "zoho", "unknown"]

_MSO_CONDITIONAL = re.compile(r"<!--\[if[^\]]*\]>.*?<!\[endif\]-->", re.IGNORECASE | re.DOTALL)
_FORWARD_HEADER_CLASSES = ("gmail_attr", "gmail_quote_attribution")
_OUTLOOK_HEADER_IDS = ("divRplyFwdMsg", "x_divRplyFwdMsg")


def detect_provider(html: str | None) -> MailProvider:
    """Guess which mail client produced a forwarded HTML body."""
    if not html:
        return "unknown"
    lowered = html.lower()
    if "zmail_extra" in lowered or "zoho" in lowered:
        return "zoho"
    if "gmail_quote" in lowered or "gmail_attr" in lowered:
        return "gmail"
    if "divrplyfwdmsg" in lowered or "safelinks.protection.outlook.com" in lowered:
        return "outlook"
    return "unknown"


def unwrap_url(url: str | None) -> str | None:
    """Strip link-protection redirect wrappers from a URL."""
    if not url:
        return url
    parsed = urlparse(url)
    host = parsed.netloc.lower()
    params = parse_qs(parsed.query)
    key: str | None = None
    if "linkprotect.cudasvc.com" in host:
        key = "a"
    elif host.endswith("google.com") and parsed.path.startswith("/url"):
        key = "q"
    elif "safelinks.protection.outlook.com" in host:
        key = "url"
    if key is None or key not in params:
        return url
    return unwrap_url(unquote(params[key][0]))


def normalize_html(html: str | None) -> str | None:
    """Return ``html`` with client wrappers removed and links unwrapped."""
    if not html:
        return html
    cleaned = _MSO_CONDITIONAL.sub("", html)
    soup = BeautifulSoup(cleaned, "html.parser")

    for comment in soup.find_all(string=lambda node: isinstance(node, Comment)):
        comment.extract()
    for class_name in _FORWARD_HEADER_CLASSES:
        for node in soup.find_all(class_=class_name):
            node.decompose()
    for element_id in _OUTLOOK_HEADER_IDS:
        node = soup.find(id=element_id)
        if node is not None:
            node.decompose()
    for tag in soup.find_all(href=True):
        tag["href"] = unwrap_url(tag["href"])
    for tag in soup.find_all(src=True):
        tag["src"] = unwrap_url(tag["src"])
    return str(soup)


def html_to_text(html: str | None) -> str:
    """Flatten HTML into newline-separated text."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for node in soup(["script", "style"]):
        node.decompose()
    text = soup.get_text("\n")
    lines = (line.strip() for line in text.splitlines())
    return "\n".join(line for line in lines if line)


__all__ = ["detect_provider", "html_to_text", "normalize_html", "unwrap_url"]
