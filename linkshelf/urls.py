"""
URL validation and normalization.

Everything here is pure: no network access, no side effects. The same raw
text always normalizes to the same canonical string, and normalizing a
canonical string returns it unchanged.
"""
import ipaddress
import re
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

from linkshelf.errors import InvalidUrl

DEFAULT_SCHEME = "https"
_SCHEME_PREFIXES = ("http://", "https://")

# Dot-separated labels of word characters, percent escapes and hyphens,
# with an optional trailing root dot.
_HOST_RE = re.compile(r"^[\w%-]+(\.[\w%-]+)*\.?$")

# Any explicit scheme; only http and https are accepted
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host.split("%", 1)[0])
    except ValueError:
        return False
    return True


def _valid_host(host: Optional[str]) -> bool:
    if not host or not host.strip():
        return False
    if ":" in host:
        return _is_ip_literal(host)
    return bool(_HOST_RE.match(host))


def normalize_url(raw: Optional[str]) -> Optional[str]:
    """
    Validate and canonicalize user-entered URL text.

    Args:
        raw: URL as typed by the user, e.g. "Example.com/Path"

    Returns:
        Canonical http/https URL, or None if the text is not a usable URL

    Examples:
        >>> normalize_url("example.com")
        'https://example.com'
        >>> normalize_url("HTTP://Example.COM/Path")
        'http://example.com/Path'
    """
    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None

    if not text.lower().startswith(_SCHEME_PREFIXES):
        if _SCHEME_RE.match(text):
            return None
        text = f"{DEFAULT_SCHEME}://{text}"

    try:
        parts = urlsplit(text)
        host = parts.hostname
        port = parts.port
    except ValueError:
        return None

    if not _valid_host(host):
        return None

    netloc = f"[{host}]" if ":" in host else host
    if port is not None:
        netloc = f"{netloc}:{port}"

    return urlunsplit((
        parts.scheme.lower() or DEFAULT_SCHEME,
        netloc,
        parts.path,
        parts.query,
        parts.fragment,
    ))


def require_url(raw: Optional[str]) -> str:
    """Like normalize_url, but raise InvalidUrl instead of returning None."""
    url = normalize_url(raw)
    if url is None:
        raise InvalidUrl(raw or "")
    return url


def is_valid_url(raw: Optional[str]) -> bool:
    """Check whether the text normalizes to a usable URL."""
    return normalize_url(raw) is not None


def extract_domain(url: str) -> str:
    """Host part of a URL, lower-cased; empty string if there is none."""
    try:
        return urlsplit(url).hostname or ""
    except ValueError:
        return ""
