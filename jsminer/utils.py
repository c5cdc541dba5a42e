"""
Utility functions for JS Miner.

Provides entropy scoring, base64 handling, domain heuristics, path
sanitizing, order-preserving deduplication and HTTP client helpers.
"""

from __future__ import annotations

import base64
import binascii
import math
import re
import time
from collections import Counter
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator
from urllib.parse import urlparse

import httpx
import structlog

if TYPE_CHECKING:
    from jsminer.models import ScanConfig

logger = structlog.get_logger(__name__)

HIGH_ENTROPY_THRESHOLD = 3.5

_ROOT_DOMAIN_RE = re.compile(r"[a-z0-9-]+\.[a-z0-9-]+$")
_UNSAFE_PATH_CHARS_RE = re.compile(r'[?%*:|"<>]')
_WHITESPACE_RE = re.compile(r"\s+")


def calculate_entropy(data: str) -> float:
    """
    Calculate Shannon entropy in bits per character.

    Args:
        data: Input string to analyze

    Returns:
        Entropy value in bits per character (0.0 for empty input)
    """
    if not data:
        return 0.0

    counter = Counter(data)
    length = len(data)
    entropy = 0.0

    for count in counter.values():
        probability = count / length
        entropy -= probability * math.log2(probability)

    return entropy


def is_high_entropy(value: str, threshold: float = HIGH_ENTROPY_THRESHOLD) -> bool:
    """
    Check if a value has high entropy (likely a secret).

    Args:
        value: String to analyze
        threshold: Minimum entropy threshold (default 3.5 bits/char)

    Returns:
        True if entropy reaches threshold
    """
    return calculate_entropy(value) >= threshold


class UniqueCollector:
    """Insertion-ordered collection that drops exact duplicates."""

    def __init__(self) -> None:
        self._seen: set[str] = set()
        self.items: list[str] = []

    def add(self, value: str) -> bool:
        """Append value unless already present. Returns True if added."""
        if value in self._seen:
            return False
        self._seen.add(value)
        self.items.append(value)
        return True

    def __len__(self) -> int:
        return len(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)

    def __contains__(self, value: object) -> bool:
        return value in self._seen


def dedupe(values: list[str]) -> list[str]:
    """Drop duplicates keeping first-occurrence order."""
    collector = UniqueCollector()
    for value in values:
        collector.add(value)
    return collector.items


def _b64decode(data: str) -> bytes:
    cleaned = data.strip()
    cleaned += "=" * (-len(cleaned) % 4)
    return base64.b64decode(cleaned, validate=True)


def decode_base64(data: str) -> str:
    """Decode base64 text, returning an empty string when invalid."""
    try:
        return _b64decode(data).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        return ""


def is_valid_base64(data: str) -> bool:
    """Check whether data decodes as base64."""
    if not data:
        return False
    try:
        _b64decode(data)
    except (binascii.Error, ValueError):
        return False
    return True


def get_host(url: str) -> str:
    """Lowercased hostname of a URL, empty when unparsable."""
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def get_root_domain(host: str | None) -> str | None:
    """
    Approximate the registrable domain as the last two labels.

    Multi-part public suffixes such as ``co.uk`` are not recognized,
    so ``shop.example.co.uk`` yields ``co.uk``.
    """
    if not host:
        return None
    match = _ROOT_DOMAIN_RE.search(host.lower())
    return match.group(0) if match else None


def get_domain_from_referrer(referrer: str | None) -> str | None:
    """Root domain of the referrer's host."""
    if not referrer:
        return None
    return get_root_domain(get_host(referrer))


def is_matched_domain_valid(matched: str, root_domain: str | None, request_host: str | None) -> bool:
    """
    Accept a discovered domain unless it is the asset's own location.

    The candidate must end with the root domain and differ from the
    request host, ``www.<host>`` and ``www.<root>``.
    """
    if not matched or not root_domain or not request_host:
        return False
    candidate = matched.lower()
    host = request_host.lower()
    return (
        candidate.endswith(root_domain)
        and candidate != host
        and candidate != f"www.{host}"
        and candidate != f"www.{root_domain}"
    )


def sanitize_path_segment(segment: str) -> str:
    """Strip characters that are unsafe in file names."""
    return _WHITESPACE_RE.sub("_", _UNSAFE_PATH_CHARS_RE.sub("", segment))


def sanitize_path(path: str) -> str:
    """Sanitize each ``/`` separated segment, keeping the separators."""
    return "/".join(sanitize_path_segment(part) for part in path.split("/"))


def path_from_url(resource_url: str, fallback_name: str = "resource") -> str:
    """
    Derive an archive path from a resource URL.

    Args:
        resource_url: Absolute resource URL
        fallback_name: File name used for bare or unparsable URLs

    Returns:
        Sanitized path starting with ``/``
    """
    try:
        parsed = urlparse(resource_url)
    except ValueError:
        return f"/{sanitize_path_segment(fallback_name)}"
    if not parsed.scheme or not parsed.netloc:
        return f"/{sanitize_path_segment(fallback_name)}"

    path = parsed.path if parsed.path not in ("", "/") else f"/{fallback_name}"
    return sanitize_path(path) or f"/{fallback_name}"


def is_likely_endpoint(path: str) -> bool:
    """Reject captures without a slash or with HTML/template markup."""
    return "/" in path and "<" not in path and ">" not in path



def now_timestamp() -> int:
    """Milliseconds since the epoch, used to name bundles."""
    return int(time.time() * 1000)


def create_http_client(
    config: "ScanConfig",
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Build the shared async HTTP client.

    Every request is bounded by the configured timeout; cookies and
    custom headers act as the page's ambient credentials.
    """
    headers = {"User-Agent": config.user_agent, **config.custom_headers}
    return httpx.AsyncClient(
        verify=config.verify_ssl,
        timeout=config.timeout,
        follow_redirects=True,
        headers=headers,
        cookies=config.cookies,
        transport=transport,
    )


@asynccontextmanager
async def open_client(
    config: "ScanConfig",
    client: httpx.AsyncClient | None = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the given client, or a temporary one closed on exit."""
    if client is not None:
        yield client
        return
    async with create_http_client(config) as temporary:
        yield temporary
