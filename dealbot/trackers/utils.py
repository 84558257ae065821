from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlparse

import httpx

from dealbot.config import get_settings
from dealbot.trackers.base import BaseDealSite, LayoutError

_NON_NUMERIC = re.compile(r"[^0-9.\-]+")

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def parse_price(text: str) -> float:
    """Strip everything but digits, dots and minus signs, then parse.

    >>> parse_price("£1,249.99")
    1249.99
    """
    cleaned = _NON_NUMERIC.sub("", text)
    try:
        return float(cleaned)
    except ValueError:
        raise LayoutError(f"Could not parse price from {text!r}") from None


def is_site_url(text: str, domain: Optional[str] = None) -> bool:
    """Check that text is an absolute http(s) URL on the deal site's domain."""
    if domain is None:
        domain = get_settings().site_domain
    text = text.strip()
    if not text or any(c.isspace() for c in text):
        return False
    try:
        parsed = urlparse(text)
        host = parsed.hostname
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https") or not host:
        return False
    domain = domain.lower()
    return host == domain or host.endswith("." + domain)


def create_http_client() -> httpx.AsyncClient:
    settings = get_settings()
    return httpx.AsyncClient(
        timeout=settings.http_timeout,
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
    )


def get_deal_site(client: httpx.AsyncClient) -> BaseDealSite:
    """Build the configured deal site scraper."""
    from dealbot.trackers.platforms.libidex import LibidexSite

    settings = get_settings()
    return LibidexSite(
        client,
        base_url=settings.site_url,
        domain=settings.site_domain,
        name=settings.site_name,
    )
