"""HTTP fetching for recipe and shelf-life pages."""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import requests

from ..errors import FetchError, ValidationError

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; TossItTime Recipe Importer/1.0)"
DEFAULT_TIMEOUT = 15


@dataclass
class FetchedPage:
    url: str
    html: str
    status_code: int
    domain: str


def validate_url(url: Optional[str]) -> str:
    """Return the stripped URL or raise ValidationError."""
    if not url or not isinstance(url, str) or not url.strip():
        raise ValidationError("URL is required")

    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError("Invalid URL format")
    return url


def source_domain(url: str) -> str:
    """Hostname without a leading "www." ("www.example.com" -> "example.com")."""
    host = (urlparse(url).hostname or "").lower()
    return host[4:] if host.startswith("www.") else host


class HtmlFetcher:
    """Fetches HTML with the importer's User-Agent over a reusable session."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        })

    def fetch(self, url: str) -> FetchedPage:
        """
        GET a page.

        Raises:
            FetchError: non-2xx response (status_code = upstream status)
                or a transport failure (status_code = 500)
        """
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Fetch failed for {url}: {e}")
            raise FetchError(f"Failed to fetch recipe page: {e}") from e

        if not response.ok:
            logger.warning(f"Fetch returned HTTP {response.status_code} for {url}")
            raise FetchError(
                f"Failed to fetch recipe page: {response.status_code} {response.reason}",
                status_code=response.status_code,
            )

        logger.debug(f"Fetched {url}: {len(response.text)} chars")
        return FetchedPage(
            url=url,
            html=response.text,
            status_code=response.status_code,
            domain=source_domain(url),
        )
