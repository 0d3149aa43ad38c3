"""HTTP client that downloads product pages."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import requests

from ..errors import FetchError, FetchTimeoutError

logger = logging.getLogger(__name__)

BROWSER_HEADERS: dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}


@dataclass(slots=True)
class ProductPageClient:
    """Fetches raw product page HTML.

    A single GET is issued per call with browser-like headers. The body is
    returned whatever the HTTP status code, since error pages can still
    carry stock wording. There is no retry and no cap on the response size.
    """

    timeout: float = 10.0
    session: Optional[requests.Session] = None
    headers: dict[str, str] = field(default_factory=lambda: dict(BROWSER_HEADERS))

    def fetch_page(self, url: str) -> str:
        """Return the body of ``url`` as text.

        Raises :class:`FetchTimeoutError` when the request times out and
        :class:`FetchError` for any other transport failure.
        """

        getter = self.session.get if self.session is not None else requests.get
        try:
            response = getter(url, headers=self.headers, timeout=self.timeout)
        except requests.Timeout as exc:
            raise FetchTimeoutError(f"Request to {url} timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise FetchError(f"Request to {url} failed: {exc}") from exc

        logger.debug("Fetched %s (HTTP %s, %s bytes)", url, response.status_code, len(response.content))
        return response.text
