"""HTTP fetcher for song pages."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from backend.config import settings
from backend.scraper.models import RawPage

logger = logging.getLogger(__name__)


class FetchError(RuntimeError):
    """The page could not be fetched: network error, timeout or non-2xx status."""


def _default_headers() -> dict[str, str]:
    return {
        "User-Agent": settings.user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
    }


def fetch_url(url: str, timeout: Optional[float] = None) -> RawPage:
    """Fetch *url* and return a :class:`RawPage`.

    The request is bounded by *timeout* (``settings.request_timeout`` by
    default).  Redirects are followed.

    Raises:
        FetchError: On a 4xx/5xx response or any transport-level failure.
    """
    logger.info("Fetching %s", url)
    try:
        with httpx.Client(
            headers=_default_headers(),
            timeout=timeout if timeout is not None else settings.request_timeout,
            follow_redirects=True,
        ) as client:
            response = client.get(url)
            response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        raise FetchError(f"HTTP {status}: {exc.response.reason_phrase}") from exc
    except httpx.HTTPError as exc:
        raise FetchError(f"Request to {url} failed: {exc}") from exc

    return RawPage(url=url, html=response.text, status_code=response.status_code)
