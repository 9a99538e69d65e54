"""Async HTTP fetcher used by the crawler."""

from __future__ import annotations

import httpx

from autodelve.config import settings
from autodelve.scraper.models import FetchedPage

_DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (compatible; Autodelve-Bot/1.0; +https://github.com/autodelve)"
    )
}


def make_client() -> httpx.AsyncClient:
    """Return an ``httpx.AsyncClient`` configured for crawling."""
    return httpx.AsyncClient(
        headers=_DEFAULT_HEADERS,
        timeout=settings.request_timeout,
        follow_redirects=True,
    )


async def fetch_page(client: httpx.AsyncClient, url: str) -> FetchedPage:
    """Fetch *url* with *client* and return a :class:`FetchedPage`.

    Raises:
        httpx.HTTPStatusError: If the server returns a 4xx/5xx status code.
        httpx.HTTPError: On transport failures (DNS, timeouts, resets).
    """
    response = await client.get(url)
    response.raise_for_status()
    return FetchedPage(
        url=str(response.url), html=response.text, status_code=response.status_code
    )
