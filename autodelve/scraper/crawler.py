"""Same-origin, depth-bounded site crawler.

``crawl_site`` walks every page reachable from a seed URL on the seed's
origin (scheme + host), up to ``max_depth`` hops, and returns the raw HTML
keyed by URL.  ``download_site`` runs a crawl and persists one converted
markdown document per fetched page.

Traversal is depth-first from depth 1.  Sibling links found on a page are
fetched concurrently on the event loop; a URL is claimed in the visited set
before its fetch is awaited, so two branches never fetch the same page.  A
URL that was already claimed is skipped even if it is re-discovered at a
shallower depth (the first depth wins).  A page whose redirects end on
another origin is skipped and its links are not followed.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from urllib.parse import urldefrag, urljoin, urlsplit

import httpx
from bs4 import BeautifulSoup

from autodelve.config import settings
from autodelve.scraper.converter import html_to_markdown
from autodelve.scraper.fetcher import fetch_page, make_client
from autodelve.scraper.models import CrawlTarget
from autodelve.scraper.store import save_document

_CRAWLABLE_SCHEMES = ("http", "https")


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------

def normalize_url(url: str) -> str:
    """Drop the fragment from *url* so ``page#a`` and ``page#b`` are one page."""
    return urldefrag(url.strip())[0]


def url_origin(url: str) -> tuple[str, str]:
    """Return the ``(scheme, host)`` origin of *url*, lower-cased."""
    parts = urlsplit(url)
    return parts.scheme.lower(), parts.netloc.lower()


def extract_links(html: str, page_url: str, origin: tuple[str, str]) -> list[str]:
    """Return absolute, same-origin link targets found in *html*.

    Hrefs are resolved against *page_url*; fragments are dropped, non-http
    schemes (``mailto:``, ``javascript:``) are ignored and duplicates are
    removed while preserving document order.
    """
    soup = BeautifulSoup(html, "html.parser")
    seen: set[str] = set()
    links: list[str] = []
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href:
            continue
        try:
            absolute = normalize_url(urljoin(page_url, href))
        except ValueError:
            continue
        if urlsplit(absolute).scheme.lower() not in _CRAWLABLE_SCHEMES:
            continue
        if url_origin(absolute) != origin or absolute in seen:
            continue
        seen.add(absolute)
        links.append(absolute)
    return links


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def crawl_site(
    seed_url: str,
    max_depth: int | None = None,
    client: httpx.AsyncClient | None = None,
) -> dict[str, str]:
    """Crawl *seed_url* and return a ``{url: raw_html}`` map.

    Args:
        seed_url: Absolute http(s) URL to start from (depth 1).
        max_depth: Maximum number of hops, inclusive.  Defaults to
            ``settings.crawl_max_depth``.
        client: Optional pre-configured ``httpx.AsyncClient``; one is created
            (and closed) for the run when omitted.

    Returns:
        Raw HTML for every successfully fetched URL.  Pages that failed to
        fetch or parse are reported and left out.

    Raises:
        ValueError: If *max_depth* is below 1 or *seed_url* is not http(s).
    """
    depth_limit = settings.crawl_max_depth if max_depth is None else max_depth
    if depth_limit < 1:
        raise ValueError(f"max_depth must be a positive integer, got {depth_limit}")

    seed = normalize_url(seed_url)
    if urlsplit(seed).scheme.lower() not in _CRAWLABLE_SCHEMES:
        raise ValueError(f"Seed URL must be an absolute http(s) URL: {seed_url!r}")
    origin = url_origin(seed)

    pages: dict[str, str] = {}
    claimed: set[str] = set()
    semaphore = asyncio.Semaphore(max(1, settings.crawl_max_concurrency))

    async def visit(http: httpx.AsyncClient, target: CrawlTarget) -> None:
        if target.depth > depth_limit or target.url in claimed:
            return
        claimed.add(target.url)

        try:
            async with semaphore:
                page = await fetch_page(http, target.url)
            if url_origin(page.url) != origin:
                print(f"[CRAWL] ↷ Skipped {target.url}: redirected off-site to {page.url}")
                return
            pages[target.url] = page.html
            if target.depth >= depth_limit:
                print(f"[CRAWL] ✓ {target.url} [{page.status_code}] (depth {target.depth}, leaf)")
                return
            links = extract_links(page.html, page.url, origin)
        except Exception as exc:
            print(f"[CRAWL] ✗ Failed {target.url!r}: {exc}")
            return

        print(
            f"[CRAWL] ✓ {target.url} [{page.status_code}] "
            f"(depth {target.depth}, {len(links)} link(s))"
        )
        children = [
            CrawlTarget(url=link, depth=target.depth + 1)
            for link in links
            if link not in claimed
        ]
        await asyncio.gather(*(visit(http, child) for child in children))

    root = CrawlTarget(url=seed, depth=1)
    if client is not None:
        await visit(client, root)
    else:
        async with make_client() as http:
            await visit(http, root)

    print(f"[CRAWL] Finished: {len(pages)} page(s) fetched from {seed}")
    return pages


async def download_site(
    seed_url: str,
    max_depth: int | None = None,
    content_dir: Path | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[Path]:
    """Crawl *seed_url*, convert every page to markdown, and save it.

    Returns:
        Paths of the documents written, in crawl order.
    """
    pages = await crawl_site(seed_url, max_depth=max_depth, client=client)

    saved: list[Path] = []
    for page_url, html in pages.items():
        try:
            markdown = html_to_markdown(html, base_url=page_url)
            path = save_document(page_url, markdown, content_dir=content_dir)
        except Exception as exc:
            print(f"[SAVE] ✗ Failed to save {page_url!r}: {exc}")
            continue
        print(f"[SAVE] {page_url} → {path}")
        saved.append(path)

    target_dir = content_dir if content_dir is not None else settings.content_dir
    print(f"[SAVE] {len(saved)} document(s) written to {target_dir}")
    return saved
