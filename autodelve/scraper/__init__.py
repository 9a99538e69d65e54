"""Scraper package — crawl, convert and persist documentation pages."""

from autodelve.scraper.converter import html_to_markdown
from autodelve.scraper.crawler import crawl_site, download_site
from autodelve.scraper.models import CrawlTarget, Document, FetchedPage
from autodelve.scraper.store import read_corpus, save_document

__all__ = [
    "crawl_site",
    "download_site",
    "html_to_markdown",
    "read_corpus",
    "save_document",
    "CrawlTarget",
    "Document",
    "FetchedPage",
]
