"""Data models for the crawl-and-ingest pipeline."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CrawlTarget:
    """A discovered link waiting to be visited at a given depth."""

    url: str
    depth: int


@dataclass
class FetchedPage:
    """The raw HTTP response for a single URL fetch."""

    url: str
    html: str
    status_code: int


@dataclass(frozen=True)
class Document:
    """One normalized page as stored in (and read back from) the corpus."""

    identifier: str
    url: str
    content: str
