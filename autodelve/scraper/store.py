"""Flat-file document store — one markdown file per crawled URL.

Each file starts with a small front-matter header recording the source URL,
followed by the converted page::

    ---
    url: https://docs.example.com/setup
    ---
    # Setup
    ...
"""

from __future__ import annotations

import hashlib
import re
from pathlib import Path

from autodelve.config import settings
from autodelve.scraper.models import Document

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]+")

DOCUMENT_SUFFIX = ".md"
# Leaves room for the suffix within the common 255-byte file-name limit.
MAX_IDENTIFIER_LENGTH = 200
_DIGEST_LENGTH = 10


def document_identifier(url: str) -> str:
    """Derive a stable file stem from *url*.

    The scheme is dropped and every run of non-alphanumeric characters is
    collapsed into a single ``_``, so re-crawling a site overwrites the same
    files.  Stems longer than ``MAX_IDENTIFIER_LENGTH`` are cut and suffixed
    with a hash of the full URL to stay under file-system name limits.
    """
    identifier = _NON_ALNUM_RE.sub("_", _SCHEME_RE.sub("", url))
    if len(identifier) <= MAX_IDENTIFIER_LENGTH:
        return identifier
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:_DIGEST_LENGTH]
    return f"{identifier[:MAX_IDENTIFIER_LENGTH - _DIGEST_LENGTH - 1]}_{digest}"


def _render_file(url: str, content: str) -> str:
    return f"---\nurl: {url}\n---\n{content}\n"


def _parse_file(text: str) -> tuple[str, str]:
    """Split a stored file into ``(url, content)``."""
    if text.startswith("---\n"):
        header, sep, body = text[4:].partition("\n---\n")
        if sep:
            url = ""
            for line in header.splitlines():
                key, _, value = line.partition(":")
                if key.strip() == "url":
                    url = value.strip()
            return url, body.rstrip("\n")
    return "", text.rstrip("\n")


def save_document(url: str, content: str, content_dir: Path | None = None) -> Path:
    """Write *content* for *url* into the corpus directory and return the path."""
    root = Path(content_dir) if content_dir is not None else settings.content_dir
    root.mkdir(parents=True, exist_ok=True)
    path = root / f"{document_identifier(url)}{DOCUMENT_SUFFIX}"
    path.write_text(_render_file(url, content), encoding="utf-8")
    return path


def read_corpus(content_dir: Path | None = None) -> list[Document]:
    """Load every persisted document, ordered by file name.

    Raises:
        FileNotFoundError: If the corpus directory does not exist.
        NotADirectoryError: If the corpus path is not a directory.
    """
    root = Path(content_dir) if content_dir is not None else settings.content_dir
    if not root.exists():
        raise FileNotFoundError(f"Corpus directory not found: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Corpus path is not a directory: {root}")

    documents: list[Document] = []
    for path in sorted(root.glob(f"*{DOCUMENT_SUFFIX}")):
        url, content = _parse_file(path.read_text(encoding="utf-8"))
        documents.append(Document(identifier=path.stem, url=url, content=content))
    return documents
