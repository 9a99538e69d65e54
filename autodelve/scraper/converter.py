"""HTML → markdown conversion for crawled pages.

Pages are parsed with BeautifulSoup (``html.parser`` builder, which
tolerates unclosed tags and unknown elements) and cleaned in a pre-pass:
non-content elements are dropped, relative links are made absolute and
pathologically deep nesting is flattened.  The cleaned tree is then
serialised by a :class:`markdownify.MarkdownConverter` subclass, so
headings, links, lists, tables and code blocks survive as lightweight
markdown and the model can still recover structure and source links.
"""

from __future__ import annotations

import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag
from markdownify import ATX, MarkdownConverter

# Elements whose entire subtree is dropped before conversion.
_SKIPPED_TAGS = [
    "head", "title", "script", "style", "noscript", "template", "svg", "canvas",
    "iframe", "object", "embed", "form", "button", "input", "select",
    "textarea",
]

# Deeper elements are unwrapped into their ancestor at this depth; markdownify
# recurses once per level.
_MAX_NESTING = 64

_LANGUAGE_RE = re.compile(r"^(?:language|lang)-(.+)$")
_BLANK_RUN_RE = re.compile(r"\n{3,}")


def _code_language(el: Tag) -> str:
    candidates = [el]
    inner = el.find("code")
    if isinstance(inner, Tag):
        candidates.append(inner)
    for candidate in candidates:
        for cls in candidate.get("class") or []:
            match = _LANGUAGE_RE.match(cls)
            if match:
                return match.group(1)
    return ""


class DocsMarkdownConverter(MarkdownConverter):
    """markdownify converter tuned for documentation pages."""

    class Options(MarkdownConverter.DefaultOptions):
        heading_style = ATX
        bullets = "-"
        escape_asterisks = False
        escape_underscores = False
        escape_misc = False

    def convert_a(self, el, text, *args, **kwargs):
        href = (el.get("href") or "").strip()
        if not href or href.startswith(("#", "javascript:")):
            return text
        return super().convert_a(el, text, *args, **kwargs)

    def convert_pre(self, el, text, *args, **kwargs):
        code = el.get_text().strip("\n")
        if not code.strip():
            return ""
        return f"\n\n```{_code_language(el)}\n{code}\n```\n\n"


def _resolve(base_url: str, value: str) -> str:
    try:
        return urljoin(base_url, value)
    except ValueError:
        return value


def _absolutize(soup: BeautifulSoup, base_url: str) -> None:
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if href and not href.startswith(("#", "javascript:")):
            anchor["href"] = _resolve(base_url, href)
    for image in soup.find_all("img", src=True):
        image["src"] = _resolve(base_url, image["src"].strip())


def _flatten_deep_nesting(soup: BeautifulSoup, limit: int = _MAX_NESTING) -> None:
    """Unwrap every element nested deeper than *limit*, keeping its text."""
    too_deep: list[Tag] = []
    stack: list[tuple[Tag, int]] = [(soup, 0)]
    while stack:
        node, depth = stack.pop()
        for child in node.children:
            if isinstance(child, Tag):
                if depth + 1 > limit:
                    too_deep.append(child)
                stack.append((child, depth + 1))
    for tag in reversed(too_deep):
        tag.unwrap()


def html_to_markdown(html: str, base_url: str = "") -> str:
    """Convert raw *html* into a markdown document.

    Relative links and image sources are resolved against *base_url* when
    given.  Malformed markup is converted on a best-effort basis; an empty
    or markup-free page yields an empty string.
    """
    if not html or not html.strip():
        return ""

    soup = BeautifulSoup(html, "html.parser")

    title_tag = soup.find("title")
    title = " ".join(title_tag.get_text().split()) if isinstance(title_tag, Tag) else ""
    has_h1 = soup.find("h1") is not None

    for tag in soup.find_all(_SKIPPED_TAGS):
        if not tag.decomposed:
            tag.decompose()
    if base_url:
        _absolutize(soup, base_url)
    _flatten_deep_nesting(soup)

    body = DocsMarkdownConverter().convert_soup(soup)
    body = _BLANK_RUN_RE.sub("\n\n", body).strip()

    if title and not has_h1:
        body = f"# {title}\n\n{body}" if body else f"# {title}"
    return body
