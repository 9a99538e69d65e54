"""Split long answers into message-sized chunks.

Break points are tried in order of preference within a lookback window
ending at the size limit: a paragraph break, then a sentence end, then any
whitespace.  Only when none exists in the window is a chunk cut at the hard
limit.  Separators stay attached to the end of the preceding chunk, so
``"".join(split_message(text))`` always equals ``text``.
"""

from __future__ import annotations

import re

_SENTENCE_END_RE = re.compile(r"[.!?][\"')\]]*\s")
_WHITESPACE_RE = re.compile(r"\s")


def _break_point(text: str, limit: int, lookback: int) -> int:
    window = text[:limit]
    floor = max(1, limit - lookback)

    paragraph = window.rfind("\n\n")
    if paragraph != -1 and paragraph + 2 >= floor:
        return paragraph + 2

    sentence_ends = [m.end() for m in _SENTENCE_END_RE.finditer(window, floor - 1)]
    if sentence_ends:
        return sentence_ends[-1]

    spaces = [m.end() for m in _WHITESPACE_RE.finditer(window, floor - 1)]
    if spaces:
        return spaces[-1]

    return limit


def split_message(text: str, max_length: int = 1800, lookback: int = 400) -> list[str]:
    """Split *text* into chunks no longer than *max_length* characters.

    Args:
        text: The answer to split.
        max_length: Maximum characters per chunk.
        lookback: How far back from *max_length* to look for a natural break.

    Raises:
        ValueError: If *max_length* is not positive.
    """
    if max_length < 1:
        raise ValueError(f"max_length must be positive, got {max_length}")
    lookback = min(max(lookback, 0), max_length - 1)

    chunks: list[str] = []
    rest = text
    while len(rest) > max_length:
        cut = _break_point(rest, max_length, lookback)
        chunks.append(rest[:cut])
        rest = rest[cut:]
    if rest:
        chunks.append(rest)
    return chunks
