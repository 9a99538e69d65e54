"""Question sanitizing and prompt assembly.

``build_prompt`` places the *entire* corpus into every prompt.  This only
works while the documentation set fits comfortably inside the model's
context window; larger sites will need chunk selection or relevance ranking
in front of this step.
"""

from __future__ import annotations

import unicodedata
from typing import Sequence

from autodelve.config import settings
from autodelve.scraper.models import Document

# Whitespace control characters become a plain space; every other control
# character is removed outright.
_WHITESPACE_CONTROLS = frozenset("\t\n\r\v\f")

DECLINE_MESSAGE = (
    "I'm sorry, but I don't have enough information in my knowledge base to "
    "answer that question. Please try asking something related to the "
    "documentation."
)

_INSTRUCTIONS = """\
Please provide a clear, accurate answer based only on the information in the documents above. Follow the below instructions.

Instructions:
- Provide very concise answers.
- Always respond with a phrase and a link to the relevant document.
- Do not speculate or make up information. If you do not know the answer, say so politely.

Example:

<example_user_question>
How can I get a role?
</example_user_question>

<example_assistant_response>
Please check the [roles documentation](https://docs.example.com/roles)
</example_assistant_response>"""


def sanitize_question(question: str, max_chars: int | None = None) -> str:
    """Strip control characters from *question* and cap its length.

    Args:
        question: Raw user input.
        max_chars: Length cap; defaults to ``settings.question_max_chars``.

    Returns:
        The cleaned question, at most *max_chars* characters long.  An input
        made only of control characters and whitespace yields ``""``.
    """
    limit = settings.question_max_chars if max_chars is None else max_chars
    cleaned = "".join(
        " " if ch in _WHITESPACE_CONTROLS else ch
        for ch in question
        if ch in _WHITESPACE_CONTROLS or unicodedata.category(ch) != "Cc"
    )
    return cleaned.strip()[:limit]


def format_documents(documents: Sequence[Document]) -> str:
    """Render the corpus as ``URL:`` / ``CONTENT:`` blocks."""
    blocks = [
        f"URL: {doc.url or doc.identifier}\nCONTENT: {doc.content}"
        for doc in documents
    ]
    return "\n\n".join(blocks)


def build_prompt(question: str, documents: Sequence[Document]) -> str:
    """Assemble the model prompt: documents, instructions, then the question.

    *question* is expected to be sanitized already.
    """
    return (
        "<documents>\n"
        f"{format_documents(documents)}\n"
        "</documents>\n\n"
        f"{_INSTRUCTIONS}\n"
        "----------------\n\n"
        "<user_question>\n"
        f"{question}\n"
        "</user_question>"
    )
