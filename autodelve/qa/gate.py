"""Answerability gate — a cheap structured call made before answering.

The model must reply with a single boolean (``AnswerabilityVerdict``).  A
reply that cannot be parsed into that schema counts as "not answerable";
transport errors from the model client are not caught here and reach the
caller.
"""

from __future__ import annotations

from typing import Any, Sequence

from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel, Field

from autodelve.qa.llm import get_chat_model
from autodelve.qa.prompt import format_documents
from autodelve.scraper.models import Document

_GATE_SYSTEM_PROMPT = (
    "You decide whether a set of documentation pages contains enough "
    "information to answer a user's question. Do not answer the question "
    "yourself. Reply only with the requested structured verdict."
)


class AnswerabilityVerdict(BaseModel):
    """Structured reply expected from the gate model."""

    answerable: bool = Field(
        description=(
            "True only if the documents contain enough information to answer "
            "the question."
        )
    )


def _gate_prompt(question: str, documents: Sequence[Document]) -> str:
    return (
        "<documents>\n"
        f"{format_documents(documents)}\n"
        "</documents>\n\n"
        "<user_question>\n"
        f"{question}\n"
        "</user_question>\n\n"
        "Do the documents above contain enough information to answer the "
        "user question?"
    )


def is_answerable(
    question: str,
    documents: Sequence[Document],
    llm: Any | None = None,
) -> bool:
    """Return ``True`` if the model judges *documents* sufficient for *question*.

    Args:
        question: Sanitized question text.
        documents: The full corpus.
        llm: Optional LangChain chat model; defaults to :func:`get_chat_model`.
    """
    model = llm if llm is not None else get_chat_model()
    structured = model.with_structured_output(AnswerabilityVerdict, include_raw=True)
    result = structured.invoke(
        [
            SystemMessage(content=_GATE_SYSTEM_PROMPT),
            HumanMessage(content=_gate_prompt(question, documents)),
        ]
    )

    parsed = result.get("parsed") if isinstance(result, dict) else result
    error = result.get("parsing_error") if isinstance(result, dict) else None
    if error is not None or not isinstance(parsed, AnswerabilityVerdict):
        print(f"[GATE] Malformed verdict, treating as not answerable: {error!r}")
        return False

    print(f"[GATE] answerable={parsed.answerable}")
    return parsed.answerable
