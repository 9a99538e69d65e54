"""Answer pipeline — sanitize, gate, then generate.

A query is received, sanitized and gated, and ends in one of the two
:class:`QueryState` values.  ``DECLINED`` is reached without any model call
when the sanitized question is empty or the corpus is empty, and without
the generation call when the gate says the corpus is insufficient.  Model
transport errors are not caught; they fail the current query only.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from langchain_core.messages import HumanMessage, SystemMessage

from autodelve.config import settings
from autodelve.qa.gate import is_answerable
from autodelve.qa.llm import get_chat_model
from autodelve.qa.prompt import build_prompt, sanitize_question
from autodelve.scraper.models import Document
from autodelve.scraper.store import read_corpus


class QueryState(str, enum.Enum):
    ANSWERED = "answered"
    DECLINED = "declined"


@dataclass(frozen=True)
class AnswerResult:
    """Outcome of one query: answer text, or a decline with an empty string."""

    state: QueryState
    question: str
    answer: str = ""

    @property
    def answered(self) -> bool:
        return self.state is QueryState.ANSWERED and bool(self.answer)


def _system_prompt(max_chars: int) -> str:
    return (
        "You are a helpful technical support assistant that answers questions "
        "using only the provided documentation. Be technically precise, give "
        "step-by-step guidance when the user needs to do something, and always "
        "cite the source link of the document you relied on. Keep the whole "
        f"answer under {max_chars} characters."
    )


def generate_answer(
    question: str,
    documents: Sequence[Document],
    llm: Any | None = None,
) -> str:
    """Issue the answer-generation call and return the trimmed text."""
    model = llm if llm is not None else get_chat_model(max_tokens=settings.answer_max_tokens)
    response = model.invoke(
        [
            SystemMessage(content=_system_prompt(settings.message_max_chars)),
            HumanMessage(content=build_prompt(question, documents)),
        ]
    )
    content = response.content if hasattr(response, "content") else response
    if isinstance(content, list):
        # Some providers return a list of content blocks.
        content = "".join(
            block.get("text", "") if isinstance(block, dict) else str(block)
            for block in content
        )
    return (content or "").strip()


def answer_question(
    question: str,
    documents: Sequence[Document] | None = None,
    *,
    gate_llm: Any | None = None,
    answer_llm: Any | None = None,
    content_dir: Path | None = None,
) -> AnswerResult:
    """Answer *question* from the documentation corpus.

    Args:
        question: Raw user input; sanitized before use.
        documents: Corpus to answer from.  When omitted the corpus is read
            fresh from *content_dir* (or ``settings.content_dir``).
        gate_llm: Optional chat model for the answerability gate.
        answer_llm: Optional chat model for answer generation.
        content_dir: Corpus directory used when *documents* is omitted.

    Returns:
        An :class:`AnswerResult` in state ``ANSWERED`` or ``DECLINED``.

    Raises:
        FileNotFoundError: If the corpus directory is missing.
        Exception: Any transport error raised by the model client.
    """
    cleaned = sanitize_question(question)
    if not cleaned:
        print("[ASK] Empty question after sanitizing; declining.")
        return AnswerResult(state=QueryState.DECLINED, question=cleaned)

    corpus = list(documents) if documents is not None else read_corpus(content_dir)
    if not corpus:
        print("[ASK] Corpus is empty; declining.")
        return AnswerResult(state=QueryState.DECLINED, question=cleaned)

    print(f"[ASK] {cleaned!r} against {len(corpus)} document(s)")
    if not is_answerable(cleaned, corpus, llm=gate_llm):
        return AnswerResult(state=QueryState.DECLINED, question=cleaned)

    answer = generate_answer(cleaned, corpus, llm=answer_llm)
    if not answer:
        print("[ANSWER] Model returned an empty answer; declining.")
        return AnswerResult(state=QueryState.DECLINED, question=cleaned)

    print(f"[ANSWER] {len(answer)} char(s)")
    return AnswerResult(state=QueryState.ANSWERED, question=cleaned, answer=answer)
