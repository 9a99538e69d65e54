"""Tests for the question-answering pipeline.

All LLM calls are mocked with ``MagicMock`` chat models so these tests run
without any network access.  The gate model is driven through
``with_structured_output(...).invoke`` and the answer model through
``invoke``, mirroring how the pipeline calls LangChain.
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from autodelve.qa.answer import AnswerResult, QueryState, answer_question, generate_answer
from autodelve.qa.chunking import split_message
from autodelve.qa.gate import AnswerabilityVerdict, is_answerable
from autodelve.qa.prompt import build_prompt, format_documents, sanitize_question
from autodelve.qa.qa_log import store_answer
from autodelve.qa.rate_limit import RateLimiter
from autodelve.scraper.models import Document
from autodelve.scraper.store import save_document


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

PRODUCT_DOC = Document(
    identifier="docs_example_com_product",
    url="https://docs.example.com/product",
    content="# Product\n\nThis product is a hosted inference network.",
)
SETUP_DOC = Document(
    identifier="docs_example_com_setup",
    url="https://docs.example.com/setup",
    content="# Setup\n\nRun the installer.",
)
CORPUS = [PRODUCT_DOC, SETUP_DOC]


def _gate_llm(answerable: bool | None, parsing_error: Exception | None = None) -> MagicMock:
    """Fake chat model whose structured output reports *answerable*."""
    parsed = None if answerable is None else AnswerabilityVerdict(answerable=answerable)
    llm = MagicMock()
    llm.with_structured_output.return_value.invoke.return_value = {
        "raw": AIMessage(content=""),
        "parsed": parsed,
        "parsing_error": parsing_error,
    }
    return llm


def _answer_llm(text: str) -> MagicMock:
    llm = MagicMock()
    llm.invoke.return_value = AIMessage(content=text)
    return llm


# ---------------------------------------------------------------------------
# Sanitizing
# ---------------------------------------------------------------------------

class TestSanitizeQuestion:
    def test_long_question_truncated_to_limit(self) -> None:
        assert len(sanitize_question("a" * 600, max_chars=500)) == 500

    def test_default_limit_is_500(self) -> None:
        assert len(sanitize_question("b" * 501)) == 500

    def test_control_characters_removed(self) -> None:
        assert sanitize_question("What\x00 is\x07 this?\x1b") == "What is this?"

    def test_whitespace_controls_become_spaces(self) -> None:
        assert sanitize_question("line one\nline\ttwo") == "line one line two"

    def test_all_control_input_is_empty(self) -> None:
        assert sanitize_question("\x00\x01\x02\n\x7f") == ""

    def test_no_control_characters_survive(self) -> None:
        cleaned = sanitize_question("".join(chr(i) for i in range(0, 160)))
        assert not any(ord(ch) < 32 or 127 <= ord(ch) < 160 for ch in cleaned)


# ---------------------------------------------------------------------------
# Prompt assembly
# ---------------------------------------------------------------------------

class TestBuildPrompt:
    def test_every_document_is_included_verbatim(self) -> None:
        prompt = build_prompt("What is this product?", CORPUS)
        for doc in CORPUS:
            assert f"URL: {doc.url}" in prompt
            assert doc.content in prompt

    def test_documents_then_instructions_then_question(self) -> None:
        prompt = build_prompt("What is this product?", CORPUS)
        docs_at = prompt.index("<documents>")
        instructions_at = prompt.index("Instructions:")
        question_at = prompt.index("<user_question>\nWhat is this product?")
        assert docs_at < instructions_at < question_at

    def test_identifier_used_when_url_unknown(self) -> None:
        doc = Document(identifier="legacy", url="", content="text")
        assert format_documents([doc]) == "URL: legacy\nCONTENT: text"


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------

class TestIsAnswerable:
    def test_true_verdict(self) -> None:
        llm = _gate_llm(True)
        assert is_answerable("What is this product?", CORPUS, llm=llm) is True
        llm.with_structured_output.assert_called_once_with(
            AnswerabilityVerdict, include_raw=True
        )

    def test_false_verdict(self) -> None:
        assert is_answerable("Weather?", CORPUS, llm=_gate_llm(False)) is False

    def test_parsing_error_fails_closed(self) -> None:
        llm = _gate_llm(None, parsing_error=ValueError("truncated JSON"))
        assert is_answerable("What is this product?", CORPUS, llm=llm) is False

    def test_missing_verdict_fails_closed(self) -> None:
        assert is_answerable("What is this product?", CORPUS, llm=_gate_llm(None)) is False

    def test_gate_prompt_contains_corpus_and_question(self) -> None:
        llm = _gate_llm(True)
        is_answerable("What is this product?", CORPUS, llm=llm)
        messages = llm.with_structured_output.return_value.invoke.call_args.args[0]
        assert isinstance(messages[0], SystemMessage)
        assert isinstance(messages[1], HumanMessage)
        assert PRODUCT_DOC.url in messages[1].content
        assert "What is this product?" in messages[1].content

    def test_transport_error_propagates(self) -> None:
        llm = MagicMock()
        llm.with_structured_output.return_value.invoke.side_effect = RuntimeError("down")
        with pytest.raises(RuntimeError):
            is_answerable("What is this product?", CORPUS, llm=llm)


# ---------------------------------------------------------------------------
# Answer pipeline
# ---------------------------------------------------------------------------

class TestAnswerQuestion:
    def test_answerable_question_returns_answer_with_source(self) -> None:
        answer_llm = _answer_llm(
            "  It is a hosted inference network. See "
            "[product docs](https://docs.example.com/product).  "
        )
        result = answer_question(
            "What is this product?", CORPUS,
            gate_llm=_gate_llm(True), answer_llm=answer_llm,
        )

        assert result.state is QueryState.ANSWERED
        assert result.answered
        assert result.answer.startswith("It is a hosted inference network.")
        assert "https://docs.example.com/product" in result.answer
        answer_llm.invoke.assert_called_once()

    def test_gate_false_skips_generation(self) -> None:
        answer_llm = _answer_llm("should not be used")
        result = answer_question(
            "How do I bake bread?", CORPUS,
            gate_llm=_gate_llm(False), answer_llm=answer_llm,
        )

        assert result.state is QueryState.DECLINED
        assert result.answer == ""
        assert answer_llm.invoke.call_count == 0

    def test_empty_question_makes_no_model_call(self) -> None:
        gate_llm, answer_llm = _gate_llm(True), _answer_llm("x")
        result = answer_question("\x00\x01", CORPUS, gate_llm=gate_llm, answer_llm=answer_llm)

        assert result.state is QueryState.DECLINED
        assert gate_llm.with_structured_output.call_count == 0
        assert answer_llm.invoke.call_count == 0

    def test_empty_corpus_declines(self) -> None:
        gate_llm, answer_llm = _gate_llm(True), _answer_llm("x")
        result = answer_question("What is this product?", [], gate_llm=gate_llm, answer_llm=answer_llm)

        assert not result.answered
        assert gate_llm.with_structured_output.call_count == 0
        assert answer_llm.invoke.call_count == 0

    def test_blank_model_answer_declines(self) -> None:
        result = answer_question(
            "What is this product?", CORPUS,
            gate_llm=_gate_llm(True), answer_llm=_answer_llm("   "),
        )
        assert result.state is QueryState.DECLINED

    def test_question_is_sanitized_before_use(self) -> None:
        answer_llm = _answer_llm("ok")
        result = answer_question(
            "What\x00 is this product?", CORPUS,
            gate_llm=_gate_llm(True), answer_llm=answer_llm,
        )
        assert result.question == "What is this product?"
        prompt = answer_llm.invoke.call_args.args[0][1].content
        assert "<user_question>\nWhat is this product?\n</user_question>" in prompt

    def test_reads_corpus_from_disk_when_not_given(self, tmp_path: Path) -> None:
        save_document(PRODUCT_DOC.url, PRODUCT_DOC.content, content_dir=tmp_path)
        answer_llm = _answer_llm("A network.")
        result = answer_question(
            "What is this product?",
            gate_llm=_gate_llm(True), answer_llm=answer_llm, content_dir=tmp_path,
        )
        assert result.answered
        prompt = answer_llm.invoke.call_args.args[0][1].content
        assert PRODUCT_DOC.url in prompt

    def test_missing_corpus_directory_propagates(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            answer_question(
                "What is this product?",
                gate_llm=_gate_llm(True), answer_llm=_answer_llm("x"),
                content_dir=tmp_path / "missing",
            )

    def test_generation_error_propagates(self) -> None:
        answer_llm = MagicMock()
        answer_llm.invoke.side_effect = RuntimeError("timeout")
        with pytest.raises(RuntimeError):
            answer_question(
                "What is this product?", CORPUS,
                gate_llm=_gate_llm(True), answer_llm=answer_llm,
            )

    def test_generate_answer_joins_content_blocks(self) -> None:
        llm = MagicMock()
        llm.invoke.return_value = AIMessage(
            content=[{"type": "text", "text": "Part one. "}, {"type": "text", "text": "Part two."}]
        )
        assert generate_answer("q", CORPUS, llm=llm) == "Part one. Part two."

    def test_declined_result_is_not_answered(self) -> None:
        assert not AnswerResult(state=QueryState.DECLINED, question="q").answered


# ---------------------------------------------------------------------------
# Chunking
# ---------------------------------------------------------------------------

class TestSplitMessage:
    def test_short_text_single_chunk(self) -> None:
        assert split_message("Hello", max_length=10) == ["Hello"]

    def test_empty_text_no_chunks(self) -> None:
        assert split_message("", max_length=10) == []

    def test_prefers_paragraph_break(self) -> None:
        text = "a" * 50 + "\n\n" + "b" * 50
        assert split_message(text, max_length=80, lookback=40) == ["a" * 50 + "\n\n", "b" * 50]

    def test_prefers_sentence_end_over_whitespace(self) -> None:
        text = "First sentence here. Second part continues with words and more words"
        chunks = split_message(text, max_length=40, lookback=30)
        assert chunks[0] == "First sentence here. "
        assert "".join(chunks) == text
        assert all(len(c) <= 40 for c in chunks)

    def test_never_splits_mid_word_when_space_available(self) -> None:
        text = " ".join(f"word{i}" for i in range(200))
        chunks = split_message(text, max_length=50, lookback=20)
        for chunk in chunks[:-1]:
            assert chunk[-1].isspace()

    def test_hard_cut_without_break_points(self) -> None:
        chunks = split_message("x" * 100, max_length=30)
        assert [len(c) for c in chunks] == [30, 30, 30, 10]

    def test_round_trip_and_bound_on_long_answer(self) -> None:
        paragraph = "Install the CLI. Then run it with --help! Does it work? Yes.\n\n"
        text = paragraph * 80
        chunks = split_message(text, max_length=1800)
        assert len(chunks) > 1
        assert "".join(chunks) == text
        assert all(len(c) <= 1800 for c in chunks)

    def test_invalid_limit_raises(self) -> None:
        with pytest.raises(ValueError):
            split_message("text", max_length=0)


# ---------------------------------------------------------------------------
# Rate limiter
# ---------------------------------------------------------------------------

class TestRateLimiter:
    def test_limits_within_window(self) -> None:
        limiter = RateLimiter(max_requests=2, window_seconds=60)

        assert limiter.check_and_record("alice") is True
        assert limiter.check_and_record("alice") is True
        assert limiter.check_and_record("alice") is False
        assert limiter.check_and_record("alice") is False

    def test_window_expires(self) -> None:
        limiter = RateLimiter(max_requests=1, window_seconds=1)
        assert limiter.check_and_record("alice") is True
        assert limiter.check_and_record("alice") is False

        time.sleep(1.2)
        assert limiter.check_and_record("alice") is True

    def test_identities_are_independent(self) -> None:
        limiter = RateLimiter(max_requests=1, window_seconds=60)
        assert limiter.check_and_record("alice") is True
        assert limiter.check_and_record("bob") is True
        assert limiter.check_and_record("alice") is False

    def test_fractional_window_rounds_up_to_whole_seconds(self) -> None:
        assert RateLimiter(max_requests=1, window_seconds=0.5).window_seconds == 1
        assert RateLimiter(max_requests=1, window_seconds=2.5).window_seconds == 3

    def test_invalid_configuration_raises(self) -> None:
        with pytest.raises(ValueError):
            RateLimiter(max_requests=0, window_seconds=60)
        with pytest.raises(ValueError):
            RateLimiter(max_requests=1, window_seconds=0)


# ---------------------------------------------------------------------------
# Q&A log
# ---------------------------------------------------------------------------

class TestStoreAnswer:
    def test_appends_jsonl_records(self, tmp_path: Path) -> None:
        log_path = tmp_path / "logs" / "answers.jsonl"
        store_answer("Q1?", "A1", log_path=log_path)
        store_answer("Q2?", "A2", log_path=log_path)

        records = [json.loads(line) for line in log_path.read_text().splitlines()]
        assert [(r["question"], r["answer"]) for r in records] == [("Q1?", "A1"), ("Q2?", "A2")]
        assert all("timestamp" in r for r in records)
