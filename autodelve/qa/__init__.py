"""Question-answering pipeline package."""

from autodelve.qa.answer import AnswerResult, QueryState, answer_question
from autodelve.qa.chunking import split_message
from autodelve.qa.gate import is_answerable
from autodelve.qa.prompt import DECLINE_MESSAGE, build_prompt, sanitize_question
from autodelve.qa.qa_log import store_answer
from autodelve.qa.rate_limit import RateLimiter

__all__ = [
    "answer_question",
    "build_prompt",
    "is_answerable",
    "sanitize_question",
    "split_message",
    "store_answer",
    "AnswerResult",
    "QueryState",
    "RateLimiter",
    "DECLINE_MESSAGE",
]
