"""Question-answering endpoint.

Routes
------
POST /ask    Body: {"question": "...", "user_id": "..."}

Declined questions still return 200 with the fixed decline message.  Rate
limited callers get 429 and callers missing from ``ALLOWED_USER_IDS`` (when
it is set) get 403; a failing model or corpus read gets 502 with an
apology, and the server keeps running.
"""

from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from autodelve.config import settings
from autodelve.qa.answer import answer_question
from autodelve.qa.chunking import split_message
from autodelve.qa.prompt import DECLINE_MESSAGE
from autodelve.qa.qa_log import store_answer

router = APIRouter()

RATE_LIMITED_MESSAGE = (
    "You're sending too many requests. Please wait a moment before asking "
    "another question."
)
FAILURE_MESSAGE = (
    "Sorry, something went wrong while answering your question. Please try "
    "again later."
)
FORBIDDEN_MESSAGE = (
    "You don't have permission to use this bot. Please contact an administrator "
    "if you believe this is an error."
)


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class AskRequest(BaseModel):
    question: str
    user_id: str = "anonymous"


class AskResponse(BaseModel):
    status: Literal["answered", "declined"]
    answer: str
    chunks: list[str]


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------

@router.post("", response_model=AskResponse)
def ask(body: AskRequest, request: Request) -> dict[str, Any]:
    """Answer a question from the documentation corpus."""
    limiter = request.app.state.rate_limiter
    if not limiter.check_and_record(body.user_id):
        raise HTTPException(status_code=429, detail=RATE_LIMITED_MESSAGE)
    if not settings.is_user_allowed(body.user_id):
        print(f"[ASK] ✗ {body.user_id!r} is not on the allow-list")
        raise HTTPException(status_code=403, detail=FORBIDDEN_MESSAGE)

    print(f"[ASK] Received question from {body.user_id!r}")
    try:
        result = answer_question(body.question)
    except Exception as exc:
        print(f"[ASK] ✗ Query failed: {exc}")
        raise HTTPException(status_code=502, detail=FAILURE_MESSAGE) from exc

    if not result.answered:
        return {"status": "declined", "answer": DECLINE_MESSAGE, "chunks": [DECLINE_MESSAGE]}

    try:
        store_answer(result.question, result.answer)
    except OSError as exc:
        print(f"[ASK] ✗ Could not write Q&A log: {exc}")

    return {
        "status": "answered",
        "answer": result.answer,
        "chunks": split_message(result.answer, max_length=settings.message_max_chars),
    }
