"""Append-only JSONL log of answered questions."""

from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from pathlib import Path

from autodelve.config import settings

_write_lock = threading.Lock()


def store_answer(question: str, answer: str, log_path: Path | None = None) -> Path:
    """Append a timestamped ``{question, answer}`` record and return the log path."""
    path = Path(log_path) if log_path is not None else settings.qa_log_path
    path.parent.mkdir(parents=True, exist_ok=True)

    record = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "question": question,
        "answer": answer,
    }
    with _write_lock, path.open("a", encoding="utf-8") as fh:
        fh.write(json.dumps(record, ensure_ascii=False) + "\n")

    print(f"[ASK] Stored Q&A pair in {path}")
    return path
