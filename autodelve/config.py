"""Centralised settings for Autodelve.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------
    content_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("AUTODELVE_CONTENT_DIR", "content"))
    )
    log_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("AUTODELVE_LOG_DIR", "logs"))
    )

    @property
    def qa_log_path(self) -> Path:
        """Append-only JSONL file holding answered question/answer pairs."""
        return self.log_dir / "answers.jsonl"

    # ------------------------------------------------------------------
    # Crawler
    # ------------------------------------------------------------------
    crawl_max_depth: int = field(
        default_factory=lambda: int(os.environ.get("CRAWL_MAX_DEPTH", "3"))
    )
    crawl_max_concurrency: int = field(
        default_factory=lambda: int(os.environ.get("CRAWL_MAX_CONCURRENCY", "8"))
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )

    # ------------------------------------------------------------------
    # Chat model
    # ------------------------------------------------------------------
    llm_provider: str = field(
        default_factory=lambda: os.environ.get("LLM_PROVIDER", "openai")
    )
    openai_chat_model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_CHAT_MODEL", "gpt-4o-mini")
    )
    ollama_chat_model: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_CHAT_MODEL", "llama3.1:8b")
    )
    ollama_base_url: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
    )
    llm_timeout: float = field(
        default_factory=lambda: float(os.environ.get("LLM_TIMEOUT", "60.0"))
    )
    answer_max_tokens: int = field(
        default_factory=lambda: int(os.environ.get("ANSWER_MAX_TOKENS", "1024"))
    )

    # ------------------------------------------------------------------
    # Question / answer surface
    # ------------------------------------------------------------------
    question_max_chars: int = field(
        default_factory=lambda: int(os.environ.get("QUESTION_MAX_CHARS", "500"))
    )
    message_max_chars: int = field(
        default_factory=lambda: int(os.environ.get("MESSAGE_MAX_CHARS", "1800"))
    )
    rate_limit_max_requests: int = field(
        default_factory=lambda: int(os.environ.get("RATE_LIMIT_MAX_REQUESTS", "5"))
    )
    rate_limit_window_seconds: float = field(
        default_factory=lambda: float(os.environ.get("RATE_LIMIT_WINDOW_SECONDS", "60"))
    )
    # Comma-separated user ids allowed to ask; empty allows everyone.
    allowed_user_ids: frozenset[str] = field(
        default_factory=lambda: frozenset(
            uid.strip()
            for uid in os.environ.get("ALLOWED_USER_IDS", "").split(",")
            if uid.strip()
        )
    )

    def is_user_allowed(self, user_id: str) -> bool:
        return not self.allowed_user_ids or user_id in self.allowed_user_ids

    def validate(self) -> None:
        """Raise ``RuntimeError`` if the configured model provider lacks its keys."""
        missing: list[str] = []
        if self.llm_provider not in ("openai", "ollama"):
            raise RuntimeError(
                f"Unknown LLM_PROVIDER {self.llm_provider!r}; use 'openai' or 'ollama'."
            )
        if self.llm_provider == "openai" and not os.environ.get("OPENAI_API_KEY"):
            missing.append("OPENAI_API_KEY")
        if missing:
            raise RuntimeError(
                "Missing required environment variable(s): " + ", ".join(missing)
            )


# Module-level singleton; import this everywhere:
#   from autodelve.config import settings
settings = Settings()
