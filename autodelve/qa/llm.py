"""LangChain chat-model factory shared by the gate and answer steps."""

from __future__ import annotations

from typing import Any

from autodelve.config import settings


def get_chat_model(max_tokens: int | None = None) -> Any:
    """Return a configured LangChain chat model based on ``settings``.

    Args:
        max_tokens: Upper bound on generated tokens; ``None`` leaves the
            provider default in place.
    """
    if settings.llm_provider == "ollama":
        from langchain_ollama import ChatOllama

        return ChatOllama(
            model=settings.ollama_chat_model,
            base_url=settings.ollama_base_url,
            temperature=0,
            num_predict=max_tokens,
            client_kwargs={"timeout": settings.llm_timeout},
        )

    from langchain_openai import ChatOpenAI

    return ChatOpenAI(
        model=settings.openai_chat_model,
        temperature=0,
        max_tokens=max_tokens,
        timeout=settings.llm_timeout,
        max_retries=0,
    )
