"""FastAPI application factory.

The app is the long-lived chat surface: it answers questions over HTTP and
exposes a health check.  A single :class:`RateLimiter` is built per app and
shared by all requests via ``request.app.state.rate_limiter``.

Routers
-------
    /health  — liveness probe with the current corpus size
    /ask     — question answering
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from autodelve.api.routers import ask as ask_router
from autodelve.config import settings
from autodelve.qa.rate_limit import RateLimiter
from autodelve.scraper.store import DOCUMENT_SUFFIX


def create_app(rate_limiter: RateLimiter | None = None) -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="Autodelve API",
        description="Answers questions from a crawled documentation corpus.",
        version="0.1.0",
    )
    app.state.rate_limiter = rate_limiter or RateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )

    @app.get("/health")
    def health() -> dict[str, Any]:
        root = settings.content_dir
        documents = len(list(root.glob(f"*{DOCUMENT_SUFFIX}"))) if root.is_dir() else 0
        return {"status": "ok", "documents": documents}

    app.include_router(ask_router.router, prefix="/ask", tags=["ask"])

    return app
