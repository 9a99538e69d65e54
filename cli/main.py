"""Autodelve CLI — entry-point for crawling and question answering.

Usage:
    python cli/main.py --help

Commands:
    crawl   → download a documentation site into the corpus
    corpus  → list the persisted documents
    ask     → answer a question from the corpus
    serve   → run the HTTP question-answering service
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from autodelve.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
from typing import Optional

import typer

from autodelve.config import settings
from autodelve.qa.answer import answer_question
from autodelve.qa.prompt import DECLINE_MESSAGE
from autodelve.qa.qa_log import store_answer
from autodelve.scraper.crawler import download_site
from autodelve.scraper.store import read_corpus

app = typer.Typer(
    name="autodelve",
    help="Answer questions from a crawled documentation site.",
    no_args_is_help=True,
)


def _require_settings() -> None:
    try:
        settings.validate()
    except RuntimeError as exc:
        typer.echo(f"[config] {exc}")
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Crawl
# ---------------------------------------------------------------------------
@app.command("crawl")
def crawl(
    url: str = typer.Option(..., help="Seed URL of the documentation site."),
    depth: Optional[int] = typer.Option(
        None, min=1, help="Maximum crawl depth (defaults to CRAWL_MAX_DEPTH)."
    ),
) -> None:
    """Crawl a site and save one markdown document per page."""
    typer.echo(f"[crawl] Crawling {url!r} …")
    try:
        saved = asyncio.run(download_site(url, max_depth=depth))
    except ValueError as exc:
        typer.echo(f"[crawl] {exc}")
        raise typer.Exit(1)
    typer.echo(f"[crawl] Saved {len(saved)} document(s) to {settings.content_dir}")


# ---------------------------------------------------------------------------
# Corpus
# ---------------------------------------------------------------------------
@app.command("corpus")
def corpus() -> None:
    """List the documents currently in the corpus."""
    try:
        documents = read_corpus()
    except (FileNotFoundError, NotADirectoryError) as exc:
        typer.echo(f"[corpus] {exc}")
        raise typer.Exit(1)
    if not documents:
        typer.echo("[corpus] No documents found.")
        return
    for doc in documents:
        typer.echo(f"  {doc.identifier}  {doc.url}  ({len(doc.content)} chars)")


# ---------------------------------------------------------------------------
# Ask
# ---------------------------------------------------------------------------
@app.command("ask")
def ask(
    question: str = typer.Option(..., help="Question to answer."),
) -> None:
    """Answer a question using only the crawled documentation."""
    _require_settings()
    try:
        result = answer_question(question)
    except Exception as exc:
        typer.echo(f"[ask] Failed to answer: {exc}")
        raise typer.Exit(1)

    if not result.answered:
        typer.echo(DECLINE_MESSAGE)
        return

    typer.echo(result.answer)
    try:
        store_answer(result.question, result.answer)
    except OSError as exc:
        typer.echo(f"[ask] Could not write Q&A log: {exc}")


# ---------------------------------------------------------------------------
# Serve
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind."),
    port: int = typer.Option(8000, help="Port to listen on."),
) -> None:
    """Run the HTTP question-answering service."""
    _require_settings()
    import uvicorn

    from autodelve.api.app import create_app

    typer.echo(f"[serve] Listening on http://{host}:{port}")
    uvicorn.run(create_app(), host=host, port=port)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
