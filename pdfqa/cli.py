"""pdfqa command line.

  pdfqa ingest [SOURCES...]   ingest PDFs (paths or URLs) and report counts
  pdfqa ask QUESTION          ingest, then answer one question
  pdfqa chat                  ingest, then answer questions until 'exit'
  pdfqa serve                 run the HTTP API
"""

from __future__ import annotations

import logging
import os
from typing import Annotated, List, Optional

import typer
import uvicorn
from dotenv import load_dotenv
from rich.console import Console

from pdfqa.config import TOP_K, load_settings
from pdfqa.errors import PdfQAError
from pdfqa.observability.logger import setup_logging
from pdfqa.workflow.pipeline import Pipeline, build_pipeline

console = Console()

app = typer.Typer(
    name="pdfqa",
    help="Ask questions about PDF documents.",
    add_completion=False,
)


def _fail(error: Exception) -> None:
    console.print(f"[red]Error:[/red] {error}")
    raise typer.Exit(code=1)


def _pipeline(verbose: bool) -> Pipeline:

    load_dotenv()

    settings = load_settings()

    setup_logging(log_level="INFO" if verbose else "WARNING", log_file=None)

    pipeline = build_pipeline(settings)

    mode_label = (
        "cloud mode (OpenAI + Qdrant)"
        if settings.is_cloud
        else "local mode: MiniLM embeddings + extractive QA model"
    )

    console.print(f"Using {mode_label}")

    return pipeline


def _ingest(pipeline: Pipeline, sources: Optional[List[str]]) -> int:

    targets = list(sources) if sources else pipeline.discover()

    if not targets:
        console.print("No PDFs found to ingest.")
        return 0

    result = pipeline.ingestor.ingest_many(targets)

    console.print(
        f"Stored {result.total_stored} chunks from {len(result.paths)} document(s)."
    )

    return result.total_stored


@app.command("ingest")
def ingest_cmd(
    sources: Annotated[
        Optional[List[str]],
        typer.Argument(help="PDF paths or URLs. Defaults to PDFs in PDF_SEARCH_DIRS."),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show logs.")] = False,
) -> None:
    """Ingest documents and report how many chunks were stored."""

    try:
        _ingest(_pipeline(verbose), sources)
    except PdfQAError as e:
        _fail(e)


@app.command("ask")
def ask_cmd(
    question: Annotated[str, typer.Argument(help="Question to answer.")],
    source: Annotated[
        Optional[List[str]],
        typer.Option("--source", "-s", help="PDF path or URL (repeatable)."),
    ] = None,
    top_k: Annotated[int, typer.Option("--top-k", "-k", min=1, help="Chunks to retrieve.")] = TOP_K,
    show_context: Annotated[bool, typer.Option("--context", help="Print the retrieved context.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show logs.")] = False,
) -> None:
    """Ingest documents, then answer a single question."""

    try:

        pipeline = _pipeline(verbose)

        _ingest(pipeline, source)

        result = pipeline.answerer.answer(question, top_k=top_k)

    except PdfQAError as e:
        _fail(e)

    console.print(f"\nAnswer: {result.answer}")

    if show_context:
        console.print(f"\nContext:\n{result.context}")


@app.command("chat")
def chat_cmd(
    source: Annotated[
        Optional[str],
        typer.Option("--source", "-s", help="PDF path or URL. Defaults to PDF_URL or discovered PDFs."),
    ] = None,
    top_k: Annotated[int, typer.Option("--top-k", "-k", min=1)] = TOP_K,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show logs.")] = False,
) -> None:
    """Ingest, then answer questions interactively until 'exit'."""

    try:

        pipeline = _pipeline(verbose)

        source = source or pipeline.settings.pdf_url

        _ingest(pipeline, [source] if source else None)

        while True:

            question = typer.prompt("\nAsk something (or type 'exit')")

            if question.strip().lower() == "exit":
                break

            result = pipeline.answerer.answer(question, top_k=top_k)

            console.print(f"\nAnswer: {result.answer or '(no answer)'}")

    except PdfQAError as e:
        _fail(e)


@app.command("serve")
def serve_cmd(
    host: Annotated[str, typer.Option("--host")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port")] = int(os.getenv("PORT", "8000")),
) -> None:
    """Run the HTTP API with uvicorn."""

    logging.getLogger(__name__).info("Starting server", extra={"host": host, "port": port})

    uvicorn.run("pdfqa.main:get_app", factory=True, host=host, port=port)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
