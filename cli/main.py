"""CLI entry point — Typer app for technodog commands.

Usage:
    technodog chat "Who founded Underground Resistance?"
    technodog ingest article.txt --title "Detroit techno" --source wikipedia
    technodog chunk article.txt --size 1500 --overlap 200
    technodog status
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from technodog.config import Settings
    from technodog.storage.base import DocumentStore

app = typer.Typer(
    name="technodog",
    help="techno.dog knowledge toolkit — chat, ingest, chunk.",
    no_args_is_help=True,
)

console = Console()

_TEXT_PATH = typer.Argument(..., help="Path to a UTF-8 text file")


def _print_artists(payload: dict[str, Any]) -> None:
    artists = payload.get("artists") or []
    if not artists:
        return

    table = Table(title="Artists in context")
    table.add_column("Rank", style="cyan")
    table.add_column("Name")
    table.add_column("Nationality")
    for artist in artists:
        table.add_row(
            str(artist.get("rank", "")),
            str(artist.get("name", "")),
            str(artist.get("nationality") or ""),
        )
    console.print(table)


def _document_store(settings: Settings, backend: str | None) -> DocumentStore:
    from technodog.storage.factory import get_document_store

    name = backend or settings.storage.backend
    if name == "supabase":
        return get_document_store(
            "supabase",
            url=settings.storage.supabase_url,
            service_key=settings.storage.supabase_key,
            table=settings.storage.table,
        )
    return get_document_store(name)


@app.command()
def chat(
    question: str = typer.Argument(..., help="Question to ask"),
    url: str | None = typer.Option(
        None, "--url", "-u", help="Streaming chat endpoint (overrides settings)",
    ),
    key: str | None = typer.Option(
        None, "--key", "-k", help="Bearer token (overrides settings)",
    ),
) -> None:
    """Ask the knowledge chat and stream the answer."""
    from technodog.chat.reader import StreamingResponseReader
    from technodog.config import load_settings
    from technodog.exceptions import ChatError

    settings = load_settings()
    printed = 0

    def on_update(text: str) -> None:
        nonlocal printed
        console.print(text[printed:], end="", markup=False, highlight=False)
        printed = len(text)

    async def run() -> str | None:
        async with StreamingResponseReader(
            endpoint_url=url or settings.chat.endpoint_url,
            api_key=key if key is not None else settings.chat.api_key,
            timeout=settings.chat.timeout,
            max_buffer_chars=settings.chat.max_buffer_chars,
            on_metadata=_print_artists,
            on_update=on_update,
        ) as reader:
            return await reader.send(question)

    try:
        asyncio.run(run())
    except ChatError as exc:
        console.print(f"\n[bold red]{exc.title}:[/] {exc.description}")
        raise typer.Exit(code=1) from exc

    console.print()


@app.command()
def ingest(
    path: Annotated[Path, _TEXT_PATH],
    title: str | None = typer.Option(
        None, "--title", "-t", help="Document title (defaults to the file name)",
    ),
    source: str | None = typer.Option(
        None, "--source", "-s", help="Source URL or label",
    ),
    store: str | None = typer.Option(
        None, "--store", help="Document store backend (memory, supabase)",
    ),
) -> None:
    """Chunk a text file and store each chunk as a document."""
    from technodog.config import load_settings
    from technodog.pipeline.ingest import IngestPipeline
    from technodog.pipeline.schemas import SourceDocument

    settings = load_settings()
    pipeline = IngestPipeline(
        store=_document_store(settings, store),
        chunk_size=settings.chunking.chunk_size,
        overlap=settings.chunking.overlap,
    )
    document = SourceDocument(
        title=title or path.stem,
        content=path.read_text(encoding="utf-8"),
        source=source,
    )
    result = pipeline.ingest_documents([document])

    console.print(f"\n[bold green]Ingested:[/] {document.title}")
    console.print(f"  Chunks stored: {result.ingested}")
    for err in result.errors:
        console.print(f"  [yellow]Warning:[/] {err}")


@app.command()
def chunk(
    path: Annotated[Path, _TEXT_PATH],
    size: int = typer.Option(1500, "--size", help="Chunk size in characters"),
    overlap: int = typer.Option(200, "--overlap", help="Overlap in characters"),
) -> None:
    """Preview how a text file would be chunked."""
    from technodog.chunking.window_chunker import WindowChunker
    from technodog.exceptions import InvalidConfigurationError

    try:
        chunker = WindowChunker(chunk_size=size, overlap=overlap)
    except InvalidConfigurationError as exc:
        console.print(f"[bold red]Invalid window:[/] {exc}")
        raise typer.Exit(code=2) from exc

    chunks = chunker.chunk(path.read_text(encoding="utf-8"))

    table = Table(title=f"{path.name}: {len(chunks)} chunks")
    table.add_column("#", style="cyan")
    table.add_column("Range")
    table.add_column("Preview")
    for c in chunks:
        table.add_row(
            f"{c.chunk_index + 1}/{c.total_chunks}",
            f"{c.start}-{c.end}",
            c.text[:60].replace("\n", " "),
        )
    console.print(table)


@app.command()
def status(
    store: str | None = typer.Option(
        None, "--store", help="Document store backend to count (memory, supabase)",
    ),
) -> None:
    """Show available stores, the document count and effective settings."""
    from technodog import __version__
    from technodog.config import load_settings
    from technodog.exceptions import StorageError
    from technodog.storage.factory import available_stores

    settings = load_settings()
    backend = store or settings.storage.backend
    console.print(f"\n[bold green]technodog[/] v{__version__}\n")

    try:
        documents = str(_document_store(settings, backend).count())
    except StorageError as exc:
        documents = f"unavailable ({exc})"

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("Chat endpoint", settings.chat.endpoint_url)
    table.add_row("Chat key set", "yes" if settings.chat.api_key else "no")
    table.add_row(
        "Chunking", f"{settings.chunking.chunk_size} / {settings.chunking.overlap} overlap",
    )
    table.add_row("Store", backend)
    table.add_row("Documents", documents)
    table.add_row("Available stores", ", ".join(available_stores()))
    table.add_row(
        "Embeddings",
        f"{settings.embedding.model} ({settings.embedding.dimension}d)"
        if settings.embedding.enabled else "disabled",
    )

    console.print(table)


if __name__ == "__main__":
    app()
