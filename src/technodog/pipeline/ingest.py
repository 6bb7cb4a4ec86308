"""Ingestion pipeline — document → chunk → (embed) → store.

Each document is split with the fixed-window chunker and every window is
stored as its own record. A failing document is reported and skipped; the
rest of the batch still goes through.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from technodog.chunking.window_chunker import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_OVERLAP,
    chunk_text,
    validate_window,
)
from technodog.embeddings.base import EmbeddingProvider
from technodog.exceptions import StorageError
from technodog.pipeline.schemas import IngestedChunk, IngestResult, SourceDocument
from technodog.storage.base import DocumentStore
from technodog.storage.schemas import DocumentRecord

logger = logging.getLogger(__name__)


def chunk_title(title: str, index: int, total: int) -> str:
    """``"Title (2/5)"`` for multi-chunk documents, the bare title otherwise."""
    return f"{title} ({index + 1}/{total})" if total > 1 else title


class IngestPipeline:
    """Orchestrates document ingestion: chunk → embed → store."""

    def __init__(
        self,
        store: DocumentStore,
        embedding_provider: EmbeddingProvider | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: int = DEFAULT_OVERLAP,
    ):
        validate_window(chunk_size, overlap)
        self.store = store
        self.embedding_provider = embedding_provider
        self.chunk_size = chunk_size
        self.overlap = overlap

    def ingest_documents(
        self,
        documents: Iterable[SourceDocument | dict[str, Any]],
    ) -> IngestResult:
        """Ingest a batch, collecting per-document errors instead of aborting.

        Args:
            documents: ``SourceDocument`` objects or raw request dicts.

        Returns:
            An ``IngestResult`` with one entry per stored chunk.
        """
        result = IngestResult()

        for position, raw in enumerate(documents):
            try:
                document = (
                    raw if isinstance(raw, SourceDocument) else SourceDocument.from_dict(raw)
                )
                self._ingest_into(document, result)
            except (ValueError, StorageError) as exc:
                logger.warning("Skipping document %d: %s", position, exc)
                result.errors.append(f"Document {position}: {exc}")

        logger.info(
            "Ingested %d chunks (%d documents failed)",
            result.ingested, len(result.errors),
        )
        return result

    def ingest_document(self, document: SourceDocument) -> list[IngestedChunk]:
        """Ingest a single document; errors propagate to the caller."""
        result = IngestResult()
        self._ingest_into(document, result)
        return result.results

    def build_records(self, document: SourceDocument) -> list[DocumentRecord]:
        """Chunk a document and attach sequence metadata to each window."""
        chunks = chunk_text(document.content, self.chunk_size, self.overlap)
        total = len(chunks)
        embeddings = self._embed(document.title, chunks)
        ingested_at = datetime.now(UTC).isoformat()

        records = []
        for i, text in enumerate(chunks):
            records.append(DocumentRecord(
                title=chunk_title(document.title, i, total),
                content=text,
                source=document.source,
                metadata={
                    **document.metadata,
                    "original_title": document.title,
                    "chunk_index": i,
                    "total_chunks": total,
                    "ingested_at": ingested_at,
                },
                chunk_index=i,
                embedding=embeddings[i] if embeddings else None,
            ))
        return records

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _ingest_into(self, document: SourceDocument, result: IngestResult) -> None:
        records = self.build_records(document)
        for record in records:
            record_id = self.store.add(record)
            result.results.append(IngestedChunk(
                title=record.title,
                chunk=record.chunk_index + 1,
                id=record_id,
            ))
        logger.info(
            "Stored '%s': %d chunks from %d chars",
            document.title, len(records), len(document.content),
        )

    def _embed(self, title: str, chunks: list[str]) -> list[list[float]] | None:
        """Embed chunk texts; on failure store the chunks without vectors."""
        if self.embedding_provider is None or not chunks:
            return None
        try:
            return self.embedding_provider.embed_texts(chunks)
        except Exception as exc:
            logger.warning(
                "Embedding failed for '%s', storing without embeddings: %s",
                title, exc,
            )
            return None
