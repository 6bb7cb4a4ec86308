"""Data models for document store operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class DocumentRecord:
    """One stored chunk of a source document."""

    title: str
    content: str
    source: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    chunk_index: int = 0
    embedding: list[float] | None = None

    def to_row(self) -> dict[str, Any]:
        """Row payload for the ``documents`` table.

        Embeddings use the pgvector text literal ``[a,b,...]``.
        """
        return {
            "title": self.title,
            "content": self.content,
            "source": self.source,
            "metadata": self.metadata,
            "chunk_index": self.chunk_index,
            "embedding": (
                "[" + ",".join(str(v) for v in self.embedding) + "]"
                if self.embedding is not None
                else None
            ),
        }
