"""Data models for the ingestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class SourceDocument:
    """A document submitted for ingestion."""

    title: str
    content: str
    source: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> SourceDocument:
        """Build from request JSON, validating the required fields."""
        if not isinstance(data, dict):
            raise ValueError("Document must be an object")

        title = data.get("title")
        content = data.get("content")
        if not isinstance(title, str) or not title.strip():
            raise ValueError("Document is missing a title")
        if not isinstance(content, str) or not content.strip():
            raise ValueError(f"Document '{title}' has no content")

        metadata = data.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise ValueError(f"Document '{title}' metadata must be an object")

        source = data.get("source")
        return cls(
            title=title,
            content=content,
            source=str(source) if source is not None else None,
            metadata=metadata,
        )


@dataclass
class IngestedChunk:
    """One persisted chunk, as reported back to the caller."""

    title: str
    chunk: int  # 1-based position within its document
    id: str


@dataclass
class IngestResult:
    """Result of a batch ingestion."""

    results: list[IngestedChunk] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ingested(self) -> int:
        return len(self.results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "ingested": self.ingested,
            "results": [
                {"title": r.title, "chunk": r.chunk, "id": r.id}
                for r in self.results
            ],
            "errors": self.errors,
        }
