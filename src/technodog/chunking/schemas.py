"""Data models for chunks."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Chunk:
    """A single window of a source text.

    ``start``/``end`` are character offsets, so ``text == source[start:end]``.
    """

    text: str
    chunk_index: int = 0
    total_chunks: int = 0
    start: int = 0
    end: int = 0
