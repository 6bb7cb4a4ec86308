"""Fixed-size window chunker with overlap.

Splits long texts into windows for storage as separately addressable
records. Consecutive windows share ``overlap`` characters so a sentence
cut at a boundary is still readable in one of them.
"""

from __future__ import annotations

import logging

from technodog.chunking.base import BaseChunker
from technodog.chunking.schemas import Chunk
from technodog.exceptions import InvalidConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1500
DEFAULT_OVERLAP = 200


def validate_window(chunk_size: int, overlap: int) -> None:
    """Reject windows that would never advance.

    Raises:
        InvalidConfigurationError: if ``chunk_size`` is not positive,
            ``overlap`` is negative, or ``overlap >= chunk_size``.
    """
    for name, value in (("chunk_size", chunk_size), ("overlap", overlap)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidConfigurationError(f"{name} must be an integer, got {value!r}")
    if chunk_size <= 0:
        raise InvalidConfigurationError(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0:
        raise InvalidConfigurationError(f"overlap must be non-negative, got {overlap}")
    if overlap >= chunk_size:
        raise InvalidConfigurationError(
            f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})"
        )


def _window_starts(length: int, chunk_size: int, overlap: int) -> list[int]:
    """Start offsets; the window that reaches ``length`` is the last one."""
    starts = []
    for start in range(0, length, chunk_size - overlap):
        starts.append(start)
        if start + chunk_size >= length:
            break
    return starts


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_OVERLAP,
) -> list[str]:
    """Split ``text`` into overlapping windows.

    Window ``i`` starts at ``i * (chunk_size - overlap)`` and ends at
    ``min(start + chunk_size, len(text))``. The first window that reaches
    ``len(text)`` is the last one, so a text no longer than ``chunk_size``
    is a single window; an empty text gives no windows.
    """
    validate_window(chunk_size, overlap)
    return [
        text[start : start + chunk_size]
        for start in _window_starts(len(text), chunk_size, overlap)
    ]


class WindowChunker(BaseChunker):
    """Character-window chunker — same windows as ``chunk_text``."""

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: int = DEFAULT_OVERLAP,
    ):
        validate_window(chunk_size, overlap)
        self.chunk_size = chunk_size
        self.overlap = overlap

    def split(self, text: str) -> list[str]:
        return chunk_text(text, self.chunk_size, self.overlap)

    def chunk(self, text: str) -> list[Chunk]:
        starts = _window_starts(len(text), self.chunk_size, self.overlap)
        total = len(starts)
        chunks = []
        for i, start in enumerate(starts):
            end = min(start + self.chunk_size, len(text))
            chunks.append(Chunk(
                text=text[start:end],
                chunk_index=i,
                total_chunks=total,
                start=start,
                end=end,
            ))

        logger.info(
            "WindowChunker produced %d chunks from %d chars",
            total, len(text),
        )
        return chunks
