"""Fixed-window text chunking."""

from technodog.chunking.base import BaseChunker
from technodog.chunking.schemas import Chunk
from technodog.chunking.window_chunker import WindowChunker, chunk_text

__all__ = ["BaseChunker", "Chunk", "WindowChunker", "chunk_text"]
