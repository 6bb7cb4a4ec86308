"""Streaming chat client for the RAG chat endpoint."""

from technodog.chat.reader import StreamingResponseReader
from technodog.chat.schemas import (
    ContentDelta,
    ConversationTurn,
    MetadataEvent,
    ReaderState,
    Role,
)
from technodog.chat.sse import SSELineParser, parse_line

__all__ = [
    "ContentDelta",
    "ConversationTurn",
    "MetadataEvent",
    "ReaderState",
    "Role",
    "SSELineParser",
    "StreamingResponseReader",
    "parse_line",
]
