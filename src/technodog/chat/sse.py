"""Incremental parser for ``data: <json>`` event streams.

Bytes arrive in arbitrary chunks: a chunk may end in the middle of a
UTF-8 sequence, a line, or a JSON token. The parser keeps a stateful
decoder and a line buffer across ``feed`` calls and only emits events
for complete lines.
"""

from __future__ import annotations

import codecs
import json
import logging

from technodog.chat.schemas import ContentDelta, MetadataEvent, StreamEvent
from technodog.exceptions import StreamProtocolError

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_TOKEN = "[DONE]"
METADATA_TYPE = "metadata"
MAX_BUFFER_CHARS = 1_048_576


def parse_line(line: str) -> StreamEvent | None:
    """Parse one logical line.

    Returns ``None`` for lines that carry no event (blank, comments,
    non-data fields, the ``[DONE]`` terminator, unknown payloads).

    Raises:
        json.JSONDecodeError: if the data payload is not valid JSON.
    """
    if line.endswith("\r"):
        line = line[:-1]
    if not line.strip() or line.startswith(":"):
        return None
    if not line.startswith(DATA_PREFIX):
        return None

    payload = line[len(DATA_PREFIX):].strip()
    if payload == DONE_TOKEN:
        return None

    parsed = json.loads(payload)
    if not isinstance(parsed, dict):
        return None

    if parsed.get("type") == METADATA_TYPE:
        return MetadataEvent(payload=parsed)

    content = _delta_content(parsed)
    if content:
        return ContentDelta(content=content)
    return None


def _delta_content(parsed: dict) -> str | None:
    """Extract ``choices[0].delta.content`` from a completion chunk."""
    choices = parsed.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    choice = choices[0]
    if not isinstance(choice, dict):
        return None
    delta = choice.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None


class SSELineParser:
    """Stateful line splitter and event parser for one response body."""

    def __init__(self, max_buffer_chars: int = MAX_BUFFER_CHARS):
        self.max_buffer_chars = max_buffer_chars
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.stats = {"lines": 0, "pushbacks": 0}

    @property
    def pending(self) -> str:
        """Text received but not yet consumed as complete lines."""
        return self._buffer

    def feed(self, data: bytes) -> list[StreamEvent]:
        """Consume a chunk of bytes and return the events it completed."""
        self._buffer += self._decoder.decode(data)
        events = self._drain()

        if len(self._buffer) > self.max_buffer_chars:
            size = len(self._buffer)
            self.reset()
            raise StreamProtocolError(
                f"Stream buffer exceeded {self.max_buffer_chars} chars "
                f"({size}) without a parseable line"
            )
        return events

    def flush(self) -> list[StreamEvent]:
        """Finish the stream: parse a last unterminated line if complete."""
        self._buffer += self._decoder.decode(b"", final=True)
        events = self._drain()

        leftover = self._buffer
        self._buffer = ""
        if not leftover.strip():
            return events

        if "\n" not in leftover:
            try:
                event = parse_line(leftover)
            except json.JSONDecodeError:
                pass
            else:
                if event is not None:
                    events.append(event)
                return events

        logger.warning("Discarding %d unparsed chars at end of stream", len(leftover))
        return events

    def reset(self) -> None:
        """Drop buffered text and decoder state."""
        self._decoder.reset()
        self._buffer = ""

    def _drain(self) -> list[StreamEvent]:
        events: list[StreamEvent] = []

        while (newline := self._buffer.find("\n")) != -1:
            line = self._buffer[:newline]
            self._buffer = self._buffer[newline + 1:]

            try:
                event = parse_line(line)
            except json.JSONDecodeError:
                # Assume the JSON was cut mid-line; wait for more bytes.
                self._buffer = line + "\n" + self._buffer
                self.stats["pushbacks"] += 1
                break

            self.stats["lines"] += 1
            if event is not None:
                events.append(event)

        return events
