"""Conversation and stream-event models for the streaming chat client."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"


class ReaderState(StrEnum):
    """Lifecycle of one send: idle -> sending -> streaming -> idle."""

    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"


@dataclass
class ConversationTurn:
    """One message in the conversation.

    The last assistant turn's ``content`` is replaced in place while its
    response is still streaming.
    """

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class MetadataEvent:
    """Side-channel payload, forwarded verbatim to the metadata observer."""

    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ContentDelta:
    """Text fragment to append to the open assistant turn."""

    content: str


StreamEvent = MetadataEvent | ContentDelta
