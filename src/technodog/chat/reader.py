"""Streaming chat client: one conversation, one request in flight.

The reader posts a user message to the chat endpoint, reads the
``text/event-stream`` response with ``httpx`` and keeps an in-memory
conversation up to date as content deltas arrive.

State machine::

    idle -> sending -> streaming -> idle
              |            |
              +-- error ---+--> idle

Only ``idle`` accepts a new send; a send while busy is a no-op, not queued.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx

from technodog.chat.schemas import (
    ContentDelta,
    ConversationTurn,
    MetadataEvent,
    ReaderState,
    Role,
    StreamEvent,
)
from technodog.chat.sse import MAX_BUFFER_CHARS, SSELineParser
from technodog.exceptions import (
    ChatError,
    EmptyResponseError,
    RequestFailedError,
    classify_status,
)

logger = logging.getLogger(__name__)

MetadataCallback = Callable[[dict[str, Any]], None]
StateCallback = Callable[[ReaderState], None]
UpdateCallback = Callable[[str], None]


@dataclass
class _StreamProgress:
    turn: ConversationTurn
    content: str = ""
    deltas: int = 0
    metadata: int = 0


class StreamingResponseReader:
    """Send chat messages and stream the assistant reply into a conversation.

    Args:
        endpoint_url: Streaming chat endpoint.
        api_key: Bearer token sent with every request.
        client: Optional ``httpx.AsyncClient``; one is created (and owned)
            when omitted.
        timeout: Timeout for an owned client.
        on_metadata: Called with each metadata payload, verbatim.
        on_state_change: Called with the new ``ReaderState``.
        on_update: Called with the full accumulated assistant text after
            each content delta.
        max_buffer_chars: Upper bound for an unterminated line.
    """

    def __init__(
        self,
        endpoint_url: str,
        api_key: str = "",
        client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
        on_metadata: MetadataCallback | None = None,
        on_state_change: StateCallback | None = None,
        on_update: UpdateCallback | None = None,
        max_buffer_chars: int = MAX_BUFFER_CHARS,
    ):
        self.endpoint_url = endpoint_url
        self.api_key = api_key
        self.on_metadata = on_metadata
        self.on_state_change = on_state_change
        self.on_update = on_update
        self.max_buffer_chars = max_buffer_chars

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

        self.conversation: list[ConversationTurn] = []
        self._state = ReaderState.IDLE
        self._cancel_requested = False
        self._task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> ReaderState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state is not ReaderState.IDLE

    def messages(self) -> list[dict[str, str]]:
        """Snapshot of the conversation as plain dicts."""
        return [turn.to_dict() for turn in self.conversation]

    async def send(self, message: str) -> str | None:
        """Send ``message`` and stream the reply.

        Returns:
            The accumulated assistant text, or ``None`` when the call was a
            no-op (blank message or another send in flight).

        Raises:
            RateLimitError: upstream returned 429.
            PaymentRequiredError: upstream returned 402.
            RequestFailedError: any other failure status or transport error.
            EmptyResponseError: the stream carried no content or metadata.
        """
        if not self._accept(message):
            return None
        return await self._run(message)

    def start(self, message: str) -> asyncio.Task | None:
        """Run a send as a task handle that ``cancel()`` can interrupt.

        The user turn is appended before this returns. Must be called
        from a running event loop.
        """
        loop = asyncio.get_running_loop()
        if not self._accept(message):
            return None
        self._task = loop.create_task(self._run(message))
        return self._task

    def cancel(self) -> None:
        """Stop the current send.

        Deltas already applied stay in the conversation. A task started
        with ``start()`` is cancelled right away; a directly awaited
        ``send()`` stops at its next received chunk.
        """
        if not self.busy:
            return
        logger.info("Cancelling chat stream")
        self._cancel_requested = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def reset(self) -> None:
        """Clear the conversation."""
        if self.busy:
            raise RuntimeError("Cannot reset the conversation while a send is in flight")
        self.conversation.clear()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> StreamingResponseReader:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _accept(self, message: str) -> bool:
        if not message or not message.strip():
            return False
        if self.busy:
            logger.debug("Send ignored: another request is in flight")
            return False

        self.conversation.append(ConversationTurn(role=Role.USER, content=message))
        self._cancel_requested = False
        self._set_state(ReaderState.SENDING)
        return True

    async def _run(self, message: str) -> str | None:
        progress: _StreamProgress | None = None
        try:
            async with self._client.stream(
                "POST",
                self.endpoint_url,
                json={"query": message, "stream": True},
                headers=self._headers(),
            ) as response:
                if not response.is_success:
                    detail = await self._error_detail(response)
                    logger.warning(
                        "Chat endpoint returned %d: %s", response.status_code, detail,
                    )
                    raise classify_status(response.status_code, detail)
                if self._cancel_requested:
                    return None

                progress = self._open_assistant_turn()
                await self._read_stream(response, progress)

        except httpx.HTTPError as exc:
            self._discard_placeholder(progress)
            raise RequestFailedError(f"Chat request failed: {exc}") from exc
        except (ChatError, asyncio.CancelledError):
            self._discard_placeholder(progress)
            raise
        finally:
            self._set_state(ReaderState.IDLE)

        if self._cancel_requested:
            logger.info("Chat stream cancelled after %d chars", len(progress.content))
            self._discard_placeholder(progress)
            return progress.content

        if not progress.content:
            self._discard_placeholder(progress)

        logger.info(
            "Chat stream finished: %d deltas, %d metadata events, %d chars",
            progress.deltas, progress.metadata, len(progress.content),
        )
        return progress.content

    async def _read_stream(
        self, response: httpx.Response, progress: _StreamProgress
    ) -> None:
        parser = SSELineParser(max_buffer_chars=self.max_buffer_chars)

        async for data in response.aiter_bytes():
            if self._cancel_requested:
                parser.reset()
                return
            self._dispatch(parser.feed(data), progress)
            if self._cancel_requested:
                parser.reset()
                return

        self._dispatch(parser.flush(), progress)

        if not progress.content and not progress.metadata:
            raise EmptyResponseError("Stream ended without content")

    def _dispatch(self, events: list[StreamEvent], progress: _StreamProgress) -> None:
        for event in events:
            if self._cancel_requested:
                return
            if isinstance(event, MetadataEvent):
                progress.metadata += 1
                if self.on_metadata is not None:
                    self.on_metadata(event.payload)
            elif isinstance(event, ContentDelta):
                progress.deltas += 1
                progress.content += event.content
                progress.turn.content = progress.content
                if self.on_update is not None:
                    self.on_update(progress.content)

    def _open_assistant_turn(self) -> _StreamProgress:
        turn = ConversationTurn(role=Role.ASSISTANT, content="")
        self.conversation.append(turn)
        self._set_state(ReaderState.STREAMING)
        return _StreamProgress(turn=turn)

    def _discard_placeholder(self, progress: _StreamProgress | None) -> None:
        """Remove the assistant turn if nothing was streamed into it."""
        if progress is None or progress.content:
            return
        for i, turn in enumerate(self.conversation):
            if turn is progress.turn:
                del self.conversation[i]
                return

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    @staticmethod
    async def _error_detail(response: httpx.Response) -> str:
        try:
            await response.aread()
        except httpx.HTTPError:
            return ""
        return response.text[:200]

    def _set_state(self, state: ReaderState) -> None:
        if state is self._state:
            return
        self._state = state
        if self.on_state_change is not None:
            self.on_state_change(state)
