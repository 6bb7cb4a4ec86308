"""Shared fixtures for tests — synthetic documents and streams, no network calls."""

from __future__ import annotations

import asyncio
import json
import textwrap
from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx
import pytest

from technodog.storage import factory as store_factory

# ---------------------------------------------------------------------------
# Stream helpers
# ---------------------------------------------------------------------------


def sse(*payloads: Any, done: bool = True) -> bytes:
    """Encode payloads as ``data: <json>`` lines, optionally with ``[DONE]``."""
    lines = [f"data: {json.dumps(p, ensure_ascii=False)}\n\n" for p in payloads]
    if done:
        lines.append("data: [DONE]\n\n")
    return "".join(lines).encode("utf-8")


def delta(content: str) -> dict[str, Any]:
    """An OpenAI-style streaming completion chunk."""
    return {"choices": [{"delta": {"content": content}}]}


async def _aiter(chunks: list[bytes]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        await asyncio.sleep(0)
        yield chunk


@pytest.fixture
def make_stream_client() -> Callable[..., httpx.AsyncClient]:
    """Build an ``httpx.AsyncClient`` whose responses stream the given chunks.

    Every request gets a fresh stream of ``chunks``. Pass a list as
    ``requests`` to capture the outgoing requests.
    """

    def _make(
        chunks: list[bytes],
        status_code: int = 200,
        requests: list[httpx.Request] | None = None,
    ) -> httpx.AsyncClient:
        def handler(request: httpx.Request) -> httpx.Response:
            if requests is not None:
                requests.append(request)
            if status_code != 200:
                return httpx.Response(status_code, content=b"upstream error")
            return httpx.Response(
                status_code,
                headers={"Content-Type": "text/event-stream"},
                content=_aiter(list(chunks)),
            )

        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


# ---------------------------------------------------------------------------
# Synthetic document content
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_article() -> str:
    return textwrap.dedent("""\
        Detroit techno

        Detroit techno is a type of techno music that generally includes the
        first techno productions by Detroit-based artists during the 1980s
        and early 1990s. Prominent Detroit techno artists include Juan Atkins,
        Derrick May, Kevin Saunderson, Eddie Fowlkes, Blake Baxter, Drexciya,
        Mike Banks, James Pennington and Robert Hood.

        The Belleville Three met at high school in Belleville, Michigan, and
        traded mixtapes before building their own studios around the Roland
        TR-909 and TB-303. Underground Resistance later carried the sound into
        a militant, independent label model that shaped Berlin's Tresor scene.
    """)


@pytest.fixture
def long_text() -> str:
    """Deterministic text long enough for several default-size windows."""
    return "".join(f"[{i:04d}] techno " for i in range(600))


@pytest.fixture(autouse=True)
def _clear_store_cache():
    store_factory.clear_cache()
    yield
    store_factory.clear_cache()
