"""Tests for the incremental event-stream parser."""

from __future__ import annotations

import json
import logging

import pytest
from conftest import delta, sse

from technodog.chat.schemas import ContentDelta, MetadataEvent
from technodog.chat.sse import SSELineParser, parse_line
from technodog.exceptions import RequestFailedError, StreamProtocolError


def _content(events) -> str:
    return "".join(e.content for e in events if isinstance(e, ContentDelta))


# ---------------------------------------------------------------------------
# parse_line
# ---------------------------------------------------------------------------


class TestParseLine:
    def test_content_delta(self):
        event = parse_line('data: {"choices":[{"delta":{"content":"hi"}}]}')
        assert event == ContentDelta(content="hi")

    def test_metadata(self):
        event = parse_line('data: {"type":"metadata","foo":1}')
        assert event == MetadataEvent(payload={"type": "metadata", "foo": 1})

    @pytest.mark.parametrize(
        "line",
        [
            "",
            "   ",
            ": keep-alive",
            "event: message",
            "id: 42",
            "data: [DONE]",
            "data:  [DONE]  ",
            'data: {"choices":[{"delta":{}}]}',
            'data: {"choices":[{"delta":{"content":""}}]}',
            'data: {"choices":[]}',
            "data: 42",
            'data: {"type":"other"}',
        ],
    )
    def test_ignored_lines(self, line: str):
        assert parse_line(line) is None

    def test_strips_carriage_return(self):
        event = parse_line('data: {"choices":[{"delta":{"content":"x"}}]}\r')
        assert event == ContentDelta(content="x")

    def test_invalid_json_raises(self):
        with pytest.raises(json.JSONDecodeError):
            parse_line('data: {"choices":[{"delta":{"content":"hel')


# ---------------------------------------------------------------------------
# SSELineParser
# ---------------------------------------------------------------------------


class TestSSELineParser:
    @pytest.fixture
    def payload(self) -> bytes:
        return (
            b": connected\n\n"
            + sse(
                {"type": "metadata", "artists": [{"name": "Jeff Mills", "rank": 1}]},
                delta("Techno nació en "),
                delta("Detroit \U0001f3db\ufe0f "),
                delta("— Belleville Three."),
            )
        )

    def test_whole_payload(self, payload: bytes):
        parser = SSELineParser()
        events = parser.feed(payload) + parser.flush()
        assert _content(events) == "Techno nació en Detroit \U0001f3db\ufe0f — Belleville Three."
        assert sum(isinstance(e, MetadataEvent) for e in events) == 1

    def test_every_split_offset(self, payload: bytes):
        expected = "Techno nació en Detroit \U0001f3db\ufe0f — Belleville Three."
        for offset in range(len(payload) + 1):
            parser = SSELineParser()
            events = parser.feed(payload[:offset])
            events += parser.feed(payload[offset:])
            events += parser.flush()
            assert _content(events) == expected, f"split at byte {offset}"

    def test_byte_by_byte(self, payload: bytes):
        parser = SSELineParser()
        events = []
        for i in range(len(payload)):
            events += parser.feed(payload[i : i + 1])
        events += parser.flush()
        assert "Detroit" in _content(events)

    def test_split_json_line_waits_for_rest(self):
        parser = SSELineParser()
        assert parser.feed(b'data: {"choices":[{"delta":{"content":"hel') == []
        events = parser.feed(b'lo"}}]}\n')
        assert events == [ContentDelta(content="hello")]

    def test_metadata_does_not_pollute_content(self):
        parser = SSELineParser()
        events = parser.feed(
            b'data: {"type":"metadata","foo":1}\n'
            b'data: {"choices":[{"delta":{"content":"hi"}}]}\n'
        )
        assert events == [
            MetadataEvent(payload={"type": "metadata", "foo": 1}),
            ContentDelta(content="hi"),
        ]

    def test_crlf_lines(self):
        parser = SSELineParser()
        events = parser.feed(b'data: {"choices":[{"delta":{"content":"a"}}]}\r\n\r\n')
        assert events == [ContentDelta(content="a")]

    def test_done_does_not_stop_parsing(self):
        parser = SSELineParser()
        events = parser.feed(sse(delta("a")) + sse(delta("b"), done=False))
        assert _content(events) == "ab"

    def test_malformed_line_is_pushed_back(self):
        parser = SSELineParser()
        assert parser.feed(b'data: {"broken\n') == []
        assert parser.pending == 'data: {"broken\n'
        assert parser.stats["pushbacks"] == 1

    def test_flush_parses_unterminated_last_line(self):
        parser = SSELineParser()
        assert parser.feed(b'data: {"choices":[{"delta":{"content":"end"}}]}') == []
        assert parser.flush() == [ContentDelta(content="end")]
        assert parser.pending == ""

    def test_flush_drops_incomplete_line(self, caplog: pytest.LogCaptureFixture):
        parser = SSELineParser()
        parser.feed(b'data: {"choices":[{"delta":')
        with caplog.at_level(logging.WARNING, logger="technodog.chat.sse"):
            assert parser.flush() == []
        assert "Discarding" in caplog.text

    def test_buffer_guard(self):
        parser = SSELineParser(max_buffer_chars=64)
        with pytest.raises(StreamProtocolError):
            parser.feed(b"data: " + b"x" * 100)
        assert parser.pending == ""

    def test_buffer_guard_is_request_failure(self):
        assert issubclass(StreamProtocolError, RequestFailedError)

    def test_reset(self):
        parser = SSELineParser()
        parser.feed("data: {\"choices\": \"café".encode()[:-1])
        parser.reset()
        assert parser.pending == ""
        events = parser.feed(sse(delta("ok"), done=False))
        assert events == [ContentDelta(content="ok")]
