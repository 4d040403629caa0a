"""
aikit - SSE Framing Tests

Verifies:
- `data:` payload extraction and dropping of other SSE fields
- [DONE] halts the shared decode loop
- Malformed payloads are skipped, never fatal
"""

import logging

import pytest

from aikit.streaming.sse import (
    extract_data_lines,
    get_dict,
    get_list,
    get_str,
    is_done,
    iter_stream_events,
    parse_stream_event,
)


async def _lines(*items):
    for item in items:
        yield item


class TestExtractDataLines:
    """Test SSE line framing."""

    @pytest.mark.asyncio
    async def test_strips_prefix_and_drops_other_fields(self, collect):
        raw = _lines(
            "event: message_start",
            'data: {"a": 1}',
            "",
            ": keep-alive comment",
            "id: 42",
            'data:{"b": 2}',
            "data: [DONE]",
        )

        assert await collect(extract_data_lines(raw)) == ['{"a": 1}', '{"b": 2}', "[DONE]"]

    @pytest.mark.asyncio
    async def test_drops_blank_payloads_and_crlf(self, collect):
        raw = _lines("data: ", "data:", 'data: {"x": 1}\r\n')
        assert await collect(extract_data_lines(raw)) == ['{"x": 1}']

    @pytest.mark.asyncio
    async def test_only_one_space_stripped(self, collect):
        raw = _lines("data:   indented")
        assert await collect(extract_data_lines(raw)) == ["  indented"]


class TestParseStreamEvent:
    """Test single payload parsing."""

    def test_object(self):
        assert parse_stream_event('{"type": "ping"}') == {"type": "ping"}

    def test_malformed_returns_none(self):
        assert parse_stream_event("{not json") is None

    def test_non_object_returns_none(self):
        assert parse_stream_event("[1, 2, 3]") is None
        assert parse_stream_event("42") is None

    def test_is_done(self):
        assert is_done("[DONE]")
        assert is_done("  [DONE] ")
        assert not is_done('{"done": true}')


class TestFieldAccess:
    """Test typed access to nested event fields."""

    def test_matching_types_pass_through(self):
        event = {"delta": {"text": "Hi"}, "parts": [1], "type": "ping"}
        assert get_dict(event, "delta") == {"text": "Hi"}
        assert get_list(event, "parts") == [1]
        assert get_str(event, "type") == "ping"

    def test_wrong_types_read_as_empty(self):
        event = {"delta": "oops", "parts": {"a": 1}, "type": 7}
        assert get_dict(event, "delta") == {}
        assert get_list(event, "parts") == []
        assert get_str(event, "type") == ""

    def test_missing_and_null(self):
        event = {"delta": None}
        assert get_dict(event, "delta") == {}
        assert get_list(event, "missing") == []
        assert get_str(event, "missing") == ""


class TestIterStreamEvents:
    """Test the shared decode loop."""

    @pytest.mark.asyncio
    async def test_done_halts_decoding(self, payloads, collect):
        events = await collect(iter_stream_events(
            payloads({"id": "A"}, "[DONE]", {"id": "B"})
        ))
        assert events == [{"id": "A"}]

    @pytest.mark.asyncio
    async def test_lines_after_done_never_pulled(self, collect):
        pulled = []

        async def source():
            for item in ('{"id": "A"}', "[DONE]", '{"id": "B"}'):
                pulled.append(item)
                yield item

        await collect(iter_stream_events(source()))
        assert pulled == ['{"id": "A"}', "[DONE]"]

    @pytest.mark.asyncio
    async def test_malformed_lines_skipped(self, payloads, collect):
        events = await collect(iter_stream_events(
            payloads({"n": 1}, "{broken", "", "   ", "[1]", {"n": 2})
        ))
        assert events == [{"n": 1}, {"n": 2}]

    @pytest.mark.asyncio
    async def test_malformed_line_logged_at_debug(self, payloads, collect, caplog):
        caplog.set_level(logging.DEBUG, logger="aikit")
        await collect(iter_stream_events(payloads("{broken"), provider="google"))

        records = [r for r in caplog.records if r.getMessage() == "Skipping malformed stream payload"]
        assert len(records) == 1
        assert records[0].levelno == logging.DEBUG
        assert records[0].provider == "google"
        assert records[0].payload_preview == "{broken"

    @pytest.mark.asyncio
    async def test_stream_without_done(self, payloads, collect):
        assert await collect(iter_stream_events(payloads({"n": 1}))) == [{"n": 1}]
