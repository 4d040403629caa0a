"""
aikit - Stream Consumption Helper Tests
"""

import pytest

from aikit.core.models import (
    FinishReason,
    GenerationUsage,
    ReasoningDelta,
    StreamChunk,
    ToolCall,
)
from aikit.streaming.collect import (
    collect_deltas,
    collect_stream,
    filter_stream,
    map_stream,
    process_stream,
)


async def chunk_source(*chunks):
    for chunk in chunks:
        yield chunk


def sample_chunks():
    tool_call = ToolCall(id="call_1", name="f", arguments={"x": 1})
    return [
        StreamChunk(content="", delta="", reasoning=ReasoningDelta(content="Hmm", delta="Hmm")),
        StreamChunk(content="Hel", delta="Hel"),
        StreamChunk(content="Hello", delta="lo"),
        StreamChunk(
            content="Hello",
            delta="",
            tool_calls=[tool_call],
            finish_reason=FinishReason.TOOL_USE,
            usage=GenerationUsage(input_tokens=3, output_tokens=2),
        ),
    ]


class TestCollect:
    """Test result collection."""

    @pytest.mark.asyncio
    async def test_collect_deltas(self):
        result = await collect_deltas(chunk_source(*sample_chunks()))

        assert result.content == "Hello"
        assert result.reasoning == "Hmm"
        assert result.finish_reason == FinishReason.TOOL_USE
        assert result.tool_calls[0].arguments == {"x": 1}
        assert result.usage.output_tokens == 2

    @pytest.mark.asyncio
    async def test_collect_stream(self):
        result = await collect_stream(chunk_source(*sample_chunks()))

        assert result.content == "Hello"
        assert result.reasoning == "Hmm"
        assert result.finish_reason == FinishReason.TOOL_USE

    @pytest.mark.asyncio
    async def test_empty_stream(self):
        result = await collect_deltas(chunk_source())

        assert result.content == ""
        assert result.reasoning is None
        assert result.finish_reason is None
        assert result.tool_calls is None
        assert result.usage is None

    @pytest.mark.asyncio
    async def test_usage_trailer_kept(self):
        result = await collect_stream(chunk_source(
            StreamChunk(content="a", delta="a", finish_reason=FinishReason.STOP),
            StreamChunk(content="a", delta="", usage=GenerationUsage(total_tokens=9)),
        ))

        assert result.finish_reason == FinishReason.STOP
        assert result.usage.total_tokens == 9

    @pytest.mark.asyncio
    async def test_result_to_dict(self):
        result = await collect_deltas(chunk_source(*sample_chunks()))
        data = result.to_dict()

        assert data["content"] == "Hello"
        assert data["finishReason"] == "tool_use"
        assert data["toolCalls"] == [{"id": "call_1", "name": "f", "arguments": {"x": 1}}]
        assert data["usage"] == {"inputTokens": 3, "outputTokens": 2}


class TestProcessStream:
    """Test callback dispatch."""

    @pytest.mark.asyncio
    async def test_callbacks(self):
        seen = {"chunks": 0, "deltas": [], "contents": [], "reasoning": [], "tools": [], "finish": [], "usage": []}

        result = await process_stream(
            chunk_source(*sample_chunks()),
            on_chunk=lambda c: seen.__setitem__("chunks", seen["chunks"] + 1),
            on_delta=seen["deltas"].append,
            on_content=seen["contents"].append,
            on_reasoning=seen["reasoning"].append,
            on_tool_calls=seen["tools"].append,
            on_finish=seen["finish"].append,
            on_usage=seen["usage"].append,
        )

        assert seen["chunks"] == 4
        assert seen["deltas"] == ["", "Hel", "lo", ""]
        assert seen["contents"] == ["", "Hel", "Hello", "Hello"]
        assert [r.delta for r in seen["reasoning"]] == ["Hmm"]
        assert len(seen["tools"]) == 1
        assert seen["finish"] == [FinishReason.TOOL_USE]
        assert seen["usage"][0].input_tokens == 3
        assert result.content == "Hello"

    @pytest.mark.asyncio
    async def test_callback_error_propagates(self):
        def explode(delta):
            if delta == "lo":
                raise RuntimeError("stop here")

        with pytest.raises(RuntimeError, match="stop here"):
            await process_stream(chunk_source(*sample_chunks()), on_delta=explode)

    @pytest.mark.asyncio
    async def test_no_callbacks(self):
        result = await process_stream(chunk_source(*sample_chunks()))
        assert result.content == "Hello"


class TestStreamTransforms:
    """Test filter/map helpers."""

    @pytest.mark.asyncio
    async def test_filter_stream(self, collect):
        chunks = await collect(filter_stream(chunk_source(*sample_chunks()), lambda c: bool(c.delta)))
        assert [c.delta for c in chunks] == ["Hel", "lo"]

    @pytest.mark.asyncio
    async def test_map_stream(self, collect):
        deltas = await collect(map_stream(chunk_source(*sample_chunks()), lambda c: c.delta.upper()))
        assert deltas == ["", "HEL", "LO", ""]
