"""
aikit - Stream Consumption Helpers

Utilities for callers that want a final result rather than chunks:

    result = await collect_deltas(adapter.stream(payload))
    print(result.content, result.finish_reason)

    result = await process_stream(
        adapter.stream(payload),
        on_delta=lambda d: print(d, end=""),
    )
"""

from typing import AsyncIterable, AsyncIterator, Callable, List, Optional, TypeVar

from ..core.models import (
    FinishReason,
    GenerationUsage,
    ReasoningDelta,
    StreamChunk,
    StreamResult,
    ToolCall,
)

T = TypeVar("T")
U = TypeVar("U")


def _merge_terminal_fields(result: StreamResult, chunk: StreamChunk):
    if chunk.finish_reason is not None:
        result.finish_reason = chunk.finish_reason
    if chunk.tool_calls is not None:
        result.tool_calls = chunk.tool_calls
    if chunk.usage is not None:
        result.usage = chunk.usage


async def collect_deltas(stream: AsyncIterable[StreamChunk]) -> StreamResult:
    """Build the result by concatenating every chunk's delta."""
    result = StreamResult()
    reasoning = ""

    async for chunk in stream:
        result.content += chunk.delta
        if chunk.reasoning is not None:
            reasoning += chunk.reasoning.delta
        _merge_terminal_fields(result, chunk)

    result.reasoning = reasoning or None
    return result


async def collect_stream(stream: AsyncIterable[StreamChunk]) -> StreamResult:
    """Build the result from the cumulative fields of the last chunks."""
    result = StreamResult()
    reasoning = ""

    async for chunk in stream:
        result.content = chunk.content
        if chunk.reasoning is not None:
            reasoning = chunk.reasoning.content
        _merge_terminal_fields(result, chunk)

    result.reasoning = reasoning or None
    return result


async def process_stream(
    stream: AsyncIterable[StreamChunk],
    on_chunk: Optional[Callable[[StreamChunk], None]] = None,
    on_delta: Optional[Callable[[str], None]] = None,
    on_content: Optional[Callable[[str], None]] = None,
    on_reasoning: Optional[Callable[[ReasoningDelta], None]] = None,
    on_tool_calls: Optional[Callable[[List[ToolCall]], None]] = None,
    on_finish: Optional[Callable[[FinishReason], None]] = None,
    on_usage: Optional[Callable[[GenerationUsage], None]] = None,
) -> StreamResult:
    """
    Invoke per-chunk callbacks while collecting the final result.

    Callbacks run in chunk order before the next chunk is pulled. An
    exception raised by a callback propagates and stops consumption.
    """
    result = StreamResult()
    reasoning = ""

    async for chunk in stream:
        if on_chunk:
            on_chunk(chunk)
        if on_delta:
            on_delta(chunk.delta)
        if on_content:
            on_content(chunk.content)
        if chunk.reasoning is not None and on_reasoning:
            on_reasoning(chunk.reasoning)
        if chunk.tool_calls is not None and on_tool_calls:
            on_tool_calls(chunk.tool_calls)
        if chunk.finish_reason is not None and on_finish:
            on_finish(chunk.finish_reason)
        if chunk.usage is not None and on_usage:
            on_usage(chunk.usage)

        result.content = chunk.content
        if chunk.reasoning is not None:
            reasoning = chunk.reasoning.content
        _merge_terminal_fields(result, chunk)

    result.reasoning = reasoning or None
    return result


async def filter_stream(
    stream: AsyncIterable[T],
    predicate: Callable[[T], bool]
) -> AsyncIterator[T]:
    async for item in stream:
        if predicate(item):
            yield item


async def map_stream(
    stream: AsyncIterable[T],
    mapper: Callable[[T], U]
) -> AsyncIterator[U]:
    async for item in stream:
        yield mapper(item)
