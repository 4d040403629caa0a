"""
aikit Streaming Module

Vendor-independent streaming machinery:
- SSE framing and the shared decode loop
- Tool-call argument accumulation
- Per-call stream state
- Helpers for consuming chunk streams
"""

from .collect import collect_deltas, collect_stream, filter_stream, map_stream, process_stream
from .sse import extract_data_lines, iter_stream_events, parse_stream_event
from .state import StreamState
from .tool_calls import ToolCallAccumulator, parse_or_default

__all__ = [
    "collect_deltas",
    "collect_stream",
    "filter_stream",
    "map_stream",
    "process_stream",
    "extract_data_lines",
    "iter_stream_events",
    "parse_stream_event",
    "StreamState",
    "ToolCallAccumulator",
    "parse_or_default",
]
