"""
aikit - Stream State

Per-generation mutable bookkeeping shared by every vendor decoder.

One StreamState is created at the start of decoding a response stream,
mutated in place as events arrive, and discarded when the stream ends.
It is never shared across calls, so no locking is needed.

No operation here raises: malformed tool arguments finalize to `{}`,
fragments for unregistered tool ids are ignored.
"""

import time
from typing import Callable, Dict, List, Optional

from ..core.models import (
    FinishReason,
    GenerationUsage,
    ReasoningDelta,
    StreamChunk,
    ToolCall,
)
from .tool_calls import ToolCallAccumulator


class StreamState:
    """
    Tracks state during streaming.

    Used for:
    - Accumulating content and reasoning text
    - Accumulating tool calls keyed by vendor call id
    - Resolving positional tool-call references (output index -> call id)
    - Time-to-first-token and total-time measurement
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock

        self.content: str = ""
        self.reasoning: str = ""

        # Insertion order is the order tool calls are reported in
        self.tool_call_states: Dict[str, ToolCallAccumulator] = {}
        self.output_index_to_call_id: Dict[int, str] = {}

        self.started_at: float = clock()
        self.first_content_token_at: Optional[float] = None
        self.first_reasoning_token_at: Optional[float] = None
        self.finished: bool = False

    # ============================================================
    # Text channels
    # ============================================================

    def add_content_delta(self, text: Optional[str]):
        """Append to content; the first non-blank delta starts the TTFT clock."""
        if not text:
            return
        self.content += text
        if self.first_content_token_at is None and text.strip():
            self.first_content_token_at = self._clock()

    def add_reasoning_delta(self, text: Optional[str]) -> ReasoningDelta:
        """Append to reasoning and return the reasoning view for this chunk."""
        text = text or ""
        self.reasoning += text
        if self.first_reasoning_token_at is None and text.strip():
            self.first_reasoning_token_at = self._clock()
        return ReasoningDelta(content=self.reasoning, delta=text)

    # ============================================================
    # Tool calls
    # ============================================================

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_call_states)

    def init_tool_call(self, call_id: str, name: Optional[str]):
        """Register a tool call with empty arguments. Re-init overwrites."""
        self.tool_call_states[call_id] = ToolCallAccumulator(name=name or "")

    def add_tool_call_args(self, call_id: Optional[str], fragment: Optional[str]):
        """Append an argument fragment; ignored for unregistered ids."""
        accumulator = self.tool_call_states.get(call_id) if call_id else None
        if accumulator is not None:
            accumulator.append(fragment)

    def set_tool_call_args(self, call_id: Optional[str], arguments: str):
        """Replace a registered call's raw arguments; ignored for unregistered ids."""
        accumulator = self.tool_call_states.get(call_id) if call_id else None
        if accumulator is not None:
            accumulator.replace(arguments)

    def map_output_index(self, index: int, call_id: str):
        self.output_index_to_call_id[index] = call_id

    def resolve_call_id(
        self,
        index: Optional[int],
        call_id: Optional[str] = None
    ) -> Optional[str]:
        """An explicit call id wins; otherwise look the position up."""
        if call_id:
            return call_id
        if index is None:
            return None
        return self.output_index_to_call_id.get(index)

    def finalize_tool_calls(self) -> Optional[List[ToolCall]]:
        """
        Parse every registered call's arguments.

        Returns None when no tool call was ever registered, which is
        distinct from an empty argument object.
        """
        if not self.tool_call_states:
            return None
        return [
            accumulator.to_tool_call(call_id)
            for call_id, accumulator in self.tool_call_states.items()
        ]

    # ============================================================
    # Chunk construction
    # ============================================================

    def _timing_usage(self) -> GenerationUsage:
        first_tokens = [
            ts for ts in (self.first_content_token_at, self.first_reasoning_token_at)
            if ts is not None
        ]
        time_to_first_token = None
        if first_tokens:
            time_to_first_token = _to_ms(min(first_tokens) - self.started_at)

        return GenerationUsage(
            time_to_first_token=time_to_first_token,
            total_time=_to_ms(self._clock() - self.started_at),
        )

    def create_chunk(
        self,
        delta: str = "",
        finish_reason: Optional[FinishReason] = None,
        existing_usage: Optional[GenerationUsage] = None,
        reasoning: Optional[ReasoningDelta] = None
    ) -> StreamChunk:
        """
        Build a chunk from the running totals.

        Usage (vendor token counts merged with timing) is attached only
        when a finish reason is given; intermediate chunks never carry it.
        """
        usage = None
        if finish_reason is not None:
            base = existing_usage if existing_usage is not None else GenerationUsage()
            usage = base.merge(self._timing_usage())
            self.finished = True

        return StreamChunk(
            content=self.content,
            delta=delta,
            reasoning=reasoning,
            tool_calls=self.finalize_tool_calls(),
            finish_reason=finish_reason,
            usage=usage,
        )

    def create_usage_chunk(self, usage: GenerationUsage) -> StreamChunk:
        """
        Chunk for a payload that carries only token usage.

        Terminal (`stop`) unless a finish reason was already emitted, in
        which case the usage trails without repeating the finish reason.
        """
        if not self.finished:
            return self.create_chunk("", FinishReason.STOP, usage)

        return StreamChunk(
            content=self.content,
            delta="",
            tool_calls=self.finalize_tool_calls(),
            usage=usage.merge(self._timing_usage()),
        )

    def create_reasoning_chunk(self, reasoning: ReasoningDelta) -> StreamChunk:
        """A chunk carrying only a reasoning increment; content is unchanged."""
        return StreamChunk(content=self.content, delta="", reasoning=reasoning)


def _to_ms(seconds: float) -> int:
    return int(round(seconds * 1000))
