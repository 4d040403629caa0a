"""
aikit - OpenAI Stream Decoders

Decodes the two OpenAI streaming protocols into StreamChunks:

Chat Completions
    Every payload is a `chat.completion.chunk` object
    `{choices: [{delta: {content?, reasoning?, tool_calls?}, finish_reason?}], usage?}`.
    Tool-call fragments are addressed by their position (`index`); only the
    first fragment of a call carries its `id`.

Responses
    Every payload is a typed event (`response.output_text.delta`,
    `response.function_call_arguments.delta`, ...). Function calls are
    announced by `response.output_item.added` with both `output_index` and
    `call_id`; argument deltas reference only the `output_index`, and
    `function_call_arguments.done` carries the authoritative argument text.
"""

from enum import Enum
from typing import Any, AsyncIterable, AsyncIterator, Dict, List, Optional

from ..core.models import FinishReason, GenerationUsage, StreamChunk
from ..observability.logging import get_logger
from ..streaming.sse import get_dict, get_list, get_str, iter_stream_events
from ..streaming.state import StreamState

logger = get_logger(__name__)


CHAT_FINISH_REASONS: Dict[str, FinishReason] = {
    "stop": FinishReason.STOP,
    "length": FinishReason.LENGTH,
    "tool_calls": FinishReason.TOOL_USE,
    "content_filter": FinishReason.STOP,
}

RESPONSES_STATUSES: Dict[str, FinishReason] = {
    "completed": FinishReason.STOP,
    "incomplete": FinishReason.LENGTH,
    "failed": FinishReason.ERROR,
    "tool_calls_required": FinishReason.TOOL_USE,
    "failed_function_call": FinishReason.TOOL_USE,
    "error": FinishReason.STOP,
    "cancelled": FinishReason.STOP,
}


def map_chat_finish_reason(reason: str) -> FinishReason:
    return CHAT_FINISH_REASONS.get(reason, FinishReason.STOP)


def map_responses_status(status: Optional[str]) -> FinishReason:
    return RESPONSES_STATUSES.get(status or "completed", FinishReason.STOP)


def _set_if_truthy(usage: GenerationUsage, name: str, value: Any):
    if value:
        setattr(usage, name, value)


# ============================================================
# Chat Completions
# ============================================================

def extract_chat_usage(chunk_data: Dict[str, Any]) -> Optional[GenerationUsage]:
    """
    Extract token usage from a chat chunk.

    Returns None when the chunk has no usage or none of its counts are set.
    """
    raw = chunk_data.get("usage")
    if not isinstance(raw, dict):
        return None

    usage = GenerationUsage()
    _set_if_truthy(usage, "input_tokens", raw.get("prompt_tokens"))
    _set_if_truthy(usage, "output_tokens", raw.get("completion_tokens"))
    _set_if_truthy(usage, "total_tokens", raw.get("total_tokens"))

    completion_details = get_dict(raw, "completion_tokens_details")
    _set_if_truthy(usage, "reasoning_tokens", completion_details.get("reasoning_tokens"))

    prompt_details = get_dict(raw, "prompt_tokens_details")
    _set_if_truthy(usage, "cache_tokens", prompt_details.get("cached_tokens"))

    return None if usage.is_empty() else usage


class OpenAIChatStreamDecoder:
    """
    State machine for the Chat Completions stream.

    Usage:
        decoder = OpenAIChatStreamDecoder()
        for event in events:
            chunk = decoder.handle_chunk(event)
            if chunk:
                yield chunk
    """

    def __init__(self, state: Optional[StreamState] = None):
        self.state = state or StreamState()

    def handle_chunk(self, chunk_data: Dict[str, Any]) -> Optional[StreamChunk]:
        """Apply one decoded chunk to the state; return the chunk to emit, if any."""
        choices = get_list(chunk_data, "choices")

        if not choices:
            # usage-only terminal chunk (stream_options.include_usage)
            usage = extract_chat_usage(chunk_data)
            if usage is None:
                return None
            return self.state.create_usage_chunk(usage)

        choice = choices[0] if isinstance(choices[0], dict) else {}
        delta = get_dict(choice, "delta")

        reasoning = None
        reasoning_text = get_str(delta, "reasoning")
        if reasoning_text:
            reasoning = self.state.add_reasoning_delta(reasoning_text)

        tool_calls = get_list(delta, "tool_calls")
        if tool_calls:
            self._apply_tool_call_deltas(tool_calls)

        content = get_str(delta, "content")
        if content:
            self.state.add_content_delta(content)

        finish_reason = get_str(choice, "finish_reason")
        if finish_reason:
            return self.state.create_chunk(
                content,
                map_chat_finish_reason(finish_reason),
                extract_chat_usage(chunk_data),
                reasoning=reasoning
            )

        if content:
            return self.state.create_chunk(content, reasoning=reasoning)

        if reasoning is not None:
            return self.state.create_reasoning_chunk(reasoning)

        if tool_calls:
            return self.state.create_chunk("")

        return None

    def _apply_tool_call_deltas(self, tool_call_deltas: List[Dict[str, Any]]):
        for delta_call in tool_call_deltas:
            if not isinstance(delta_call, dict):
                continue

            index = delta_call.get("index")
            if not isinstance(index, int):
                index = 0
            function = get_dict(delta_call, "function")
            name = get_str(function, "name")

            new_id = get_str(delta_call, "id")
            if new_id:
                self.state.map_output_index(index, new_id)
                self.state.init_tool_call(new_id, name)

            call_id = self.state.resolve_call_id(index, new_id)
            if call_id is None:
                continue

            if name and not new_id:
                accumulator = self.state.tool_call_states.get(call_id)
                if accumulator is not None:
                    accumulator.name = name

            self.state.add_tool_call_args(call_id, get_str(function, "arguments"))


async def process_chat_stream(
    lines: AsyncIterable[str],
    state: Optional[StreamState] = None
) -> AsyncIterator[StreamChunk]:
    """Decode a Chat Completions payload stream into StreamChunks."""
    decoder = OpenAIChatStreamDecoder(state)
    async for event in iter_stream_events(lines, provider="openai"):
        chunk = decoder.handle_chunk(event)
        if chunk is not None:
            yield chunk


# ============================================================
# Responses
# ============================================================

class ResponsesEventType(str, Enum):
    """Responses events that affect the unified output."""
    OUTPUT_TEXT_DELTA = "response.output_text.delta"
    REASONING_TEXT_DELTA = "response.reasoning_text.delta"
    REASONING_SUMMARY_TEXT_DELTA = "response.reasoning_summary_text.delta"
    OUTPUT_ITEM_ADDED = "response.output_item.added"
    FUNCTION_CALL_ARGUMENTS_DELTA = "response.function_call_arguments.delta"
    FUNCTION_CALL_ARGUMENTS_DONE = "response.function_call_arguments.done"
    COMPLETED = "response.completed"
    INCOMPLETE = "response.incomplete"
    FAILED = "response.failed"

    @classmethod
    def parse(cls, value: Any) -> Optional["ResponsesEventType"]:
        try:
            return cls(value)
        except ValueError:
            return None


_TERMINAL_EVENT_STATUS = {
    ResponsesEventType.COMPLETED: "completed",
    ResponsesEventType.INCOMPLETE: "incomplete",
    ResponsesEventType.FAILED: "failed",
}


def extract_responses_usage(response: Dict[str, Any]) -> Optional[GenerationUsage]:
    raw = response.get("usage")
    if not isinstance(raw, dict):
        return None

    usage = GenerationUsage()
    _set_if_truthy(usage, "input_tokens", raw.get("input_tokens"))
    _set_if_truthy(usage, "output_tokens", raw.get("output_tokens"))
    _set_if_truthy(usage, "total_tokens", raw.get("total_tokens"))

    output_details = get_dict(raw, "output_tokens_details")
    _set_if_truthy(usage, "reasoning_tokens", output_details.get("reasoning_tokens"))

    input_details = get_dict(raw, "input_tokens_details")
    _set_if_truthy(usage, "cache_tokens", input_details.get("cached_tokens"))

    return None if usage.is_empty() else usage


class OpenAIResponsesStreamDecoder:
    """State machine for the Responses API event stream."""

    def __init__(self, state: Optional[StreamState] = None):
        self.state = state or StreamState()

    def handle_event(self, event: Dict[str, Any]) -> Optional[StreamChunk]:
        event_type = ResponsesEventType.parse(event.get("type"))

        if event_type is None:
            logger.debug("Ignoring Responses event", event_type=str(event.get("type")))
            return None

        if event_type == ResponsesEventType.OUTPUT_TEXT_DELTA:
            return self._handle_text_delta(event)

        elif event_type in (
            ResponsesEventType.REASONING_TEXT_DELTA,
            ResponsesEventType.REASONING_SUMMARY_TEXT_DELTA,
        ):
            return self._handle_reasoning_delta(event)

        elif event_type == ResponsesEventType.OUTPUT_ITEM_ADDED:
            return self._handle_item_added(event)

        elif event_type == ResponsesEventType.FUNCTION_CALL_ARGUMENTS_DELTA:
            return self._handle_arguments_delta(event)

        elif event_type == ResponsesEventType.FUNCTION_CALL_ARGUMENTS_DONE:
            return self._handle_arguments_done(event)

        return self._handle_terminal(event_type, event)

    def _resolve_event_call_id(self, event: Dict[str, Any]) -> Optional[str]:
        output_index = event.get("output_index")
        if not isinstance(output_index, int):
            output_index = None
        return self.state.resolve_call_id(output_index, get_str(event, "call_id"))

    def _handle_text_delta(self, event: Dict[str, Any]) -> StreamChunk:
        delta = get_str(event, "delta")
        self.state.add_content_delta(delta)
        return self.state.create_chunk(delta)

    def _handle_reasoning_delta(self, event: Dict[str, Any]) -> StreamChunk:
        reasoning = self.state.add_reasoning_delta(get_str(event, "delta"))
        return self.state.create_reasoning_chunk(reasoning)

    def _handle_item_added(self, event: Dict[str, Any]) -> Optional[StreamChunk]:
        item = get_dict(event, "item")
        if item.get("type") != "function_call":
            return None

        call_id = get_str(item, "call_id") or get_str(item, "id")
        if not call_id:
            return None

        output_index = event.get("output_index")
        if isinstance(output_index, int):
            self.state.map_output_index(output_index, call_id)
        self.state.init_tool_call(call_id, get_str(item, "name"))
        return self.state.create_chunk("")

    def _handle_arguments_delta(self, event: Dict[str, Any]) -> Optional[StreamChunk]:
        call_id = self._resolve_event_call_id(event)
        if call_id is None or call_id not in self.state.tool_call_states:
            return None
        self.state.add_tool_call_args(call_id, get_str(event, "delta"))
        return self.state.create_chunk("")

    def _handle_arguments_done(self, event: Dict[str, Any]) -> Optional[StreamChunk]:
        call_id = self._resolve_event_call_id(event)
        if call_id is None or call_id not in self.state.tool_call_states:
            return None

        # the done event is ground truth; fall back to what was accumulated
        arguments = get_str(event, "arguments") or self.state.tool_call_states[call_id].arguments or "{}"
        self.state.set_tool_call_args(call_id, arguments)
        return self.state.create_chunk("")

    def _handle_terminal(
        self,
        event_type: ResponsesEventType,
        event: Dict[str, Any]
    ) -> StreamChunk:
        response = get_dict(event, "response")
        status = get_str(response, "status") or _TERMINAL_EVENT_STATUS[event_type]
        return self.state.create_chunk(
            "",
            map_responses_status(status),
            extract_responses_usage(response)
        )


async def process_responses_stream(
    lines: AsyncIterable[str],
    state: Optional[StreamState] = None
) -> AsyncIterator[StreamChunk]:
    """Decode a Responses API event stream into StreamChunks."""
    decoder = OpenAIResponsesStreamDecoder(state)
    async for event in iter_stream_events(lines, provider="openai_responses"):
        chunk = decoder.handle_event(event)
        if chunk is not None:
            yield chunk
