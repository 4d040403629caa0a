"""
aikit - Anthropic Stream Decoder

Decodes the Anthropic Messages event stream:

    message_start -> (content_block_start -> content_block_delta* ->
    content_block_stop)* -> message_delta -> message_stop

Content blocks are addressed by `index`. A tool_use block announces its
id and name in `content_block_start`; its `input_json_delta` fragments
carry only the block index, so the decoder keeps an index -> id map.

Unlike the other vendors, Anthropic multiplexes errors into the stream.
An `error` event raises AnthropicStreamError and aborts iteration.
"""

from enum import Enum
from typing import Any, AsyncIterable, AsyncIterator, Dict, Optional

from ..core.errors import AnthropicStreamError
from ..core.models import FinishReason, GenerationUsage, StreamChunk
from ..observability.logging import get_logger
from ..streaming.sse import get_dict, get_str, iter_stream_events
from ..streaming.state import StreamState

logger = get_logger(__name__)


class AnthropicEventType(str, Enum):
    MESSAGE_START = "message_start"
    CONTENT_BLOCK_START = "content_block_start"
    CONTENT_BLOCK_DELTA = "content_block_delta"
    CONTENT_BLOCK_STOP = "content_block_stop"
    MESSAGE_DELTA = "message_delta"
    MESSAGE_STOP = "message_stop"
    PING = "ping"
    ERROR = "error"

    @classmethod
    def parse(cls, value: Any) -> Optional["AnthropicEventType"]:
        try:
            return cls(value)
        except ValueError:
            return None


class AnthropicDeltaType(str, Enum):
    TEXT = "text_delta"
    INPUT_JSON = "input_json_delta"
    THINKING = "thinking_delta"
    SIGNATURE = "signature_delta"

    @classmethod
    def parse(cls, value: Any) -> Optional["AnthropicDeltaType"]:
        try:
            return cls(value)
        except ValueError:
            return None


STOP_REASONS: Dict[str, FinishReason] = {
    "end_turn": FinishReason.STOP,
    "max_tokens": FinishReason.LENGTH,
    "stop_sequence": FinishReason.STOP,
    "tool_use": FinishReason.TOOL_USE,
    "pause_turn": FinishReason.STOP,
    "refusal": FinishReason.ERROR,
}


def map_stop_reason(reason: Optional[str]) -> Optional[FinishReason]:
    """Unknown stop reasons map to None, not to `stop`."""
    if not reason:
        return None
    return STOP_REASONS.get(reason)


class AnthropicStreamDecoder:
    """
    State machine for the Anthropic Messages stream.

    Raises:
        AnthropicStreamError: on an in-stream `error` event
    """

    def __init__(self, state: Optional[StreamState] = None):
        self.state = state or StreamState()
        self.stopped = False
        # message_start usage, merged into the terminal chunk
        self._start_usage = GenerationUsage()

    def handle_event(self, event: Dict[str, Any]) -> Optional[StreamChunk]:
        event_type = AnthropicEventType.parse(event.get("type"))

        if event_type == AnthropicEventType.ERROR:
            self._raise_error(event)

        elif event_type == AnthropicEventType.MESSAGE_START:
            self._handle_message_start(event)

        elif event_type == AnthropicEventType.CONTENT_BLOCK_START:
            self._handle_block_start(event)

        elif event_type == AnthropicEventType.CONTENT_BLOCK_DELTA:
            return self._handle_block_delta(event)

        elif event_type == AnthropicEventType.MESSAGE_DELTA:
            return self._handle_message_delta(event)

        elif event_type == AnthropicEventType.MESSAGE_STOP:
            self.stopped = True

        elif event_type is None:
            logger.debug("Ignoring Anthropic event", event_type=str(event.get("type")))

        return None

    def _raise_error(self, event: Dict[str, Any]):
        error = get_dict(event, "error")
        error_type = get_str(error, "type") or "unknown_error"
        message = get_str(error, "message")
        logger.warning(
            "Anthropic reported an in-stream error",
            error_type=error_type,
            content_length=len(self.state.content)
        )
        raise AnthropicStreamError(error_type, message)

    def _handle_message_start(self, event: Dict[str, Any]):
        usage = get_dict(get_dict(event, "message"), "usage")
        if usage.get("input_tokens"):
            self._start_usage.input_tokens = usage["input_tokens"]
        if usage.get("cache_read_input_tokens"):
            self._start_usage.cache_tokens = usage["cache_read_input_tokens"]

    def _handle_block_start(self, event: Dict[str, Any]):
        block = get_dict(event, "content_block")
        call_id = get_str(block, "id")
        if block.get("type") != "tool_use" or not call_id:
            return

        self.state.init_tool_call(call_id, get_str(block, "name"))
        index = event.get("index")
        if isinstance(index, int):
            self.state.map_output_index(index, call_id)

    def _handle_block_delta(self, event: Dict[str, Any]) -> Optional[StreamChunk]:
        delta = get_dict(event, "delta")
        delta_type = AnthropicDeltaType.parse(delta.get("type"))

        if delta_type == AnthropicDeltaType.TEXT:
            text = get_str(delta, "text")
            self.state.add_content_delta(text)
            return self.state.create_chunk(text)

        if delta_type == AnthropicDeltaType.INPUT_JSON:
            index = event.get("index")
            call_id = self.state.resolve_call_id(index if isinstance(index, int) else None)
            if call_id is None or call_id not in self.state.tool_call_states:
                return None
            self.state.add_tool_call_args(call_id, get_str(delta, "partial_json"))
            return self.state.create_chunk("")

        if delta_type == AnthropicDeltaType.THINKING:
            reasoning = self.state.add_reasoning_delta(get_str(delta, "thinking"))
            return self.state.create_reasoning_chunk(reasoning)

        # signature_delta is opaque verification metadata
        return None

    def _handle_message_delta(self, event: Dict[str, Any]) -> Optional[StreamChunk]:
        stop_reason = get_str(get_dict(event, "delta"), "stop_reason")
        if not stop_reason:
            return None

        usage = self._start_usage
        raw_usage = get_dict(event, "usage")
        if raw_usage.get("output_tokens"):
            usage = usage.merge(GenerationUsage(output_tokens=raw_usage["output_tokens"]))

        return self.state.create_chunk(
            "",
            map_stop_reason(stop_reason),
            None if usage.is_empty() else usage
        )


async def process_anthropic_stream(
    lines: AsyncIterable[str],
    state: Optional[StreamState] = None
) -> AsyncIterator[StreamChunk]:
    """
    Decode an Anthropic payload stream into StreamChunks.

    Raises:
        AnthropicStreamError: when the stream carries an `error` event.
            Chunks yielded before it remain valid.
    """
    decoder = AnthropicStreamDecoder(state)
    async for event in iter_stream_events(lines, provider="anthropic"):
        chunk = decoder.handle_event(event)
        if chunk is not None:
            yield chunk
        if decoder.stopped:
            return
