"""
aikit - Google Gemini Stream Decoder

Gemini has no event taxonomy: every SSE payload is a complete
GenerateContentResponse

    {candidates: [{content: {parts: [...]}, finishReason?}], usageMetadata?}

Text parts are content deltas, parts flagged `thought` are reasoning.
Function calls are never fragmented: a `functionCall` part carries the
full argument object, so it is registered and finalized in one step.
"""

import json
from typing import Any, AsyncIterable, AsyncIterator, Dict, Optional

from ..core.models import FinishReason, GenerationUsage, StreamChunk
from ..streaming.sse import get_dict, get_list, get_str, iter_stream_events
from ..streaming.state import StreamState

FINISH_REASONS: Dict[str, FinishReason] = {
    "STOP": FinishReason.STOP,
    "MAX_TOKENS": FinishReason.LENGTH,
    "TOOL_CODE_EXECUTED": FinishReason.TOOL_USE,
    "MALFORMED_FUNCTION_CALL": FinishReason.TOOL_USE,
    "UNEXPECTED_TOOL_CALL": FinishReason.TOOL_USE,
    "SAFETY": FinishReason.STOP,
    "RECITATION": FinishReason.STOP,
    "OTHER": FinishReason.STOP,
}


def map_finish_reason(reason: str) -> FinishReason:
    return FINISH_REASONS.get(reason, FinishReason.STOP)


def extract_usage(chunk_data: Dict[str, Any]) -> Optional[GenerationUsage]:
    raw = chunk_data.get("usageMetadata")
    if not isinstance(raw, dict):
        return None

    usage = GenerationUsage(
        input_tokens=raw.get("promptTokenCount") or None,
        output_tokens=raw.get("candidatesTokenCount") or None,
        total_tokens=raw.get("totalTokenCount") or None,
        cache_tokens=raw.get("cachedContentTokenCount") or None,
    )
    return None if usage.is_empty() else usage


class GoogleStreamDecoder:
    """State machine for the Gemini streamGenerateContent SSE stream."""

    def __init__(self, state: Optional[StreamState] = None):
        self.state = state or StreamState()
        self._calls_per_name: Dict[str, int] = {}

    def handle_chunk(self, chunk_data: Dict[str, Any]) -> Optional[StreamChunk]:
        usage = extract_usage(chunk_data)
        candidates = get_list(chunk_data, "candidates")

        if not candidates:
            if usage is None:
                return None
            return self.state.create_usage_chunk(usage)

        candidate = candidates[0] if isinstance(candidates[0], dict) else {}
        parts = get_dict(candidate, "content").get("parts")
        finish_reason = get_str(candidate, "finishReason")

        if not isinstance(parts, list) and not finish_reason:
            return None

        delta = ""
        reasoning_text = ""
        saw_function_call = False
        for part in parts or []:
            if not isinstance(part, dict):
                continue
            if "text" in part:
                text = get_str(part, "text")
                if part.get("thought"):
                    reasoning_text += text
                else:
                    delta += text
                    self.state.add_content_delta(text)
            elif isinstance(part.get("functionCall"), dict):
                self._register_function_call(part["functionCall"])
                saw_function_call = True

        reasoning = None
        if reasoning_text:
            reasoning = self.state.add_reasoning_delta(reasoning_text)

        if finish_reason:
            return self.state.create_chunk(
                delta,
                map_finish_reason(finish_reason),
                usage,
                reasoning=reasoning
            )

        if not delta and not saw_function_call:
            if reasoning is None:
                return None
            if not self.state.has_tool_calls:
                return self.state.create_reasoning_chunk(reasoning)

        return self.state.create_chunk(delta, reasoning=reasoning)

    def _register_function_call(self, function_call: Dict[str, Any]):
        name = get_str(function_call, "name")
        count = self._calls_per_name.get(name, 0)
        self._calls_per_name[name] = count + 1

        # Gemini assigns no call ids; the name is the id unless repeated
        call_id = get_str(function_call, "id") or (name if count == 0 else f"{name}_{count}")

        self.state.init_tool_call(call_id, name)
        self.state.set_tool_call_args(call_id, json.dumps(get_dict(function_call, "args")))


async def process_google_stream(
    lines: AsyncIterable[str],
    state: Optional[StreamState] = None
) -> AsyncIterator[StreamChunk]:
    """Decode a Gemini payload stream into StreamChunks."""
    decoder = GoogleStreamDecoder(state)
    async for event in iter_stream_events(lines, provider="google"):
        chunk = decoder.handle_chunk(event)
        if chunk is not None:
            yield chunk
