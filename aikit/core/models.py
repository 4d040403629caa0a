"""
aikit - Unified Data Models

Provider-agnostic types produced by every stream decoder.

Every vendor stream (OpenAI Chat, OpenAI Responses, Anthropic, Google) is
normalized into a sequence of StreamChunk objects. Chunks are cumulative:
`content` holds the full text so far and `delta` the text added by that
chunk only.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional


class Provider(str, Enum):
    """Supported vendor protocols."""
    OPENAI = "openai"
    OPENAI_RESPONSES = "openai_responses"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"


class FinishReason(str, Enum):
    """Why a generation stopped. Only present on the terminal chunk."""
    STOP = "stop"
    LENGTH = "length"
    TOOL_USE = "tool_use"
    ERROR = "error"


@dataclass
class ToolCall:
    """A finalized tool call with parsed arguments."""
    id: str
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "arguments": self.arguments}


@dataclass
class ReasoningDelta:
    """Reasoning (thinking) text: accumulated total plus this chunk's part."""
    content: str
    delta: str

    def to_dict(self) -> Dict[str, Any]:
        return {"content": self.content, "delta": self.delta}


# snake_case field -> wire key
_USAGE_KEYS = {
    "input_tokens": "inputTokens",
    "output_tokens": "outputTokens",
    "total_tokens": "totalTokens",
    "reasoning_tokens": "reasoningTokens",
    "cache_tokens": "cacheTokens",
    "time_to_first_token": "timeToFirstToken",
    "total_time": "totalTime",
}


@dataclass
class GenerationUsage:
    """
    Token and timing accounting for one generation.

    All fields are optional; vendors report different subsets. Timing
    fields are integer milliseconds.
    """
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    reasoning_tokens: Optional[int] = None
    cache_tokens: Optional[int] = None
    time_to_first_token: Optional[int] = None
    total_time: Optional[int] = None

    def is_empty(self) -> bool:
        """Check if no field has been reported."""
        return all(getattr(self, f.name) is None for f in fields(self))

    def merge(self, other: Optional["GenerationUsage"]) -> "GenerationUsage":
        """Return a new usage where fields set on `other` win."""
        merged = GenerationUsage(**{f.name: getattr(self, f.name) for f in fields(self)})
        if other is None:
            return merged
        for f in fields(other):
            value = getattr(other, f.name)
            if value is not None:
                setattr(merged, f.name, value)
        return merged

    def to_dict(self) -> Dict[str, Any]:
        """Convert to wire format, omitting unreported fields."""
        return {
            wire_key: getattr(self, name)
            for name, wire_key in _USAGE_KEYS.items()
            if getattr(self, name) is not None
        }


@dataclass
class StreamChunk:
    """
    One user-visible increment of a generation.

    Constructed fresh per decoded event and never mutated after being
    yielded.
    """
    content: str
    delta: str = ""
    reasoning: Optional[ReasoningDelta] = None
    tool_calls: Optional[List[ToolCall]] = None
    finish_reason: Optional[FinishReason] = None
    usage: Optional[GenerationUsage] = None

    @property
    def is_terminal(self) -> bool:
        return self.finish_reason is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase wire shape."""
        result: Dict[str, Any] = {
            "content": self.content,
            "delta": self.delta,
        }

        if self.reasoning is not None:
            result["reasoning"] = self.reasoning.to_dict()

        if self.tool_calls is not None:
            result["toolCalls"] = [tc.to_dict() for tc in self.tool_calls]

        if self.finish_reason is not None:
            result["finishReason"] = self.finish_reason.value

        if self.usage is not None:
            result["usage"] = self.usage.to_dict()

        return result


@dataclass
class StreamResult:
    """Aggregate of a fully consumed stream."""
    content: str = ""
    reasoning: Optional[str] = None
    finish_reason: Optional[FinishReason] = None
    tool_calls: Optional[List[ToolCall]] = None
    usage: Optional[GenerationUsage] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"content": self.content}
        if self.reasoning is not None:
            result["reasoning"] = self.reasoning
        if self.finish_reason is not None:
            result["finishReason"] = self.finish_reason.value
        if self.tool_calls is not None:
            result["toolCalls"] = [tc.to_dict() for tc in self.tool_calls]
        if self.usage is not None:
            result["usage"] = self.usage.to_dict()
        return result
