"""
aikit - Unified streaming for LLM providers

Normalizes the streaming protocols of OpenAI (Chat Completions and
Responses), Anthropic and Google Gemini into one sequence of StreamChunk
objects.

Usage:
    from aikit import create_adapter, collect_stream

    adapter = create_adapter("anthropic")
    result = await collect_stream(adapter.stream({
        "model": "claude-3-5-sonnet-20241022",
        "messages": [{"role": "user", "content": "Hello"}],
    }))
"""

__version__ = "0.1.0"

from .core.errors import (
    AIKitException,
    AnthropicStreamError,
    APIStatusError,
    InfraError,
    ProviderStreamError,
    SemanticError,
)
from .core.models import (
    FinishReason,
    GenerationUsage,
    Provider,
    ReasoningDelta,
    StreamChunk,
    StreamResult,
    ToolCall,
)
from .streaming import (
    StreamState,
    collect_deltas,
    collect_stream,
    process_stream,
)
from .adapters import (
    AdapterConfig,
    BaseStreamAdapter,
    create_adapter,
    process_anthropic_stream,
    process_chat_stream,
    process_google_stream,
    process_responses_stream,
)

__all__ = [
    "__version__",
    "AIKitException",
    "AnthropicStreamError",
    "APIStatusError",
    "InfraError",
    "ProviderStreamError",
    "SemanticError",
    "FinishReason",
    "GenerationUsage",
    "Provider",
    "ReasoningDelta",
    "StreamChunk",
    "StreamResult",
    "ToolCall",
    "StreamState",
    "collect_deltas",
    "collect_stream",
    "process_stream",
    "AdapterConfig",
    "BaseStreamAdapter",
    "create_adapter",
    "process_anthropic_stream",
    "process_chat_stream",
    "process_google_stream",
    "process_responses_stream",
]
