"""
aikit Adapters Module

Vendor stream decoders, and adapters that open the HTTP stream for each
vendor and feed it through the matching decoder.
"""

from typing import Dict, Optional, Type

import httpx

from .base import AdapterConfig, BaseStreamAdapter
from .openai_adapter import OpenAIChatAdapter, OpenAIResponsesAdapter
from .anthropic_adapter import AnthropicAdapter
from .google_adapter import GoogleAdapter
from .openai_stream import (
    OpenAIChatStreamDecoder,
    OpenAIResponsesStreamDecoder,
    process_chat_stream,
    process_responses_stream,
)
from .anthropic_stream import AnthropicStreamDecoder, process_anthropic_stream
from .google_stream import GoogleStreamDecoder, process_google_stream

__all__ = [
    "AdapterConfig",
    "BaseStreamAdapter",
    "OpenAIChatAdapter",
    "OpenAIResponsesAdapter",
    "AnthropicAdapter",
    "GoogleAdapter",
    "OpenAIChatStreamDecoder",
    "OpenAIResponsesStreamDecoder",
    "AnthropicStreamDecoder",
    "GoogleStreamDecoder",
    "process_chat_stream",
    "process_responses_stream",
    "process_anthropic_stream",
    "process_google_stream",
    "get_adapter_class",
    "create_adapter",
]

_ADAPTERS: Dict[str, Type[BaseStreamAdapter]] = {
    "openai": OpenAIChatAdapter,
    "openai_responses": OpenAIResponsesAdapter,
    "anthropic": AnthropicAdapter,
    "google": GoogleAdapter,
}


def get_adapter_class(provider: str) -> Type[BaseStreamAdapter]:
    """
    Look up the adapter class for a provider name.

    Raises:
        ValueError: If provider is not supported
    """
    adapter_class = _ADAPTERS.get(provider.lower())
    if not adapter_class:
        raise ValueError(f"Unsupported provider: {provider}")
    return adapter_class


def create_adapter(
    provider: str,
    config: Optional[AdapterConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> BaseStreamAdapter:
    """
    Factory function to get the appropriate adapter for a provider.

    Args:
        provider: "openai", "openai_responses", "anthropic" or "google"
        config: Adapter configuration; read from the environment when omitted
        transport: Optional httpx transport (tests use httpx.MockTransport)

    Raises:
        ValueError: If provider is not supported
        MissingAPIKeyError: If no API key is available
    """
    adapter_class = get_adapter_class(provider)
    if config is None:
        config = AdapterConfig.from_env(provider.lower())
    return adapter_class(config, transport=transport)
