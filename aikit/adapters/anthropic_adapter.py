"""
aikit - Anthropic Stream Adapter

Adapter for the Anthropic Messages API (`POST /v1/messages`).
"""

from typing import Any, AsyncIterable, AsyncIterator, Dict

from .anthropic_stream import process_anthropic_stream
from .base import BaseStreamAdapter
from ..core.models import Provider, StreamChunk
from ..streaming.state import StreamState


class AnthropicAdapter(BaseStreamAdapter):
    """
    Adapter for Anthropic Claude streaming.

    Note: in-stream `error` events surface as AnthropicStreamError, even
    after content has been yielded.
    """

    provider = Provider.ANTHROPIC
    DEFAULT_BASE_URL = "https://api.anthropic.com"
    API_VERSION = "2023-06-01"
    DEFAULT_MAX_TOKENS = 4096

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.config.api_key,
            "anthropic-version": self.API_VERSION,
        }

    def _endpoint(self, payload: Dict[str, Any]) -> str:
        return "/v1/messages"

    def _build_body(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = super()._build_body(payload)
        body["stream"] = True
        # Anthropic requires max_tokens
        body.setdefault("max_tokens", self.DEFAULT_MAX_TOKENS)
        return body

    def decode(
        self,
        data_lines: AsyncIterable[str],
        state: StreamState
    ) -> AsyncIterator[StreamChunk]:
        return process_anthropic_stream(data_lines, state)
