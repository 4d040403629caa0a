"""
aikit - OpenAI Stream Adapters

Chat Completions (`POST /chat/completions`) and Responses
(`POST /responses`) share credentials and base URL but speak different
stream protocols, so each gets its own adapter.
"""

from typing import Any, AsyncIterable, AsyncIterator, Dict

from .base import BaseStreamAdapter
from .openai_stream import process_chat_stream, process_responses_stream
from ..core.models import Provider, StreamChunk
from ..streaming.state import StreamState


class _OpenAIBase(BaseStreamAdapter):
    DEFAULT_BASE_URL = "https://api.openai.com/v1"

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.config.api_key}"}


class OpenAIChatAdapter(_OpenAIBase):
    """
    Adapter for the Chat Completions stream.

    Usage is always requested, so the stream ends with a usage-only chunk
    that the decoder folds into the result.
    """

    provider = Provider.OPENAI

    def _endpoint(self, payload: Dict[str, Any]) -> str:
        return "/chat/completions"

    def _build_body(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = super()._build_body(payload)
        body["stream"] = True
        stream_options = dict(body.get("stream_options") or {})
        stream_options.setdefault("include_usage", True)
        body["stream_options"] = stream_options
        return body

    def decode(
        self,
        data_lines: AsyncIterable[str],
        state: StreamState
    ) -> AsyncIterator[StreamChunk]:
        return process_chat_stream(data_lines, state)


class OpenAIResponsesAdapter(_OpenAIBase):
    """Adapter for the Responses API event stream."""

    provider = Provider.OPENAI_RESPONSES

    def _endpoint(self, payload: Dict[str, Any]) -> str:
        return "/responses"

    def _build_body(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = super()._build_body(payload)
        body["stream"] = True
        return body

    def decode(
        self,
        data_lines: AsyncIterable[str],
        state: StreamState
    ) -> AsyncIterator[StreamChunk]:
        return process_responses_stream(data_lines, state)
