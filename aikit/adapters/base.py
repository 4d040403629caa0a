"""
aikit - Provider Adapter Base

Abstract base class for streaming provider adapters.
Each provider (OpenAI Chat, OpenAI Responses, Anthropic, Google) implements
this interface on top of its stream decoder.

The adapter is responsible for:
1. Adding the streaming flags to a caller-supplied vendor payload
2. Opening the HTTP stream with the provider's auth headers
3. Framing the SSE body and handing it to the vendor decoder
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncIterable, AsyncIterator, Dict, Optional

import httpx

from .. import config as settings
from ..core.errors import MissingAPIKeyError
from ..core.http_client import RetryConfig, StreamingHttpClient
from ..core.models import Provider, StreamChunk
from ..observability.logging import LogContext, get_logger
from ..streaming.sse import extract_data_lines
from ..streaming.state import StreamState

logger = get_logger(__name__)


@dataclass
class AdapterConfig:
    """Configuration for a provider adapter."""
    api_key: str
    base_url: Optional[str] = None
    model: Optional[str] = None
    timeout: float = 30
    max_retries: int = 1

    @classmethod
    def from_env(cls, provider: str) -> "AdapterConfig":
        """
        Build a config from the environment.

        Raises:
            MissingAPIKeyError: no key is set for the provider
            ValueError: unknown provider or invalid numeric settings
        """
        api_key = settings.get_api_key(provider)
        if not api_key:
            raise MissingAPIKeyError(provider)

        return cls(
            api_key=api_key,
            base_url=settings.get_base_url(provider),
            model=settings.get_default_model(provider),
            timeout=settings.get_timeout(),
            max_retries=settings.get_max_retries(),
        )


class BaseStreamAdapter(ABC):
    """
    Abstract base class for streaming adapters.

    Subclasses declare:
    - provider / DEFAULT_BASE_URL
    - _headers: auth headers
    - _endpoint: request path for a payload
    - decode: the vendor decoder over payload strings

    Usage:
        adapter = OpenAIChatAdapter(AdapterConfig(api_key="sk-..."))
        async for chunk in adapter.stream({"model": "gpt-4o", "messages": [...]}):
            print(chunk.delta, end="")
        await adapter.aclose()
    """

    provider: Provider
    DEFAULT_BASE_URL: str = ""

    def __init__(
        self,
        config: AdapterConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if not config.api_key:
            raise MissingAPIKeyError(self.provider.value)

        self.config = config
        self.base_url = config.base_url or self.DEFAULT_BASE_URL
        self.client = StreamingHttpClient(
            base_url=self.base_url,
            headers=self._headers(),
            provider=self.provider.value,
            timeout=config.timeout,
            retry_config=RetryConfig(max_retries=max(1, config.max_retries)),
            transport=transport
        )

    @abstractmethod
    def _headers(self) -> Dict[str, str]:
        pass

    @abstractmethod
    def _endpoint(self, payload: Dict[str, Any]) -> str:
        pass

    @abstractmethod
    def decode(
        self,
        data_lines: AsyncIterable[str],
        state: StreamState
    ) -> AsyncIterator[StreamChunk]:
        """Decode framed payload strings into chunks."""
        pass

    def _build_body(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Copy the payload, filling in the configured model. Override to add stream flags."""
        body = dict(payload)
        if self.config.model and "model" not in body:
            body["model"] = self.config.model
        return body

    def _new_state(self) -> StreamState:
        return StreamState()

    async def stream(
        self,
        payload: Dict[str, Any],
        request_id: Optional[str] = None
    ) -> AsyncIterator[StreamChunk]:
        """
        Stream one generation.

        Args:
            payload: Vendor-shaped request body (messages, tools, ...)
            request_id: Correlation ID for logs and errors

        Yields:
            StreamChunks in vendor order; at most one carries a finish reason.

        Raises:
            APIStatusError: non-2xx response
            InfraError: transport failures after retries
            AnthropicStreamError: in-stream Anthropic error event
        """
        request_id = request_id or f"req_{uuid.uuid4().hex[:12]}"
        endpoint = self._endpoint(payload)
        body = self._build_body(payload)
        state = self._new_state()
        log_context = LogContext(
            request_id=request_id,
            provider=self.provider.value,
            model=str(payload.get("model") or self.config.model or "")
        )

        with log_context.bind():
            logger.debug("Starting stream", endpoint=endpoint)

        lines = self.client.stream_lines(endpoint, body, request_id=request_id)
        chunks = self.decode(extract_data_lines(lines), state)
        chunk_count = 0
        finish_reason = None
        try:
            while True:
                # bound per step; the caller's context is back in place at each yield
                with log_context.bind():
                    try:
                        chunk = await chunks.__anext__()
                    except StopAsyncIteration:
                        break
                chunk_count += 1
                if chunk.finish_reason is not None:
                    finish_reason = chunk.finish_reason
                yield chunk
        finally:
            # decoders may stop before the body is drained
            await lines.aclose()

        with log_context.bind():
            logger.debug(
                "Stream finished",
                chunks=chunk_count,
                finish_reason=finish_reason.value if finish_reason else None
            )

    async def aclose(self):
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
