"""
aikit - Streaming HTTP Client

The SSE line source: POSTs a JSON body and yields the response body one
text line at a time.

- Non-2xx responses raise APIStatusError before any line is produced
- Exponential backoff retry (with jitter), only before the first line;
  once a line has been yielded the stream is never replayed
- Request ID correlation in logs
"""

import asyncio
import random
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Optional, Set

import httpx

from ..observability.logging import get_logger
from .errors import AIKitException, APIStatusError, handle_http_error

logger = get_logger(__name__)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 1  # total attempts
    base_delay: float = 1.0  # seconds
    max_delay: float = 16.0  # seconds
    exponential_base: float = 2.0
    jitter_factor: float = 0.25
    retryable_status_codes: Set[int] = field(
        default_factory=lambda: {429, 500, 502, 503, 504}
    )


def calculate_backoff(attempt: int, config: RetryConfig) -> float:
    """
    Calculate delay with exponential backoff and jitter.

    Sequence with defaults: 1s, 2s, 4s, 8s, 16s (+/-25% jitter).
    A zero base delay disables waiting entirely.
    """
    if config.base_delay <= 0:
        return 0.0

    delay = min(config.base_delay * (config.exponential_base ** attempt), config.max_delay)
    jitter_range = delay * config.jitter_factor
    delay = delay + random.uniform(-jitter_range, jitter_range)
    return max(0.1, delay)


class StreamingHttpClient:
    """
    httpx-backed SSE line source.

    Usage:
        client = StreamingHttpClient(
            base_url="https://api.openai.com/v1",
            headers={"Authorization": "Bearer ..."},
            provider="openai",
        )
        async for line in client.stream_lines("/chat/completions", body):
            ...
        await client.aclose()
    """

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        provider: str = "",
        timeout: Optional[float] = None,
        retry_config: Optional[RetryConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.provider = provider
        self.retry_config = retry_config or RetryConfig()
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Content-Type": "application/json", **(headers or {})},
            timeout=timeout,
            transport=transport
        )

    async def aclose(self):
        if not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "StreamingHttpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    def _is_retryable(self, error: AIKitException) -> bool:
        if isinstance(error, APIStatusError):
            return error.status in self.retry_config.retryable_status_codes
        return error.retryable

    async def stream_lines(
        self,
        endpoint: str,
        body: Dict[str, Any],
        request_id: Optional[str] = None
    ) -> AsyncIterator[str]:
        """
        POST `body` to `endpoint` and yield response lines.

        Raises:
            APIStatusError: non-2xx status ("API error: {status} {statusText}")
            ConnectionTimeoutError / ReadTimeoutError / ConnectionFailedError:
                transport failures, after retries are exhausted
        """
        request_id = request_id or f"req_{uuid.uuid4().hex[:12]}"
        started = False
        attempt = 0

        while True:
            attempt += 1
            start_time = time.perf_counter()
            try:
                async with self._client.stream("POST", endpoint, json=body) as response:
                    if not response.is_success:
                        error_body = await response.aread()
                        raise APIStatusError(
                            status=response.status_code,
                            status_text=response.reason_phrase,
                            body=error_body.decode("utf-8", errors="replace"),
                            provider=self.provider,
                            request_id=request_id
                        )

                    logger.debug(
                        "Stream opened",
                        endpoint=endpoint,
                        status=response.status_code,
                        attempt=attempt,
                        latency_ms=round((time.perf_counter() - start_time) * 1000, 2)
                    )

                    async for line in response.aiter_lines():
                        started = True
                        yield line
                    return

            except (httpx.HTTPError, APIStatusError) as e:
                error = handle_http_error(e, self.provider, request_id)
                if started or attempt >= self.retry_config.max_retries or not self._is_retryable(error):
                    logger.warning(
                        "Stream request failed",
                        endpoint=endpoint,
                        attempt=attempt,
                        error=str(error),
                        stream_started=started
                    )
                    if error is e:
                        raise
                    raise error from e

                delay = calculate_backoff(attempt - 1, self.retry_config)
                logger.warning(
                    "Retrying stream request",
                    endpoint=endpoint,
                    attempt=attempt,
                    max_attempts=self.retry_config.max_retries,
                    delay_s=round(delay, 2),
                    error=str(error)
                )
                await asyncio.sleep(delay)
