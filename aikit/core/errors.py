"""
aikit - Error Definitions

Error taxonomy with infra vs semantic classification.

- Infra errors: transport failures, timeouts, non-2xx responses.
  Retryable when the provider may succeed on a second attempt.
- Semantic errors: the request or the generation itself failed
  (missing credentials, vendor-reported in-stream errors). Never retried.

Malformed individual stream lines are NOT errors: decoders skip them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import httpx


class ErrorType(str, Enum):
    """Error classification."""
    INFRA = "infra_error"
    SEMANTIC = "semantic_error"


@dataclass
class ErrorDetails:
    """Full error information."""
    code: str
    message: str
    type: ErrorType

    provider: Optional[str] = None
    request_id: str = ""

    retryable: bool = False
    retry_after: Optional[int] = None

    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "code": self.code,
            "message": self.message,
            "type": self.type.value,
            "retryable": self.retryable,
        }

        if self.provider:
            result["provider"] = self.provider
        if self.request_id:
            result["request_id"] = self.request_id
        if self.retry_after is not None:
            result["retry_after"] = self.retry_after
        if self.details:
            result["details"] = self.details

        return {"error": result}


class AIKitException(Exception):
    """Base exception for all aikit errors."""

    def __init__(self, error: ErrorDetails, status_code: int = 500):
        self.error = error
        self.status_code = status_code
        super().__init__(error.message)

    @property
    def retryable(self) -> bool:
        return self.error.retryable


# ============================================================
# Infra Errors
# ============================================================

class InfraError(AIKitException):
    """Base class for infrastructure errors."""
    pass


class APIStatusError(InfraError):
    """Provider answered with a non-2xx status before streaming began."""

    RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

    def __init__(
        self,
        status: int,
        status_text: str = "",
        body: str = "",
        provider: Optional[str] = None,
        request_id: str = ""
    ):
        details: Dict[str, Any] = {}
        if body:
            details["body"] = body
        super().__init__(
            ErrorDetails(
                code=f"http_{status}",
                message=f"API error: {status} {status_text}",
                type=ErrorType.INFRA,
                provider=provider,
                request_id=request_id,
                retryable=status in self.RETRYABLE_STATUS_CODES,
                details=details
            ),
            status_code=status
        )
        self.status = status
        self.status_text = status_text
        self.body = body


class ConnectionTimeoutError(InfraError):
    """Failed to connect to provider."""

    def __init__(self, provider: str, request_id: str = ""):
        super().__init__(
            ErrorDetails(
                code="connection_timeout",
                message=f"Failed to connect to {provider} API within timeout",
                type=ErrorType.INFRA,
                provider=provider,
                request_id=request_id,
                retryable=True,
                retry_after=5
            ),
            status_code=504
        )


class ReadTimeoutError(InfraError):
    """Provider did not respond in time."""

    def __init__(self, provider: str, request_id: str = ""):
        super().__init__(
            ErrorDetails(
                code="read_timeout",
                message=f"{provider} did not respond within timeout",
                type=ErrorType.INFRA,
                provider=provider,
                request_id=request_id,
                retryable=True,
                retry_after=10
            ),
            status_code=504
        )


class ConnectionFailedError(InfraError):
    """Transport-level failure other than a timeout."""

    def __init__(self, provider: str, message: str = "", request_id: str = ""):
        super().__init__(
            ErrorDetails(
                code="connection_failed",
                message=message or f"Failed to connect to {provider} API",
                type=ErrorType.INFRA,
                provider=provider,
                request_id=request_id,
                retryable=True
            ),
            status_code=502
        )


# ============================================================
# Semantic Errors
# ============================================================

class SemanticError(AIKitException):
    """Base class for semantic errors (never retried)."""
    pass


class MissingAPIKeyError(SemanticError):
    """No API key configured for a provider."""

    def __init__(self, provider: str):
        super().__init__(
            ErrorDetails(
                code="missing_api_key",
                message=f"{provider} API key is required",
                type=ErrorType.SEMANTIC,
                provider=provider,
                retryable=False
            ),
            status_code=401
        )


class ProviderStreamError(SemanticError):
    """A vendor reported an error inside an otherwise healthy stream."""

    def __init__(
        self,
        provider: str,
        error_type: str,
        message: str,
        formatted: Optional[str] = None
    ):
        super().__init__(
            ErrorDetails(
                code=error_type or "stream_error",
                message=formatted or f"{provider} API error: {error_type} - {message}",
                type=ErrorType.SEMANTIC,
                provider=provider,
                retryable=False,
                details={"error_type": error_type, "vendor_message": message}
            ),
            status_code=502
        )
        self.error_type = error_type
        self.vendor_message = message


class AnthropicStreamError(ProviderStreamError):
    """Anthropic `error` event received mid-stream."""

    def __init__(self, error_type: str, message: str):
        super().__init__(
            provider="anthropic",
            error_type=error_type,
            message=message,
            formatted=f"Anthropic API error: {error_type} - {message}"
        )


# ============================================================
# Mapping
# ============================================================

def handle_http_error(
    exc: Exception,
    provider: str,
    request_id: str = ""
) -> AIKitException:
    """
    Convert a transport exception to an aikit error.

    Already-converted errors are returned unchanged.
    """
    if isinstance(exc, AIKitException):
        return exc

    if isinstance(exc, httpx.ConnectTimeout):
        return ConnectionTimeoutError(provider, request_id)

    if isinstance(exc, httpx.TimeoutException):
        return ReadTimeoutError(provider, request_id)

    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        return APIStatusError(
            status=response.status_code,
            status_text=response.reason_phrase,
            provider=provider,
            request_id=request_id
        )

    if isinstance(exc, httpx.TransportError):
        return ConnectionFailedError(provider, str(exc), request_id)

    return InfraError(
        ErrorDetails(
            code="internal_error",
            message=str(exc) or exc.__class__.__name__,
            type=ErrorType.INFRA,
            provider=provider,
            request_id=request_id,
            retryable=False
        )
    )
