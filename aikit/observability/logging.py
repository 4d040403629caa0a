"""
aikit - Structured Logging

Thin structured wrapper over the stdlib logging module.

Features:
- JSON-formatted records for easy parsing
- Automatic stream context injection (provider, model, request_id)
- Level and format configurable via environment (LOG_LEVEL, LOG_FORMAT)
- Sensitive field redaction (API keys never reach the log)

Usage:
    from aikit.observability.logging import get_logger

    logger = get_logger(__name__)
    logger.debug("Skipping malformed payload", provider="anthropic")
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional, Union

from ..config import get_log_settings

_stream_context: ContextVar[Optional["LogContext"]] = ContextVar("aikit_log_context", default=None)


@dataclass
class LogContext:
    """
    Correlation fields attached to every record emitted while set.

    Stored in a contextvar so concurrent streams on one event loop do not
    see each other's context. `BaseStreamAdapter.stream` binds one per
    call around every step it takes, so records from the transport and
    the decoders carry the provider, model and request id. Callers bind
    their own context the same way:

        with LogContext(request_id="req_1", provider="openai").bind():
            logger.info("Calling provider")
    """
    request_id: str = ""
    provider: str = ""
    model: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def get_current(cls) -> Optional["LogContext"]:
        return _stream_context.get()

    @classmethod
    def set_current(cls, ctx: Optional["LogContext"]):
        return _stream_context.set(ctx)

    @classmethod
    def reset(cls, token) -> None:
        _stream_context.reset(token)

    @contextmanager
    def bind(self) -> Iterator["LogContext"]:
        """Make this the current context until the block exits."""
        token = _stream_context.set(self)
        try:
            yield self
        finally:
            _stream_context.reset(token)

    def to_dict(self) -> Dict[str, Any]:
        result = {}
        if self.request_id:
            result["request_id"] = self.request_id
        if self.provider:
            result["provider"] = self.provider
        if self.model:
            result["model"] = self.model
        result.update(self.extra)
        return result


_RESERVED_ATTRS = {
    "name", "msg", "args", "created", "filename",
    "funcName", "levelname", "levelno", "lineno",
    "module", "msecs", "pathname", "process",
    "processName", "relativeCreated", "stack_info",
    "exc_info", "exc_text", "thread", "threadName",
    "message", "taskName",
}


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter with context injection.

    Output format:
    {"timestamp": "...", "level": "DEBUG", "logger": "aikit.adapters...",
     "message": "...", "provider": "openai", ...}
    """

    SENSITIVE_FIELDS = {
        "password", "secret", "token", "api_key", "apikey",
        "authorization", "auth", "credential", "private_key",
    }

    def __init__(self, redact_sensitive: bool = True):
        super().__init__()
        self.redact_sensitive = redact_sensitive

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        ctx = LogContext.get_current()
        if ctx:
            log_data.update(ctx.to_dict())

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            if self.redact_sensitive and self._is_sensitive(key):
                value = "[REDACTED]"
            log_data[key] = value

        return json.dumps(log_data, default=str, ensure_ascii=False)

    def _is_sensitive(self, field_name: str) -> bool:
        # token counts are not secrets
        field_lower = field_name.lower()
        if field_lower.endswith("_tokens"):
            return False
        return any(sensitive in field_lower for sensitive in self.SENSITIVE_FIELDS)


class StructuredLogger:
    """
    Logger wrapper accepting structured keyword fields.

        logger.warning("Request failed", status=503, attempt=2)
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def is_enabled_for(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    def _log(self, level: int, msg: str, *args, **kwargs):
        if not self._logger.isEnabledFor(level):
            return

        extra = kwargs.pop("extra", {})

        ctx = LogContext.get_current()
        if ctx:
            extra.update(ctx.to_dict())

        for key in list(kwargs.keys()):
            if key not in {"exc_info", "stack_info", "stacklevel"}:
                extra[key] = kwargs.pop(key)

        kwargs["extra"] = extra
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs):
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self._log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        kwargs["exc_info"] = True
        self._log(logging.ERROR, msg, *args, **kwargs)


_logging_configured = False


def setup_logging(
    level: Union[str, int] = "WARNING",
    json_output: bool = True,
    redact_sensitive: bool = True,
) -> None:
    """
    Configure the `aikit` logger hierarchy.

    Only the library's own logger is touched; the root logger and the
    host application's handlers are left alone.

    Args:
        level: Log level name or number
        json_output: Use JSONFormatter (True) or a plain text format (False)
        redact_sensitive: Redact fields like api_key / authorization
    """
    global _logging_configured

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    library_logger = logging.getLogger("aikit")
    library_logger.setLevel(level)

    for handler in library_logger.handlers[:]:
        library_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if json_output:
        formatter: logging.Formatter = JSONFormatter(redact_sensitive=redact_sensitive)
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)
    library_logger.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    _logging_configured = True


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger, configuring the library logger on first use.

    Args:
        name: Logger name (typically __name__)
    """
    if not _logging_configured:
        settings = get_log_settings()
        setup_logging(level=settings.level, json_output=settings.json_output)

    return StructuredLogger(logging.getLogger(name))
