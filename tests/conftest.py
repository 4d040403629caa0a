"""
aikit - Pytest Configuration

Configures:
- Integration test markers (skip by default)
- A controllable clock for timing assertions
- Async payload sources standing in for a decoded SSE body
"""

import json
import os
from typing import Any, AsyncIterator, Callable, List, Optional, Union

import pytest


# ============================================================
# Environment Configuration
# ============================================================

def _is_truthy(value: Optional[str]) -> bool:
    """Check if environment variable is truthy."""
    if value is None:
        return False
    return value.lower() in ("1", "true", "yes", "on")


RUN_INTEGRATION = _is_truthy(os.getenv("RUN_INTEGRATION"))


# ============================================================
# Pytest Markers
# ============================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires RUN_INTEGRATION=1)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless RUN_INTEGRATION=1."""
    skip_integration = pytest.mark.skip(
        reason="Integration test - set RUN_INTEGRATION=1 to run"
    )

    for item in items:
        if "integration" in item.keywords and not RUN_INTEGRATION:
            item.add_marker(skip_integration)


# ============================================================
# Clock
# ============================================================

class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


# ============================================================
# Payload sources
# ============================================================

Payload = Union[str, dict, list]


def _encode(item: Payload) -> str:
    if isinstance(item, str):
        return item
    return json.dumps(item)


@pytest.fixture
def payloads() -> Callable[..., AsyncIterator[str]]:
    """
    Build an async payload source from events.

    Dicts are JSON-encoded, strings are passed through verbatim (so
    "[DONE]" and malformed payloads can be mixed in).

    Usage:
        async for chunk in process_chat_stream(payloads({"choices": [...]}, "[DONE]")):
            ...
    """
    def factory(*items: Payload) -> AsyncIterator[str]:
        async def source():
            for item in items:
                yield _encode(item)
        return source()

    return factory


@pytest.fixture
def sse_body() -> Callable[..., bytes]:
    """Render events as a raw `text/event-stream` body."""
    def factory(*items: Payload, event_names: bool = False) -> bytes:
        lines: List[str] = []
        for item in items:
            if event_names and isinstance(item, dict) and "type" in item:
                lines.append(f"event: {item['type']}")
            lines.append(f"data: {_encode(item)}")
            lines.append("")
        return ("\n".join(lines) + "\n").encode("utf-8")

    return factory


async def drain(stream) -> List[Any]:
    return [item async for item in stream]


@pytest.fixture
def collect():
    """Return an awaitable that drains an async iterator into a list."""
    return drain
