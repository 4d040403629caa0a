"""
aikit - SSE Framing

Turns raw Server-Sent-Events text lines into payload strings, and payload
strings into parsed vendor events.

The literal `[DONE]` payload terminates decoding for every vendor. Lines
that are not valid JSON objects are skipped; they never abort a stream.
"""

import json
from typing import Any, AsyncIterable, AsyncIterator, Dict, List, Optional

from ..observability.logging import get_logger

logger = get_logger(__name__)

DONE_SENTINEL = "[DONE]"
DATA_PREFIX = "data:"


def is_done(data: str) -> bool:
    """Check if a payload is the end-of-stream sentinel."""
    return data.strip() == DONE_SENTINEL


async def extract_data_lines(lines: AsyncIterable[str]) -> AsyncIterator[str]:
    """
    Yield the payload of every `data:` line.

    `event:`, `id:`, `retry:`, comment and blank lines are dropped, as
    are empty payloads. The `[DONE]` sentinel is passed through so the
    decoder downstream can stop on it.
    """
    async for line in lines:
        line = line.rstrip("\r\n")
        if not line.startswith(DATA_PREFIX):
            continue

        data = line[len(DATA_PREFIX):]
        if data.startswith(" "):
            data = data[1:]

        if not data.strip():
            continue

        yield data


def parse_stream_event(data: str) -> Optional[Dict[str, Any]]:
    """Parse one payload as a JSON object, None if it is anything else."""
    try:
        event = json.loads(data)
    except json.JSONDecodeError:
        return None
    if not isinstance(event, dict):
        return None
    return event


# ============================================================
# Event field access
# ============================================================

def get_dict(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    """Nested object field, `{}` when missing or not an object."""
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def get_list(data: Dict[str, Any], key: str) -> List[Any]:
    value = data.get(key)
    return value if isinstance(value, list) else []


def get_str(data: Dict[str, Any], key: str) -> str:
    """Text field, `""` when missing or not a string."""
    value = data.get(key)
    return value if isinstance(value, str) else ""


async def iter_stream_events(
    lines: AsyncIterable[str],
    provider: str = ""
) -> AsyncIterator[Dict[str, Any]]:
    """
    Shared decode loop: stop at `[DONE]`, skip malformed payloads.

    Lines after the sentinel are never pulled from the source.
    """
    async for data in lines:
        if is_done(data):
            return

        if not data.strip():
            continue

        event = parse_stream_event(data)
        if event is None:
            logger.debug(
                "Skipping malformed stream payload",
                provider=provider,
                payload_preview=data[:80]
            )
            continue

        yield event
