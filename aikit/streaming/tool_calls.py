"""
aikit - Tool Call Accumulation

Vendors stream tool-call arguments as arbitrary substrings of a JSON
object. No prefix is guaranteed to parse on its own; only the final
concatenation is expected to be well-formed, and even that is not always
honored. Accumulation therefore never parses eagerly, and finalization
degrades malformed JSON to an empty object instead of failing.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..core.models import ToolCall


def parse_or_default(
    text: Optional[str],
    fallback: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Parse `text` as a JSON object, returning `fallback` on any failure.

    Never raises. Valid JSON that is not an object (a list, a bare string)
    also yields the fallback, since tool arguments are always objects.
    """
    default: Dict[str, Any] = {} if fallback is None else fallback
    if not text or not text.strip():
        return default

    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return default

    if not isinstance(value, dict):
        return default
    return value


@dataclass
class ToolCallAccumulator:
    """
    Accumulates one streaming tool call.

    Tool calls arrive in pieces:
    - First: id and function name
    - Then: argument fragments (partial JSON strings)
    - Finally: finalize() parses the concatenation
    """
    name: str = ""
    arguments: str = ""

    def append(self, fragment: Optional[str]):
        """Concatenate an argument fragment. No parsing happens here."""
        if fragment:
            self.arguments += fragment

    def replace(self, arguments: str):
        """Replace the raw argument text with an authoritative value."""
        self.arguments = arguments

    def finalize(self) -> Dict[str, Any]:
        """Parse the accumulated arguments, `{}` if they are not valid JSON."""
        return parse_or_default(self.arguments)

    def to_tool_call(self, call_id: str) -> ToolCall:
        return ToolCall(id=call_id, name=self.name, arguments=self.finalize())
