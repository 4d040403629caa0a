"""
aikit - Tool Call Accumulation Tests

Verifies:
- Fragments are concatenated without eager parsing
- Finalization parses the concatenation
- Malformed or non-object JSON degrades to {}
"""

from aikit.core.models import ToolCall
from aikit.streaming.tool_calls import ToolCallAccumulator, parse_or_default


# ============================================================
# parse_or_default
# ============================================================

class TestParseOrDefault:
    """Test the never-raising JSON object parser."""

    def test_parses_object(self):
        assert parse_or_default('{"a": 1, "b": [true]}') == {"a": 1, "b": [True]}

    def test_empty_and_blank_text(self):
        assert parse_or_default("") == {}
        assert parse_or_default("   ") == {}
        assert parse_or_default(None) == {}

    def test_malformed_json_returns_fallback(self):
        assert parse_or_default('{"invalid": malformed') == {}
        assert parse_or_default('{"x":', fallback={"default": True}) == {"default": True}

    def test_non_object_json_returns_fallback(self):
        """Tool arguments are always objects."""
        assert parse_or_default("[1, 2]") == {}
        assert parse_or_default('"text"') == {}
        assert parse_or_default("null") == {}

    def test_fallback_not_used_on_success(self):
        assert parse_or_default("{}", fallback={"x": 1}) == {}


# ============================================================
# ToolCallAccumulator
# ============================================================

class TestToolCallAccumulator:
    """Test streaming argument accumulation."""

    def test_fragments_round_trip(self):
        """Fragments only parse once concatenated."""
        acc = ToolCallAccumulator(name="get_weather")
        acc.append('{"location":')
        acc.append(' "SF"}')

        assert acc.arguments == '{"location": "SF"}'
        assert acc.finalize() == {"location": "SF"}

    def test_prefix_is_not_parsed_eagerly(self):
        acc = ToolCallAccumulator()
        acc.append('{"loc')
        assert acc.arguments == '{"loc'

    def test_malformed_fragments_finalize_to_empty(self):
        acc = ToolCallAccumulator(name="broken")
        acc.append('{"invalid":')
        acc.append(" malformed")

        assert acc.finalize() == {}

    def test_empty_fragments_ignored(self):
        acc = ToolCallAccumulator()
        acc.append("")
        acc.append(None)
        assert acc.arguments == ""
        assert acc.finalize() == {}

    def test_replace(self):
        acc = ToolCallAccumulator()
        acc.append('{"partial":')
        acc.replace('{"complete": 1}')
        assert acc.finalize() == {"complete": 1}

    def test_to_tool_call(self):
        acc = ToolCallAccumulator(name="search", arguments='{"q": "python"}')
        assert acc.to_tool_call("call_1") == ToolCall(
            id="call_1", name="search", arguments={"q": "python"}
        )
