"""Tests for agent_task_core.reducer — priority reduction and error formatting."""

from __future__ import annotations

from agent_task_core.reducer import (
    NO_OUTPUT_SENTINEL,
    canonical_json,
    first_fragment_text,
    format_error,
    outcome_text,
    reduce_events,
)
from agent_task_core.types import AssistantEvent, TextFragment

from .conftest import assistant, other, result


class TestReduceEvents:
    """Test the three-level priority rule."""

    def test_result_takes_priority_over_assistant(self) -> None:
        """A ResultEvent anywhere in the buffer wins."""
        events = [assistant("A"), other(), result("R"), assistant("B")]
        assert reduce_events(events) == "R"

    def test_first_result_wins(self) -> None:
        """Later ResultEvents are ignored."""
        assert reduce_events([result("one"), result("two")]) == "one"

    def test_error_result_returned_as_text(self) -> None:
        """Error-marked results are not distinguished from successes."""
        assert reduce_events([result("Permission denied", is_error=True)]) == (
            "Permission denied"
        )

    def test_last_assistant_first_fragment(self) -> None:
        """Without a result, the last assistant event's first fragment is used."""
        events = [assistant("one"), assistant("two", "three"), other("user")]
        assert reduce_events(events) == "two"

    def test_first_fragment_without_text_falls_through(self) -> None:
        """A leading non-text fragment does not fall back to later fragments."""
        event = AssistantEvent(
            fragments=(
                TextFragment(kind="tool_use"),
                TextFragment(kind="text", text="after tool"),
            )
        )
        assert reduce_events([event]) == NO_OUTPUT_SENTINEL

    def test_empty_text_falls_through(self) -> None:
        """An empty first fragment counts as no text."""
        assert reduce_events([assistant("")]) == NO_OUTPUT_SENTINEL

    def test_assistant_without_fragments_falls_through(self) -> None:
        """An assistant event with no content yields the sentinel."""
        assert reduce_events([AssistantEvent()]) == NO_OUTPUT_SENTINEL

    def test_only_other_events(self) -> None:
        """Other events never produce output."""
        assert reduce_events([other("system"), other("user")]) == NO_OUTPUT_SENTINEL

    def test_empty_buffer(self) -> None:
        """No events yields the sentinel."""
        assert reduce_events([]) == NO_OUTPUT_SENTINEL


class TestOutcomeText:
    """Test result outcome rendering."""

    def test_string_passthrough(self) -> None:
        """Strings are returned verbatim, including whitespace."""
        assert outcome_text("  done\n") == "  done\n"

    def test_dict_is_sorted_and_compact(self) -> None:
        """Structured values serialize deterministically."""
        assert outcome_text({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'

    def test_key_order_does_not_matter(self) -> None:
        """Equal mappings serialize identically."""
        assert canonical_json({"x": 1, "y": 2}) == canonical_json({"y": 2, "x": 1})

    def test_none_and_scalars(self) -> None:
        """Non-string scalars use their JSON form."""
        assert outcome_text(None) == "null"
        assert outcome_text(42) == "42"
        assert outcome_text(True) == "true"

    def test_non_ascii_preserved(self) -> None:
        """Non-ASCII characters are not escaped."""
        assert outcome_text({"msg": "café"}) == '{"msg":"café"}'


class TestFirstFragmentText:
    """Test fragment extraction."""

    def test_returns_first_text(self) -> None:
        assert first_fragment_text(assistant("hello", "world")) == "hello"

    def test_none_when_missing(self) -> None:
        assert first_fragment_text(assistant(None)) is None


class TestFormatError:
    """Test error string formatting."""

    def test_includes_agent_and_message(self) -> None:
        """Errors read 'Error executing <agent>: <message>'."""
        error = RuntimeError("process exited with status 1")
        assert format_error("Claude Code", error) == (
            "Error executing Claude Code: process exited with status 1"
        )

    def test_empty_message_uses_class_name(self) -> None:
        """An exception without a message is named by its class."""
        assert format_error("Claude Code", ConnectionResetError()) == (
            "Error executing Claude Code: ConnectionResetError"
        )
