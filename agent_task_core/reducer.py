"""Reduction of a buffered event sequence into one result string.

Priority order, first match wins:

1. The first ResultEvent: its outcome as text (strings verbatim, anything
   else as canonical JSON). ``is_error`` does not change the text.
2. The last AssistantEvent: the text of its first content fragment.
3. NO_OUTPUT_SENTINEL.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from agent_task_core.types import AssistantEvent, ResultEvent, SessionEvent

NO_OUTPUT_SENTINEL = "Claude Code executed successfully but no output was generated."


def canonical_json(value: Any) -> str:
    """Serialize a value to stable canonical JSON."""
    return json.dumps(
        value,
        ensure_ascii=False,
        separators=(",", ":"),
        sort_keys=True,
        default=str,
    )


def outcome_text(outcome: Any) -> str:
    """Render a result outcome as text."""
    if isinstance(outcome, str):
        return outcome
    return canonical_json(outcome)


def first_fragment_text(event: AssistantEvent) -> str | None:
    """Return the text of the event's first fragment, or None if it has none."""
    if not event.fragments:
        return None
    text = event.fragments[0].text
    return text or None


def reduce_events(events: Sequence[SessionEvent]) -> str:
    """Reduce buffered session events to the invocation result.

    Args:
        events: Events in arrival order.

    Returns:
        The result string. Never raises for well-formed events.
    """
    for event in events:
        if isinstance(event, ResultEvent):
            return outcome_text(event.outcome)

    last_assistant: AssistantEvent | None = None
    for event in events:
        if isinstance(event, AssistantEvent):
            last_assistant = event

    if last_assistant is not None:
        text = first_fragment_text(last_assistant)
        if text is not None:
            return text

    return NO_OUTPUT_SENTINEL


def format_error(agent_name: str, error: BaseException) -> str:
    """Format a session failure as the invocation result.

    Args:
        agent_name: Display name of the agent session.
        error: The exception raised while streaming.

    Returns:
        "Error executing <agent>: <message>".
    """
    message = str(error) or type(error).__name__
    return f"Error executing {agent_name}: {message}"
