"""Agent session adapter protocol.

Implemented by: agent_task_mcp.claude_session.ClaudeCliSession (reference),
or any agent engine that can stream events.

Responsible for running one agent session per request and yielding the
events it produces, in order, until the session ends or the request's
cancellation token fires.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

from agent_task_core.types import RequestDescriptor, SessionEvent


@runtime_checkable
class AgentSession(Protocol):
    """Runs an external agent session and streams its events.

    The returned iterator is lazy, unbounded and non-restartable. It ends
    normally when the session closes, may end early once
    ``request.cancellation`` fires, and raises if the session itself fails
    (spawn failure, broken transport, malformed payload).
    """

    name: str
    """Display name used in error strings (e.g., "Claude Code")."""

    def stream(self, request: RequestDescriptor) -> AsyncIterator[SessionEvent]:
        """Start a session for ``request`` and iterate its events.

        Args:
            request: Resolved request; owned by this call only.

        Returns:
            Async iterator of session events.
        """
        ...
