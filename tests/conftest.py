"""Shared test fixtures for agent task tool tests.

Provides a scripted agent session and sample configurations and events.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Sequence

import pytest

from agent_task_core.config import AdditionalOptions, Model, ToolConfig
from agent_task_core.types import (
    AssistantEvent,
    OtherEvent,
    RequestDescriptor,
    ResultEvent,
    SessionEvent,
    TextFragment,
)


class ScriptedSession:
    """AgentSession test double that replays a fixed list of events.

    Args:
        events: Events to yield, in order.
        raise_at: Index at which to raise ``error`` instead of yielding.
            ``len(events)`` raises after the last event.
        error: Exception to raise (default: RuntimeError("session crashed")).
        hang: After the scripted events, block forever instead of closing.
        ignore_cancel: While hanging, swallow the first cancellation and keep
            blocking.
        delay: Seconds to sleep before each event.
    """

    name = "Scripted Agent"

    def __init__(
        self,
        events: Sequence[SessionEvent] = (),
        *,
        raise_at: int | None = None,
        error: Exception | None = None,
        hang: bool = False,
        ignore_cancel: bool = False,
        delay: float = 0.0,
    ) -> None:
        self.events = list(events)
        self.raise_at = raise_at
        self.error = error or RuntimeError("session crashed")
        self.hang = hang
        self.ignore_cancel = ignore_cancel
        self.delay = delay
        self.requests: list[RequestDescriptor] = []
        self.closed = False

    async def stream(self, request: RequestDescriptor) -> AsyncIterator[SessionEvent]:
        self.requests.append(request)
        try:
            for index, event in enumerate(self.events):
                if self.raise_at == index:
                    raise self.error
                if self.delay:
                    await asyncio.sleep(self.delay)
                yield event
            if self.raise_at == len(self.events):
                raise self.error
            if self.hang:
                await self._block()
        finally:
            self.closed = True

    async def _block(self) -> None:
        ignored = False
        while True:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                # Swallow only the first cancellation so loop teardown still works.
                if not self.ignore_cancel or ignored:
                    raise
                ignored = True


def result(outcome: object, is_error: bool = False) -> ResultEvent:
    """Build a ResultEvent."""
    return ResultEvent(outcome=outcome, is_error=is_error)


def assistant(*texts: str | None, kind: str = "text") -> AssistantEvent:
    """Build an AssistantEvent with one fragment per text."""
    return AssistantEvent(
        fragments=tuple(
            TextFragment(kind=kind if text is not None else "tool_use", text=text)
            for text in texts
        )
    )


def other(event_type: str = "system") -> OtherEvent:
    """Build an OtherEvent."""
    return OtherEvent(type=event_type)


@pytest.fixture
def config() -> ToolConfig:
    """Provide a validated default configuration."""
    return ToolConfig().validate()


@pytest.fixture
def debug_config() -> ToolConfig:
    """Provide a configuration with debug diagnostics enabled."""
    return ToolConfig(
        name="coder",
        model=Model.CAPABLE,
        max_turns=10,
        allowed_capabilities=frozenset({"Read", "Edit"}),
        options=AdditionalOptions(debug=True, project_path="/srv/project"),
    ).validate()


@pytest.fixture
def short_deadline_config() -> ToolConfig:
    """Provide an unvalidated configuration with a one-second deadline."""
    return ToolConfig(timeout_seconds=1)
