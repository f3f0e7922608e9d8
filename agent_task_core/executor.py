"""Agent task execution: stream consumption under a deadline.

``AgentTaskTool`` is what a host wraps as a tool. Each ``execute()`` call
builds a fresh request, drives the agent session's event stream until it
closes, fails or runs past the deadline, and reduces what it saw into a
single string. Nothing raised by the session escapes ``execute()``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from typing import Any

from agent_task_core.adapters.session import AgentSession
from agent_task_core.builder import build_request
from agent_task_core.config import ToolConfig
from agent_task_core.reducer import format_error, reduce_events
from agent_task_core.types import (
    AssistantEvent,
    InvocationOutcome,
    InvocationState,
    RequestDescriptor,
    ResultEvent,
    SessionEvent,
)

logger = logging.getLogger(__name__)

DiagnosticSink = Callable[[str], None]

# Time allowed for a session to wind down after its token fires.
CANCEL_GRACE_SECONDS = 5.0

INPUT_PREVIEW_CHARS = 100

_diagnostics_logger = logging.getLogger("agent_task_core.diagnostics")
_END = object()


def default_diagnostic_sink(line: str) -> None:
    """Write a debug-mode diagnostic line to the diagnostics logger."""
    _diagnostics_logger.info(line)


def event_variant(event: SessionEvent) -> str:
    """Classify an event as "result", "assistant" or "other"."""
    if isinstance(event, ResultEvent):
        return "result"
    if isinstance(event, AssistantEvent):
        return "assistant"
    return "other"


async def _next_event(iterator: AsyncIterator[SessionEvent]) -> Any:
    return await anext(iterator, _END)


class AgentTaskTool:
    """Exposes an agent session as a single string-in, string-out tool.

    Instances hold only read-only configuration and the session adapter;
    every invocation owns its own request, token, timer and event buffer,
    so concurrent ``execute()`` calls do not interact.
    """

    def __init__(
        self,
        config: ToolConfig,
        session: AgentSession,
        *,
        diagnostic_sink: DiagnosticSink | None = None,
        cancel_grace: float = CANCEL_GRACE_SECONDS,
    ) -> None:
        """Initialize the tool.

        Args:
            config: Validated tool configuration.
            session: Agent session adapter used for every invocation.
            diagnostic_sink: Receives debug-mode lines when ``options.debug``
                is set. Defaults to the ``agent_task_core.diagnostics`` logger.
            cancel_grace: Seconds to wait for the session to stop after the
                deadline fires before abandoning it.
        """
        self.config = config
        self.session = session
        self._sink = diagnostic_sink or default_diagnostic_sink
        self._cancel_grace = cancel_grace

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def description(self) -> str:
        return self.config.description

    async def execute(self, prompt: str) -> str:
        """Run one invocation and return its result string.

        Args:
            prompt: Instruction from the calling agent.

        Returns:
            The session's result, a best-effort partial result, the
            no-output sentinel, or an "Error executing ..." string.
        """
        outcome = await self.invoke(prompt)
        return outcome.text

    async def invoke(self, prompt: str) -> InvocationOutcome:
        """Run one invocation and return the result with diagnostics."""
        started = time.monotonic()
        transitions = [InvocationState.BUILDING]
        counts: dict[str, int] = {}
        error: str | None = None

        try:
            self._log_request_settings(prompt)
            request = build_request(self.config, prompt)
            self._diagnose(f"Working directory: {request.working_directory}")

            transitions.append(InvocationState.STREAMING)
            events, end_state = await self._consume(request, counts)

            if end_state is InvocationState.TIMED_OUT:
                logger.warning(
                    "%s invocation hit its %ss deadline after %d events",
                    self.session.name,
                    request.timeout_seconds,
                    len(events),
                )
            self._diagnose(f"Execution completed. Messages: {len(events)}")
            text = reduce_events(events)
        except Exception as e:
            end_state = InvocationState.FAILED
            logger.warning("%s session failed: %s", self.session.name, e, exc_info=True)
            self._diagnose(f"Error: {e!r}")
            text = format_error(self.session.name, e)
            error = str(e) or type(e).__name__

        transitions.extend([end_state, InvocationState.REDUCED, InvocationState.DONE])
        return InvocationOutcome(
            text=text,
            state=end_state,
            event_counts=counts,
            duration_seconds=time.monotonic() - started,
            error=error,
            transitions=transitions,
        )

    async def _consume(
        self, request: RequestDescriptor, counts: dict[str, int]
    ) -> tuple[list[SessionEvent], InvocationState]:
        """Drain the session stream until it closes or the token fires.

        Returns:
            Buffered events and COMPLETED or TIMED_OUT.

        Raises:
            Exception: Whatever the session raised; the buffer is dropped.
        """
        token = request.cancellation
        events: list[SessionEvent] = []
        iterator = aiter(self.session.stream(request))
        pending: asyncio.Task[Any] | None = None

        token.arm(request.timeout_seconds)
        cancelled = asyncio.ensure_future(token.wait())
        try:
            while True:
                pending = asyncio.ensure_future(_next_event(iterator))
                await asyncio.wait(
                    {pending, cancelled}, return_when=asyncio.FIRST_COMPLETED
                )
                # Checked before the read result: a producer that never
                # suspends finishes its read in the same tick the token fires.
                if cancelled.done() or not pending.done():
                    return events, InvocationState.TIMED_OUT

                finished, pending = pending, None
                event = finished.result()
                if event is _END:
                    # A session may close its stream in response to the token.
                    if token.cancelled:
                        return events, InvocationState.TIMED_OUT
                    return events, InvocationState.COMPLETED

                events.append(event)
                variant = event_variant(event)
                counts[variant] = counts.get(variant, 0) + 1
                self._diagnose(f"Received message type: {event.type or variant}")
        finally:
            token.disarm()
            cancelled.cancel()
            await self._wind_down(iterator, pending)

    async def _wind_down(
        self, iterator: AsyncIterator[SessionEvent], pending: asyncio.Task[Any] | None
    ) -> None:
        """Stop the in-flight read and close the stream within the grace period."""
        if pending is not None:
            pending.cancel()
            done, _ = await asyncio.wait({pending}, timeout=self._cancel_grace)
            if not done:
                logger.warning(
                    "%s session ignored cancellation for %.1fs; abandoning it",
                    self.session.name,
                    self._cancel_grace,
                )
                return
            if not pending.cancelled() and pending.exception() is not None:
                logger.debug(
                    "%s session raised while stopping: %r",
                    self.session.name,
                    pending.exception(),
                )

        aclose = getattr(iterator, "aclose", None)
        if aclose is None:
            return
        try:
            await asyncio.wait_for(aclose(), timeout=self._cancel_grace)
        except Exception as e:
            logger.debug("Closing %s stream failed: %r", self.session.name, e)

    def _log_request_settings(self, prompt: str) -> None:
        logger.debug(
            "Starting %s invocation (model=%s, max_turns=%d)",
            self.session.name,
            self.config.model.value,
            self.config.max_turns,
        )
        self._diagnose(f"Received input: {prompt[:INPUT_PREVIEW_CHARS]}...")
        self._diagnose(f"Model: {self.config.model.value}")
        self._diagnose(f"Max turns: {self.config.max_turns}")
        self._diagnose(
            f"Allowed tools: {', '.join(sorted(self.config.allowed_capabilities))}"
        )

    def _diagnose(self, message: str) -> None:
        """Write to the diagnostic sink when debug mode is on.

        Sink failures are logged and otherwise ignored so they cannot change
        the invocation result.
        """
        if not self.config.options.debug:
            return
        try:
            self._sink(f"[{self.config.name}] {message}")
        except Exception:
            logger.warning("Diagnostic sink raised", exc_info=True)
