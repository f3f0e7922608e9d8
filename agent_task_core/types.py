"""Shared data types for the agent task adapter."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from agent_task_core.cancellation import CancellationToken


# ============================================================
# Enums
# ============================================================


class PermissionMode(Enum):
    """How the agent session treats tool-use permission prompts."""

    DEFAULT = "default"
    BYPASS = "bypassPermissions"


class InvocationState(Enum):
    """Lifecycle states for one invocation."""

    BUILDING = "building"
    STREAMING = "streaming"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    FAILED = "failed"
    REDUCED = "reduced"
    DONE = "done"


# ============================================================
# Request
# ============================================================


@dataclass(frozen=True)
class RequestDescriptor:
    """Fully resolved parameters for one agent session call.

    Single-use: owned by one invocation and discarded afterwards. Two
    descriptors built from the same config and prompt compare equal; the
    cancellation token is excluded from equality.
    """

    prompt: str
    max_turns: int
    permission_mode: PermissionMode
    model: str
    allowed_capabilities: frozenset[str]
    system_prompt: str | None
    working_directory: str
    timeout_seconds: int
    cancellation: CancellationToken = field(
        default_factory=CancellationToken, compare=False, repr=False
    )


# ============================================================
# Events — emitted by the agent session
# ============================================================


@dataclass(frozen=True)
class SessionEvent:
    """Base class for everything an agent session emits.

    Attributes:
        type: Tag reported by the session (e.g. "result", "assistant").
        raw: Original payload, kept for diagnostics.
    """

    type: str = ""
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class TextFragment:
    """One element of an assistant message's content sequence."""

    kind: str = "text"
    text: str | None = None


@dataclass(frozen=True)
class ResultEvent(SessionEvent):
    """Terminal outcome of the session. At most one is expected."""

    type: str = "result"
    outcome: Any = None
    is_error: bool = False


@dataclass(frozen=True)
class AssistantEvent(SessionEvent):
    """An assistant message with its ordered content fragments."""

    type: str = "assistant"
    fragments: tuple[TextFragment, ...] = ()


@dataclass(frozen=True)
class OtherEvent(SessionEvent):
    """Any other payload (system, user, tool results, ...)."""


# ============================================================
# Outcome
# ============================================================


@dataclass
class InvocationOutcome:
    """What one invocation produced, with diagnostics.

    ``text`` is the only value callers of ``execute()`` see; the remaining
    fields are for logging and tests.

    Attributes:
        text: The invocation result string.
        state: How streaming ended: COMPLETED, TIMED_OUT or FAILED.
        event_counts: Buffered events per variant ("result", "assistant", "other").
        duration_seconds: Wall-clock time of the invocation.
        error: Session error message when state is FAILED.
        transitions: States visited, in order, ending with DONE.
    """

    text: str
    state: InvocationState
    event_counts: dict[str, int] = field(default_factory=dict)
    duration_seconds: float = 0.0
    error: str | None = None
    transitions: list[InvocationState] = field(default_factory=list)

    @property
    def event_total(self) -> int:
        return sum(self.event_counts.values())
