"""
Agent Task Tool: run a coding agent session as a single string tool.

Builds a bounded, cancellable request from a fixed configuration and one
instruction, drives the agent session's event stream under a deadline, and
reduces it to one result string.
"""

__version__ = "0.1.0"

from agent_task_core.adapters import AgentSession
from agent_task_core.builder import build_request
from agent_task_core.cancellation import CancellationToken
from agent_task_core.config import AdditionalOptions, ConfigError, Model, ToolConfig
from agent_task_core.executor import AgentTaskTool
from agent_task_core.reducer import NO_OUTPUT_SENTINEL, format_error, reduce_events
from agent_task_core.types import (
    # Enums
    InvocationState,
    PermissionMode,
    # Request
    RequestDescriptor,
    # Events
    AssistantEvent,
    OtherEvent,
    ResultEvent,
    SessionEvent,
    TextFragment,
    # Outcome
    InvocationOutcome,
)

__all__ = [
    # Adapter protocols
    "AgentSession",
    # Configuration
    "AdditionalOptions",
    "ConfigError",
    "Model",
    "ToolConfig",
    # Execution
    "AgentTaskTool",
    "CancellationToken",
    "build_request",
    "reduce_events",
    "format_error",
    "NO_OUTPUT_SENTINEL",
    # Enums
    "InvocationState",
    "PermissionMode",
    # Types
    "RequestDescriptor",
    "SessionEvent",
    "ResultEvent",
    "AssistantEvent",
    "OtherEvent",
    "TextFragment",
    "InvocationOutcome",
]
