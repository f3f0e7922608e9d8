"""Adapter protocol interfaces for the agent task tool.

Each protocol defines a capability boundary that adapter packages implement:

    agent_task_mcp.claude_session  → AgentSession

Protocols use structural subtyping (PEP 544): adapters implement the
interface without inheriting from it.
"""

from agent_task_core.adapters.session import AgentSession

__all__ = [
    "AgentSession",
]
