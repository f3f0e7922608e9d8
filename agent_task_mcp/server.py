"""MCP server setup and tool registration for the agent task tool."""

from __future__ import annotations

import logging
import os

from mcp.server.fastmcp import FastMCP

from agent_task_core.adapters.session import AgentSession
from agent_task_core.config import ToolConfig
from agent_task_core.executor import AgentTaskTool

from .claude_session import ClaudeCliSession

logger = logging.getLogger(__name__)

SERVER_NAME = "agent-task"


def create_server(
    config: ToolConfig,
    session: AgentSession | None = None,
    *,
    host: str | None = None,
    port: int | None = None,
) -> FastMCP:
    """Create a FastMCP server exposing one agent task tool.

    The tool's name and description come from ``config`` unchanged; its only
    argument, ``input``, is the instruction passed to the agent session.

    Args:
        config: Validated tool configuration.
        session: Agent session adapter (default: ClaudeCliSession).
        host: HTTP bind address (default: AGENT_TASK_API_HOST or 127.0.0.1).
        port: HTTP port (default: AGENT_TASK_API_PORT or 8420).

    Returns:
        Configured FastMCP instance.
    """
    tool = AgentTaskTool(config, session or ClaudeCliSession())

    server = FastMCP(
        SERVER_NAME,
        host=host or os.getenv("AGENT_TASK_API_HOST", "127.0.0.1"),
        port=port or int(os.getenv("AGENT_TASK_API_PORT", "8420")),
        stateless_http=True,
    )

    async def run_agent_task(input: str) -> str:
        return await tool.execute(input)

    server.add_tool(run_agent_task, name=config.name, description=config.description)
    logger.info(
        "Registered tool %s (model=%s, timeout=%ss)",
        config.name,
        config.model.value,
        config.timeout_seconds,
    )
    return server
