"""Agent Task MCP - Claude CLI session and MCP embedding for the agent task tool."""

__version__ = "0.1.0"

from agent_task_mcp.claude_session import ClaudeCliSession, SessionError

__all__ = ["ClaudeCliSession", "SessionError"]
