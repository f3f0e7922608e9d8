"""Entry point for the agent task tool.

Run with:
  python -m agent_task_mcp                      # MCP stdio transport (default)
  python -m agent_task_mcp --http               # Streamable-HTTP MCP server
  python -m agent_task_mcp run "<instruction>"  # One invocation, print result
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from agent_task_core.config import ConfigError, ToolConfig
from agent_task_core.executor import AgentTaskTool

from .claude_session import ClaudeCliSession
from .server import create_server

logger = logging.getLogger(__name__)


def _load_env() -> None:
    """Load .env from AGENT_TASK_PROJECT_PATH if present, else search from cwd."""
    project_path = os.getenv("AGENT_TASK_PROJECT_PATH")
    if project_path:
        env_file = Path(project_path) / ".env"
        if env_file.exists():
            load_dotenv(env_file)
            return
    load_dotenv()


def main() -> None:
    """Main entry point with subcommand support."""
    _load_env()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        config = ToolConfig.from_env()
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(2)

    if len(sys.argv) > 1 and sys.argv[1] == "run":
        if len(sys.argv) < 3:
            logger.error('Usage: python -m agent_task_mcp run "<instruction>"')
            sys.exit(2)
        tool = AgentTaskTool(config, ClaudeCliSession())
        print(asyncio.run(tool.execute(" ".join(sys.argv[2:]))))
    elif len(sys.argv) > 1 and sys.argv[1] == "--http":
        create_server(config).run(transport="streamable-http")
    else:
        create_server(config).run()


if __name__ == "__main__":
    main()
