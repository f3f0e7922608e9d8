"""Request construction for agent task invocations."""

from __future__ import annotations

import os

from agent_task_core.cancellation import CancellationToken
from agent_task_core.config import ToolConfig
from agent_task_core.types import PermissionMode, RequestDescriptor


def permission_mode_for(require_permissions: bool) -> PermissionMode:
    """Map the require-permissions flag to a session permission mode."""
    return PermissionMode.DEFAULT if require_permissions else PermissionMode.BYPASS


def build_request(config: ToolConfig, prompt: str) -> RequestDescriptor:
    """Build the request descriptor for one invocation.

    The prompt is passed through untouched. Numeric fields are taken as
    already validated. The working directory falls back to the process
    working directory, resolved here and not again later.

    Args:
        config: Validated tool configuration.
        prompt: Instruction from the calling agent.

    Returns:
        A new descriptor with a fresh, unarmed cancellation token.
    """
    options = config.options
    working_directory = options.project_path or os.getcwd()

    return RequestDescriptor(
        prompt=prompt,
        max_turns=config.max_turns,
        permission_mode=permission_mode_for(options.require_permissions),
        model=config.model.value,
        allowed_capabilities=frozenset(config.allowed_capabilities),
        system_prompt=options.system_prompt or None,
        working_directory=working_directory,
        timeout_seconds=config.timeout_seconds,
        cancellation=CancellationToken(),
    )
