"""Claude CLI agent session.

Runs ``claude -p ... --output-format stream-json`` as a subprocess for each
request and yields one session event per stdout line. The process is
terminated when the request's cancellation token fires and is always
reaped before the stream ends.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from collections import deque
from collections.abc import AsyncIterator
from typing import Any

from agent_task_core.cancellation import CancellationToken
from agent_task_core.types import (
    AssistantEvent,
    OtherEvent,
    RequestDescriptor,
    ResultEvent,
    SessionEvent,
    TextFragment,
)

logger = logging.getLogger(__name__)

# 1MB buffer for large stream-json lines
STREAM_LINE_LIMIT = 1024 * 1024

STDERR_TAIL_CHARS = 500
STDERR_CHUNK_BYTES = 4096


class SessionError(RuntimeError):
    """Raised when the Claude CLI session fails or emits malformed output."""


async def read_stderr_tail(
    stream: asyncio.StreamReader, limit: int = STDERR_TAIL_CHARS
) -> str:
    """Drain a stderr pipe, keeping only its last ``limit`` characters.

    Chunks are dropped from the front once more than ``limit`` bytes are
    held, so memory stays bounded however much the process writes.

    Args:
        stream: Process stderr reader.
        limit: Number of trailing characters to return.

    Returns:
        Decoded stderr tail.
    """
    chunks: deque[bytes] = deque()
    held = 0
    while chunk := await stream.read(STDERR_CHUNK_BYTES):
        chunks.append(chunk)
        held += len(chunk)
        while held - len(chunks[0]) >= limit:
            held -= len(chunks.popleft())
    return b"".join(chunks).decode(errors="replace")[-limit:]


def build_command(request: RequestDescriptor, binary: str = "claude") -> list[str]:
    """Build the Claude CLI argument vector for a request.

    Args:
        request: Resolved request descriptor.
        binary: Claude CLI executable.

    Returns:
        Argument list for ``asyncio.create_subprocess_exec``.
    """
    cmd = [
        binary,
        "-p",
        request.prompt,
        "--output-format",
        "stream-json",
        "--verbose",
        "--max-turns",
        str(request.max_turns),
        "--model",
        request.model,
        "--permission-mode",
        request.permission_mode.value,
    ]
    if request.allowed_capabilities:
        cmd += ["--allowedTools", ",".join(sorted(request.allowed_capabilities))]
    if request.system_prompt:
        cmd += ["--system-prompt", request.system_prompt]
    return cmd


def parse_event(payload: Any) -> SessionEvent:
    """Convert one decoded stream-json payload into a session event.

    Args:
        payload: Decoded JSON value from one stdout line.

    Returns:
        ResultEvent, AssistantEvent or OtherEvent.

    Raises:
        SessionError: If the payload is not a JSON object.
    """
    if not isinstance(payload, dict):
        raise SessionError(
            f"Expected a JSON object event, got {type(payload).__name__}"
        )

    event_type = str(payload.get("type", ""))

    if event_type == "result":
        outcome = payload.get("result")
        if outcome is None or outcome == "":
            outcome = payload.get("error")
        if outcome is None or outcome == "":
            outcome = payload.get("subtype", "")
        return ResultEvent(
            raw=payload,
            outcome=outcome,
            is_error=bool(payload.get("is_error", False)),
        )

    if event_type == "assistant":
        message = payload.get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        return AssistantEvent(raw=payload, fragments=_parse_fragments(content))

    return OtherEvent(type=event_type, raw=payload)


def _parse_fragments(content: Any) -> tuple[TextFragment, ...]:
    if isinstance(content, str):
        return (TextFragment(kind="text", text=content),)
    if not isinstance(content, list):
        return ()

    fragments = []
    for block in content:
        if not isinstance(block, dict):
            fragments.append(TextFragment(kind="unknown"))
            continue
        text = block.get("text")
        fragments.append(
            TextFragment(
                kind=str(block.get("type", "")),
                text=text if isinstance(text, str) else None,
            )
        )
    return tuple(fragments)


class ClaudeCliSession:
    """Agent session backed by the Claude CLI.

    Each ``stream()`` call spawns its own process; nothing is shared between
    requests.
    """

    name = "Claude Code"

    def __init__(self, binary: str = "claude", terminate_grace: float = 5.0) -> None:
        """Initialize the session adapter.

        Args:
            binary: Claude CLI executable name or path.
            terminate_grace: Seconds between SIGTERM and SIGKILL on shutdown.
        """
        self.binary = binary
        self.terminate_grace = terminate_grace

    async def stream(self, request: RequestDescriptor) -> AsyncIterator[SessionEvent]:
        """Spawn the CLI for ``request`` and yield its events in order.

        Raises:
            SessionError: On malformed output or a non-zero exit that was not
                caused by cancellation.
            OSError: If the CLI cannot be spawned.
        """
        # Create clean environment without CLAUDECODE to avoid nested session errors
        clean_env = {k: v for k, v in os.environ.items() if k != "CLAUDECODE"}

        process = await asyncio.create_subprocess_exec(
            *build_command(request, self.binary),
            cwd=request.working_directory,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=clean_env,
            limit=STREAM_LINE_LIMIT,
        )
        logger.debug(
            "Spawned %s (pid %s) in %s",
            self.binary,
            process.pid,
            request.working_directory,
        )

        token = request.cancellation
        watcher = asyncio.create_task(self._terminate_on_cancel(process, token))
        stderr_reader = (
            asyncio.create_task(read_stderr_tail(process.stderr))
            if process.stderr
            else None
        )
        try:
            if process.stdout:
                async for line in process.stdout:
                    if token.cancelled:
                        break
                    try:
                        stripped = line.decode().strip()
                    except UnicodeDecodeError as e:
                        raise SessionError(
                            f"Undecodable output from {self.binary}: {e}"
                        ) from e
                    if not stripped:
                        continue
                    try:
                        payload = json.loads(stripped)
                    except json.JSONDecodeError as e:
                        raise SessionError(
                            f"Malformed stream-json line: {stripped[:200]}"
                        ) from e
                    yield parse_event(payload)

            if token.cancelled:
                return

            returncode = await process.wait()
            if returncode != 0 and not token.cancelled:
                detail = (await stderr_reader).strip() if stderr_reader else ""
                raise SessionError(
                    f"{self.binary} exited with status {returncode}"
                    + (f": {detail}" if detail else "")
                )
        finally:
            watcher.cancel()
            if stderr_reader is not None:
                stderr_reader.cancel()
            await self._terminate(process)

    async def _terminate_on_cancel(
        self, process: asyncio.subprocess.Process, token: CancellationToken
    ) -> None:
        await token.wait()
        logger.info(
            "Stopping %s (pid %s): %s", self.binary, process.pid, token.reason
        )
        await self._terminate(process)

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        """Terminate the process if still running, killing it after the grace period."""
        if process.returncode is not None:
            return
        try:
            process.terminate()
            await asyncio.wait_for(process.wait(), timeout=self.terminate_grace)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
        except ProcessLookupError:
            pass
