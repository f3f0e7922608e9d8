"""Agent task tool configuration.

Holds the parameters a host supplies once per tool instance: tool identity,
model, turn budget, deadline, allowed capabilities and the additional
options collection.

Configuration can be loaded from:
- The host's parameter mapping (camelCase keys, as the tool form exposes them)
- Environment variables (AGENT_TASK_*)
- Programmatic construction

Instances are frozen; call ``validate()`` (or use one of the ``from_*``
constructors, which validate) before handing a config to the executor.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_NAME = "claude-code"
DEFAULT_DESCRIPTION = (
    "Execute AI-powered coding tasks using Claude Code SDK. Can analyze code, "
    "fix bugs, write new features, and perform various development tasks."
)
DEFAULT_MAX_TURNS = 50
DEFAULT_TIMEOUT_SECONDS = 300

MAX_TURNS_RANGE = (1, 100)
TIMEOUT_RANGE = (30, 600)


class Model(Enum):
    """Model selector passed through to the agent session."""

    FAST = "sonnet"
    CAPABLE = "opus"


MODEL_OPTIONS: dict[str, str] = {
    Model.FAST.value: "Fast and efficient model for most tasks",
    Model.CAPABLE.value: "Most capable model for complex tasks",
}

CAPABILITY_OPTIONS: dict[str, str] = {
    "Bash": "Execute bash commands",
    "Edit": "Edit files",
    "MultiEdit": "Edit multiple files",
    "Read": "Read files",
    "Task": "Launch agents for complex searches",
    "TodoWrite": "Manage todo lists",
    "WebFetch": "Fetch web content",
    "WebSearch": "Search the web",
    "Write": "Write files",
}

# Includes exit_plan_mode, which is not in CAPABILITY_OPTIONS. Kept as the
# stock default; unknown tokens are passed through to the session.
DEFAULT_ALLOWED_CAPABILITIES: frozenset[str] = frozenset(
    {"WebFetch", "TodoWrite", "WebSearch", "exit_plan_mode", "Task"}
)

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


class ConfigError(ValueError):
    """Raised when a tool configuration fails validation."""


@dataclass(frozen=True)
class AdditionalOptions:
    """Optional settings from the "Additional Options" collection."""

    system_prompt: str | None = None
    project_path: str | None = None
    require_permissions: bool = False
    debug: bool = False


@dataclass(frozen=True)
class ToolConfig:
    """Top-level agent task tool configuration.

    Construct programmatically:
        config = ToolConfig(
            model=Model.CAPABLE,
            max_turns=20,
            allowed_capabilities=frozenset({"Read", "Edit"}),
            options=AdditionalOptions(project_path="/srv/app"),
        ).validate()

    Or load from the host's parameters:
        config = ToolConfig.from_mapping(params)

    Attributes:
        name: Tool name the orchestrating agent sees. Not interpreted here.
        description: Tool description the orchestrating agent sees.
        model: Model selector for the agent session.
        max_turns: Conversation turn budget (1-100).
        timeout_seconds: Wall-clock deadline per invocation (30-600).
        allowed_capabilities: Capability tokens the agent may use.
        options: Additional options collection.
    """

    name: str = DEFAULT_NAME
    description: str = DEFAULT_DESCRIPTION
    model: Model = Model.FAST
    max_turns: int = DEFAULT_MAX_TURNS
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    allowed_capabilities: frozenset[str] = field(
        default_factory=lambda: DEFAULT_ALLOWED_CAPABILITIES
    )
    options: AdditionalOptions = field(default_factory=AdditionalOptions)

    def validate(self) -> ToolConfig:
        """Check enumerations and ranges.

        Returns:
            The same config, to allow chaining.

        Raises:
            ConfigError: If any field is out of its allowed domain.
        """
        if not self.name.strip():
            raise ConfigError("name must not be empty")
        if not isinstance(self.model, Model):
            raise ConfigError(f"model must be a Model, got {self.model!r}")
        _check_range("max_turns", self.max_turns, MAX_TURNS_RANGE)
        _check_range("timeout_seconds", self.timeout_seconds, TIMEOUT_RANGE)

        if not isinstance(self.allowed_capabilities, frozenset):
            raise ConfigError("allowed_capabilities must be a frozenset")
        for token in self.allowed_capabilities:
            if not isinstance(token, str) or not token.strip():
                raise ConfigError(f"Invalid capability token: {token!r}")

        unknown = sorted(self.allowed_capabilities - CAPABILITY_OPTIONS.keys())
        if unknown:
            logger.warning(
                "Allowed capabilities not in the known option list: %s",
                ", ".join(unknown),
            )
        return self

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ToolConfig:
        """Build a validated config from the host's parameter mapping.

        Keys follow the tool form: ``name``, ``description``, ``model``,
        ``maxTurns``, ``timeout``, ``allowedTools`` and ``additionalOptions``
        (``systemPrompt``, ``projectPath``, ``requirePermissions``,
        ``debug``). Missing keys take their defaults.

        Raises:
            ConfigError: If a value cannot be coerced or is out of range.
        """
        extra = data.get("additionalOptions") or {}
        options = AdditionalOptions(
            system_prompt=_optional_str(extra.get("systemPrompt")),
            project_path=_optional_str(extra.get("projectPath")),
            require_permissions=_coerce_flag(
                extra.get("requirePermissions", False)
            ),
            debug=_coerce_flag(extra.get("debug", False)),
        )

        allowed = data.get("allowedTools")
        config = cls(
            name=str(data.get("name", DEFAULT_NAME)),
            description=str(data.get("description", DEFAULT_DESCRIPTION)),
            model=_parse_model(data.get("model", Model.FAST.value)),
            max_turns=_parse_int("maxTurns", data.get("maxTurns", DEFAULT_MAX_TURNS)),
            timeout_seconds=_parse_int(
                "timeout", data.get("timeout", DEFAULT_TIMEOUT_SECONDS)
            ),
            allowed_capabilities=(
                DEFAULT_ALLOWED_CAPABILITIES
                if allowed is None
                else _parse_capabilities(allowed)
            ),
            options=options,
        )
        return config.validate()

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ToolConfig:
        """Build a validated config from AGENT_TASK_* environment variables.

        Reads:
        - AGENT_TASK_NAME, AGENT_TASK_DESCRIPTION
        - AGENT_TASK_MODEL: sonnet or opus (default: sonnet)
        - AGENT_TASK_MAX_TURNS (default: 50)
        - AGENT_TASK_TIMEOUT: seconds (default: 300)
        - AGENT_TASK_ALLOWED_TOOLS: comma-separated tokens
        - AGENT_TASK_SYSTEM_PROMPT, AGENT_TASK_PROJECT_PATH
        - AGENT_TASK_REQUIRE_PERMISSIONS, AGENT_TASK_DEBUG: 1/true/yes/on
        """
        env = os.environ if environ is None else environ

        allowed_raw = env.get("AGENT_TASK_ALLOWED_TOOLS")
        allowed = (
            DEFAULT_ALLOWED_CAPABILITIES
            if allowed_raw is None
            else frozenset(t.strip() for t in allowed_raw.split(",") if t.strip())
        )

        config = cls(
            name=env.get("AGENT_TASK_NAME", DEFAULT_NAME),
            description=env.get("AGENT_TASK_DESCRIPTION", DEFAULT_DESCRIPTION),
            model=_parse_model(env.get("AGENT_TASK_MODEL", Model.FAST.value)),
            max_turns=_parse_int(
                "AGENT_TASK_MAX_TURNS",
                env.get("AGENT_TASK_MAX_TURNS", str(DEFAULT_MAX_TURNS)),
            ),
            timeout_seconds=_parse_int(
                "AGENT_TASK_TIMEOUT",
                env.get("AGENT_TASK_TIMEOUT", str(DEFAULT_TIMEOUT_SECONDS)),
            ),
            allowed_capabilities=allowed,
            options=AdditionalOptions(
                system_prompt=_optional_str(env.get("AGENT_TASK_SYSTEM_PROMPT")),
                project_path=_optional_str(env.get("AGENT_TASK_PROJECT_PATH")),
                require_permissions=_parse_flag(
                    env.get("AGENT_TASK_REQUIRE_PERMISSIONS")
                ),
                debug=_parse_flag(env.get("AGENT_TASK_DEBUG")),
            ),
        )
        return config.validate()


def _check_range(field_name: str, value: Any, bounds: tuple[int, int]) -> None:
    low, high = bounds
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{field_name} must be an integer, got {value!r}")
    if not low <= value <= high:
        raise ConfigError(f"{field_name} must be between {low} and {high}, got {value}")


def _parse_model(value: Any) -> Model:
    if isinstance(value, Model):
        return value
    try:
        return Model(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(MODEL_OPTIONS)
        raise ConfigError(
            f"Unknown model {value!r}; expected one of: {choices}"
        ) from None


def _parse_int(field_name: str, value: Any) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ConfigError(f"{field_name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{field_name} must be an integer, got {value!r}") from None


def _parse_capabilities(value: Any) -> frozenset[str]:
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise ConfigError(f"allowedTools must be a list of strings, got {value!r}")
    return frozenset(str(token) for token in value)


def _parse_flag(value: str | None) -> bool:
    return value is not None and value.strip().lower() in _TRUE_VALUES


def _coerce_flag(value: Any) -> bool:
    if isinstance(value, str):
        return _parse_flag(value)
    return bool(value)


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None
