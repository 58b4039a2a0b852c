"""Shared models, configuration and logging for GraphQL Forge."""

from shared.models import (
    InputSpec,
    InvocationContext,
    ServerSettings,
    ToolAnnotations,
    ToolDefinition,
    ToolResult,
    ToolResultStatus,
)
from shared.config import (
    AppSettings,
    ConfigError,
    load_server_settings,
    load_tool_definitions,
)
from shared.logging import get_logger, setup_logging

__all__ = [
    "InputSpec",
    "InvocationContext",
    "ServerSettings",
    "ToolAnnotations",
    "ToolDefinition",
    "ToolResult",
    "ToolResultStatus",
    "AppSettings",
    "ConfigError",
    "load_server_settings",
    "load_tool_definitions",
    "get_logger",
    "setup_logging",
]
