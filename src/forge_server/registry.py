"""Tool Registry for GraphQL Forge.

Turns tool definitions into MCP tools and registers them on the FastMCP
server. A definition with an unsupported input type is rejected as a
whole; it is never partially registered.
"""

import uuid
from typing import Any, Callable, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools import Tool
from fastmcp.tools.tool import ToolResult as MCPToolResult
from mcp.types import TextContent
from mcp.types import ToolAnnotations as MCPToolAnnotations

from shared.logging import get_logger
from shared.models import (
    SUPPORTED_INPUT_TYPES,
    InvocationContext,
    ToolAnnotations,
    ToolDefinition,
)
from shared.schema import create_tool_schema
from forge_server.router import ToolRouter

logger = get_logger(__name__)

CredentialSource = Callable[[], Optional[str]]


def no_credential() -> Optional[str]:
    return None


def build_annotations(annotations: Optional[ToolAnnotations]) -> Optional[MCPToolAnnotations]:
    """Convert configured hints to MCP annotations; None when nothing is set."""
    if annotations is None:
        return None
    hints = annotations.model_dump(by_alias=True, exclude_none=True)
    if not hints.get("title"):
        hints.pop("title", None)
    if not hints:
        return None
    return MCPToolAnnotations(**hints)


class GraphQLTool(Tool):
    """MCP tool backed by one GraphQL query."""

    definition: ToolDefinition
    dispatch: Callable[..., Any]
    credential_source: Callable[..., Any] = no_credential

    async def run(self, arguments: dict[str, Any]) -> MCPToolResult:
        context = InvocationContext(
            request_id=str(uuid.uuid4()),
            tool_name=self.definition.name,
            arguments=arguments or {},
            inbound_credential=self.credential_source(),
        )

        result = await self.dispatch(self.definition, context)
        if result.is_error:
            raise ToolError(result.error or f"{self.definition.name} failed")

        return MCPToolResult(content=[TextContent(type="text", text=result.data or "")])


class ToolRegistry:
    """
    Registry of GraphQL tools exposed by the server.

    Responsibilities:
    - Validate input type tags at registration time
    - Build MCP tools with their input schema and annotations
    - Register them on the FastMCP server
    """

    def __init__(
        self,
        server: FastMCP,
        router: ToolRouter,
        credential_source: Optional[CredentialSource] = None
    ) -> None:
        self.server = server
        self.router = router
        self.credential_source = credential_source or no_credential
        self._tools: dict[str, ToolDefinition] = {}
        self.skipped: dict[str, str] = {}

    def validate(self, definition: ToolDefinition) -> Optional[str]:
        """Return why a definition cannot be registered, or None."""
        unsupported = definition.unsupported_inputs()
        if unsupported:
            spec = unsupported[0]
            return (
                f"unsupported type {spec.type!r} for input {spec.name!r} "
                f"in {definition.name} (supported: {', '.join(SUPPORTED_INPUT_TYPES)})"
            )
        return None

    def build_tool(self, definition: ToolDefinition) -> GraphQLTool:
        """Build the MCP tool for a validated definition."""
        return GraphQLTool(
            name=definition.name,
            description=definition.description,
            parameters=create_tool_schema(definition.inputs),
            annotations=build_annotations(definition.annotations),
            definition=definition,
            dispatch=self.router.execute,
            credential_source=self.credential_source,
        )

    def register(self, definition: ToolDefinition) -> bool:
        """
        Register a tool on the server.

        Args:
            definition: Tool definition to register

        Returns:
            True if registered, False if the definition was skipped
        """
        reason = self.validate(definition)
        if reason:
            self.skipped[definition.name] = reason
            logger.warning(
                "Skipping tool",
                tool=definition.name,
                source=definition.source,
                reason=reason
            )
            return False

        if definition.name in self._tools:
            logger.warning(
                "Duplicate tool name",
                tool=definition.name,
                source=definition.source,
                previous=self._tools[definition.name].source
            )

        self.server.add_tool(self.build_tool(definition))
        self._tools[definition.name] = definition

        logger.info(
            "Tool registered",
            tool=definition.name,
            inputs=[spec.name for spec in definition.inputs],
            output=definition.output or "raw"
        )
        return True

    def register_many(self, definitions: list[ToolDefinition]) -> int:
        """Register multiple tools; returns how many were registered."""
        return sum(1 for definition in definitions if self.register(definition))

    def get(self, name: str) -> Optional[ToolDefinition]:
        """Get a registered definition by tool name."""
        return self._tools.get(name)

    def tool_names(self) -> list[str]:
        return sorted(self._tools)
