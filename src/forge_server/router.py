"""Tool Router for GraphQL Forge.

Dispatches one tool call: gathers variables from the caller's arguments,
resolves the credential, runs the query and maps the outcome into a
ToolResult. Call-level failures become error results; nothing raised here
escapes to the protocol server.
"""

import time
from typing import Any

from graphql_client.client import GraphQLClient, GraphQLClientError
from shared.logging import get_logger
from shared.models import (
    InvocationContext,
    ServerSettings,
    ToolDefinition,
    ToolResult,
    ToolResultStatus,
)
from forge_server.auth import TokenCommandError, TokenProvider

logger = get_logger(__name__)


class MissingArgumentError(Exception):
    """A required tool argument was not supplied."""

    def __init__(self, name: str) -> None:
        super().__init__(f"missing required argument: {name}")
        self.name = name


def gather_variables(tool: ToolDefinition, arguments: dict[str, Any]) -> dict[str, Any]:
    """
    Map caller arguments onto the tool's declared inputs.

    Optional inputs that were not supplied are bound to None; undeclared
    arguments are ignored.

    Raises:
        MissingArgumentError: For the first required input not supplied
    """
    variables: dict[str, Any] = {}
    for spec in tool.inputs:
        if spec.name not in arguments:
            if spec.required:
                raise MissingArgumentError(spec.name)
            variables[spec.name] = None
            continue
        variables[spec.name] = arguments[spec.name]
    return variables


class ToolRouter:
    """
    Executes GraphQL-backed tool calls.

    Collaborators are injected so every call path is explicit:
    settings for the endpoint, a token provider, and the GraphQL client.
    """

    def __init__(
        self,
        settings: ServerSettings,
        token_provider: TokenProvider,
        graphql_client: GraphQLClient
    ) -> None:
        self.settings = settings
        self.token_provider = token_provider
        self.graphql_client = graphql_client

    async def execute(self, tool: ToolDefinition, context: InvocationContext) -> ToolResult:
        """
        Execute a tool call.

        Args:
            tool: Definition of the tool being called
            context: Per-call context with arguments and inbound credential

        Returns:
            Tool execution result; on success ``data`` is the raw response body
        """
        start_time = time.time()

        logger.debug(
            "Executing tool",
            tool=tool.name,
            invocation_id=context.request_id
        )

        try:
            variables = gather_variables(tool, context.arguments)
        except MissingArgumentError as e:
            return self._finish(ToolResult(
                tool_name=tool.name,
                status=ToolResultStatus.VALIDATION_ERROR,
                error=str(e),
                error_code="MISSING_ARGUMENT"
            ), start_time)

        try:
            context.credential = await self.token_provider.resolve(context)
        except TokenCommandError as e:
            return self._finish(ToolResult(
                tool_name=tool.name,
                status=ToolResultStatus.UNAUTHORIZED,
                error=str(e),
                error_code="TOKEN_COMMAND_FAILED"
            ), start_time)

        try:
            context.response = await self.graphql_client.execute(
                self.settings.url,
                tool.query,
                variables,
                context.credential
            )
        except GraphQLClientError as e:
            return self._finish(ToolResult(
                tool_name=tool.name,
                status=ToolResultStatus.ERROR,
                error=f"GraphQL execution failed: {e}",
                error_code="GRAPHQL_TRANSPORT_ERROR"
            ), start_time)

        return self._finish(ToolResult(
            tool_name=tool.name,
            status=ToolResultStatus.SUCCESS,
            data=context.response.decode("utf-8", errors="replace")
        ), start_time)

    def _finish(self, result: ToolResult, start_time: float) -> ToolResult:
        result.execution_time_ms = (time.time() - start_time) * 1000

        if result.is_error:
            logger.warning(
                "Tool call failed",
                tool=result.tool_name,
                error_code=result.error_code,
                error=result.error
            )
        else:
            logger.debug(
                "Tool call completed",
                tool=result.tool_name,
                execution_time_ms=round(result.execution_time_ms, 2)
            )
        return result
