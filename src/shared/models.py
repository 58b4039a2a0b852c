"""Core data models for GraphQL Forge.

This module defines the configuration records loaded from YAML and the
per-call structures passed between the token provider, the GraphQL
client and the tool router.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SUPPORTED_INPUT_TYPES = ("string", "number")


class ServerSettings(BaseModel):
    """
    Global endpoint and authentication settings.

    Loaded once from ``forge.yaml`` and shared read-only by every call.
    """
    name: str = Field(default="graphql-forge", description="Server display name")
    version: Optional[str] = Field(default=None, description="Server display version")
    url: str = Field(..., description="GraphQL endpoint URL")
    token_command: Optional[str] = Field(
        default=None,
        description="Shell command whose stdout becomes the bearer token"
    )
    env: dict[str, str] = Field(default_factory=dict)
    env_passthrough: bool = Field(default=False)

    model_config = ConfigDict(frozen=True)


class InputSpec(BaseModel):
    """Definition of a single query variable."""
    name: str
    type: str
    description: str = ""
    required: bool = False


class ToolAnnotations(BaseModel):
    """Behavioral hints published alongside a tool."""
    title: Optional[str] = None
    read_only_hint: Optional[bool] = Field(default=None, alias="readOnlyHint")
    destructive_hint: Optional[bool] = Field(default=None, alias="destructiveHint")
    idempotent_hint: Optional[bool] = Field(default=None, alias="idempotentHint")
    open_world_hint: Optional[bool] = Field(default=None, alias="openWorldHint")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ToolDefinition(BaseModel):
    """
    Complete definition of a GraphQL-backed tool.

    One definition per YAML file. The query is sent verbatim; inputs
    become the query variables.
    """
    name: str = Field(..., description="Tool name exposed to clients")
    description: str = Field(default="", description="Description for LLM usage")
    query: str = Field(..., description="Raw GraphQL query text")
    inputs: list[InputSpec] = Field(default_factory=list)
    annotations: Optional[ToolAnnotations] = None
    output: Optional[str] = Field(
        default=None,
        description="Output format hint (raw, json, toon); informational"
    )
    source: Optional[str] = Field(default=None, description="File the tool was loaded from")

    model_config = ConfigDict(frozen=True)

    @field_validator("inputs", mode="before")
    @classmethod
    def _empty_inputs(cls, value: Any) -> Any:
        return [] if value is None else value

    def unsupported_inputs(self) -> list[InputSpec]:
        """Return inputs whose type tag is not supported."""
        return [i for i in self.inputs if i.type not in SUPPORTED_INPUT_TYPES]


class InvocationContext(BaseModel):
    """
    Context for a single tool invocation.

    Created per call and discarded once the result is returned.
    ``inbound_credential`` is populated from the transport before dispatch
    and read only during token resolution.
    """
    request_id: str = Field(..., description="Unique request identifier")
    tool_name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    inbound_credential: Optional[str] = None

    # Filled in while the call is dispatched
    credential: Optional[str] = None
    response: Optional[bytes] = None


class ToolResultStatus(str, Enum):
    """Status of tool execution."""
    SUCCESS = "success"
    ERROR = "error"
    UNAUTHORIZED = "unauthorized"
    VALIDATION_ERROR = "validation_error"


class ToolResult(BaseModel):
    """
    Result of a tool execution.

    On success ``data`` holds the upstream response body as text.
    """
    tool_name: str
    status: ToolResultStatus
    data: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    execution_time_ms: float = 0

    @property
    def is_error(self) -> bool:
        return self.status != ToolResultStatus.SUCCESS
