"""Transport selection for GraphQL Forge.

stdio is the default. With an HTTP bind address the FastMCP streamable
HTTP app is hosted inside a FastAPI application and served by uvicorn.
"""

import uuid
from typing import Any, Optional

import uvicorn
from fastapi import FastAPI
from fastmcp import FastMCP
from fastmcp.server.dependencies import get_http_request

from shared.logging import bind_context, clear_context, get_logger
from shared.models import ServerSettings
from forge_server.registry import ToolRegistry

logger = get_logger(__name__)

MCP_PATH = "/mcp"
DEFAULT_HOST = "0.0.0.0"


def request_credential() -> Optional[str]:
    """
    Authorization header of the HTTP request being dispatched.

    Returns None outside an HTTP request (stdio transport) or when the
    header is absent.
    """
    try:
        request = get_http_request()
    except RuntimeError:
        return None
    return request.headers.get("authorization") or None


def parse_bind_address(address: str, default_host: str = DEFAULT_HOST) -> tuple[str, int]:
    """
    Parse ``8080``, ``:8080`` or ``host:port``.

    Raises:
        ValueError: If the port is missing or out of range
    """
    host, sep, port = address.strip().rpartition(":")
    if not sep:
        host, port = "", address.strip()

    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"invalid HTTP bind address: {address!r}")

    if not 0 < port_number < 65536:
        raise ValueError(f"port out of range in HTTP bind address: {address!r}")

    return host.strip("[]") or default_host, port_number


class RequestContextMiddleware:
    """Bind a request id into the log context for each HTTP request."""

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(self, scope: dict, receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        bind_context(request_id=str(uuid.uuid4()), path=scope.get("path"))
        try:
            await self.app(scope, receive, send)
        finally:
            clear_context()


def create_http_app(
    server: FastMCP,
    registry: ToolRegistry,
    settings: ServerSettings,
    version: str
) -> FastAPI:
    """Create the FastAPI application hosting the MCP endpoint."""
    mcp_app = server.http_app(path=MCP_PATH)

    app = FastAPI(
        title=settings.name,
        description="GraphQL tools over MCP",
        version=version,
        lifespan=mcp_app.lifespan
    )
    app.add_middleware(RequestContextMiddleware)

    @app.get("/health", tags=["System"])
    async def health_check() -> dict[str, Any]:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "name": settings.name,
            "version": version,
            "tools": registry.tool_names(),
        }

    app.mount("/", mcp_app)
    return app


def serve_stdio(server: FastMCP) -> None:
    """Serve over stdin/stdout until the client disconnects."""
    logger.info("Starting MCP server on stdio", name=server.name)
    server.run(transport="stdio")


def serve_http(app: FastAPI, address: str, debug: bool = False) -> None:
    """Serve the HTTP application on ``address``."""
    host, port = parse_bind_address(address)
    logger.info(
        "Starting MCP server using streamable HTTP transport",
        endpoint=f"http://{host}:{port}{MCP_PATH}"
    )
    uvicorn.run(app, host=host, port=port, log_level="debug" if debug else "info")
