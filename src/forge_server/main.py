"""GraphQL Forge - command-line entry point.

Loads the configuration directory, registers one MCP tool per tool file
and serves them over stdio or streamable HTTP.
"""

from typing import Optional

import httpx
import typer
from fastmcp import FastMCP

from graphql_client.client import GraphQLClient
from shared.config import (
    ConfigError,
    load_server_settings,
    load_tool_definitions,
    resolve_app_settings,
)
from shared.logging import get_logger, setup_logging
from shared.models import ServerSettings, ToolDefinition
from forge_server import __version__
from forge_server.auth import TokenProvider
from forge_server.registry import CredentialSource, ToolRegistry
from forge_server.router import ToolRouter
from forge_server.transport import (
    create_http_app,
    parse_bind_address,
    request_credential,
    serve_http,
    serve_stdio,
)

logger = get_logger(__name__)

app = typer.Typer(help="Expose GraphQL queries as MCP tools.", add_completion=False)


def build_server(
    settings: ServerSettings,
    definitions: list[ToolDefinition],
    debug: bool = False,
    http_client: Optional[httpx.AsyncClient] = None,
    credential_source: Optional[CredentialSource] = None
) -> tuple[FastMCP, ToolRegistry]:
    """
    Create the MCP server and register every valid tool.

    The HTTP client is shared by all calls for the life of the process.
    """
    graphql_client = GraphQLClient(
        http_client or httpx.AsyncClient(timeout=None),
        debug=debug
    )
    router = ToolRouter(
        settings=settings,
        token_provider=TokenProvider(settings, debug=debug),
        graphql_client=graphql_client
    )

    server = FastMCP(settings.name, version=settings.version or __version__)
    registry = ToolRegistry(server, router, credential_source=credential_source)
    registered = registry.register_many(definitions)

    logger.info(
        "MCP server ready",
        name=settings.name,
        url=settings.url,
        tool_count=registered,
        skipped=len(definitions) - registered,
        token_command=bool(settings.token_command)
    )
    return server, registry


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.command()
def serve(
    forge_config: Optional[str] = typer.Option(
        None,
        "--forge-config",
        "--forgeConfig",
        help="Configuration directory (defaults to FORGE_CONFIG).",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Log GraphQL traffic to stderr (defaults to FORGE_DEBUG).",
    ),
    http: Optional[str] = typer.Option(
        None,
        "--http",
        help="Serve streamable HTTP on this address, e.g. 8080 or 127.0.0.1:8080.",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Serve the tools defined in the configuration directory."""
    try:
        app_settings = resolve_app_settings(forge_config, debug, http)
        if app_settings.http:
            parse_bind_address(app_settings.http)
    except (ConfigError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    setup_logging("DEBUG" if app_settings.debug else "INFO")
    if app_settings.debug:
        logger.debug("Debug mode enabled")

    try:
        settings = load_server_settings(app_settings.config)
        definitions = load_tool_definitions(app_settings.config)
    except ConfigError as exc:
        typer.echo(f"Error loading configuration: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    server, registry = build_server(
        settings,
        definitions,
        debug=app_settings.debug,
        credential_source=request_credential
    )

    if app_settings.http:
        http_app = create_http_app(
            server,
            registry,
            settings,
            version=settings.version or __version__
        )
        serve_http(http_app, app_settings.http, debug=app_settings.debug)
    else:
        serve_stdio(server)


if __name__ == "__main__":  # pragma: no cover
    app()
