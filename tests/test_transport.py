"""Tests for transport selection and the HTTP application."""

import threading
import time

import httpx
import pytest
import uvicorn
from fastapi.testclient import TestClient
from fastmcp import Client, FastMCP
from fastmcp.client.transports import StreamableHttpTransport
from starlette.routing import Mount

from forge_server.registry import ToolRegistry
from forge_server.router import ToolRouter
from forge_server.auth import TokenProvider
from forge_server.main import build_server
from forge_server.transport import (
    MCP_PATH,
    create_http_app,
    parse_bind_address,
    request_credential,
)
from graphql_client.client import GraphQLClient
from shared.models import ServerSettings, ToolDefinition

URL = "https://graphql.example.com/graphql"


class TestParseBindAddress:

    def test_bare_port(self):
        assert parse_bind_address("8080") == ("0.0.0.0", 8080)

    def test_port_with_colon(self):
        assert parse_bind_address(":8080") == ("0.0.0.0", 8080)

    def test_host_and_port(self):
        assert parse_bind_address("127.0.0.1:9000") == ("127.0.0.1", 9000)

    def test_ipv6_host(self):
        assert parse_bind_address("[::1]:9000") == ("::1", 9000)

    @pytest.mark.parametrize("address", ["", "localhost", "localhost:http", ":0", ":70000"])
    def test_invalid_address(self, address):
        with pytest.raises(ValueError):
            parse_bind_address(address)


def test_request_credential_outside_http_request():
    assert request_credential() is None


class TestHTTPApp:
    """Tests for the FastAPI host application."""

    def setup_method(self):
        self.settings = ServerSettings(name="forge-test", url=URL)
        self.server = FastMCP(self.settings.name)
        router = ToolRouter(self.settings, TokenProvider(self.settings), GraphQLClient())
        self.registry = ToolRegistry(self.server, router, credential_source=request_credential)
        self.registry.register(ToolDefinition(
            name="getUser",
            query="query { viewer { login } }",
        ))

    def test_health(self):
        app = create_http_app(self.server, self.registry, self.settings, version="9.9.9")
        client = TestClient(app)

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "name": "forge-test",
            "version": "9.9.9",
            "tools": ["getUser"],
        }

    def test_mcp_app_mounted(self):
        app = create_http_app(self.server, self.registry, self.settings, version="9.9.9")

        mounts = [route for route in app.routes if isinstance(route, Mount)]

        assert len(mounts) == 1
        mcp_paths = {getattr(route, "path", None) for route in mounts[0].routes}
        assert MCP_PATH in mcp_paths


@pytest.fixture
def live_forge():
    """Serve the HTTP app on a free local port; record upstream requests."""
    upstream_requests: list[httpx.Request] = []

    def upstream(request: httpx.Request) -> httpx.Response:
        upstream_requests.append(request)
        return httpx.Response(200, content=b'{"data":{"user":{"id":"1"}}}')

    settings = ServerSettings(name="forge-live", url=URL)
    server, registry = build_server(
        settings,
        [ToolDefinition.model_validate({
            "name": "getUser",
            "query": "query ($login: String!) { user(login: $login) { id } }",
            "inputs": [{"name": "login", "type": "string", "required": True}],
        })],
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(upstream)),
        credential_source=request_credential
    )
    app = create_http_app(server, registry, settings, version="9.9.9")

    uvicorn_server = uvicorn.Server(
        uvicorn.Config(app, host="127.0.0.1", port=0, log_level="warning")
    )
    thread = threading.Thread(target=uvicorn_server.run, daemon=True)
    thread.start()

    deadline = time.monotonic() + 10
    while not uvicorn_server.started:
        if time.monotonic() > deadline or not thread.is_alive():
            pytest.fail("HTTP server did not start")
        time.sleep(0.01)

    port = uvicorn_server.servers[0].sockets[0].getsockname()[1]
    try:
        yield f"http://127.0.0.1:{port}{MCP_PATH}", upstream_requests
    finally:
        uvicorn_server.should_exit = True
        thread.join(timeout=10)


class TestInboundAuthorization:
    """Tests for forwarding the inbound Authorization header over HTTP."""

    @pytest.mark.asyncio
    async def test_inbound_header_reaches_upstream(self, live_forge):
        url, upstream_requests = live_forge
        transport = StreamableHttpTransport(
            url,
            headers={"Authorization": "Bearer inbound-tok"}
        )

        async with Client(transport) as client:
            result = await client.call_tool("getUser", {"login": "octocat"})

        assert result.content[0].text == '{"data":{"user":{"id":"1"}}}'
        assert len(upstream_requests) == 1
        assert upstream_requests[0].headers["Authorization"] == "Bearer inbound-tok"

    @pytest.mark.asyncio
    async def test_no_inbound_header_sends_none(self, live_forge):
        url, upstream_requests = live_forge

        async with Client(StreamableHttpTransport(url)) as client:
            await client.call_tool("getUser", {"login": "octocat"})

        assert len(upstream_requests) == 1
        assert "Authorization" not in upstream_requests[0].headers
