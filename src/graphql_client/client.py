"""GraphQL client for the upstream endpoint.

Posts a query and its variables as JSON and hands back the raw response
body. The body is never parsed or validated: GraphQL error envelopes and
non-2xx responses reach the caller untouched.
"""

import json
from typing import Any, Optional

import httpx

from shared.logging import credential_fingerprint, get_logger

logger = get_logger(__name__)


class GraphQLClientError(Exception):
    """Base exception for GraphQL client errors."""
    pass


class GraphQLTransportError(GraphQLClientError):
    """The request could not be sent or its response could not be read."""
    pass


def build_payload(query: str, variables: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    """Build the JSON request body; empty variables are omitted."""
    payload: dict[str, Any] = {"query": query}
    if variables:
        payload["variables"] = variables
    return payload


class GraphQLClient:
    """
    Client for a GraphQL endpoint.

    The underlying ``httpx.AsyncClient`` is shared across calls and is
    owned by whoever created it. No timeout is applied unless the injected
    client carries one.
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        debug: bool = False
    ) -> None:
        """
        Initialize the GraphQL client.

        Args:
            http_client: Shared HTTP client; a timeout-free one is created if omitted
            debug: Log full requests and responses
        """
        self._client = http_client or httpx.AsyncClient(timeout=None)
        self.debug = debug

    async def close(self) -> None:
        """Close the HTTP client."""
        if not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "GraphQLClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def execute(
        self,
        url: str,
        query: str,
        variables: Optional[dict[str, Any]] = None,
        credential: str = ""
    ) -> bytes:
        """
        Execute a GraphQL query.

        Args:
            url: GraphQL endpoint URL
            query: Raw query text
            variables: Query variables
            credential: Authorization header value, sent verbatim when non-empty

        Returns:
            The raw response body, whatever the HTTP status

        Raises:
            GraphQLTransportError: On connection, timeout or read failures
        """
        body = json.dumps(build_payload(query, variables))
        headers = {"Content-Type": "application/json"}
        if credential:
            headers["Authorization"] = credential

        if self.debug:
            self._log_request(url, headers, body)

        try:
            response = await self._client.post(url, content=body, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("GraphQL request failed", url=url, error=str(e))
            raise GraphQLTransportError(f"execute request: {e}") from e

        if self.debug:
            self._log_response(response)

        return response.content

    def _log_request(self, url: str, headers: dict[str, str], body: str) -> None:
        logged_headers = dict(headers)
        if "Authorization" in logged_headers:
            logged_headers["Authorization"] = (
                f"sha256:{credential_fingerprint(logged_headers['Authorization'])}"
            )
        logger.debug(
            "GraphQL request",
            method="POST",
            url=url,
            headers=logged_headers,
            body=body
        )

    def _log_response(self, response: httpx.Response) -> None:
        try:
            body = json.dumps(json.loads(response.content), indent=2)
        except ValueError:
            body = response.text
        logger.debug(
            "GraphQL response",
            status_code=response.status_code,
            body=body
        )
