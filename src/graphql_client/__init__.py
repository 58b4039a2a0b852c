"""GraphQL Client - pass-through HTTP client for the upstream endpoint."""

from graphql_client.client import (
    GraphQLClient,
    GraphQLClientError,
    GraphQLTransportError,
)

__all__ = ["GraphQLClient", "GraphQLClientError", "GraphQLTransportError"]
