"""GraphQL Forge server - declarative GraphQL tools over MCP.

Loads tool definitions, resolves upstream credentials, dispatches calls
to the GraphQL endpoint and serves the tools over stdio or HTTP.
"""

__version__ = "0.1.0"
