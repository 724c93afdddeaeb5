"""powerplatform-mcp - Dataverse read tools over MCP and HTTP."""

__version__ = "1.0.0"
