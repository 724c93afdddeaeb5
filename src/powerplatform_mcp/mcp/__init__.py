"""MCP protocol front end."""
