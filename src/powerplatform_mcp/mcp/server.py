"""MCP server exposing the Power Platform tools."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from powerplatform_mcp import __version__

if TYPE_CHECKING:
    from powerplatform_mcp.config.schema import PowerPlatformMcpConfig
    from powerplatform_mcp.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

SERVER_NAME = "powerplatform-mcp"


def list_tools(registry: ToolRegistry) -> list[Tool]:
    """Describe every registered tool as an MCP ``Tool``."""
    return [
        Tool(
            name=definition.name,
            description=definition.description,
            inputSchema=definition.input_schema,
        )
        for definition in registry.list_definitions()
    ]


async def call_tool(
    registry: ToolRegistry, name: str, arguments: dict[str, Any] | None
) -> list[TextContent]:
    """Run a tool through the registry.

    Unknown tools, invalid arguments and service failures raise; the
    MCP server turns them into an ``isError`` result.
    """
    return await registry.invoke(name, arguments or {})


def create_server(registry: ToolRegistry) -> Server:
    """Build an MCP server whose tool list and dispatch come from *registry*."""
    server: Server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()  # type: ignore[no-untyped-call, untyped-decorator]
    async def _list_tools() -> list[Tool]:
        return list_tools(registry)

    @server.call_tool()  # type: ignore[untyped-decorator]
    async def _call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        return await call_tool(registry, name, arguments)

    return server


async def run_server(config: PowerPlatformMcpConfig) -> None:
    """Start the MCP server on stdio."""
    from powerplatform_mcp.service.client import PowerPlatformService
    from powerplatform_mcp.tools import build_registry

    service = PowerPlatformService(config.powerplatform)
    registry = build_registry(service)
    server = create_server(registry)
    logger.info("Serving %d tools over MCP stdio", len(registry))
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
    finally:
        await service.aclose()
