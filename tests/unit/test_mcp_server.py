"""Tests for the MCP server tools."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import json

import pytest
from mcp.types import (
    CallToolRequest,
    CallToolRequestParams,
    ListToolsRequest,
    TextContent,
)

from powerplatform_mcp.config.schema import PowerPlatformMcpConfig
from powerplatform_mcp.core.errors import ToolArgumentError, ToolNotFoundError
from powerplatform_mcp.mcp.server import (
    SERVER_NAME,
    call_tool,
    create_server,
    list_tools,
    run_server,
)
from powerplatform_mcp.tools import POWERPLATFORM_TOOLS
from tests.fixtures.dataverse import ACCOUNT_RECORD, StubDataverseService

# ── Tool schemas ─────────────────────────────────────────────────


class TestToolSchemas:
    """Protocol clients see exactly what the registry declares."""

    def test_returns_all_tools(self, registry) -> None:
        assert len(list_tools(registry)) == 8

    def test_names_descriptions_and_schemas_match(self, registry) -> None:
        tools = list_tools(registry)
        for tool, definition in zip(tools, POWERPLATFORM_TOOLS, strict=True):
            assert tool.name == definition.name
            assert tool.description == definition.description
            assert tool.inputSchema == definition.input_schema

    def test_get_record_schema(self, registry) -> None:
        tool = next(t for t in list_tools(registry) if t.name == "get-record")
        schema = tool.inputSchema
        assert sorted(schema["required"]) == ["entityNamePlural", "recordId"]
        assert schema["properties"]["recordId"]["type"] == "string"


# ── call_tool routing ────────────────────────────────────────────


class TestCallTool:
    async def test_returns_text_content(self, registry) -> None:
        result = await call_tool(
            registry, "get-global-option-set", {"optionSetName": "budgetstatus"}
        )
        assert len(result) == 1
        assert isinstance(result[0], TextContent)
        assert '"Name": "budgetstatus"' in result[0].text

    async def test_unknown_tool_raises(self, registry) -> None:
        with pytest.raises(ToolNotFoundError):
            await call_tool(registry, "nonexistent-tool", {})

    async def test_invalid_arguments_raise(self, registry, stub_service) -> None:
        with pytest.raises(ToolArgumentError):
            await call_tool(registry, "get-record", {"entityNamePlural": "accounts"})
        assert stub_service.call_log == []

    async def test_none_arguments(self, registry) -> None:
        with pytest.raises(ToolArgumentError):
            await call_tool(registry, "get-entity-metadata", None)

    async def test_service_error_propagates(self) -> None:
        from powerplatform_mcp.tools import build_registry

        registry = build_registry(StubDataverseService(error=RuntimeError("down")))
        with pytest.raises(RuntimeError, match="down"):
            await call_tool(registry, "get-entity-metadata", {"entityName": "account"})


# ── Server wiring ────────────────────────────────────────────────


class TestCreateServer:
    def test_server_name(self, registry) -> None:
        server = create_server(registry)
        assert server.name == SERVER_NAME

    def test_handlers_registered(self, registry) -> None:
        server = create_server(registry)
        assert ListToolsRequest in server.request_handlers
        assert CallToolRequest in server.request_handlers


# ── Protocol envelope ────────────────────────────────────────────


async def _dispatch(registry, name: str, arguments: dict | None):  # type: ignore[no-untyped-def]
    """Send a tools/call request through the server's own handler."""
    server = create_server(registry)
    handler = server.request_handlers[CallToolRequest]
    request = CallToolRequest(
        method="tools/call",
        params=CallToolRequestParams(name=name, arguments=arguments),
    )
    return (await handler(request)).root


class TestCallToolEnvelope:
    async def test_valid_call(self, registry, stub_service) -> None:
        result = await _dispatch(
            registry,
            "get-record",
            {"entityNamePlural": "accounts", "recordId": "00000000-0000-0000-0000-000000000001"},
        )
        assert result.isError is False
        assert len(result.content) == 1
        assert result.content[0].type == "text"
        assert result.content[0].text == json.dumps(ACCOUNT_RECORD, indent=2, ensure_ascii=False)
        assert stub_service.call_log == [
            ("get_record", ("accounts", "00000000-0000-0000-0000-000000000001"))
        ]

    async def test_missing_argument_is_error_result(self, registry, stub_service) -> None:
        result = await _dispatch(registry, "get-record", {"entityNamePlural": "accounts"})
        assert result.isError is True
        assert "recordId" in result.content[0].text
        assert stub_service.call_log == []

    async def test_unknown_tool_is_error_result(self, registry) -> None:
        result = await _dispatch(registry, "nonexistent-tool", {})
        assert result.isError is True
        assert result.content[0].text == "Tool not found"

    async def test_service_failure_is_error_result(self) -> None:
        from powerplatform_mcp.tools import build_registry

        registry = build_registry(StubDataverseService(error=RuntimeError("down")))
        result = await _dispatch(registry, "get-entity-metadata", {"entityName": "account"})
        assert result.isError is True
        assert result.content[0].text == "down"


class TestRunServer:
    async def test_closes_service_after_stdio_ends(self, stub_service) -> None:
        stdio_cm = MagicMock()
        stdio_cm.__aenter__ = AsyncMock(return_value=(MagicMock(), MagicMock()))
        stdio_cm.__aexit__ = AsyncMock(return_value=False)

        with (
            patch(
                "powerplatform_mcp.service.client.PowerPlatformService",
                return_value=stub_service,
            ),
            patch("powerplatform_mcp.mcp.server.stdio_server", return_value=stdio_cm),
            patch("mcp.server.lowlevel.server.Server.run", new_callable=AsyncMock) as run,
        ):
            await run_server(PowerPlatformMcpConfig())

        run.assert_awaited_once()
        assert stub_service.closed is True
