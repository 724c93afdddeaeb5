"""POST /invoke -- run one tool by name over plain HTTP."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from powerplatform_mcp.core.errors import ToolArgumentError

if TYPE_CHECKING:
    from powerplatform_mcp.tools.base import ToolResult
    from powerplatform_mcp.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tools"])

NO_OUTPUT = "No output."


class InvokeRequest(BaseModel):
    tool: str | None = None
    parameters: Any = None


class InvokeResponse(BaseModel):
    output: str


class ToolInfo(BaseModel):
    name: str
    description: str
    inputSchema: dict[str, Any]  # noqa: N815


class ToolListResponse(BaseModel):
    tools: list[ToolInfo]


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _first_text(result: ToolResult) -> str:
    """Text of the first content block, or the no-output placeholder."""
    if not result:
        return NO_OUTPUT
    return getattr(result[0], "text", None) or NO_OUTPUT


@router.post("/invoke", response_model=InvokeResponse)
async def invoke(body: InvokeRequest, request: Request) -> InvokeResponse | JSONResponse:
    """Invoke a registered tool with a parameter object."""
    registry: ToolRegistry = request.app.state.registry

    if body.tool is None or body.tool not in registry:
        return _error(404, "Tool not found")

    try:
        result = await registry.invoke(body.tool, body.parameters)
    except ToolArgumentError as exc:
        logger.info("Rejected parameters for %s: %s", body.tool, exc)
        return _error(400, str(exc))
    except Exception as exc:
        logger.exception("Invoke error for tool %s", body.tool)
        return _error(500, str(exc))

    return InvokeResponse(output=_first_text(result))


@router.get("/tools", response_model=ToolListResponse)
async def list_tools(request: Request) -> ToolListResponse:
    """List the tool catalog with the same schemas MCP clients see."""
    registry: ToolRegistry = request.app.state.registry
    return ToolListResponse(
        tools=[
            ToolInfo(
                name=definition.name,
                description=definition.description,
                inputSchema=definition.input_schema,
            )
            for definition in registry.list_definitions()
        ]
    )
