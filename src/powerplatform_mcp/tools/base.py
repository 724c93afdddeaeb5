"""Tool data types.

A ``ToolDefinition`` ties a stable tool name to its description, the
pydantic model that declares its parameters, and the async handler
that runs it. The argument model is the single source of the
parameter shape: MCP clients discover its JSON schema, and HTTP
callers are validated against it.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from mcp.types import TextContent
from pydantic import BaseModel, ConfigDict

from powerplatform_mcp.service.base import DataverseService

ToolResult = list[TextContent]

Handler = Callable[[DataverseService, Any], Awaitable[ToolResult]]


class ToolArguments(BaseModel):
    """Base for tool argument models.

    Fields use snake_case in Python and their camelCase alias on
    the wire. Unknown keys are ignored.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    """Name, description, parameter shape and handler for one tool."""

    name: str
    description: str
    arguments: type[ToolArguments]
    handler: Handler

    @property
    def input_schema(self) -> dict[str, Any]:
        """JSON schema for the tool's parameters, using wire names."""
        return self.arguments.model_json_schema(by_alias=True)


def text_result(text: str) -> ToolResult:
    """Wrap rendered text in a single text content block."""
    return [TextContent(type="text", text=text)]
