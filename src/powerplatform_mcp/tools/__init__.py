"""Tool definitions and registry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from powerplatform_mcp.tools.base import ToolDefinition, ToolResult, text_result
from powerplatform_mcp.tools.powerplatform import POWERPLATFORM_TOOLS
from powerplatform_mcp.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from powerplatform_mcp.service.base import DataverseService


def build_registry(service: DataverseService) -> ToolRegistry:
    """Bind the Power Platform tool table to a service."""
    return ToolRegistry(service, POWERPLATFORM_TOOLS)


__all__ = [
    "POWERPLATFORM_TOOLS",
    "ToolDefinition",
    "ToolRegistry",
    "ToolResult",
    "build_registry",
    "text_result",
]
