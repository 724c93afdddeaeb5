"""Tool registry: the one table both front ends dispatch through.

Built once from a sequence of :class:`ToolDefinition` and bound to a
Dataverse service. It cannot be changed after construction.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from powerplatform_mcp.core.errors import ToolArgumentError, ToolNotFoundError

if TYPE_CHECKING:
    from powerplatform_mcp.service.base import DataverseService
    from powerplatform_mcp.tools.base import ToolArguments, ToolDefinition, ToolResult


def _format_errors(exc: ValidationError) -> list[str]:
    """Render pydantic errors as ``field: message`` strings."""
    messages: list[str] = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "parameters"
        messages.append(f"{field}: {err['msg']}")
    return messages


class ToolRegistry:
    """Immutable registry of tools bound to one Dataverse service.

    Supports lookup by exact name, listing definitions (for MCP
    discovery), argument validation and invocation.
    """

    def __init__(
        self,
        service: DataverseService,
        definitions: Iterable[ToolDefinition],
    ) -> None:
        """Build the registry.

        Raises:
            ValueError: If two definitions share a name.
        """
        tools: dict[str, ToolDefinition] = {}
        for definition in definitions:
            if definition.name in tools:
                msg = f"Tool already registered: {definition.name}"
                raise ValueError(msg)
            tools[definition.name] = definition
        self._tools: Mapping[str, ToolDefinition] = MappingProxyType(tools)
        self._service = service

    @property
    def service(self) -> DataverseService:
        return self._service

    def get(self, name: str | None) -> ToolDefinition:
        """Get a tool definition by name.

        Raises:
            ToolNotFoundError: If the tool is not registered.
        """
        if name is None or name not in self._tools:
            raise ToolNotFoundError(name)
        return self._tools[name]

    def list_definitions(self) -> list[ToolDefinition]:
        """Return definitions for all registered tools."""
        return list(self._tools.values())

    def list_names(self) -> list[str]:
        """Return names of all registered tools."""
        return list(self._tools.keys())

    def validate(self, name: str | None, parameters: Any) -> ToolArguments:
        """Check a raw parameter bag against the tool's argument model.

        Raises:
            ToolNotFoundError: If the tool is not registered.
            ToolArgumentError: If the parameters do not fit the shape.
        """
        definition = self.get(name)
        if parameters is None:
            parameters = {}
        if not isinstance(parameters, Mapping):
            raise ToolArgumentError(definition.name, ["parameters: must be an object"])
        try:
            return definition.arguments.model_validate(dict(parameters))
        except ValidationError as exc:
            raise ToolArgumentError(definition.name, _format_errors(exc)) from exc

    async def invoke(self, name: str | None, parameters: Any) -> ToolResult:
        """Validate parameters and run the tool's handler.

        Handler failures propagate unchanged.
        """
        definition = self.get(name)
        arguments = self.validate(definition.name, parameters)
        return await definition.handler(self._service, arguments)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools
