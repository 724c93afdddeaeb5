"""Rich rendering of the tool catalog for the ``tools`` command."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from collections.abc import Sequence

    from powerplatform_mcp.tools.base import ToolDefinition


def _describe_parameter(name: str, spec: dict[str, Any], required: set[str]) -> str:
    """One-line summary like ``maxRecords?: integer = 50``."""
    if "enum" in spec:
        kind = " | ".join(f'"{v}"' for v in spec["enum"])
    elif "const" in spec:
        kind = f'"{spec["const"]}"'
    else:
        kind = spec.get("type", "any")
    marker = "" if name in required else "?"
    line = f"{name}{marker}: {kind}"
    if "default" in spec:
        line += f" = {spec['default']}"
    return line


def tool_table(definitions: Sequence[ToolDefinition]) -> Table:
    """Build a table with one row per tool."""
    table = Table(title="Power Platform tools", show_lines=False)
    table.add_column("Tool", style="bold cyan", no_wrap=True)
    table.add_column("Description")
    table.add_column("Parameters", style="green")

    for definition in definitions:
        schema = definition.input_schema
        required = set(schema.get("required", []))
        params = "\n".join(
            _describe_parameter(name, spec, required)
            for name, spec in schema.get("properties", {}).items()
        )
        table.add_row(definition.name, definition.description, params)
    return table


def show_tools(
    definitions: Sequence[ToolDefinition], console: Console | None = None
) -> None:
    """Print the tool catalog."""
    (console or Console()).print(tool_table(definitions))
