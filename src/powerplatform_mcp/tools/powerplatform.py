"""Power Platform tool handlers and the static tool table.

Every JSON tool serializes the service payload unchanged. Only the
entity overview prompt composes several calls into one markdown page.
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any, Literal

from pydantic import Field, StrictInt, field_validator

from powerplatform_mcp.tools.base import (
    ToolArguments,
    ToolDefinition,
    ToolResult,
    text_result,
)

if TYPE_CHECKING:
    from powerplatform_mcp.service.base import DataverseService

DEFAULT_MAX_RECORDS = 50

ENTITY_OVERVIEW_TEMPLATE = """## Power Platform Entity: {entity_name}

### Entity Details
- Display Name: {display_name}
- Schema Name: {schema_name}
- Description: {description}
- Primary Key: {primary_key}
- Primary Name: {primary_name}

### Key Attributes
{attributes}

### Relationships
- One-to-Many Relationships: {one_to_many}
- Many-to-Many Relationships: {many_to_many}"""


# ── Argument models ──────────────────────────────────────────────


class PromptArgs(ToolArguments):
    prompt_type: Literal["ENTITY_OVERVIEW"] = Field(alias="promptType")
    entity_name: str = Field(alias="entityName")


class EntityArgs(ToolArguments):
    entity_name: str = Field(alias="entityName")


class AttributeArgs(ToolArguments):
    entity_name: str = Field(alias="entityName")
    attribute_name: str = Field(alias="attributeName")


class OptionSetArgs(ToolArguments):
    option_set_name: str = Field(alias="optionSetName")


class RecordArgs(ToolArguments):
    entity_name_plural: str = Field(alias="entityNamePlural")
    record_id: str = Field(alias="recordId")


class QueryArgs(ToolArguments):
    entity_name_plural: str = Field(alias="entityNamePlural")
    filter: str
    max_records: StrictInt = Field(default=DEFAULT_MAX_RECORDS, alias="maxRecords", ge=0)

    @field_validator("max_records")
    @classmethod
    def _zero_means_default(cls, value: int) -> int:
        return value or DEFAULT_MAX_RECORDS


# ── Rendering ────────────────────────────────────────────────────


def _json_text(value: Any) -> ToolResult:
    return text_result(json.dumps(value, indent=2, ensure_ascii=False))


def _localized_label(metadata: dict[str, Any], key: str) -> str | None:
    """Return ``metadata[key].UserLocalizedLabel.Label`` if present."""
    label = (metadata.get(key) or {}).get("UserLocalizedLabel") or {}
    return label.get("Label") or None


def render_entity_overview(
    entity_name: str,
    metadata: dict[str, Any],
    attributes: dict[str, Any],
    relationships: dict[str, Any],
) -> str:
    """Render the ENTITY_OVERVIEW markdown page."""
    attribute_lines = "\n".join(
        f"- {attr.get('LogicalName')}" for attr in attributes.get("value", [])
    )
    return ENTITY_OVERVIEW_TEMPLATE.format(
        entity_name=entity_name,
        display_name=_localized_label(metadata, "DisplayName") or entity_name,
        schema_name=metadata.get("SchemaName"),
        description=_localized_label(metadata, "Description") or "N/A",
        primary_key=metadata.get("PrimaryIdAttribute"),
        primary_name=metadata.get("PrimaryNameAttribute"),
        attributes=attribute_lines,
        one_to_many=len(relationships["oneToMany"].get("value", [])),
        many_to_many=len(relationships["manyToMany"].get("value", [])),
    )


# ── Handlers ─────────────────────────────────────────────────────


async def use_powerplatform_prompt(
    service: DataverseService, args: PromptArgs
) -> ToolResult:
    metadata, attributes, relationships = await asyncio.gather(
        service.get_entity_metadata(args.entity_name),
        service.get_entity_attributes(args.entity_name),
        service.get_entity_relationships(args.entity_name),
    )
    return text_result(
        render_entity_overview(args.entity_name, metadata, attributes, relationships)
    )


async def get_entity_metadata(service: DataverseService, args: EntityArgs) -> ToolResult:
    return _json_text(await service.get_entity_metadata(args.entity_name))


async def get_entity_attributes(
    service: DataverseService, args: EntityArgs
) -> ToolResult:
    return _json_text(await service.get_entity_attributes(args.entity_name))


async def get_entity_attribute(
    service: DataverseService, args: AttributeArgs
) -> ToolResult:
    return _json_text(
        await service.get_entity_attribute(args.entity_name, args.attribute_name)
    )


async def get_entity_relationships(
    service: DataverseService, args: EntityArgs
) -> ToolResult:
    return _json_text(await service.get_entity_relationships(args.entity_name))


async def get_global_option_set(
    service: DataverseService, args: OptionSetArgs
) -> ToolResult:
    return _json_text(await service.get_global_option_set(args.option_set_name))


async def get_record(service: DataverseService, args: RecordArgs) -> ToolResult:
    return _json_text(await service.get_record(args.entity_name_plural, args.record_id))


async def query_records(service: DataverseService, args: QueryArgs) -> ToolResult:
    return _json_text(
        await service.query_records(
            args.entity_name_plural, args.filter, args.max_records
        )
    )


# ── Tool table ───────────────────────────────────────────────────

POWERPLATFORM_TOOLS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="use-powerplatform-prompt",
        description="Use a predefined prompt for entity overview",
        arguments=PromptArgs,
        handler=use_powerplatform_prompt,
    ),
    ToolDefinition(
        name="get-entity-metadata",
        description="Get metadata for a Dataverse entity",
        arguments=EntityArgs,
        handler=get_entity_metadata,
    ),
    ToolDefinition(
        name="get-entity-attributes",
        description="Get all attributes for a Dataverse entity",
        arguments=EntityArgs,
        handler=get_entity_attributes,
    ),
    ToolDefinition(
        name="get-entity-attribute",
        description="Get a specific attribute from an entity",
        arguments=AttributeArgs,
        handler=get_entity_attribute,
    ),
    ToolDefinition(
        name="get-entity-relationships",
        description="Get all relationships for a Dataverse entity",
        arguments=EntityArgs,
        handler=get_entity_relationships,
    ),
    ToolDefinition(
        name="get-global-option-set",
        description="Get a global option set by name",
        arguments=OptionSetArgs,
        handler=get_global_option_set,
    ),
    ToolDefinition(
        name="get-record",
        description="Get a record by ID",
        arguments=RecordArgs,
        handler=get_record,
    ),
    ToolDefinition(
        name="query-records",
        description="Query Dataverse records with OData filter",
        arguments=QueryArgs,
        handler=query_records,
    ),
)
