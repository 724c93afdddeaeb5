"""Dataverse service interface.

The tool handlers depend only on the ``DataverseService`` protocol, so
tests and alternative backends can stand in for the Web API client.
Payloads are returned exactly as Dataverse sends them (decoded JSON).
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

JSONObject = dict[str, Any]


@runtime_checkable
class DataverseService(Protocol):
    """Read operations the tools need from a Dataverse environment.

    Every operation raises ``ServiceError`` (or a subclass) on failure.
    """

    async def get_entity_metadata(self, entity_name: str) -> JSONObject:
        """Return the EntityDefinition for a logical name."""
        ...

    async def get_entity_attributes(self, entity_name: str) -> JSONObject:
        """Return the attribute collection (``{"value": [...]}``)."""
        ...

    async def get_entity_attribute(
        self, entity_name: str, attribute_name: str
    ) -> JSONObject:
        """Return one attribute's metadata."""
        ...

    async def get_entity_relationships(self, entity_name: str) -> JSONObject:
        """Return ``{"oneToMany": {...}, "manyToMany": {...}}``."""
        ...

    async def get_global_option_set(self, option_set_name: str) -> JSONObject:
        """Return a global option set definition."""
        ...

    async def get_record(self, entity_name_plural: str, record_id: str) -> JSONObject:
        """Return a single record by id."""
        ...

    async def query_records(
        self, entity_name_plural: str, filter: str, max_records: int
    ) -> JSONObject:
        """Return records matching an OData filter, capped at max_records."""
        ...

    async def health_check(self) -> bool:
        """Verify the environment is reachable and credentials are valid.

        Returns True if healthy, False otherwise. Must not raise.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...
