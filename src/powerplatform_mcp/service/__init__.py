"""Dataverse service client and interface."""

from powerplatform_mcp.service.base import DataverseService, JSONObject
from powerplatform_mcp.service.client import PowerPlatformService

__all__ = [
    "DataverseService",
    "JSONObject",
    "PowerPlatformService",
]
