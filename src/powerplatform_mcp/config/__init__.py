"""Configuration loading and validation."""

from powerplatform_mcp.config.loader import load_config
from powerplatform_mcp.config.schema import (
    LoggingConfig,
    PowerPlatformConfig,
    PowerPlatformMcpConfig,
    ServerConfig,
)

__all__ = [
    "LoggingConfig",
    "PowerPlatformConfig",
    "PowerPlatformMcpConfig",
    "ServerConfig",
    "load_config",
]
