"""Pydantic models for powerplatform-mcp configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class PowerPlatformConfig(BaseModel):
    """Dataverse environment and app registration credentials."""

    model_config = ConfigDict(frozen=True)

    organization_url: str = ""
    client_id: str = ""
    client_secret: str = ""
    tenant_id: str = ""
    api_version: str = "9.2"
    timeout: float = 30.0
    max_retries: int = Field(default=3, ge=0)

    def missing_fields(self) -> list[str]:
        """Names of the credential fields that are still empty."""
        required = ("organization_url", "client_id", "client_secret", "tenant_id")
        return [name for name in required if not getattr(self, name)]


class ServerConfig(BaseModel):
    """HTTP listener settings."""

    model_config = ConfigDict(frozen=True)

    host: str = "127.0.0.1"
    port: int = 3000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: LogLevel = "INFO"
    file: str = ""

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: object) -> object:
        return value.strip().upper() if isinstance(value, str) else value


class PowerPlatformMcpConfig(BaseModel):
    """Top-level configuration for powerplatform-mcp."""

    model_config = ConfigDict(frozen=True)

    powerplatform: PowerPlatformConfig = Field(default_factory=PowerPlatformConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
