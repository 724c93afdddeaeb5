"""Core types, errors, and shared utilities."""

from powerplatform_mcp.core.errors import (
    ConfigError,
    PowerPlatformMcpError,
    ServiceAuthError,
    ServiceError,
    ServiceNotFoundError,
    ServiceRateLimitError,
    ServiceRequestError,
    ServiceTimeoutError,
    ServiceUnavailableError,
    ToolArgumentError,
    ToolError,
    ToolNotFoundError,
)
from powerplatform_mcp.core.retry import RetryConfig, is_retryable, retry_with_backoff

__all__ = [
    "ConfigError",
    "PowerPlatformMcpError",
    "RetryConfig",
    "ServiceAuthError",
    "ServiceError",
    "ServiceNotFoundError",
    "ServiceRateLimitError",
    "ServiceRequestError",
    "ServiceTimeoutError",
    "ServiceUnavailableError",
    "ToolArgumentError",
    "ToolError",
    "ToolNotFoundError",
    "is_retryable",
    "retry_with_backoff",
]
