"""Exception hierarchy for powerplatform-mcp.

Every module imports from here. The hierarchy is:

    PowerPlatformMcpError
    ├── ServiceError(message, status_code, retry_after)
    │   ├── ServiceAuthError
    │   ├── ServiceNotFoundError
    │   ├── ServiceRequestError
    │   ├── ServiceRateLimitError
    │   ├── ServiceTimeoutError
    │   └── ServiceUnavailableError
    ├── ToolError
    │   ├── ToolNotFoundError(name)
    │   └── ToolArgumentError(name, errors)
    └── ConfigError
"""

from __future__ import annotations

from collections.abc import Sequence


class PowerPlatformMcpError(Exception):
    """Base exception for all powerplatform-mcp errors."""


# ─── Service Errors ───────────────────────────────────────────


class ServiceError(PowerPlatformMcpError):
    """Base for Dataverse Web API failures.

    The message is the upstream error text, unchanged, so callers
    of the dispatch layer see exactly what Dataverse reported.
    ``retry_after`` holds the parsed ``Retry-After`` header in seconds,
    when the response carried one.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retry_after: float | None = None,
    ) -> None:
        self.status_code = status_code
        self.retry_after = retry_after
        super().__init__(message)


class ServiceAuthError(ServiceError):
    """Token acquisition failed or the token was rejected (401, 403)."""


class ServiceNotFoundError(ServiceError):
    """Entity, attribute, option set or record does not exist (404)."""


class ServiceRequestError(ServiceError):
    """Dataverse rejected the request, e.g. a malformed OData filter."""


class ServiceRateLimitError(ServiceError):
    """Service protection limit hit (429)."""

    def __init__(
        self,
        message: str = "Rate limited",
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, status_code=429, retry_after=retry_after)


class ServiceTimeoutError(ServiceError):
    """Web API call timed out."""


class ServiceUnavailableError(ServiceError):
    """Dataverse is unreachable or returned a 5xx."""


# ─── Tool Errors ──────────────────────────────────────────────


class ToolError(PowerPlatformMcpError):
    """Base for tool lookup and argument errors."""


class ToolNotFoundError(ToolError):
    """No tool is registered under the requested name."""

    def __init__(self, name: str | None) -> None:
        self.name = name
        super().__init__("Tool not found")


class ToolArgumentError(ToolError):
    """Parameters do not match the tool's declared shape."""

    def __init__(self, name: str, errors: Sequence[str]) -> None:
        self.name = name
        self.errors = list(errors)
        super().__init__(f"Invalid parameters for {name}: " + "; ".join(self.errors))


# ─── Configuration Errors ─────────────────────────────────────


class ConfigError(PowerPlatformMcpError):
    """Invalid or incomplete configuration."""
