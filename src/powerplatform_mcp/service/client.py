"""Dataverse Web API client.

Authenticates with the client-credentials grant through ``msal`` and
issues read-only OData requests with ``httpx``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx
import msal
import requests

from powerplatform_mcp.core.errors import (
    ConfigError,
    ServiceAuthError,
    ServiceError,
    ServiceNotFoundError,
    ServiceRateLimitError,
    ServiceRequestError,
    ServiceTimeoutError,
    ServiceUnavailableError,
)
from powerplatform_mcp.core.retry import (
    RetryConfig,
    parse_retry_after,
    retry_with_backoff,
)

if TYPE_CHECKING:
    from powerplatform_mcp.config.schema import PowerPlatformConfig
    from powerplatform_mcp.service.base import JSONObject

logger = logging.getLogger(__name__)

AUTHORITY_URL = "https://login.microsoftonline.com/{tenant}"

ODATA_HEADERS = {
    "Accept": "application/json",
    "OData-MaxVersion": "4.0",
    "OData-Version": "4.0",
}

ATTRIBUTE_SELECT = (
    "LogicalName,SchemaName,AttributeType,DisplayName,Description,"
    "RequiredLevel,IsCustomAttribute"
)


def _literal(value: str) -> str:
    """Escape a value for a single-quoted OData key literal in a URL path."""
    return quote(value.replace("'", "''"), safe="'")


def _segment(value: str) -> str:
    """Percent-encode a caller-supplied path segment, slashes included."""
    return quote(value, safe="")


def _error_message(response: httpx.Response) -> str:
    """Pull the human-readable message out of a Dataverse error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return response.text or f"HTTP {response.status_code}"


def _map_status(response: httpx.Response) -> ServiceError:
    """Map an error response to the service error hierarchy."""
    status = response.status_code
    message = _error_message(response)
    retry_after = parse_retry_after(response.headers.get("retry-after"))
    if status in (401, 403):
        return ServiceAuthError(message, status_code=status)
    if status == 404:
        return ServiceNotFoundError(message, status_code=status)
    if status == 429:
        return ServiceRateLimitError(message, retry_after=retry_after)
    if status >= 500:
        return ServiceUnavailableError(
            message, status_code=status, retry_after=retry_after
        )
    return ServiceRequestError(message, status_code=status)


class PowerPlatformService:
    """Read-only client for one Dataverse environment.

    Implements the :class:`DataverseService` protocol. Access tokens are
    cached by the msal application; acquisition is serialized so that
    concurrent calls share one round trip to Entra ID.
    """

    def __init__(
        self,
        config: PowerPlatformConfig,
        *,
        client: httpx.AsyncClient | None = None,
        retry: RetryConfig | None = None,
        credential: msal.ConfidentialClientApplication | None = None,
    ) -> None:
        missing = config.missing_fields()
        if missing:
            msg = "Missing Power Platform settings: " + ", ".join(missing)
            raise ConfigError(msg)

        self._config = config
        self._base_url = config.organization_url.rstrip("/")
        self._api_url = f"{self._base_url}/api/data/v{config.api_version}"
        self._scopes = [f"{self._base_url}/.default"]
        self._client = client or httpx.AsyncClient(timeout=config.timeout)
        self._retry = retry or RetryConfig(max_retries=config.max_retries)
        self._credential = credential
        self._token_lock = asyncio.Lock()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ── Authentication ────────────────────────────────────────

    def _confidential_client(self) -> msal.ConfidentialClientApplication:
        if self._credential is None:
            self._credential = msal.ConfidentialClientApplication(
                self._config.client_id,
                client_credential=self._config.client_secret,
                authority=AUTHORITY_URL.format(tenant=self._config.tenant_id),
            )
        return self._credential

    def _acquire_token(self, *, fresh: bool) -> dict[str, Any]:
        # msal is synchronous; this runs in a worker thread
        credential = self._confidential_client()
        if fresh:
            credential.remove_tokens_for_client()
        result: dict[str, Any] = credential.acquire_token_for_client(scopes=self._scopes)
        return result

    async def _get_token(self, *, fresh: bool = False) -> str:
        """Return an access token, from msal's cache unless ``fresh``."""
        async with self._token_lock:
            try:
                result = await asyncio.to_thread(self._acquire_token, fresh=fresh)
            except requests.RequestException as e:
                raise ServiceUnavailableError(str(e)) from e
            except ValueError as e:
                # msal raises this when the tenant authority cannot be resolved
                raise ServiceAuthError(str(e)) from e

        token = result.get("access_token")
        if not token:
            message = (
                result.get("error_description")
                or result.get("error")
                or "Token response did not include an access token"
            )
            raise ServiceAuthError(str(message))
        if result.get("token_source") == "identity_provider":
            logger.debug("Acquired Dataverse token (expires in %ss)", result.get("expires_in"))
        return str(token)

    # ── Requests ──────────────────────────────────────────────

    async def _send(
        self, path: str, params: dict[str, Any] | None, token: str
    ) -> httpx.Response:
        headers = {**ODATA_HEADERS, "Authorization": f"Bearer {token}"}
        try:
            return await self._client.get(
                f"{self._api_url}/{path}", params=params, headers=headers
            )
        except httpx.TimeoutException as e:
            msg = f"Request to {path} timed out"
            raise ServiceTimeoutError(msg) from e
        except httpx.TransportError as e:
            raise ServiceUnavailableError(str(e)) from e

    async def _request(self, path: str, params: dict[str, Any] | None) -> JSONObject:
        response = await self._send(path, params, await self._get_token())
        if response.status_code == 401:
            # Token revoked before its expiry; one attempt with a new one
            logger.info("Dataverse rejected the cached token, re-authenticating")
            response = await self._send(path, params, await self._get_token(fresh=True))
        if response.status_code >= 400:
            raise _map_status(response)
        result: JSONObject = response.json()
        return result

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> JSONObject:
        def _log_retry(attempt: int, delay: float, error: ServiceError) -> None:
            logger.warning(
                "Retrying %s (attempt %d) in %.1fs: %s", path, attempt, delay, error
            )

        return await retry_with_backoff(
            lambda: self._request(path, params),
            self._retry,
            on_retry=_log_retry,
        )

    # ── Operations ────────────────────────────────────────────

    async def get_entity_metadata(self, entity_name: str) -> JSONObject:
        return await self._get(f"EntityDefinitions(LogicalName='{_literal(entity_name)}')")

    async def get_entity_attributes(self, entity_name: str) -> JSONObject:
        return await self._get(
            f"EntityDefinitions(LogicalName='{_literal(entity_name)}')/Attributes",
            params={
                "$select": ATTRIBUTE_SELECT,
                "$filter": "AttributeType ne 'Virtual'",
            },
        )

    async def get_entity_attribute(
        self, entity_name: str, attribute_name: str
    ) -> JSONObject:
        return await self._get(
            f"EntityDefinitions(LogicalName='{_literal(entity_name)}')"
            f"/Attributes(LogicalName='{_literal(attribute_name)}')"
        )

    async def get_entity_relationships(self, entity_name: str) -> JSONObject:
        """Fetch both relationship collections an entity participates in."""
        name = entity_name.replace("'", "''")
        one_to_many, many_to_many = await asyncio.gather(
            self._get(
                "RelationshipDefinitions/"
                "Microsoft.Dynamics.CRM.OneToManyRelationshipMetadata",
                params={
                    "$filter": (
                        f"ReferencingEntity eq '{name}' "
                        f"or ReferencedEntity eq '{name}'"
                    ),
                },
            ),
            self._get(
                "RelationshipDefinitions/"
                "Microsoft.Dynamics.CRM.ManyToManyRelationshipMetadata",
                params={
                    "$filter": (
                        f"Entity1LogicalName eq '{name}' "
                        f"or Entity2LogicalName eq '{name}'"
                    ),
                },
            ),
        )
        return {"oneToMany": one_to_many, "manyToMany": many_to_many}

    async def get_global_option_set(self, option_set_name: str) -> JSONObject:
        return await self._get(
            f"GlobalOptionSetDefinitions(Name='{_literal(option_set_name)}')"
        )

    async def get_record(self, entity_name_plural: str, record_id: str) -> JSONObject:
        return await self._get(f"{_segment(entity_name_plural)}({_segment(record_id)})")

    async def query_records(
        self, entity_name_plural: str, filter: str, max_records: int
    ) -> JSONObject:
        return await self._get(
            _segment(entity_name_plural),
            params={"$filter": filter, "$top": str(max_records)},
        )

    async def health_check(self) -> bool:
        try:
            await self._request("WhoAmI", None)
        except ServiceError:
            return False
        return True
