"""Alertmanager service client -- publish and fetch tenant configs over GraphQL."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ameditor.publisher.models import (
    AlertmanagerState,
    PublishRequest,
    RemoteValidationResult,
)

logger = logging.getLogger(__name__)

GRAPHQL_PATH = "/_/graphql"

UPDATE_ALERTMANAGER_MUTATION = """
mutation UpdateAlertmanager($tenant_id: String!, $input: AlertmanagerInput!) {
  updateAlertmanager(tenant_id: $tenant_id, input: $input) {
    success
    error_type
    error_message
    error_raw_response
  }
}
"""

GET_ALERTMANAGER_QUERY = """
query GetAlertmanager($tenant_id: String!) {
  getAlertmanager(tenant_id: $tenant_id) {
    tenant_id
    header
    config
  }
}
"""


class AlertmanagerServiceError(RuntimeError):
    """The service could not be reached or answered with an unusable reply."""


class AlertmanagerClient:
    """Async client for the tenant Alertmanager configuration service."""

    def __init__(
        self,
        base_url: str,
        api_token: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_token = api_token
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers: dict[str, str] = {}
            if self._api_token:
                headers["Authorization"] = f"Bearer {self._api_token}"
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                timeout=httpx.Timeout(self._timeout, connect=10.0),
                transport=self._transport,
            )
        return self._client

    async def _execute(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        client = await self._get_client()
        resp = await client.post(
            GRAPHQL_PATH, json={"query": query, "variables": variables}
        )
        if resp.status_code != 200:
            raise AlertmanagerServiceError(
                f"Service error ({resp.status_code}): {resp.text[:200]}"
            )

        try:
            payload = resp.json()
        except ValueError:
            preview = resp.text[:200] if resp.text else "(empty)"
            raise AlertmanagerServiceError(f"Service returned non-JSON response: {preview}")

        if not isinstance(payload, dict):
            raise AlertmanagerServiceError(
                f"Service returned unexpected payload: {type(payload).__name__}"
            )

        errors = payload.get("errors")
        if errors:
            messages = "; ".join(
                e.get("message", str(e)) if isinstance(e, dict) else str(e) for e in errors
            )
            raise AlertmanagerServiceError(f"GraphQL error: {messages}")

        data = payload.get("data") or {}
        if not isinstance(data, dict):
            raise AlertmanagerServiceError("Service returned a non-object 'data' field")
        return data

    async def publish(self, request: PublishRequest) -> RemoteValidationResult:
        """Send a tenant's header + config; return the service's verdict."""
        logger.debug(
            "Publishing Alertmanager config for %s (form %s, %d bytes)",
            request.tenant_id,
            request.form_id,
            len(request.config),
        )
        data = await self._execute(
            UPDATE_ALERTMANAGER_MUTATION,
            {
                "tenant_id": request.tenant_id,
                "input": {"header": request.header, "config": request.config},
            },
        )
        reply = data.get("updateAlertmanager")
        if reply is None:
            raise AlertmanagerServiceError("Reply is missing 'updateAlertmanager'")
        try:
            return RemoteValidationResult.model_validate(reply)
        except ValidationError as e:
            raise AlertmanagerServiceError(f"Malformed publish reply: {e}") from e

    async def fetch(self, tenant_id: str) -> AlertmanagerState | None:
        """Return the tenant's stored config, or None when it has none."""
        data = await self._execute(GET_ALERTMANAGER_QUERY, {"tenant_id": tenant_id})
        reply = data.get("getAlertmanager")
        if reply is None:
            return None
        if not isinstance(reply, dict):
            raise AlertmanagerServiceError("Malformed getAlertmanager reply")
        try:
            return AlertmanagerState(
                tenant_id=reply.get("tenant_id") or tenant_id,
                header=reply.get("header") or "",
                config=reply.get("config") or "",
            )
        except ValidationError as e:
            raise AlertmanagerServiceError(f"Malformed getAlertmanager reply: {e}") from e

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
