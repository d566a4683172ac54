"""Remote Alertmanager service data models."""

from __future__ import annotations

from pydantic import BaseModel


class RemoteValidationResult(BaseModel):
    """Authoritative verdict returned by the service after a publish."""

    success: bool
    error_type: str | None = None
    error_message: str | None = None
    error_raw_response: str | None = None


class AlertmanagerState(BaseModel):
    """A tenant's stored Alertmanager configuration."""

    tenant_id: str
    header: str = ""
    config: str = ""


class PublishRequest(BaseModel):
    tenant_id: str
    header: str = ""
    config: str
    form_id: str
