"""Alertmanager config editor API endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ameditor.deps import get_session_registry
from ameditor.editor.document import DEFAULT_DOCUMENT_ID
from ameditor.editor.markers import Marker
from ameditor.editor.sessions import EditorSessionRegistry, SessionNotFoundError
from ameditor.editor.validation import DisposedError
from ameditor.editor.view import ConfigEditorView, ErrorPanel, PublishUnavailableError
from ameditor.publisher.client import AlertmanagerServiceError
from ameditor.publisher.models import RemoteValidationResult
from ameditor.state.form import FormStatus
from ameditor.validator.alertmanager_schema import config_json_schema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["alertmanager"])


class DocumentChangeRequest(BaseModel):
    text: str = Field(..., description="Full document text after the edit")
    document_id: str = Field(DEFAULT_DOCUMENT_ID, description="Editor model identifier")


class EditorStateResponse(BaseModel):
    tenant_id: str
    loaded: bool
    document_id: str
    config: str
    header: str = ""
    verdict: bool | None = None
    form_status: FormStatus
    publish_enabled: bool
    markers: list[Marker] = Field(default_factory=list)
    remote_validation: RemoteValidationResult
    error_panel: ErrorPanel | None = None


def _state(view: ConfigEditorView) -> EditorStateResponse:
    document = view.document
    markers = view.marker_source.get_markers(document.document_id) if view.marker_source else []
    form = view.form
    return EditorStateResponse(
        tenant_id=view.tenant_id,
        loaded=view.loaded,
        document_id=document.document_id,
        config=document.text,
        header=view.header,
        verdict=view.verdict,
        form_status=form.status,
        publish_enabled=view.publish_enabled,
        markers=markers,
        remote_validation=form.data.remote_validation,
        error_panel=view.error_panel(),
    )


def _get_view(registry: EditorSessionRegistry, tenant_id: str) -> ConfigEditorView:
    try:
        return registry.get(tenant_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e.args[0]))


@router.get("/alertmanager/schema")
async def get_config_schema() -> dict[str, Any]:
    """JSON Schema for the editor widget's inline YAML checks."""
    return config_json_schema()


@router.post("/tenants/{tenant_id}/alertmanager/open", response_model=EditorStateResponse)
async def open_editor(
    tenant_id: str,
    registry: EditorSessionRegistry = Depends(get_session_registry),
) -> EditorStateResponse:
    """Open (or reuse) the tenant's editor session, seeded from the service."""
    try:
        view = await registry.open(tenant_id)
    except AlertmanagerServiceError as e:
        logger.error("Failed to load config for %s: %s", tenant_id, e, exc_info=True)
        raise HTTPException(status_code=502, detail=str(e))
    return _state(view)


@router.post("/tenants/{tenant_id}/alertmanager/changes", response_model=EditorStateResponse)
async def document_changed(
    tenant_id: str,
    body: DocumentChangeRequest,
    registry: EditorSessionRegistry = Depends(get_session_registry),
) -> EditorStateResponse:
    """Editor change event: refresh inline markers, then schedule local checks.

    The marker refresh stands in for the editor widget's own YAML language
    service, which annotates every keystroke. Only verdict checks are debounced.
    """
    view = _get_view(registry, tenant_id)
    await registry.marker_provider(tenant_id).refresh(body.text, body.document_id)
    try:
        view.on_document_changed(body.text, body.document_id)
    except DisposedError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _state(view)


@router.get("/tenants/{tenant_id}/alertmanager/state", response_model=EditorStateResponse)
async def get_editor_state(
    tenant_id: str,
    registry: EditorSessionRegistry = Depends(get_session_registry),
) -> EditorStateResponse:
    return _state(_get_view(registry, tenant_id))


@router.post("/tenants/{tenant_id}/alertmanager/publish", response_model=EditorStateResponse)
async def publish_config(
    tenant_id: str,
    registry: EditorSessionRegistry = Depends(get_session_registry),
) -> EditorStateResponse:
    """Publish the current document; the service's verdict lands in the form."""
    view = _get_view(registry, tenant_id)
    try:
        await view.publish()
    except PublishUnavailableError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _state(view)


@router.delete("/tenants/{tenant_id}/alertmanager", status_code=204)
async def close_editor(
    tenant_id: str,
    registry: EditorSessionRegistry = Depends(get_session_registry),
) -> None:
    try:
        await registry.close(tenant_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e.args[0]))
