"""Alertmanager config editor view -- wires edits, local checks and publish."""

from __future__ import annotations

import logging

import httpx
from pydantic import BaseModel

from ameditor.editor.debounce import Scheduler
from ameditor.editor.document import DEFAULT_DOCUMENT_ID, Document, DocumentRef
from ameditor.editor.markers import MarkerSource
from ameditor.editor.validation import (
    LEADING_WAIT,
    TRAILING_MAX_WAIT,
    TRAILING_WAIT,
    CheckFn,
    ValidationDebouncer,
    VerdictStore,
)
from ameditor.publisher.client import AlertmanagerClient, AlertmanagerServiceError
from ameditor.publisher.models import (
    AlertmanagerState,
    PublishRequest,
    RemoteValidationResult,
)
from ameditor.state.form import Form, FormStatus, FormStore
from ameditor.validator.pipeline import check_document

logger = logging.getLogger(__name__)

FORM_TYPE = "alertmanagerConfig"
ERROR_PANEL_TITLE = "Error: Service side validation failed"


class ErrorPanel(BaseModel):
    title: str = ERROR_PANEL_TITLE
    body: str = ""


def render_error_panel(response: RemoteValidationResult) -> ErrorPanel | None:
    """Return the panel for a failed remote validation, or None on success."""
    if response.success:
        return None
    return ErrorPanel(body=response.error_raw_response or response.error_message or "")


class PublishUnavailableError(RuntimeError):
    """Raised when publish is attempted while the form is not active."""


class ConfigEditorView:
    """One tenant's Alertmanager configuration editor.

    Local validation is advisory: the verdict never gates ``publish``. The
    remote service's answer is stored on the form and shown through the
    error panel.
    """

    def __init__(
        self,
        tenant_id: str,
        client: AlertmanagerClient,
        forms: FormStore,
        marker_source: MarkerSource | None = None,
        *,
        leading_wait: float = LEADING_WAIT,
        trailing_wait: float = TRAILING_WAIT,
        trailing_max_wait: float = TRAILING_MAX_WAIT,
        sequenced_verdicts: bool = False,
        scheduler: Scheduler | None = None,
        check: CheckFn = check_document,
    ) -> None:
        self._tenant_id = tenant_id
        self._client = client
        self._forms = forms
        self._marker_source = marker_source
        self._header = ""
        self._loaded = False

        self._form_id = forms.use_form(FORM_TYPE, tenant_id)
        self._document = DocumentRef()
        self._verdicts = VerdictStore(sequenced=sequenced_verdicts)
        self._debouncer = ValidationDebouncer(
            self._document,
            self._verdicts,
            marker_source,
            leading_wait=leading_wait,
            trailing_wait=trailing_wait,
            trailing_max_wait=trailing_max_wait,
            scheduler=scheduler,
            check=check,
        )

    @property
    def tenant_id(self) -> str:
        return self._tenant_id

    @property
    def form_id(self) -> str:
        return self._form_id

    @property
    def form(self) -> Form:
        return self._forms.get(self._form_id)

    @property
    def document(self) -> Document:
        return self._document.current

    @property
    def header(self) -> str:
        return self._header

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def verdict(self) -> bool | None:
        return self._verdicts.verdict

    @property
    def debouncer(self) -> ValidationDebouncer:
        return self._debouncer

    @property
    def marker_source(self) -> MarkerSource | None:
        return self._marker_source

    @property
    def publish_enabled(self) -> bool:
        return self.form.status == FormStatus.active

    def load(self, state: AlertmanagerState | None) -> None:
        """Seed the document and header from the tenant's stored config."""
        if state is None:
            self._loaded = False
            return
        self._header = state.header
        self._document.update(state.config, DEFAULT_DOCUMENT_ID)
        self._loaded = True

    async def open(self) -> None:
        """Fetch the tenant's current config and seed the editor with it."""
        state = await self._client.fetch(self._tenant_id)
        if state is None:
            logger.warning("No Alertmanager config found for tenant %s", self._tenant_id)
        self.load(state)

    def on_document_changed(self, text: str, document_id: str = DEFAULT_DOCUMENT_ID) -> None:
        """Editor change event: store the document, then schedule checks."""
        self._debouncer.on_document_changed(text, document_id)

    async def publish(self) -> RemoteValidationResult | None:
        """Send the current document to the service, whatever the local verdict.

        Returns None without sending when the tenant was never loaded.
        """
        if not self.publish_enabled:
            raise PublishUnavailableError(f"Form {self._form_id} is not active")
        if not self._loaded:
            logger.info("Publish skipped: tenant %s not loaded", self._tenant_id)
            return None

        request = PublishRequest(
            tenant_id=self._tenant_id,
            header=self._header,
            config=self._document.current.text,
            form_id=self._form_id,
        )

        self._forms.set_status(self._form_id, FormStatus.submitting)
        try:
            result = await self._client.publish(request)
        except (AlertmanagerServiceError, httpx.HTTPError) as e:
            logger.error("Publish failed for %s: %s", self._tenant_id, e, exc_info=True)
            result = RemoteValidationResult(
                success=False,
                error_type="transport_error",
                error_message=str(e),
                error_raw_response=str(e),
            )
        finally:
            self._forms.set_status(self._form_id, FormStatus.active)

        self._forms.set_remote_validation(self._form_id, result)
        logger.info(
            "Published Alertmanager config for %s: success=%s", self._tenant_id, result.success
        )
        return result

    def error_panel(self) -> ErrorPanel | None:
        return render_error_panel(self.form.data.remote_validation)

    def dispose(self) -> None:
        self._debouncer.dispose()

    async def aclose(self) -> None:
        await self._debouncer.aclose()
        self._forms.remove(self._form_id)
