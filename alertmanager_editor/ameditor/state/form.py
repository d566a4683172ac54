"""In-memory form state for editor views."""

from __future__ import annotations

import logging
from enum import Enum

from pydantic import BaseModel, Field

from ameditor.publisher.models import RemoteValidationResult

logger = logging.getLogger(__name__)


class FormStatus(str, Enum):
    active = "active"
    submitting = "submitting"


class AlertmanagerFormData(BaseModel):
    remote_validation: RemoteValidationResult = Field(
        default_factory=lambda: RemoteValidationResult(success=True)
    )


class Form(BaseModel):
    id: str
    type: str
    code: str
    status: FormStatus = FormStatus.active
    data: AlertmanagerFormData = Field(default_factory=AlertmanagerFormData)


class FormNotFoundError(KeyError):
    """Raised when a form ID is not registered."""


class FormStore:
    """Holds forms by ID; a form is created once and reused afterwards."""

    def __init__(self) -> None:
        self._forms: dict[str, Form] = {}

    @staticmethod
    def form_id(form_type: str, code: str) -> str:
        return f"{form_type}/{code}"

    def use_form(self, form_type: str, code: str) -> str:
        """Register the form if needed and return its ID."""
        form_id = self.form_id(form_type, code)
        if form_id not in self._forms:
            self._forms[form_id] = Form(id=form_id, type=form_type, code=code)
        return form_id

    def get(self, form_id: str) -> Form:
        form = self._forms.get(form_id)
        if form is None:
            raise FormNotFoundError(f"Form '{form_id}' not found")
        return form

    def set_status(self, form_id: str, status: FormStatus) -> None:
        form = self.get(form_id)
        form.status = status
        logger.debug("Form %s -> %s", form_id, status.value)

    def set_remote_validation(self, form_id: str, result: RemoteValidationResult) -> None:
        self.get(form_id).data.remote_validation = result

    def remove(self, form_id: str) -> None:
        self._forms.pop(form_id, None)
