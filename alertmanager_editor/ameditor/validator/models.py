"""Validation data models."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ValidationSeverity(str, Enum):
    """Severity level for validation issues."""

    error = "error"
    warning = "warning"
    info = "info"


class ValidationIssue(BaseModel):
    """A single validation finding."""

    severity: ValidationSeverity
    check_name: str
    message: str
    line: int | None = None
    column: int | None = None
    path: str | None = None


class ValidationResult(BaseModel):
    """Aggregated result from the validation pipeline."""

    valid: bool = True
    issues: list[ValidationIssue] = Field(default_factory=list)
    yaml_parsed: Any = None


class DocumentParseError(Exception):
    """Raised when the document text is not well-formed YAML."""

    def __init__(
        self,
        message: str,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    def to_issue(self) -> ValidationIssue:
        return ValidationIssue(
            severity=ValidationSeverity.error,
            check_name="yaml_syntax",
            message=self.message,
            line=self.line,
            column=self.column,
        )


class ConfigSchemaError(Exception):
    """Raised when parsed data does not satisfy the Alertmanager schema.

    ``name`` is the error category and ``errors`` the flat list of
    human-readable messages. ``issues`` keeps the key path of each failure
    so the editor can place inline markers.
    """

    def __init__(
        self,
        errors: list[str],
        issues: list[ValidationIssue] | None = None,
        name: str = "ValidationError",
    ) -> None:
        super().__init__("; ".join(errors) or name)
        self.name = name
        self.errors = errors
        self.issues = issues or []
