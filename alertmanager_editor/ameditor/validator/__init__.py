"""Validation pipeline for Alertmanager configuration YAML."""

from ameditor.validator.alertmanager_schema import (
    AlertmanagerConfig,
    config_json_schema,
    validate_config,
)
from ameditor.validator.models import (
    ConfigSchemaError,
    DocumentParseError,
    ValidationIssue,
    ValidationResult,
    ValidationSeverity,
)
from ameditor.validator.pipeline import check_document, validate_document
from ameditor.validator.yaml_syntax import parse_document

__all__ = [
    "AlertmanagerConfig",
    "ConfigSchemaError",
    "DocumentParseError",
    "ValidationIssue",
    "ValidationResult",
    "ValidationSeverity",
    "check_document",
    "config_json_schema",
    "parse_document",
    "validate_config",
    "validate_document",
]
