"""YAML syntax validation using ruamel.yaml."""

from __future__ import annotations

from io import StringIO
from typing import Any

from ruamel.yaml import YAML, YAMLError

from ameditor.validator.models import (
    DocumentParseError,
    ValidationResult,
)

MAX_DOCUMENT_SIZE = 1_000_000  # characters


def _safe_loader() -> YAML:
    # The safe loader only builds plain dicts, lists and scalars; any
    # application-specific tag is a constructor error.
    yaml = YAML(typ="safe", pure=True)
    yaml.allow_duplicate_keys = False
    return yaml


def parse_document(text: str) -> Any:
    """Parse Alertmanager YAML into plain Python data.

    Raises ``DocumentParseError`` for empty, oversized or malformed input.
    Never mutates anything outside the returned value.
    """
    if not text or not text.strip():
        raise DocumentParseError("Empty YAML document")

    if len(text) > MAX_DOCUMENT_SIZE:
        raise DocumentParseError(
            f"Document exceeds maximum size ({len(text):,} > {MAX_DOCUMENT_SIZE:,} characters)"
        )

    try:
        parsed = _safe_loader().load(StringIO(text))
    except YAMLError as e:
        line = None
        column = None
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            line = mark.line + 1  # 0-indexed to 1-indexed
            column = mark.column + 1
        raise DocumentParseError(str(e), line=line, column=column) from e

    if parsed is None:
        raise DocumentParseError("YAML parsed to empty/null value")

    return parsed


def check_yaml_syntax(text: str) -> ValidationResult:
    """Parse YAML and check for syntax errors.

    Returns a ValidationResult with valid=True and the parsed data on success,
    or valid=False with an error-level issue on failure.
    """
    try:
        parsed = parse_document(text)
    except DocumentParseError as e:
        return ValidationResult(valid=False, issues=[e.to_issue()])

    return ValidationResult(valid=True, yaml_parsed=parsed)
