"""Validation pipeline -- marker short-circuit, YAML parse, schema validation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from ameditor.validator.alertmanager_schema import validate_config
from ameditor.validator.models import (
    ConfigSchemaError,
    DocumentParseError,
    ValidationResult,
)
from ameditor.validator.yaml_syntax import check_yaml_syntax, parse_document

if TYPE_CHECKING:
    from ameditor.editor.markers import MarkerSource

logger = logging.getLogger(__name__)

ParseFn = Callable[[str], Any]
ValidateFn = Callable[[Any], Awaitable[Any]]


async def check_document(
    text: str,
    document_id: str,
    marker_source: MarkerSource | None = None,
    use_markers: bool = False,
    parse: ParseFn = parse_document,
    validate: ValidateFn = validate_config,
) -> bool:
    """Run one local validation attempt and collapse it to a verdict.

    Order: 1. editor markers -> 2. YAML parse -> 3. schema validation.
    Markers already reported by the editor short-circuit the attempt before
    any parsing. Parse and schema failures are absorbed here and only the
    boolean outcome leaves this function.
    """
    if use_markers and marker_source is not None:
        markers = marker_source.get_markers(document_id)
        if markers:
            logger.debug(
                "%s: %d editor marker(s) present, skipping parse", document_id, len(markers)
            )
            return False

    try:
        data = parse(text)
    except DocumentParseError as e:
        logger.debug("%s: parse failed at line %s: %s", document_id, e.line, e.message)
        return False

    try:
        await validate(data)
    except ConfigSchemaError as e:
        logger.debug("%s: schema validation failed (%d errors)", document_id, len(e.errors))
        return False

    return True


async def validate_document(text: str) -> ValidationResult:
    """Run the full pipeline and keep every finding.

    Order: 1. YAML syntax -> 2. Alertmanager schema.
    If syntax fails, returns immediately (nothing to check the schema against).
    """
    result = check_yaml_syntax(text)
    if not result.valid:
        return result

    try:
        await validate_config(result.yaml_parsed)
    except ConfigSchemaError as e:
        result.valid = False
        result.issues.extend(e.issues)

    return result
