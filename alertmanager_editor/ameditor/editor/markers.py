"""Editor markers -- structural problems the editor widget has already flagged."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from pydantic import BaseModel

from ameditor.validator.models import ValidationIssue, ValidationSeverity
from ameditor.validator.pipeline import validate_document

logger = logging.getLogger(__name__)


class Marker(BaseModel):
    """An inline problem attached to a document in the editor."""

    severity: ValidationSeverity = ValidationSeverity.error
    message: str
    line: int | None = None
    column: int | None = None
    path: str | None = None
    source: str = "yaml"

    @classmethod
    def from_issue(cls, issue: ValidationIssue) -> Marker:
        return cls(
            severity=issue.severity,
            message=issue.message,
            line=issue.line,
            column=issue.column,
            path=issue.path,
            source=issue.check_name,
        )


class MarkerSource(ABC):
    """Read side of the editor's marker registry."""

    @abstractmethod
    def get_markers(self, document_id: str) -> list[Marker]:
        """Return the markers currently known for ``document_id``.

        Called synchronously at check time; implementations must not cache
        on behalf of the caller.
        """
        ...


class InMemoryMarkerSource(MarkerSource):
    """Marker registry keyed by document identifier."""

    def __init__(self) -> None:
        self._markers: dict[str, list[Marker]] = {}

    def get_markers(self, document_id: str) -> list[Marker]:
        return list(self._markers.get(document_id, []))

    def set_markers(self, document_id: str, markers: list[Marker]) -> None:
        if markers:
            self._markers[document_id] = list(markers)
        else:
            self._markers.pop(document_id, None)

    def clear(self, document_id: str | None = None) -> None:
        if document_id is None:
            self._markers.clear()
        else:
            self._markers.pop(document_id, None)


class MarkerProvider:
    """Recomputes editor markers the way the YAML language service does.

    Syntax errors carry a line/column; schema violations carry the key path.
    Only error-level findings become markers.
    """

    def __init__(self, source: InMemoryMarkerSource) -> None:
        self._source = source

    @property
    def source(self) -> InMemoryMarkerSource:
        return self._source

    async def refresh(self, text: str, document_id: str) -> list[Marker]:
        result = await validate_document(text)
        markers = [
            Marker.from_issue(issue)
            for issue in result.issues
            if issue.severity == ValidationSeverity.error
        ]
        self._source.set_markers(document_id, markers)
        if markers:
            logger.debug("%s: %d marker(s) after refresh", document_id, len(markers))
        return markers
