"""The editor's current document, held in a single updatable slot."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_DOCUMENT_ID = "alertmanager-config.yaml"


@dataclass(frozen=True)
class Document:
    text: str
    document_id: str = DEFAULT_DOCUMENT_ID


class DocumentRef:
    """Mutable reference to the latest document snapshot.

    Writers replace the snapshot; readers take whatever is current when they
    run, so a check scheduled earlier always sees the newest text.
    """

    def __init__(self, text: str = "", document_id: str = DEFAULT_DOCUMENT_ID) -> None:
        self._current = Document(text=text, document_id=document_id)

    @property
    def current(self) -> Document:
        return self._current

    def update(self, text: str, document_id: str | None = None) -> Document:
        self._current = Document(
            text=text,
            document_id=document_id or self._current.document_id,
        )
        return self._current
