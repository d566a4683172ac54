"""Shared FastAPI dependencies."""

from __future__ import annotations

from ameditor.editor.sessions import EditorSessionRegistry
from ameditor.publisher.client import AlertmanagerClient

_session_registry: EditorSessionRegistry | None = None
_alertmanager_client: AlertmanagerClient | None = None


def get_session_registry() -> EditorSessionRegistry:
    """FastAPI dependency: return the shared EditorSessionRegistry."""
    assert _session_registry is not None, "EditorSessionRegistry not initialised"
    return _session_registry

