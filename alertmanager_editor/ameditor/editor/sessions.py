"""Editor session registry -- one config editor view per tenant."""

from __future__ import annotations

import asyncio
import logging

from ameditor.config import EditorOptions
from ameditor.editor.markers import InMemoryMarkerSource, MarkerProvider
from ameditor.editor.view import ConfigEditorView
from ameditor.publisher.client import AlertmanagerClient
from ameditor.state.form import FormStore

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    """Raised when no editor session is open for a tenant."""


class EditorSessionRegistry:
    """Creates, looks up and disposes tenant editor views.

    Each view gets its own marker registry; document identifiers are only
    unique within one editor.
    """

    def __init__(self, client: AlertmanagerClient, options: EditorOptions) -> None:
        self._client = client
        self._options = options
        self._forms = FormStore()
        self._views: dict[str, ConfigEditorView] = {}
        self._marker_providers: dict[str, MarkerProvider] = {}
        self._open_locks: dict[str, asyncio.Lock] = {}

    @property
    def forms(self) -> FormStore:
        return self._forms

    def __len__(self) -> int:
        return len(self._views)

    def __contains__(self, tenant_id: object) -> bool:
        return tenant_id in self._views

    async def open(self, tenant_id: str) -> ConfigEditorView:
        """Return the tenant's view, creating and seeding it on first use.

        Concurrent opens for one tenant share a single view.
        """
        view = self._views.get(tenant_id)
        if view is not None:
            return view

        lock = self._open_locks.setdefault(tenant_id, asyncio.Lock())
        async with lock:
            view = self._views.get(tenant_id)
            if view is not None:
                return view
            return await self._create(tenant_id)

    async def _create(self, tenant_id: str) -> ConfigEditorView:
        markers = InMemoryMarkerSource()
        view = ConfigEditorView(
            tenant_id,
            self._client,
            self._forms,
            markers,
            leading_wait=self._options.leading_wait_ms / 1000,
            trailing_wait=self._options.trailing_wait_ms / 1000,
            trailing_max_wait=self._options.trailing_max_wait_ms / 1000,
            sequenced_verdicts=self._options.sequenced_verdicts,
        )
        try:
            await view.open()
        except Exception:
            await view.aclose()
            raise

        self._views[tenant_id] = view
        self._marker_providers[tenant_id] = MarkerProvider(markers)
        logger.info("Editor session opened for tenant %s", tenant_id)
        return view

    def get(self, tenant_id: str) -> ConfigEditorView:
        view = self._views.get(tenant_id)
        if view is None:
            raise SessionNotFoundError(f"No editor session for tenant '{tenant_id}'")
        return view

    def marker_provider(self, tenant_id: str) -> MarkerProvider:
        provider = self._marker_providers.get(tenant_id)
        if provider is None:
            raise SessionNotFoundError(f"No editor session for tenant '{tenant_id}'")
        return provider

    async def close(self, tenant_id: str) -> None:
        view = self._views.pop(tenant_id, None)
        self._marker_providers.pop(tenant_id, None)
        if view is None:
            raise SessionNotFoundError(f"No editor session for tenant '{tenant_id}'")
        await view.aclose()
        logger.info("Editor session closed for tenant %s", tenant_id)

    async def close_all(self) -> None:
        for tenant_id in list(self._views):
            await self.close(tenant_id)
