"""FastAPI application -- Alertmanager config editor entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

import ameditor.deps as deps
from ameditor.api.editor import router as editor_router
from ameditor.config import dev_mode, load_options
from ameditor.editor.sessions import EditorSessionRegistry
from ameditor.publisher.client import AlertmanagerClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: init resources on startup, clean up on shutdown."""
    log_level = logging.DEBUG if dev_mode() else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    options = load_options()
    logger.info(
        "Alertmanager editor starting with options: %s",
        options.model_dump(exclude={"api_token"}),
    )

    deps._alertmanager_client = AlertmanagerClient(
        base_url=options.api_url,
        api_token=options.api_token,
    )
    deps._session_registry = EditorSessionRegistry(deps._alertmanager_client, options)

    yield

    # Shutdown: cancel every editor's timers before the loop goes away
    if deps._session_registry:
        await deps._session_registry.close_all()
    if deps._alertmanager_client:
        await deps._alertmanager_client.close()
    deps._session_registry = None
    deps._alertmanager_client = None


app = FastAPI(
    title="Alertmanager Config Editor",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(editor_router)
