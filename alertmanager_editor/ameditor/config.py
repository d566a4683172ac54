"""Service options -- loaded from /data/options.json or environment variables."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class EditorOptions(BaseModel):
    api_url: str = "http://localhost:3000"
    api_token: str = ""
    leading_wait_ms: int = Field(300, ge=0)
    trailing_wait_ms: int = Field(500, ge=0)
    trailing_max_wait_ms: int = Field(5000, ge=0)
    sequenced_verdicts: bool = False


def dev_mode() -> bool:
    return os.environ.get("AMEDIT_DEV_MODE", "").lower() == "true"


def load_options() -> EditorOptions:
    """Load options from the options file, falling back to environment variables."""
    opts_path = os.environ.get("AMEDIT_OPTIONS_PATH", "/data/options.json")
    if Path(opts_path).exists():
        logger.debug("Loading options from %s", opts_path)
        return EditorOptions.model_validate(json.loads(Path(opts_path).read_text()))
    return EditorOptions(
        api_url=os.environ.get("AMEDIT_API_URL", "http://localhost:3000"),
        api_token=os.environ.get("AMEDIT_API_TOKEN", ""),
        leading_wait_ms=int(os.environ.get("AMEDIT_LEADING_WAIT_MS", "300")),
        trailing_wait_ms=int(os.environ.get("AMEDIT_TRAILING_WAIT_MS", "500")),
        trailing_max_wait_ms=int(os.environ.get("AMEDIT_TRAILING_MAX_WAIT_MS", "5000")),
        sequenced_verdicts=os.environ.get("AMEDIT_SEQUENCED_VERDICTS", "").lower() == "true",
    )
