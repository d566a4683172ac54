"""Validation debouncer -- dual-cadence local checks for the config editor."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from ameditor.editor.debounce import Debouncer, Scheduler
from ameditor.editor.document import DocumentRef
from ameditor.editor.markers import MarkerSource
from ameditor.validator.pipeline import check_document

logger = logging.getLogger(__name__)

CheckFn = Callable[..., Awaitable[bool]]

LEADING_WAIT = 0.3
TRAILING_WAIT = 0.5
TRAILING_MAX_WAIT = 5.0


class DisposedError(RuntimeError):
    """Raised when a disposed debouncer receives another document change."""


class VerdictStore:
    """Single tri-state verdict slot: True, False or None (unknown).

    By default every completed attempt overwrites the slot, whatever order
    the attempts were started in. With ``sequenced=True`` a completion from
    an attempt older than the one already recorded is dropped.
    """

    def __init__(self, sequenced: bool = False) -> None:
        self._sequenced = sequenced
        self._verdict: bool | None = None
        self._attempt = 0

    @property
    def verdict(self) -> bool | None:
        return self._verdict

    @property
    def attempt(self) -> int:
        """Attempt number of the last accepted write (0 before any)."""
        return self._attempt

    @property
    def sequenced(self) -> bool:
        return self._sequenced

    def write(self, verdict: bool, attempt: int) -> bool:
        """Record ``verdict`` for ``attempt``; return whether it was kept."""
        if self._sequenced and attempt < self._attempt:
            logger.debug(
                "Dropping stale verdict from attempt %d (current %d)", attempt, self._attempt
            )
            return False
        self._verdict = verdict
        self._attempt = attempt
        return True


class ValidationDebouncer:
    """Schedules local validation checks on every document change.

    Two independent timers watch the same stream of changes:

    * the leading check runs immediately on the first change of a burst and
      not again until ``leading_wait`` passes without changes;
    * the trailing check runs once changes pause for ``trailing_wait``, and
      at least every ``trailing_max_wait`` while they keep coming.

    Each firing starts its own task. Tasks read the document reference when
    they fire and write into the shared verdict store when they complete.
    """

    def __init__(
        self,
        document: DocumentRef,
        verdicts: VerdictStore,
        marker_source: MarkerSource | None = None,
        *,
        leading_wait: float = LEADING_WAIT,
        trailing_wait: float = TRAILING_WAIT,
        trailing_max_wait: float = TRAILING_MAX_WAIT,
        leading_use_markers: bool = False,
        trailing_use_markers: bool = True,
        scheduler: Scheduler | None = None,
        check: CheckFn = check_document,
    ) -> None:
        self._document = document
        self._verdicts = verdicts
        self._marker_source = marker_source
        self._leading_use_markers = leading_use_markers
        self._trailing_use_markers = trailing_use_markers
        self._check = check

        self._leading = Debouncer(
            self._fire_leading,
            leading_wait,
            leading=True,
            trailing=False,
            scheduler=scheduler,
        )
        self._trailing = Debouncer(
            self._fire_trailing,
            trailing_wait,
            max_wait=trailing_max_wait,
            scheduler=scheduler,
        )
        self._tasks: set[asyncio.Task[None]] = set()
        self._attempts = 0
        self._disposed = False

    @property
    def verdict(self) -> bool | None:
        return self._verdicts.verdict

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    @property
    def pending(self) -> bool:
        """True while either timer is armed or a check is still running."""
        return self._leading.pending or self._trailing.pending or bool(self._tasks)

    def on_document_changed(self, text: str, document_id: str) -> None:
        """Record the new document and schedule both checks."""
        if self._disposed:
            raise DisposedError("validation debouncer has been disposed")
        self._document.update(text, document_id)
        self._leading()
        self._trailing()

    def dispose(self) -> None:
        """Cancel both timers and every in-flight check."""
        if self._disposed:
            return
        self._disposed = True
        self._leading.cancel()
        self._trailing.cancel()
        for task in list(self._tasks):
            task.cancel()
        logger.debug("Validation debouncer disposed (%d check(s) cancelled)", len(self._tasks))

    async def aclose(self) -> None:
        """Dispose and wait for cancelled checks to unwind."""
        tasks = list(self._tasks)
        self.dispose()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def wait_idle(self) -> None:
        """Wait until no check task is running."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def __aenter__(self) -> ValidationDebouncer:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # -- timer callbacks --

    def _fire_leading(self) -> None:
        self._spawn("leading", self._leading_use_markers)

    def _fire_trailing(self) -> None:
        self._spawn("trailing", self._trailing_use_markers)

    def _spawn(self, kind: str, use_markers: bool) -> None:
        if self._disposed:
            return
        self._attempts += 1
        attempt = self._attempts
        document = self._document.current
        logger.debug("%s check #%d fired for %s", kind, attempt, document.document_id)

        task = asyncio.get_running_loop().create_task(
            self._run(attempt, kind, document.text, document.document_id, use_markers)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(
        self,
        attempt: int,
        kind: str,
        text: str,
        document_id: str,
        use_markers: bool,
    ) -> None:
        try:
            valid = await self._check(
                text,
                document_id,
                marker_source=self._marker_source,
                use_markers=use_markers,
            )
        except Exception:
            logger.warning("%s check #%d raised; treating as invalid", kind, attempt, exc_info=True)
            valid = False

        if self._disposed:
            return
        kept = self._verdicts.write(valid, attempt)
        logger.debug(
            "%s check #%d -> %s%s", kind, attempt, valid, "" if kept else " (stale, dropped)"
        )
