"""Tests for the dual-cadence validation debouncer."""

from __future__ import annotations

import asyncio

import pytest

from ameditor.editor.document import DocumentRef
from ameditor.editor.markers import InMemoryMarkerSource, Marker
from ameditor.editor.validation import (
    DisposedError,
    ValidationDebouncer,
    VerdictStore,
)
from ameditor.validator.pipeline import check_document

DOC_ID = "alertmanager-config.yaml"


class RecordingCheck:
    """Stand-in check that records each call and returns a fixed verdict."""

    def __init__(self, result: bool = True) -> None:
        self.result = result
        self.calls: list[dict] = []

    async def __call__(self, text, document_id, marker_source=None, use_markers=False) -> bool:
        self.calls.append({"text": text, "document_id": document_id, "use_markers": use_markers})
        return self.result

    @property
    def leading(self) -> int:
        return sum(1 for c in self.calls if not c["use_markers"])

    @property
    def trailing(self) -> int:
        return sum(1 for c in self.calls if c["use_markers"])


class ControlledCheck:
    """Check whose completions are released by the test, one future per call."""

    def __init__(self) -> None:
        self.futures: list[asyncio.Future] = []
        self.texts: list[str] = []

    async def __call__(self, text, document_id, marker_source=None, use_markers=False) -> bool:
        fut = asyncio.get_running_loop().create_future()
        self.futures.append(fut)
        self.texts.append(text)
        return await fut


def _debouncer(scheduler, check, **kwargs) -> tuple[ValidationDebouncer, DocumentRef, VerdictStore]:
    document = DocumentRef()
    verdicts = VerdictStore(sequenced=kwargs.pop("sequenced", False))
    debouncer = ValidationDebouncer(
        document, verdicts, kwargs.pop("marker_source", None), scheduler=scheduler, check=check, **kwargs
    )
    return debouncer, document, verdicts


async def _settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_verdict_starts_unknown(scheduler) -> None:
    debouncer, _, _ = _debouncer(scheduler, RecordingCheck())
    assert debouncer.verdict is None


@pytest.mark.asyncio
async def test_burst_triggers_single_leading_check(scheduler) -> None:
    check = RecordingCheck()
    debouncer, _, _ = _debouncer(scheduler, check)

    for i in range(10):
        debouncer.on_document_changed(f"edit {i}", DOC_ID)
        scheduler.advance(0.005)
    await debouncer.wait_idle()

    assert check.leading == 1
    assert check.trailing == 0
    assert check.calls[0]["text"] == "edit 0"


@pytest.mark.asyncio
async def test_trailing_check_after_pause(scheduler) -> None:
    check = RecordingCheck()
    debouncer, _, _ = _debouncer(scheduler, check)

    for i in range(10):
        debouncer.on_document_changed(f"edit {i}", DOC_ID)
        scheduler.advance(0.005)
    scheduler.advance(0.5)
    await debouncer.wait_idle()

    assert check.trailing == 1
    assert check.calls[-1]["text"] == "edit 9"

    scheduler.advance(5.0)
    await debouncer.wait_idle()
    assert check.trailing == 1
    assert check.leading == 1


@pytest.mark.asyncio
async def test_trailing_check_bounded_during_continuous_editing(scheduler) -> None:
    check = RecordingCheck()
    debouncer, _, _ = _debouncer(scheduler, check)

    for i in range(120):
        debouncer.on_document_changed(f"edit {i}", DOC_ID)
        scheduler.advance(0.1)
        await _settle()
    await debouncer.wait_idle()

    assert check.trailing >= 2
    assert check.leading == 1


@pytest.mark.asyncio
async def test_check_reads_document_at_fire_time(scheduler) -> None:
    check = RecordingCheck()
    debouncer, document, _ = _debouncer(scheduler, check)

    debouncer.on_document_changed("first", DOC_ID)
    await debouncer.wait_idle()
    document.update("changed behind the debouncer's back", "other.yaml")
    scheduler.advance(0.5)
    await debouncer.wait_idle()

    assert check.calls[0]["text"] == "first"
    assert check.calls[1]["text"] == "changed behind the debouncer's back"
    assert check.calls[1]["document_id"] == "other.yaml"


@pytest.mark.asyncio
async def test_document_updated_before_checks_are_scheduled(scheduler) -> None:
    check = RecordingCheck()
    debouncer, document, _ = _debouncer(scheduler, check)

    debouncer.on_document_changed("route: {}", "am.yaml")

    assert document.current.text == "route: {}"
    assert document.current.document_id == "am.yaml"


@pytest.mark.asyncio
async def test_last_completion_wins(scheduler) -> None:
    check = ControlledCheck()
    debouncer, _, verdicts = _debouncer(scheduler, check)

    debouncer.on_document_changed("text", DOC_ID)  # leading attempt 1
    scheduler.advance(0.5)  # trailing attempt 2
    await _settle()
    assert len(check.futures) == 2

    # The later-scheduled attempt completes first ...
    check.futures[1].set_result(True)
    await _settle()
    assert verdicts.verdict is True

    # ... and the earlier one completes last, so its result is final.
    check.futures[0].set_result(False)
    await debouncer.wait_idle()
    assert verdicts.verdict is False


@pytest.mark.asyncio
async def test_sequenced_verdicts_drop_stale_completion(scheduler) -> None:
    check = ControlledCheck()
    debouncer, _, verdicts = _debouncer(scheduler, check, sequenced=True)

    debouncer.on_document_changed("text", DOC_ID)
    scheduler.advance(0.5)
    await _settle()

    check.futures[1].set_result(True)
    await _settle()
    check.futures[0].set_result(False)
    await debouncer.wait_idle()

    assert verdicts.verdict is True
    assert verdicts.attempt == 2


@pytest.mark.asyncio
async def test_trailing_consults_markers_leading_does_not(scheduler, valid_config: str) -> None:
    markers = InMemoryMarkerSource()
    markers.set_markers(DOC_ID, [Marker(message="Missing property \"receivers\"")])

    document = DocumentRef()
    verdicts = VerdictStore()
    debouncer = ValidationDebouncer(document, verdicts, markers, scheduler=scheduler, check=check_document)

    debouncer.on_document_changed(valid_config, DOC_ID)
    await debouncer.wait_idle()
    assert verdicts.verdict is True

    scheduler.advance(0.5)
    await debouncer.wait_idle()
    assert verdicts.verdict is False


@pytest.mark.asyncio
async def test_unparseable_text_resolves_invalid(scheduler) -> None:
    document = DocumentRef()
    verdicts = VerdictStore()
    debouncer = ValidationDebouncer(document, verdicts, scheduler=scheduler, check=check_document)

    debouncer.on_document_changed("route: [\n  - oops", DOC_ID)
    scheduler.advance(0.5)
    await debouncer.wait_idle()

    assert verdicts.verdict is False


@pytest.mark.asyncio
async def test_check_exception_maps_to_invalid(scheduler) -> None:
    async def broken(text, document_id, marker_source=None, use_markers=False) -> bool:
        raise RuntimeError("boom")

    debouncer, _, verdicts = _debouncer(scheduler, broken)
    debouncer.on_document_changed("text", DOC_ID)
    await debouncer.wait_idle()

    assert verdicts.verdict is False


@pytest.mark.asyncio
async def test_dispose_cancels_timers_and_checks(scheduler) -> None:
    check = ControlledCheck()
    debouncer, _, verdicts = _debouncer(scheduler, check)

    debouncer.on_document_changed("text", DOC_ID)
    await _settle()
    assert debouncer.in_flight == 1
    assert scheduler.armed == 2

    await debouncer.aclose()

    assert debouncer.disposed
    assert debouncer.in_flight == 0
    assert scheduler.armed == 0
    assert check.futures[0].cancelled()

    scheduler.advance(10.0)
    await _settle()
    assert len(check.futures) == 1
    assert verdicts.verdict is None


@pytest.mark.asyncio
async def test_changes_after_dispose_rejected(scheduler) -> None:
    debouncer, _, _ = _debouncer(scheduler, RecordingCheck())
    debouncer.dispose()

    with pytest.raises(DisposedError):
        debouncer.on_document_changed("text", DOC_ID)


@pytest.mark.asyncio
async def test_context_manager_disposes(scheduler) -> None:
    check = RecordingCheck()
    document = DocumentRef()
    async with ValidationDebouncer(document, VerdictStore(), scheduler=scheduler, check=check) as debouncer:
        debouncer.on_document_changed("text", DOC_ID)
        assert debouncer.pending

    assert debouncer.disposed
    assert not debouncer.pending


@pytest.mark.asyncio
async def test_real_event_loop_timings() -> None:
    check = RecordingCheck()
    debouncer = ValidationDebouncer(
        DocumentRef(),
        VerdictStore(),
        leading_wait=0.03,
        trailing_wait=0.05,
        trailing_max_wait=0.5,
        check=check,
    )
    async with debouncer:
        for i in range(5):
            debouncer.on_document_changed(f"edit {i}", DOC_ID)
            await asyncio.sleep(0.002)
        await asyncio.sleep(0.3)
        await debouncer.wait_idle()

    assert check.leading == 1
    assert check.trailing == 1
    assert check.calls[-1]["text"] == "edit 4"
