"""Shared test fixtures and configuration."""

import heapq
import itertools
import os
import sys
from pathlib import Path

# Add alertmanager_editor/ to Python path so `from ameditor.xxx` imports work
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "alertmanager_editor"))

import pytest

from ameditor.editor.debounce import Scheduler

os.environ["AMEDIT_DEV_MODE"] = "true"

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class _Handle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """Virtual clock: timers only fire when the test advances time."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list = []
        self._seq = itertools.count()

    def time(self) -> float:
        return self.now

    def call_later(self, delay, callback):
        handle = _Handle()
        heapq.heappush(self._queue, (self.now + delay, next(self._seq), handle, callback))
        return handle

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in order."""
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target + 1e-9:
            when, _, handle, callback = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = max(self.now, when)
            callback()
        self.now = target

    @property
    def armed(self) -> int:
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def valid_config(fixtures_dir: Path) -> str:
    return (fixtures_dir / "alertmanager_valid.yaml").read_text()


@pytest.fixture
def missing_receivers_config(fixtures_dir: Path) -> str:
    return (fixtures_dir / "alertmanager_missing_receivers.yaml").read_text()
