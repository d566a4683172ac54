"""Debounce timers on top of the asyncio event loop.

``Debouncer`` follows the lodash ``debounce`` contract: ``leading`` and
``trailing`` pick which edge of a burst invokes the wrapped function and
``max_wait`` bounds how long a trailing invocation can be postponed while
calls keep arriving. Every call reschedules the window, so a burst of calls
spaced closer than ``wait`` counts as one burst.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(ABC):
    """Clock and timer source used by debouncers."""

    @abstractmethod
    def time(self) -> float:
        """Return the current time in seconds (monotonic)."""
        ...

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        """Run ``callback`` after ``delay`` seconds."""
        ...


class LoopScheduler(Scheduler):
    """Scheduler backed by the running asyncio loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def time(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        return self.loop.call_later(delay, callback)


class Debouncer:
    """Rate-limit calls to ``func`` over a stream of events.

    ``wait`` and ``max_wait`` are in seconds.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        wait: float,
        *,
        leading: bool = False,
        trailing: bool = True,
        max_wait: float | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        if wait < 0:
            raise ValueError("wait must be >= 0")
        if max_wait is not None and max_wait < wait:
            max_wait = wait

        self._func = func
        self._wait = wait
        self._leading = leading
        self._trailing = trailing
        self._max_wait = max_wait
        self._scheduler = scheduler or LoopScheduler()

        self._timer: TimerHandle | None = None
        self._last_args: tuple[Any, ...] | None = None
        self._last_call_time: float | None = None
        self._last_invoke_time: float = 0.0

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def __call__(self, *args: Any) -> None:
        now = self._scheduler.time()
        is_invoking = self._should_invoke(now)

        self._last_args = args
        self._last_call_time = now

        if is_invoking:
            if self._timer is None:
                self._leading_edge(now)
                return
            if self._max_wait is not None:
                # Calls arriving in a tight loop: honour max_wait directly.
                self._start_timer(self._wait)
                self._invoke(now)
                return

        if self._timer is None:
            self._start_timer(self._wait)

    def cancel(self) -> None:
        """Drop any pending invocation and reset the burst state."""
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._last_args = None
        self._last_call_time = None
        self._last_invoke_time = 0.0

    def flush(self) -> None:
        """Invoke a pending trailing call immediately."""
        if self._timer is not None:
            self._trailing_edge(self._scheduler.time())

    # -- internals --

    def _should_invoke(self, now: float) -> bool:
        if self._last_call_time is None:
            return True
        since_call = now - self._last_call_time
        since_invoke = now - self._last_invoke_time
        return (
            since_call >= self._wait
            or since_call < 0
            or (self._max_wait is not None and since_invoke >= self._max_wait)
        )

    def _remaining_wait(self, now: float) -> float:
        assert self._last_call_time is not None
        since_call = now - self._last_call_time
        remaining = self._wait - since_call
        if self._max_wait is None:
            return remaining
        since_invoke = now - self._last_invoke_time
        return min(remaining, self._max_wait - since_invoke)

    def _start_timer(self, delay: float) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = self._scheduler.call_later(delay, self._timer_expired)

    def _leading_edge(self, now: float) -> None:
        self._last_invoke_time = now
        self._start_timer(self._wait)
        if self._leading:
            self._invoke(now)

    def _timer_expired(self) -> None:
        self._timer = None
        now = self._scheduler.time()
        if self._should_invoke(now):
            self._trailing_edge(now)
        else:
            self._start_timer(self._remaining_wait(now))

    def _trailing_edge(self, now: float) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        if self._trailing and self._last_args is not None:
            self._invoke(now)
        self._last_args = None

    def _invoke(self, now: float) -> None:
        args = self._last_args or ()
        self._last_args = None
        self._last_invoke_time = now
        self._func(*args)
