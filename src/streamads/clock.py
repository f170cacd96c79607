"""Cooperative timer scheduling for slot lifecycles.

Every wait in the engine is a callback scheduled here; control returns
immediately. ``AsyncioScheduler`` drives real runs on the event loop and
``ManualScheduler`` is a virtual clock that only moves when advanced.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Callable
from typing import Protocol


class TimerHandle:
    def __init__(self, due_ms: float, callback: Callable[[], None]) -> None:
        self.due_ms = due_ms
        self.callback = callback
        self.cancelled = False
        self.fired = False
        self._on_cancel: Callable[[], None] | None = None

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()

    def _fire(self) -> None:
        if self.cancelled or self.fired:
            return
        self.fired = True
        self.callback()


class Scheduler(Protocol):
    def now_ms(self) -> float: ...

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    """Schedule callbacks on an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()

    def now_ms(self) -> float:
        return self._loop.time() * 1000.0

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(self.now_ms() + delay_ms, callback)
        inner = self._loop.call_later(max(0.0, delay_ms) / 1000.0, handle._fire)
        handle._on_cancel = inner.cancel
        return handle


class ManualScheduler:
    """Virtual clock: timers fire only from ``advance`` / ``run_until_idle``."""

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = start_ms
        self._queue: list[tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()

    def now_ms(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(self._now + max(0.0, delay_ms), callback)
        heapq.heappush(self._queue, (handle.due_ms, next(self._seq), handle))
        return handle

    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if h.pending)

    def _run_due(self, target_ms: float) -> None:
        while self._queue and self._queue[0][0] <= target_ms:
            due, _, handle = heapq.heappop(self._queue)
            if not handle.pending:
                continue
            self._now = due
            handle._fire()

    def advance(self, ms: float) -> None:
        """Move the clock forward ``ms`` milliseconds, firing every timer that falls due."""

        target = self._now + ms
        self._run_due(target)
        self._now = target

    def advance_to(self, at_ms: float) -> None:
        self.advance(max(0.0, at_ms - self._now))

    def run_until_idle(self, limit_ms: float = 60_000.0) -> None:
        """Fire timers until none are pending or ``limit_ms`` of virtual time has passed."""

        deadline = self._now + limit_ms
        while self._queue:
            due = self._queue[0][0]
            if due > deadline:
                break
            self._run_due(due)


__all__ = ["AsyncioScheduler", "ManualScheduler", "Scheduler", "TimerHandle"]
