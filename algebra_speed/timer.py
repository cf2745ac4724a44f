"""Attempt timer and the frame-pumped scheduler behind its periodic tick.

Nothing here spawns threads. ``FrameScheduler.run_pending`` is called once
per frame by the host loop and fires every task whose interval has elapsed
on the injected ``Clock``. A task handle is cancellable, and a cancelled task
never fires again.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from .clock import Clock

logger = logging.getLogger(__name__)


class ScheduledTask:
    """Handle for a repeating callback registered with a scheduler."""

    def __init__(self, *, interval_s: float, callback: Callable[[], None], next_due_s: float) -> None:
        self._interval_s = float(interval_s)
        self._callback = callback
        self._next_due_s = float(next_due_s)
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def next_due_s(self) -> float:
        return self._next_due_s

    def cancel(self) -> None:
        self._cancelled = True

    def fire_if_due(self, now: float) -> bool:
        if self._cancelled or now < self._next_due_s:
            return False
        # Skip missed intervals rather than replaying them.
        missed = math.floor((now - self._next_due_s) / self._interval_s)
        self._next_due_s += (missed + 1) * self._interval_s
        self._callback()
        return True


class Scheduler(Protocol):
    def call_every(self, interval_s: float, callback: Callable[[], None]) -> ScheduledTask: ...


class FrameScheduler:
    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._tasks: list[ScheduledTask] = []

    def call_every(self, interval_s: float, callback: Callable[[], None]) -> ScheduledTask:
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        task = ScheduledTask(
            interval_s=interval_s,
            callback=callback,
            next_due_s=self._clock.now() + interval_s,
        )
        self._tasks.append(task)
        return task

    def run_pending(self) -> int:
        """Fire due tasks and drop cancelled ones. Returns the number fired."""

        now = self._clock.now()
        fired = 0
        for task in list(self._tasks):
            if task.fire_if_due(now):
                fired += 1
        self._tasks = [t for t in self._tasks if not t.cancelled]
        return fired

    def pending(self) -> int:
        return sum(1 for t in self._tasks if not t.cancelled)

    def cancel_all(self) -> None:
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()


@dataclass(slots=True, eq=False)
class TimerHandle:
    started_at_s: float
    task: ScheduledTask | None = None
    ended_at_s: float | None = None
    elapsed_s: int = 0  # last value published by the periodic tick

    @property
    def running(self) -> bool:
        return self.ended_at_s is None


@dataclass(slots=True)
class AttemptTimer:
    """Wall-clock timer for one quiz attempt, ticking once per interval."""

    clock: Clock
    scheduler: Scheduler
    interval_s: float = 1.0
    _active: list[TimerHandle] = field(default_factory=list, init=False, repr=False)

    def start(self, on_tick: Callable[[int], None] | None = None) -> TimerHandle:
        handle = TimerHandle(started_at_s=self.clock.now())

        def tick() -> None:
            handle.elapsed_s = self.elapsed_seconds(handle)
            if on_tick is not None:
                on_tick(handle.elapsed_s)

        handle.task = self.scheduler.call_every(self.interval_s, tick)
        self._active.append(handle)
        return handle

    def stop(self, handle: TimerHandle) -> float:
        """Halt ticking and return the end timestamp. Repeat calls are no-ops."""

        if handle.task is not None:
            handle.task.cancel()
        if handle.ended_at_s is None:
            handle.ended_at_s = self.clock.now()
            handle.elapsed_s = self.total_seconds(handle)
            logger.debug("timer stopped after %ss", handle.elapsed_s)
        if handle in self._active:
            self._active.remove(handle)
        return handle.ended_at_s

    def stop_all(self) -> None:
        for handle in list(self._active):
            self.stop(handle)

    def elapsed_seconds(self, handle: TimerHandle) -> int:
        end = self.clock.now() if handle.ended_at_s is None else handle.ended_at_s
        return max(0, math.floor(end - handle.started_at_s))

    def total_seconds(self, handle: TimerHandle) -> int:
        if handle.ended_at_s is None:
            raise RuntimeError("timer is still running")
        return max(0, math.floor(handle.ended_at_s - handle.started_at_s))
