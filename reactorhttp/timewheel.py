"""Hashed timing wheel that fires a task once no slot holds it any more."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Hashable

logger = logging.getLogger(__name__)

DEFAULT_TIMEWHEEL_SIZE = 1024


@dataclass(eq=False)
class TimerTask:
    """A scheduled callback; it runs when its last wheel slot is cleared."""

    timer_id: Hashable
    delay: int
    callback: Callable[[], None]
    canceled: bool = False
    _slots: int = field(default=0, init=False, repr=False)


class TimeWheel:
    """Timing wheel advanced one slot per call to :meth:`tick`."""

    def __init__(self, capacity: int = DEFAULT_TIMEWHEEL_SIZE) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._tick = 0
        self._wheel: list[list[TimerTask]] = [[] for _ in range(capacity)]
        self._timers: dict[Hashable, TimerTask] = {}

    def __len__(self) -> int:
        return len(self._timers)

    def __contains__(self, timer_id: Hashable) -> bool:
        return timer_id in self._timers

    def _schedule(self, task: TimerTask) -> None:
        self._wheel[(self._tick + task.delay) % self._capacity].append(task)
        task._slots += 1

    def add(self, timer_id: Hashable, delay: int, task: Callable[[], None]) -> TimerTask:
        """Schedule ``task`` to run ``delay`` ticks from now."""
        if timer_id in self._timers:
            raise ValueError(f"timer {timer_id!r} already exists")
        if delay < 0:
            raise ValueError("delay must not be negative")
        entry = TimerTask(timer_id, delay, task)
        self._timers[timer_id] = entry
        self._schedule(entry)
        logger.debug("timer %r added with delay %d", timer_id, delay)
        return entry

    def refresh(self, timer_id: Hashable) -> None:
        """Push the timer's expiry back to a full delay from now."""
        entry = self._timers.get(timer_id)
        if entry is None:
            logger.debug("refresh of unknown timer %r", timer_id)
            return
        self._schedule(entry)

    def tick(self) -> None:
        """Advance one slot and run tasks that no slot holds any longer."""
        self._tick = (self._tick + 1) % self._capacity
        expired, self._wheel[self._tick] = self._wheel[self._tick], []
        for entry in expired:
            entry._slots -= 1
            if entry._slots:
                continue
            if self._timers.get(entry.timer_id) is entry:
                del self._timers[entry.timer_id]
            if not entry.canceled:
                entry.callback()

    def cancel(self, timer_id: Hashable) -> None:
        """Keep the timer from running; it is dropped when it expires."""
        entry = self._timers.get(timer_id)
        if entry is not None:
            entry.canceled = True