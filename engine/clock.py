"""Logical clock and cancellable timers.

The engine never reads wall-clock time directly. Every timestamp (typing
entries, error records, optimistic posts) and every deferred action (typing
sweep, typing throttle window, send confirmation timeout) goes through a
LogicalClock, so tests can advance time deterministically and the host can
drive it from wall time.
"""

import bisect
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, PrivateAttr, field_validator

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], Any]


class Timer(BaseModel):
    """A scheduled callback on the logical clock.

    Args:
        timer_id: Unique identifier for this timer.
        due_time: When the callback should next run.
        interval: Repeat interval for periodic timers (None for one-shot).
        name: Label used in logs.
        cancelled: Whether the timer has been cancelled.
        fire_count: Number of times the callback has run.
    """

    timer_id: str = Field(default_factory=lambda: str(uuid4()))
    due_time: datetime
    interval: Optional[timedelta] = None
    name: str = "timer"
    cancelled: bool = False
    fire_count: int = 0
    callback: TimerCallback = Field(exclude=True)

    class Config:
        arbitrary_types_allowed = True

    @property
    def is_periodic(self) -> bool:
        """Whether this timer re-arms itself after firing."""
        return self.interval is not None

    def cancel(self) -> None:
        """Cancel this timer; it will not fire again."""
        self.cancelled = True


class LogicalClock(BaseModel):
    """Manually advanced clock with an ordered timer queue.

    Time only moves when advance() or set_time() is called. Timers that fall
    due while advancing fire in due-time order (ties in scheduling order) and
    observe ``now()`` equal to their own due time.

    Args:
        current_time: The current logical timestamp (timezone-aware).
    """

    current_time: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="The current logical timestamp (timezone-aware)",
    )

    _timers: list[Timer] = PrivateAttr(default_factory=list)
    _sequence: dict[str, int] = PrivateAttr(default_factory=dict)
    _counter: int = PrivateAttr(default=0)

    @field_validator("current_time")
    @classmethod
    def validate_timezone_aware(cls, v: datetime) -> datetime:
        """Ensure datetime is timezone-aware."""
        if v.tzinfo is None:
            raise ValueError("Datetime must be timezone-aware (recommend UTC)")
        return v

    def now(self) -> datetime:
        """Return the current logical time."""
        return self.current_time

    @property
    def pending_timers(self) -> list[Timer]:
        """Timers that have not been cancelled, in firing order."""
        return [t for t in self._timers if not t.cancelled]

    @property
    def next_due_time(self) -> Optional[datetime]:
        """Due time of the next live timer, or None when the queue is empty."""
        for timer in self._timers:
            if not timer.cancelled:
                return timer.due_time
        return None

    def call_later(
        self, delay: timedelta | float, callback: TimerCallback, name: str = "timer"
    ) -> Timer:
        """Schedule a one-shot callback.

        Args:
            delay: Delay from now (timedelta or seconds).
            callback: Zero-argument callable to run.
            name: Label used in logs.

        Returns:
            The scheduled Timer, which can be cancelled.

        Raises:
            ValueError: If delay is negative.
        """
        delay = _as_timedelta(delay)
        if delay < timedelta(0):
            raise ValueError("Cannot schedule a timer in the past")
        timer = Timer(due_time=self.current_time + delay, callback=callback, name=name)
        self._insert(timer)
        return timer

    def call_every(
        self, interval: timedelta | float, callback: TimerCallback, name: str = "timer"
    ) -> Timer:
        """Schedule a periodic callback, first firing one interval from now.

        Args:
            interval: Period (timedelta or seconds), must be positive.
            callback: Zero-argument callable to run.
            name: Label used in logs.

        Returns:
            The scheduled Timer, which can be cancelled.

        Raises:
            ValueError: If interval is not positive.
        """
        interval = _as_timedelta(interval)
        if interval <= timedelta(0):
            raise ValueError(f"Timer interval must be positive, got {interval}")
        timer = Timer(
            due_time=self.current_time + interval,
            interval=interval,
            callback=callback,
            name=name,
        )
        self._insert(timer)
        return timer

    def advance(self, delta: timedelta | float) -> int:
        """Advance the clock, firing every timer that falls due.

        Args:
            delta: Amount of logical time to advance (timedelta or seconds).

        Returns:
            Number of timer callbacks that ran.

        Raises:
            ValueError: If delta is negative.
        """
        delta = _as_timedelta(delta)
        if delta < timedelta(0):
            raise ValueError("Cannot advance time backwards")
        return self._run_until(self.current_time + delta)

    def set_time(self, new_time: datetime) -> int:
        """Jump to a specific time, firing every timer that falls due.

        Args:
            new_time: New logical time.

        Returns:
            Number of timer callbacks that ran.

        Raises:
            ValueError: If new_time is naive or before the current time.
        """
        if new_time.tzinfo is None:
            raise ValueError("new_time must be timezone-aware")
        if new_time < self.current_time:
            raise ValueError(
                f"Cannot set time backwards: {new_time} < {self.current_time}"
            )
        return self._run_until(new_time)

    def cancel_all(self) -> None:
        """Cancel and drop every scheduled timer."""
        for timer in self._timers:
            timer.cancel()
        self._timers.clear()
        self._sequence.clear()

    def to_dict(self) -> dict[str, Any]:
        """Export clock state as a dictionary for API responses."""
        next_due = self.next_due_time
        return {
            "current_time": self.current_time.isoformat(),
            "pending_timers": len(self.pending_timers),
            "next_due_time": next_due.isoformat() if next_due else None,
        }

    def _run_until(self, target: datetime) -> int:
        fired = 0
        while self._timers and self._timers[0].due_time <= target:
            timer = self._timers.pop(0)
            self._sequence.pop(timer.timer_id, None)
            if timer.cancelled:
                continue

            self.current_time = max(self.current_time, timer.due_time)
            try:
                timer.callback()
            except Exception as e:
                logger.warning(f"Timer '{timer.name}' raised {type(e).__name__}: {e}")
            timer.fire_count += 1
            fired += 1

            if timer.is_periodic and not timer.cancelled:
                timer.due_time = timer.due_time + timer.interval
                self._insert(timer)

        self.current_time = target
        return fired

    def _insert(self, timer: Timer) -> None:
        self._counter += 1
        self._sequence[timer.timer_id] = self._counter
        keys = [(t.due_time, self._sequence[t.timer_id]) for t in self._timers]
        index = bisect.bisect_right(keys, (timer.due_time, self._counter))
        self._timers.insert(index, timer)


def _as_timedelta(value: timedelta | float) -> timedelta:
    if isinstance(value, timedelta):
        return value
    return timedelta(seconds=value)
