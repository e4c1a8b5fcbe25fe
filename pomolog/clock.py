"""Time sources for session accounting and the countdown watcher.

Session timestamps are stored in UTC, so both clocks hand out aware UTC
datetimes.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import time
from typing import Protocol

FAKE_EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


class Clock(Protocol):
    def now(self) -> datetime:
        ...

    def sleep(self, seconds: float) -> None:
        ...


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class RealClock:
    def now(self) -> datetime:
        return datetime.now(tz=timezone.utc)

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


class FakeClock:
    """Clock whose ``sleep`` moves time forward instead of blocking.

    Every requested sleep is kept in ``slept``. With ``interrupt_on_sleep``
    set, that sleep raises KeyboardInterrupt the way Ctrl+C would during
    ``pomolog watch``, and time does not move.
    """

    def __init__(self, start: datetime | None = None, interrupt_on_sleep: int | None = None) -> None:
        self._current = _as_utc(start or FAKE_EPOCH)
        self._interrupt_on_sleep = interrupt_on_sleep
        self.slept: list[float] = []

    @property
    def sleep_calls(self) -> int:
        return len(self.slept)

    def now(self) -> datetime:
        return self._current

    def advance(self, step: float | timedelta) -> datetime:
        if not isinstance(step, timedelta):
            step = timedelta(seconds=step)
        self._current += step
        return self._current

    def sleep(self, seconds: float) -> None:
        self.slept.append(seconds)
        if self._interrupt_on_sleep is not None and len(self.slept) >= self._interrupt_on_sleep:
            raise KeyboardInterrupt
        self.advance(max(0.0, seconds))
