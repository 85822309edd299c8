"""
Injectable time source.

Payment, payout and contract statuses all depend on "today", so nothing in
the project calls ``datetime.now()`` or ``date.today()`` itself.  Services
and selectors take a ``Clock``; production wires ``SystemClock`` and tests
pin a ``DeterministicClock`` to a fixed day.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone


def as_calendar_day(value: date | datetime) -> date:
    """Day part of ``value``.  Status comparisons never look at the hour."""
    return value.date() if isinstance(value, datetime) else value


class Clock(ABC):

    @abstractmethod
    def now(self) -> datetime:
        """Current instant, timezone-aware."""

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):

    def __init__(self, tz: timezone = timezone.utc):
        self._tz = tz

    def now(self) -> datetime:
        return datetime.now(self._tz)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    ``DeterministicClock.on(date(2025, 3, 15))`` stands at noon UTC of that
    day; ``advance`` and ``advance_days`` move it forward, which is how tests
    step past cache TTLs or into the next day's statuses.
    """

    _DEFAULT_START = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)

    def __init__(self, start: datetime | None = None):
        if start is not None and start.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware start")
        self._current = start or self._DEFAULT_START

    @classmethod
    def on(cls, day: date, at: time = time(12, 0)) -> "DeterministicClock":
        return cls(datetime.combine(day, at, tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def advance_days(self, days: int) -> None:
        self._current += timedelta(days=days)
