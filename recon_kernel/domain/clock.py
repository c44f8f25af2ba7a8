"""
Injectable time source for transfer stamps and report dates.

Adjustment transfers are ordered by their creation time and the final
inventory carries the date it was generated (the Block H inventory date), so
both read time through a Clock.  SystemClock is the only place real time is
read; DeterministicClock pins it in tests.
"""

from abc import ABC, abstractmethod
from datetime import UTC, date, datetime, timedelta


class Clock(ABC):
    """Returns timezone-aware UTC datetimes."""

    @abstractmethod
    def now(self) -> datetime: ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Pinned clock.  Defaults to noon on the last day of January 2022.

    Raises:
        ValueError: If given a naive datetime.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = datetime(2022, 1, 31, 12, 0, tzinfo=UTC)
        if fixed_time is not None:
            self.set_time(fixed_time)

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        if time.tzinfo is None:
            raise ValueError(f"DeterministicClock needs an aware datetime, got {time!r}")
        self._current = time.astimezone(UTC)

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)
