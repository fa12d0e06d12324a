"""
Injectable time source (``fleet_kernel.domain.clock``).

Services never read the wall clock themselves.  The lifecycle service asks
its Clock for ``today_iso()`` when a trip is finished without an explicit
completion date, so tests can pin the date with a DeterministicClock.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone

DEFAULT_TEST_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of the current instant; always timezone-aware."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        """Calendar date in UTC."""
        return self.now().astimezone(timezone.utc).date()

    def today_iso(self) -> str:
        """``today()`` as ``YYYY-MM-DD``, the completion date format."""
        return self.today().isoformat()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    A clock that only moves when told to.

    Usage:
        clock = DeterministicClock()          # 2024-01-01 12:00 UTC
        clock.advance(seconds=86400)
        clock.today_iso()                     # "2024-01-02"
    """

    def __init__(self, start: datetime | None = None):
        if start is not None and start.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware start")
        self._current = start or DEFAULT_TEST_TIME

    def now(self) -> datetime:
        return self._current

    def set_time(self, moment: datetime) -> None:
        if moment.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware time")
        self._current = moment

    def advance(self, seconds: float = 1) -> None:
        self._current += timedelta(seconds=seconds)
