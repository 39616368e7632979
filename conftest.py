"""Fixtures shared by the unit and integration suites."""

from datetime import date, datetime, timedelta, timezone

import pytest


class FrozenClock:
    """A clock that only moves when told to."""

    def __init__(self, start: datetime):
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        self._now = start

    def now(self) -> datetime:
        return self._now

    def today(self) -> date:
        return self._now.date()

    def advance(self, seconds: float = 0, **kwargs) -> datetime:
        """Move the clock forward and return the new time."""
        self._now += timedelta(seconds=seconds, **kwargs)
        return self._now

    def set(self, when: datetime) -> None:
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        self._now = when


@pytest.fixture
def clock():
    """A frozen clock at 10:00 UTC."""
    return FrozenClock(datetime(2024, 3, 4, 10, 0, 0, tzinfo=timezone.utc))
