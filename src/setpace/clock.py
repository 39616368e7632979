"""Wall-clock sources.

All duration math in setpace is ``now - stored_timestamp``. The clock is
injected so restores and debounced writes can be exercised deterministically.
"""

from datetime import date, datetime, timezone


class SystemClock:
    """Real wall clock (timezone-aware UTC)."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        """Local calendar day, used for session dates and streaks."""
        return date.today()


def elapsed_seconds(start: datetime | None, now: datetime) -> int:
    """Whole seconds between ``start`` and ``now`` (0 if unset or negative)."""
    if start is None:
        return 0
    return max(0, int((now - start).total_seconds()))
