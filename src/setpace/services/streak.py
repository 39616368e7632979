"""Workout streak calculation."""

import logging
import math
from collections.abc import Iterable
from datetime import date, timedelta
from pathlib import Path

from ..clock import SystemClock
from ..config import DEFAULT_GRACE_PERIOD, MAX_GRACE_PERIOD
from ..db.repositories import SessionRepository
from ..models.streak import StreakResult, StreakStatus

logger = logging.getLogger(__name__)


def grace_period_for(rotation_day_count: int | None) -> int:
    """Consecutive missed days tolerated before a streak stops counting.

    ``ceil(7 / N)`` for a plan with N rotation days, clamped to [2, 3];
    2 without an active plan.
    """
    if not rotation_day_count or rotation_day_count <= 0:
        return DEFAULT_GRACE_PERIOD
    grace = math.ceil(7 / rotation_day_count)
    return min(max(grace, DEFAULT_GRACE_PERIOD), MAX_GRACE_PERIOD)


def classify(days_since_last_workout: int) -> StreakStatus:
    if days_since_last_workout <= 0:
        return StreakStatus.ACTIVE
    if days_since_last_workout == 1:
        return StreakStatus.WARNING_LOW
    if days_since_last_workout == 2:
        return StreakStatus.WARNING_HIGH
    return StreakStatus.BROKEN


def streak_message(status: StreakStatus, streak: int) -> str:
    if status == StreakStatus.ACTIVE:
        return f"🔥 {streak} Day Streak"
    if status == StreakStatus.WARNING_LOW:
        return f"⏳ {streak} Day Streak - work out today to keep it going"
    if status == StreakStatus.WARNING_HIGH:
        return f"⚠️ Work out today or lose your {streak} day streak!"
    if status == StreakStatus.BROKEN:
        return "💔 Streak lost. Start a new one today!"
    return "Start your streak today 💪"


def count_streak(workout_dates: set[date], start: date, grace_period: int) -> int:
    """Walk backward from ``start`` counting workout days.

    A hit resets the miss counter; the walk stops once more than
    ``grace_period`` days in a row are missed or the history runs out.
    """
    earliest = min(workout_dates)
    streak = 0
    misses = 0
    cursor = start
    while cursor >= earliest:
        if cursor in workout_dates:
            streak += 1
            misses = 0
        else:
            misses += 1
            if misses > grace_period:
                break
        cursor -= timedelta(days=1)
    return streak


def calculate_streak(
    workout_dates: Iterable[date],
    today: date,
    rotation_day_count: int | None = None,
) -> StreakResult:
    """Streak count and status from the days that have a completed session.

    Args:
        workout_dates: Calendar days with at least one completed session
        today: The reference day
        rotation_day_count: Rotation days of the active plan, if any

    Returns:
        StreakResult with the count, status and a display message
    """
    dates = {d for d in workout_dates if d <= today}
    if not dates:
        return StreakResult(
            streak=0,
            status=StreakStatus.NEW,
            message=streak_message(StreakStatus.NEW, 0),
        )

    grace_period = grace_period_for(rotation_day_count)
    most_recent = max(dates)
    days_since = (today - most_recent).days
    status = classify(days_since)

    if status == StreakStatus.BROKEN:
        streak = 0
    else:
        start = today if today in dates else most_recent
        streak = count_streak(dates, start, grace_period)

    return StreakResult(
        streak=streak,
        status=status,
        message=streak_message(status, streak),
        days_since_last_workout=days_since,
        grace_period=grace_period,
    )


class StreakService:
    """Computes streaks and achievements from stored sessions."""

    def __init__(self, db_path: Path | None = None, clock=None, repository=None):
        self.repository = repository or SessionRepository(db_path)
        self.clock = clock or SystemClock()

    async def current_streak(self) -> StreakResult:
        dates = await self.repository.list_completed_session_dates()
        rotation_days = await self.repository.get_active_plan_rotation_day_count()
        result = calculate_streak(dates, self.clock.today(), rotation_days)
        logger.debug("Streak %s (%s)", result.streak, result.status.value)
        return result

    async def achievements(self) -> dict:
        """Unlocked achievements plus the stats they are based on."""
        totals = await self.repository.get_workout_totals()
        streak = (await self.current_streak()).streak
        total_workouts = totals["total_workouts"]
        # Volume is stored in kg; badges count tonnes
        total_volume = totals["total_volume"] / 1000

        return {
            "achievements": {
                "FIRST_WORKOUT": total_workouts >= 1,
                "WEEK_STREAK": streak >= 7,
                "MONTH_STREAK": streak >= 30,
                "TON_LIFTED": total_volume >= 1,
                "HEAVY_HITTER": total_volume >= 10,
                "TEN_WORKOUTS": total_workouts >= 10,
                "FIFTY_WORKOUTS": total_workouts >= 50,
                "HUNDRED_WORKOUTS": total_workouts >= 100,
            },
            "stats": {
                "total_workouts": total_workouts,
                "total_minutes": totals["total_minutes"],
                "total_volume": total_volume,
                "streak": streak,
            },
        }
