"""Data models for setpace."""

from .plan import PlanDay, PlanExercise, WorkoutPlan
from .session import LoggedSet, SessionExercise, WorkoutSession
from .streak import StreakResult, StreakStatus
from .timer_state import ExerciseProgress, PendingSet, TimerState

__all__ = [
    "ExerciseProgress",
    "LoggedSet",
    "PendingSet",
    "PlanDay",
    "PlanExercise",
    "SessionExercise",
    "StreakResult",
    "StreakStatus",
    "TimerState",
    "WorkoutPlan",
    "WorkoutSession",
]
