"""Workout streak result model."""

from dataclasses import dataclass
from enum import Enum


class StreakStatus(str, Enum):
    """Qualitative state of the current streak."""

    NEW = "new"
    ACTIVE = "active"
    WARNING_LOW = "warning_low"
    WARNING_HIGH = "warning_high"
    BROKEN = "broken"


@dataclass
class StreakResult:
    """Streak count plus status and a display message."""

    streak: int
    status: StreakStatus
    message: str
    days_since_last_workout: int | None = None
    grace_period: int | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "streak": self.streak,
            "status": self.status.value,
            "message": self.message,
            "days_since_last_workout": self.days_since_last_workout,
            "grace_period": self.grace_period,
        }

    def get_emoji(self) -> str:
        emoji_map = {
            StreakStatus.ACTIVE: "🔥",
            StreakStatus.WARNING_LOW: "⏳",
            StreakStatus.WARNING_HIGH: "⚠️",
            StreakStatus.BROKEN: "💔",
            StreakStatus.NEW: "💪",
        }
        return emoji_map[self.status]
