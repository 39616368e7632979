"""Workout session and logged set models."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass
class LoggedSet:
    """One logged unit of work.

    ``weight`` of None means bodyweight. ``rest_duration`` stays None until
    the next set starts (or the exercise ends) and the rest is patched in.
    """

    set_number: int
    reps: int
    weight: float | None = None
    set_duration: int | None = None
    rest_duration: int | None = None
    completed_at: datetime | None = None
    notes: str | None = None
    id: int | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "id": self.id,
            "set_number": self.set_number,
            "reps": self.reps,
            "weight": self.weight,
            "set_duration": self.set_duration,
            "rest_duration": self.rest_duration,
            "completed_at": format_timestamp(self.completed_at),
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LoggedSet":
        """Create from dictionary."""
        return cls(
            id=data.get("id"),
            set_number=int(data["set_number"]),
            reps=int(data["reps"]),
            weight=data.get("weight"),
            set_duration=data.get("set_duration"),
            rest_duration=data.get("rest_duration"),
            completed_at=parse_timestamp(data.get("completed_at")),
            notes=data.get("notes"),
        )


@dataclass
class SessionExercise:
    """Logged sets of one exercise within a session, as read from the store."""

    id: int
    name: str
    sets: list[LoggedSet] = field(default_factory=list)


@dataclass
class WorkoutSession:
    """One in-progress or completed workout attempt against a plan day."""

    plan_id: int | None
    day_id: int | None
    check_in_time: datetime
    session_date: date
    check_out_time: datetime | None = None
    total_duration: int | None = None
    is_completed: bool = False
    notes: str | None = None
    total_set_duration: int = 0
    total_rest_duration: int = 0
    current_exercise_id: int | None = None
    # Raw serialized TimerState; parsed (with fallback) during restore
    active_timer_state: str | None = None
    exercises: list[SessionExercise] = field(default_factory=list)
    id: int | None = None

    @property
    def is_active(self) -> bool:
        return not self.is_completed

    def sets_by_exercise(self) -> dict[int, SessionExercise]:
        return {ex.id: ex for ex in self.exercises}

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "plan_id": self.plan_id,
            "day_id": self.day_id,
            "check_in_time": format_timestamp(self.check_in_time),
            "check_out_time": format_timestamp(self.check_out_time),
            "total_duration": self.total_duration,
            "session_date": self.session_date.isoformat(),
            "is_completed": self.is_completed,
            "notes": self.notes,
            "total_set_duration": self.total_set_duration,
            "total_rest_duration": self.total_rest_duration,
            "current_exercise_id": self.current_exercise_id,
            "exercises": [
                {
                    "id": ex.id,
                    "name": ex.name,
                    "sets": [s.to_dict() for s in ex.sets],
                }
                for ex in self.exercises
            ],
        }
