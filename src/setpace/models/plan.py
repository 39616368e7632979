"""Workout plan data models."""

import re
from dataclasses import dataclass, field
from datetime import datetime

from ..config import DEFAULT_TARGET_REPS, DEFAULT_TARGET_SETS


@dataclass
class PlanExercise:
    """An exercise within a rotation day."""

    exercise_id: int | None
    name: str
    target_sets: int = DEFAULT_TARGET_SETS
    target_reps: str = DEFAULT_TARGET_REPS
    notes: str = ""

    @property
    def reps_min(self) -> int | None:
        """Lower bound of the target rep range ("8-12" -> 8)."""
        match = re.match(r"\s*(\d+)", str(self.target_reps))
        return int(match.group(1)) if match else None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "exercise_id": self.exercise_id,
            "name": self.name,
            "sets": self.target_sets,
            "reps": self.target_reps,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PlanExercise":
        """Create from dictionary."""
        return cls(
            exercise_id=data.get("exercise_id"),
            name=data["name"],
            target_sets=int(data.get("sets", DEFAULT_TARGET_SETS)),
            target_reps=str(data.get("reps", DEFAULT_TARGET_REPS)),
            notes=data.get("notes", ""),
        )


@dataclass
class PlanDay:
    """A rotation day (e.g. Push, Pull, Legs)."""

    name: str
    exercises: list[PlanExercise]
    notes: str = ""
    id: int | None = None

    def get_exercise(self, exercise_id: int) -> PlanExercise | None:
        for exercise in self.exercises:
            if exercise.exercise_id == exercise_id:
                return exercise
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "exercises": [ex.to_dict() for ex in self.exercises],
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PlanDay":
        """Create from dictionary."""
        return cls(
            id=data.get("id"),
            name=data["name"],
            exercises=[PlanExercise.from_dict(ex) for ex in data.get("exercises", [])],
            notes=data.get("notes", ""),
        )


@dataclass
class WorkoutPlan:
    """A rotation of workout days."""

    name: str
    days: list[PlanDay]
    plan_type: str = "Custom"
    description: str = ""
    is_active: bool = False
    id: int | None = None
    created_at: datetime | None = None

    @property
    def rotation_day_count(self) -> int:
        return len(self.days)

    def get_day(self, day_id: int) -> PlanDay | None:
        for day in self.days:
            if day.id == day_id:
                return day
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "type": self.plan_type,
            "description": self.description,
            "days": [day.to_dict() for day in self.days],
        }

    @classmethod
    def from_dict(
        cls,
        data: dict,
        id: int | None = None,
        is_active: bool = False,
        created_at: datetime | None = None,
    ) -> "WorkoutPlan":
        """Create from dictionary."""
        if not data.get("name"):
            raise ValueError("Plan name is required")
        return cls(
            id=id,
            name=data["name"].strip(),
            plan_type=data.get("type", "Custom"),
            description=data.get("description", ""),
            days=[PlanDay.from_dict(day) for day in data.get("days", [])],
            is_active=is_active,
            created_at=created_at,
        )
