"""Serialized timer sub-state of an active session.

The JSON shape (camelCase keys) is what lives in the session row's
``active_timer_state`` column. Only the paused bases and the run start
timestamps are stored; live elapsed values are always recomputed from the
clock.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime

from .session import LoggedSet, format_timestamp, parse_timestamp


def _require(value, kind: type, what: str):
    if not isinstance(value, kind):
        raise TypeError(f"{what} must be a {kind.__name__}, got {type(value).__name__}")
    return value


@dataclass
class ExerciseProgress:
    """Per-exercise record of logged sets and completion within a session."""

    sets: list[LoggedSet] = field(default_factory=list)
    completed: bool = False
    total_sets: int = 0
    start_time: datetime | None = None
    last_set_id: int | None = None

    @property
    def last_set(self) -> LoggedSet | None:
        return self.sets[-1] if self.sets else None

    def add_set(self, logged: LoggedSet) -> None:
        self.sets.append(logged)
        self.total_sets = len(self.sets)
        self.last_set_id = logged.id

    def find_set(self, set_id: int) -> LoggedSet | None:
        for logged in self.sets:
            if logged.id == set_id:
                return logged
        return None

    def to_dict(self) -> dict:
        return {
            "sets": [s.to_dict() for s in self.sets],
            "completed": self.completed,
            "totalSets": self.total_sets,
            "startTime": format_timestamp(self.start_time),
            "lastSetId": self.last_set_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExerciseProgress":
        _require(data, dict, "Exercise progress")
        sets = [
            LoggedSet.from_dict(_require(s, dict, "Logged set"))
            for s in _require(data.get("sets") or [], list, "Logged sets")
        ]
        return cls(
            sets=sets,
            completed=bool(data.get("completed", False)),
            total_sets=int(data.get("totalSets", len(sets))),
            start_time=parse_timestamp(data.get("startTime")),
            last_set_id=data.get("lastSetId"),
        )


@dataclass
class PendingSet:
    """A set whose timer has stopped but whose reps/weight are unconfirmed."""

    exercise_id: int
    set_duration: int
    ended_at: datetime

    def to_dict(self) -> dict:
        return {
            "exerciseId": self.exercise_id,
            "setDuration": self.set_duration,
            "endedAt": format_timestamp(self.ended_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PendingSet":
        _require(data, dict, "Pending set")
        return cls(
            exercise_id=int(data["exerciseId"]),
            set_duration=int(data["setDuration"]),
            ended_at=parse_timestamp(data["endedAt"]),
        )


@dataclass
class TimerState:
    """In-flight timers plus per-exercise progress.

    ``paused_*_seconds`` hold the sum of all completed runs. A run that is
    still open is represented only by its ``cumulative_*_start_time``.
    """

    is_set_active: bool = False
    is_resting: bool = False
    cumulative_set_start_time: datetime | None = None
    cumulative_rest_start_time: datetime | None = None
    set_start_time: datetime | None = None
    rest_start_time: datetime | None = None
    paused_set_seconds: int = 0
    paused_rest_seconds: int = 0
    exercise_progress: dict[int, ExerciseProgress] = field(default_factory=dict)
    pending_set: PendingSet | None = None

    @property
    def is_timer_running(self) -> bool:
        return self.is_set_active or self.is_resting

    def to_dict(self) -> dict:
        data = {
            "isSetActive": self.is_set_active,
            "isResting": self.is_resting,
            "cumulativeSetStartTime": format_timestamp(self.cumulative_set_start_time),
            "cumulativeRestStartTime": format_timestamp(self.cumulative_rest_start_time),
            "setStartTime": format_timestamp(self.set_start_time),
            "restStartTime": format_timestamp(self.rest_start_time),
            "pausedSetSeconds": self.paused_set_seconds,
            "pausedRestSeconds": self.paused_rest_seconds,
            # JSON object keys are strings
            "exerciseProgress": {
                str(ex_id): progress.to_dict()
                for ex_id, progress in self.exercise_progress.items()
            },
        }
        if self.pending_set is not None:
            data["pendingSet"] = self.pending_set.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "TimerState":
        """Create from the stored dictionary.

        Raises ValueError, KeyError or TypeError on malformed input.
        """
        _require(data, dict, "Timer state")
        saved_progress = _require(
            data.get("exerciseProgress") or {}, dict, "Exercise progress map"
        )
        progress = {
            int(ex_id): ExerciseProgress.from_dict(value)
            for ex_id, value in saved_progress.items()
        }
        pending = data.get("pendingSet")
        return cls(
            is_set_active=bool(data.get("isSetActive", False)),
            is_resting=bool(data.get("isResting", False)),
            cumulative_set_start_time=parse_timestamp(data.get("cumulativeSetStartTime")),
            cumulative_rest_start_time=parse_timestamp(data.get("cumulativeRestStartTime")),
            set_start_time=parse_timestamp(data.get("setStartTime")),
            rest_start_time=parse_timestamp(data.get("restStartTime")),
            paused_set_seconds=int(data.get("pausedSetSeconds") or 0),
            paused_rest_seconds=int(data.get("pausedRestSeconds") or 0),
            exercise_progress=progress,
            pending_set=PendingSet.from_dict(pending) if pending is not None else None,
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text: str) -> "TimerState":
        return cls.from_dict(json.loads(text))
