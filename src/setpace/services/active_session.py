"""Active-session summary published for banners and other displays."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, fields, replace
from datetime import datetime
from enum import Enum

logger = logging.getLogger(__name__)


class SummaryStatus(str, Enum):
    WORKING = "working"
    RESTING = "resting"
    PAUSED = "paused"


@dataclass(frozen=True)
class ActiveSessionSummary:
    """What a banner needs to show the in-progress workout."""

    session_id: int
    plan_id: int | None = None
    workout_id: int | None = None
    exercise_name: str | None = None
    status: SummaryStatus = SummaryStatus.PAUSED
    start_time: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "plan_id": self.plan_id,
            "workout_id": self.workout_id,
            "exercise_name": self.exercise_name,
            "status": self.status.value,
            "start_time": self.start_time.isoformat() if self.start_time else None,
        }


Subscriber = Callable[[ActiveSessionSummary | None], None]


class ActiveSessionPublisher:
    """Push-only channel: the tracker emits, subscribers listen.

    ``update`` merges the given fields into the current summary (like a
    partial state update) and notifies every subscriber. A failing
    subscriber is logged and skipped.
    """

    _FIELDS = {f.name for f in fields(ActiveSessionSummary)}

    def __init__(self):
        self._subscribers: list[Subscriber] = []
        self.current: ActiveSessionSummary | None = None

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback``; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def update(self, **changes) -> ActiveSessionSummary:
        unknown = set(changes) - self._FIELDS
        if unknown:
            raise TypeError(f"Unknown summary fields: {sorted(unknown)}")
        if "status" in changes:
            changes["status"] = SummaryStatus(changes["status"])

        if self.current is None:
            self.current = ActiveSessionSummary(**changes)
        else:
            self.current = replace(self.current, **changes)
        self._notify()
        return self.current

    def clear(self) -> None:
        self.current = None
        self._notify()

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self.current)
            except Exception:
                logger.exception("Active session subscriber failed")
