"""In-memory timer state machine for an active workout session.

Two timer pairs run side by side:

* cumulative set/rest timers: ``paused_*_seconds`` plus an optional open run
  starting at ``cumulative_*_start_time``. They survive exercise switches.
* individual set/rest timers: ``set_start_time`` / ``rest_start_time`` for the
  current interval only.

Per exercise the machine cycles ``idle -> set active -> resting -> set active
-> ... -> idle``. ``is_set_active`` and ``is_resting`` are never both true.

The machine does no I/O. Operations that imply a store write hand back what
needs writing (a rest-duration patch, a pending set) and the caller
persists it.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from ..clock import SystemClock, elapsed_seconds
from ..models.session import LoggedSet
from ..models.timer_state import ExerciseProgress, PendingSet, TimerState

logger = logging.getLogger(__name__)


@dataclass
class RestPatch:
    """Rest taken after ``set_id``, to be written once the rest ends."""

    set_id: int
    rest_seconds: int


@dataclass
class SetStarted:
    """Result of :meth:`TimerStateMachine.start_set`."""

    started_at: datetime
    rest_patch: RestPatch | None = None


class TimerStateMachine:
    """Transition logic over a :class:`TimerState` and the current exercise."""

    def __init__(
        self,
        state: TimerState | None = None,
        current_exercise_id: int | None = None,
        clock=None,
    ):
        self.state = state or TimerState()
        self.current_exercise_id = current_exercise_id
        self.clock = clock or SystemClock()

    # ------------------------------------------------------------------
    # Live read-outs (display and persistence both use these)
    # ------------------------------------------------------------------

    def live_set_seconds(self, now: datetime | None = None) -> int:
        """Cumulative working time as of ``now``."""
        now = now or self.clock.now()
        total = self.state.paused_set_seconds
        if self.state.is_set_active and self.state.cumulative_set_start_time:
            total += elapsed_seconds(self.state.cumulative_set_start_time, now)
        return total

    def live_rest_seconds(self, now: datetime | None = None) -> int:
        """Cumulative resting time as of ``now``."""
        now = now or self.clock.now()
        total = self.state.paused_rest_seconds
        if self.state.is_resting and self.state.cumulative_rest_start_time:
            total += elapsed_seconds(self.state.cumulative_rest_start_time, now)
        return total

    def set_seconds(self, now: datetime | None = None) -> int:
        """Elapsed time of the current set (0 when no set is running)."""
        if not self.state.is_set_active:
            return 0
        return elapsed_seconds(self.state.set_start_time, now or self.clock.now())

    def rest_seconds(self, now: datetime | None = None) -> int:
        """Elapsed time of the current rest (0 when not resting)."""
        if not self.state.is_resting:
            return 0
        return elapsed_seconds(self.state.rest_start_time, now or self.clock.now())

    @property
    def current_progress(self) -> ExerciseProgress | None:
        if self.current_exercise_id is None:
            return None
        return self.state.exercise_progress.get(self.current_exercise_id)

    def progress_for(self, exercise_id: int) -> ExerciseProgress | None:
        return self.state.exercise_progress.get(exercise_id)

    # ------------------------------------------------------------------
    # Folding helpers
    # ------------------------------------------------------------------

    def _fold_set_run(self, now: datetime) -> None:
        if self.state.cumulative_set_start_time is not None:
            self.state.paused_set_seconds += elapsed_seconds(
                self.state.cumulative_set_start_time, now
            )
            self.state.cumulative_set_start_time = None

    def _fold_rest_run(self, now: datetime) -> None:
        if self.state.cumulative_rest_start_time is not None:
            self.state.paused_rest_seconds += elapsed_seconds(
                self.state.cumulative_rest_start_time, now
            )
            self.state.cumulative_rest_start_time = None

    def _stop_all(self, now: datetime) -> None:
        """Fold both open runs and return to idle."""
        if self.state.is_set_active:
            self._fold_set_run(now)
        if self.state.is_resting:
            self._fold_rest_run(now)
        self.state.is_set_active = False
        self.state.is_resting = False
        self.state.set_start_time = None
        self.state.rest_start_time = None

    def _end_rest(self, now: datetime, record: bool = True) -> RestPatch | None:
        if not self.state.is_resting:
            return None
        rest_elapsed = elapsed_seconds(self.state.rest_start_time, now)
        self._fold_rest_run(now)
        self.state.is_resting = False
        self.state.rest_start_time = None

        progress = self.current_progress
        if not record or progress is None or progress.last_set_id is None:
            return None
        last = progress.find_set(progress.last_set_id)
        if last is not None:
            last.rest_duration = rest_elapsed
        return RestPatch(progress.last_set_id, rest_elapsed)

    def _ensure_progress(self, exercise_id: int, now: datetime) -> ExerciseProgress:
        progress = self.state.exercise_progress.get(exercise_id)
        if progress is None:
            progress = ExerciseProgress(start_time=now)
            self.state.exercise_progress[exercise_id] = progress
        elif progress.start_time is None:
            progress.start_time = now
        return progress

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def switch_exercise(self, exercise_id: int) -> bool:
        """Make ``exercise_id`` the current exercise.

        Switching away from another exercise pauses its timers (folds the
        open runs) without touching its ``completed`` flag. A timer running
        while no exercise is selected is adopted by ``exercise_id`` as is.

        Returns True when a running timer was adopted.
        """
        if self.current_exercise_id == exercise_id:
            return False

        now = self.clock.now()
        adopted = self.current_exercise_id is None and self.state.is_timer_running

        if adopted:
            logger.warning(
                "Adopting running %s timer into exercise %s",
                "set" if self.state.is_set_active else "rest",
                exercise_id,
            )
        elif self.current_exercise_id is not None:
            logger.debug(
                "Pausing exercise %s to switch to %s",
                self.current_exercise_id,
                exercise_id,
            )
            self._stop_all(now)

        self.current_exercise_id = exercise_id
        self._ensure_progress(exercise_id, now)
        return adopted

    def start_set(self) -> SetStarted | None:
        """Begin a set on the current exercise, ending any rest in progress.

        Returns None (and does nothing) when no exercise is selected.
        """
        if self.current_exercise_id is None:
            logger.debug("start_set ignored: no exercise selected")
            return None

        now = self.clock.now()
        unconfirmed = self.state.pending_set
        if unconfirmed is not None:
            logger.warning(
                "Discarding unconfirmed set on exercise %s", unconfirmed.exercise_id
            )
            self.state.pending_set = None
        rest_patch = self._end_rest(now, record=unconfirmed is None)

        if self.state.cumulative_set_start_time is None:
            self.state.cumulative_set_start_time = now
        self.state.set_start_time = now
        self.state.is_set_active = True
        return SetStarted(started_at=now, rest_patch=rest_patch)

    def complete_set(self) -> PendingSet | None:
        """Stop the running set and start resting.

        The set itself is recorded later with :meth:`record_set` once reps
        and weight are confirmed; the rest timer already runs meanwhile.
        Returns None when no set is active.
        """
        if not self.state.is_set_active:
            return None

        now = self.clock.now()
        set_duration = elapsed_seconds(self.state.set_start_time, now)
        self._fold_set_run(now)
        self.state.is_set_active = False
        self.state.set_start_time = None

        pending = PendingSet(
            exercise_id=self.current_exercise_id,
            set_duration=set_duration,
            ended_at=now,
        )
        self.state.pending_set = pending

        if self.state.cumulative_rest_start_time is None:
            self.state.cumulative_rest_start_time = now
        self.state.rest_start_time = now
        self.state.is_resting = True
        return pending

    def end_rest(self) -> RestPatch | None:
        """Stop resting and return the rest to record against the last set.

        A pending (unconfirmed) set keeps its rest unrecorded.
        """
        return self._end_rest(self.clock.now(), record=self.state.pending_set is None)

    def next_set_number(self, exercise_id: int) -> int:
        progress = self.state.exercise_progress.get(exercise_id)
        return len(progress.sets) + 1 if progress else 1

    def record_set(
        self,
        set_id: int,
        reps: int,
        weight: float | None,
        notes: str | None = None,
    ) -> LoggedSet | None:
        """Attach the confirmed pending set to its exercise's progress."""
        pending = self.state.pending_set
        if pending is None:
            return None

        progress = self._ensure_progress(pending.exercise_id, pending.ended_at)
        logged = LoggedSet(
            id=set_id,
            set_number=len(progress.sets) + 1,
            reps=reps,
            weight=weight,
            set_duration=pending.set_duration,
            completed_at=self.clock.now(),
            notes=notes,
        )
        progress.add_set(logged)
        self.state.pending_set = None
        return logged

    def discard_pending_set(self) -> None:
        self.state.pending_set = None

    def complete_exercise(self, mark_complete: bool) -> int | None:
        """Stop all timers, set the completed flag and deselect the exercise.

        Returns the exercise ID that was completed, or None when nothing was
        selected (so repeated calls are harmless).
        """
        if self.current_exercise_id is None:
            return None

        now = self.clock.now()
        self._stop_all(now)

        exercise_id = self.current_exercise_id
        progress = self._ensure_progress(exercise_id, now)
        progress.completed = mark_complete
        self.current_exercise_id = None
        return exercise_id

    def finalize(self) -> tuple[int, int]:
        """Fold any open runs and return the final (set, rest) totals."""
        self._stop_all(self.clock.now())
        return self.state.paused_set_seconds, self.state.paused_rest_seconds
