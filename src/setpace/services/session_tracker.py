"""Session lifecycle: start or resume, drive the timers, persist, finish.

The tracker owns the authoritative timer state for one session. Every
transition updates the in-memory machine first, then schedules a debounced
write of the serialized state; set rows and rest patches are written
directly.
"""

import logging
import math
from dataclasses import dataclass
from pathlib import Path

from ..clock import SystemClock, elapsed_seconds
from ..config import DEFAULT_REPS, get_save_debounce
from ..db.repositories import PlanRepository, SessionRepository
from ..exceptions import (
    ActiveSessionExistsError,
    ConfirmationRequired,
    PlanNotFoundError,
    SessionClosedError,
    SessionNotFoundError,
    UnknownExerciseError,
)
from ..models.plan import PlanExercise
from ..models.session import LoggedSet, WorkoutSession
from ..models.timer_state import PendingSet
from .active_session import ActiveSessionPublisher, SummaryStatus
from .debounce import DebouncedWriter
from .reconcile import build_write_payload, restore_timer_state
from .timer import RestPatch, TimerStateMachine
from .validation import validate_set_input

logger = logging.getLogger(__name__)


@dataclass
class TimerSnapshot:
    """Everything a display needs at one instant."""

    session_id: int
    total_seconds: int
    set_seconds: int
    rest_seconds: int
    cumulative_set_seconds: int
    cumulative_rest_seconds: int
    state: str
    current_exercise_id: int | None
    current_exercise_name: str | None
    has_pending_set: bool

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "total_seconds": self.total_seconds,
            "set_seconds": self.set_seconds,
            "rest_seconds": self.rest_seconds,
            "cumulative_set_seconds": self.cumulative_set_seconds,
            "cumulative_rest_seconds": self.cumulative_rest_seconds,
            "state": self.state,
            "current_exercise_id": self.current_exercise_id,
            "current_exercise_name": self.current_exercise_name,
            "has_pending_set": self.has_pending_set,
        }


class SessionTracker:
    """Drives one workout session from check-in to check-out."""

    def __init__(
        self,
        session: WorkoutSession,
        exercises: list[PlanExercise],
        machine: TimerStateMachine,
        sessions: SessionRepository,
        plans: PlanRepository,
        publisher: ActiveSessionPublisher | None = None,
        debounce: float | None = None,
    ):
        self.session = session
        self.exercises = exercises
        self.machine = machine
        self.sessions = sessions
        self.plans = plans
        self.clock = machine.clock
        self.publisher = publisher or ActiveSessionPublisher()
        self.writer = DebouncedWriter(
            self._persist, get_save_debounce() if debounce is None else debounce
        )
        self._closed = False

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    async def start(
        cls,
        plan_id: int,
        day_id: int,
        db_path: Path | None = None,
        clock=None,
        publisher: ActiveSessionPublisher | None = None,
        debounce: float | None = None,
    ) -> "SessionTracker":
        """Check in to a new session for a plan day.

        Raises:
            ActiveSessionExistsError: Another session is still in progress
            PlanNotFoundError: The plan or day does not exist
        """
        clock = clock or SystemClock()
        sessions = SessionRepository(db_path)
        plans = PlanRepository(db_path)

        active = await sessions.get_active_session()
        if active is not None:
            raise ActiveSessionExistsError(active.id)

        plan = await plans.get(plan_id)
        if plan is None:
            raise PlanNotFoundError(f"Plan {plan_id} not found")
        day = plan.get_day(day_id)
        if day is None:
            raise PlanNotFoundError(f"Day {day_id} is not part of plan {plan_id}")

        session_id = await sessions.create_session(
            plan_id, day_id, clock.now(), clock.today()
        )
        session = await sessions.get_session_by_id(session_id)
        logger.info("Started session %s (%s / %s)", session_id, plan.name, day.name)

        tracker = cls(
            session,
            day.exercises,
            TimerStateMachine(clock=clock),
            sessions,
            plans,
            publisher=publisher,
            debounce=debounce,
        )
        tracker._publish()
        return tracker

    @classmethod
    async def resume(
        cls,
        session_id: int | None = None,
        db_path: Path | None = None,
        clock=None,
        publisher: ActiveSessionPublisher | None = None,
        debounce: float | None = None,
    ) -> "SessionTracker":
        """Restore the given session, or the one in progress.

        Raises:
            SessionNotFoundError: No matching session
            SessionClosedError: The session was already finished
        """
        clock = clock or SystemClock()
        sessions = SessionRepository(db_path)
        plans = PlanRepository(db_path)

        if session_id is None:
            active = await sessions.get_active_session()
            if active is None:
                raise SessionNotFoundError("No session in progress")
            session_id = active.id

        session = await sessions.get_session_by_id(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        if session.is_completed:
            raise SessionClosedError(f"Session {session_id} is already finished")

        exercises = []
        if session.day_id is not None:
            exercises = await plans.get_day_exercises(session.day_id)

        restored = restore_timer_state(
            session, [ex.exercise_id for ex in exercises], clock.now()
        )
        if not restored.from_saved_state and session.active_timer_state:
            logger.info("Session %s resumed from logged sets only", session_id)

        machine = TimerStateMachine(
            restored.state, restored.current_exercise_id, clock=clock
        )
        tracker = cls(
            session,
            exercises,
            machine,
            sessions,
            plans,
            publisher=publisher,
            debounce=debounce,
        )
        tracker._publish()
        return tracker

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def session_id(self) -> int:
        return self.session.id

    @property
    def closed(self) -> bool:
        return self._closed

    def get_exercise(self, exercise_id: int) -> PlanExercise | None:
        for exercise in self.exercises:
            if exercise.exercise_id == exercise_id:
                return exercise
        return None

    def exercise_name(self, exercise_id: int | None) -> str | None:
        if exercise_id is None:
            return None
        exercise = self.get_exercise(exercise_id)
        if exercise is not None:
            return exercise.name
        logged = self.session.sets_by_exercise().get(exercise_id)
        return logged.name if logged else None

    @property
    def current_exercise(self) -> PlanExercise | None:
        if self.machine.current_exercise_id is None:
            return None
        return self.get_exercise(self.machine.current_exercise_id)

    def is_exercise_completed(self, exercise_id: int) -> bool:
        progress = self.machine.progress_for(exercise_id)
        return bool(progress and progress.completed)

    def needs_switch_confirmation(self, exercise_id: int) -> str | None:
        """Reason to confirm before switching to ``exercise_id``, if any."""
        current_id = self.machine.current_exercise_id
        if current_id == exercise_id:
            return None
        state = self.machine.state
        # Orphan timers are adopted silently
        if current_id is None and state.is_timer_running:
            return None
        if self.is_exercise_completed(exercise_id):
            return "This exercise is marked as completed. Do you still want to access it?"
        if current_id is not None and state.is_timer_running:
            activity = "doing a set" if state.is_set_active else "resting"
            return (
                f"You're currently {activity} on {self.exercise_name(current_id)}. "
                f"Switch to {self.exercise_name(exercise_id)}?"
            )
        return None

    def completed_sets(self, exercise_id: int | None = None) -> list[LoggedSet]:
        exercise_id = exercise_id or self.machine.current_exercise_id
        if exercise_id is None:
            return []
        progress = self.machine.progress_for(exercise_id)
        return list(progress.sets) if progress else []

    def suggested_reps(self, exercise_id: int | None = None) -> int:
        """Default reps: last set, else the plan's lower rep bound, else 10."""
        sets = self.completed_sets(exercise_id)
        if sets:
            return sets[-1].reps
        exercise = self.get_exercise(exercise_id or self.machine.current_exercise_id)
        if exercise is not None and exercise.reps_min is not None:
            return exercise.reps_min
        return DEFAULT_REPS

    def suggested_weight(self, exercise_id: int | None = None) -> float | None:
        sets = self.completed_sets(exercise_id)
        return sets[-1].weight if sets else None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError(f"Session {self.session_id} is closed")

    async def switch_exercise(self, exercise_id: int) -> bool:
        """Select an exercise; returns True when an orphan timer was adopted."""
        self._ensure_open()
        if self.get_exercise(exercise_id) is None:
            raise UnknownExerciseError(
                f"Exercise {exercise_id} is not part of this workout"
            )
        adopted = self.machine.switch_exercise(exercise_id)
        self._changed()
        return adopted

    async def start_set(self) -> bool:
        """Start a set on the current exercise; False when none is selected."""
        self._ensure_open()
        started = self.machine.start_set()
        if started is None:
            return False
        if started.rest_patch is not None:
            await self._patch_rest(started.rest_patch)
        self._changed()
        return True

    async def complete_set(
        self, reps=None, weight=None, notes: str | None = None
    ) -> PendingSet | LoggedSet | None:
        """Stop the running set and start resting.

        With ``reps`` the set is logged straight away and the logged set is
        returned; otherwise the pending set waits for :meth:`log_set`.
        Input is validated before any timer changes.
        """
        self._ensure_open()
        if not self.machine.state.is_set_active:
            return None
        if reps is not None:
            reps, weight = validate_set_input(reps, weight)

        pending = self.machine.complete_set()
        self._changed()
        if reps is None:
            return pending
        return await self.log_set(reps, weight, notes)

    async def log_set(self, reps, weight=None, notes: str | None = None) -> LoggedSet | None:
        """Record the pending set with confirmed reps and weight.

        Raises:
            SetInputError: Invalid reps or weight; the pending set is kept
        """
        self._ensure_open()
        pending = self.machine.state.pending_set
        if pending is None:
            return None
        reps, weight = validate_set_input(reps, weight)

        set_number = self.machine.next_set_number(pending.exercise_id)
        set_id = await self.sessions.log_set(
            self.session_id,
            pending.exercise_id,
            self.exercise_name(pending.exercise_id) or f"Exercise {pending.exercise_id}",
            set_number,
            reps,
            weight,
            set_duration=pending.set_duration,
            notes=notes,
            completed_at=self.clock.now(),
        )
        logged = self.machine.record_set(set_id, reps, weight, notes)
        logger.debug(
            "Logged set %s of exercise %s: %s x %s",
            set_number,
            pending.exercise_id,
            reps,
            weight,
        )
        self._changed()
        return logged

    async def complete_exercise(self, mark_complete: bool | None = None) -> int | None:
        """End the current exercise.

        With ``mark_complete=None`` the exercise is marked complete once its
        target sets are reached; short of that the caller must decide.

        Raises:
            ConfirmationRequired: Target sets not reached and no decision given
        """
        self._ensure_open()
        exercise_id = self.machine.current_exercise_id
        if exercise_id is None:
            return None

        if mark_complete is None:
            exercise = self.get_exercise(exercise_id)
            target = exercise.target_sets if exercise else 0
            done = len(self.completed_sets(exercise_id))
            if done < target:
                raise ConfirmationRequired(done, target)
            mark_complete = True

        rest_patch = self.machine.end_rest()
        if rest_patch is not None:
            await self._patch_rest(rest_patch)
        self.machine.complete_exercise(mark_complete)
        self._changed()
        return exercise_id

    async def update_notes(self, notes: str) -> None:
        self._ensure_open()
        await self.sessions.update_notes(self.session_id, notes)
        self.session.notes = notes

    async def finish(self) -> WorkoutSession:
        """Check out: write final durations and close the session."""
        self._ensure_open()
        self.writer.cancel()
        await self.writer.wait()

        now = self.clock.now()
        rest_patch = self.machine.end_rest()
        if rest_patch is not None:
            await self._patch_rest(rest_patch)
        set_total, rest_total = self.machine.finalize()
        minutes = math.floor(elapsed_seconds(self.session.check_in_time, now) / 60)

        await self.sessions.update_durations(self.session_id, set_total, rest_total)
        await self.sessions.finalize_session(self.session_id, now, minutes)
        self._closed = True
        self.publisher.clear()
        logger.info("Finished session %s after %s minutes", self.session_id, minutes)

        session = await self.sessions.get_session_by_id(self.session_id)
        self.session = session
        return session

    async def cancel(self) -> None:
        """Discard the session and everything logged in it."""
        self._ensure_open()
        self.writer.cancel()
        await self.writer.wait()
        await self.sessions.delete_session(self.session_id)
        self._closed = True
        self.publisher.clear()
        logger.info("Cancelled session %s", self.session_id)

    async def flush(self) -> None:
        """Persist now, bypassing the debounce. Harmless once closed."""
        if self._closed:
            self.writer.cancel()
            return
        await self.writer.flush()

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    @property
    def status(self) -> SummaryStatus:
        if self.machine.state.is_set_active:
            return SummaryStatus.WORKING
        if self.machine.state.is_resting:
            return SummaryStatus.RESTING
        return SummaryStatus.PAUSED

    def snapshot(self) -> TimerSnapshot:
        now = self.clock.now()
        state = self.machine.state
        if state.is_set_active:
            label = "set_active"
        elif state.is_resting:
            label = "resting"
        else:
            label = "idle"
        return TimerSnapshot(
            session_id=self.session_id,
            total_seconds=elapsed_seconds(self.session.check_in_time, now),
            set_seconds=self.machine.set_seconds(now),
            rest_seconds=self.machine.rest_seconds(now),
            cumulative_set_seconds=self.machine.live_set_seconds(now),
            cumulative_rest_seconds=self.machine.live_rest_seconds(now),
            state=label,
            current_exercise_id=self.machine.current_exercise_id,
            current_exercise_name=self.exercise_name(self.machine.current_exercise_id),
            has_pending_set=state.pending_set is not None,
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _changed(self) -> None:
        self._publish()
        self.writer.schedule()

    def _publish(self) -> None:
        state = self.machine.state
        if state.is_set_active:
            interval_start = state.set_start_time
        elif state.is_resting:
            interval_start = state.rest_start_time
        else:
            interval_start = None
        self.publisher.update(
            session_id=self.session_id,
            plan_id=self.session.plan_id,
            workout_id=self.session.day_id,
            exercise_name=self.exercise_name(self.machine.current_exercise_id),
            status=self.status,
            start_time=interval_start,
        )

    async def _patch_rest(self, patch: RestPatch) -> None:
        try:
            await self.sessions.patch_set_rest_duration(patch.set_id, patch.rest_seconds)
        except Exception:
            logger.exception("Failed to record rest for set %s", patch.set_id)

    async def _persist(self) -> None:
        if self._closed:
            return
        payload = build_write_payload(self.machine)
        await self.sessions.update_timer_state(
            self.session_id,
            payload.timer_state,
            payload.current_exercise_id,
            payload.total_set_duration,
            payload.total_rest_duration,
        )
        logger.debug("Saved timer state for session %s", self.session_id)
