"""Reconciling persisted session rows with live timer state.

Restoring never adds wall-clock time into the paused bases: an open run is
re-opened at its original start and the live read-outs recompute elapsed
time from the clock. Writing does the reverse: bases are stored as they are
and only the ``total_*_duration`` columns carry "as of now" values.
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from ..clock import elapsed_seconds
from ..models.session import WorkoutSession
from ..models.timer_state import ExerciseProgress, TimerState
from .timer import TimerStateMachine

logger = logging.getLogger(__name__)


@dataclass
class RestoredState:
    """Timer state rebuilt from a session row."""

    state: TimerState
    current_exercise_id: int | None
    total_seconds: int
    set_seconds: int = 0
    rest_seconds: int = 0
    # False when the stored blob was missing or could not be parsed
    from_saved_state: bool = False


@dataclass
class WritePayload:
    """Arguments for ``SessionRepository.update_timer_state``."""

    timer_state: str
    current_exercise_id: int | None
    total_set_duration: int
    total_rest_duration: int


def parse_saved_state(raw: str | None) -> tuple[TimerState | None, dict | None]:
    """Parse the stored blob, returning (None, None) if absent or malformed."""
    if not raw:
        return None, None
    try:
        data = json.loads(raw)
        return TimerState.from_dict(data), data
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        logger.warning("Discarding malformed timer state: %s", e)
        return None, None


def _rebuild_progress(
    session: WorkoutSession, saved: TimerState | None
) -> dict[int, ExerciseProgress]:
    """Per-exercise progress: sets from raw rows, flags and timing from the blob."""
    saved_progress = saved.exercise_progress if saved else {}
    progress: dict[int, ExerciseProgress] = {}

    for exercise in session.exercises:
        sets = sorted(exercise.sets, key=lambda s: s.set_number)
        previous = saved_progress.get(exercise.id)
        start_time = previous.start_time if previous else None
        if start_time is None and sets:
            start_time = sets[0].completed_at
        progress[exercise.id] = ExerciseProgress(
            sets=sets,
            completed=previous.completed if previous else False,
            total_sets=len(sets),
            start_time=start_time,
            last_set_id=sets[-1].id if sets else None,
        )

    # Selected (or completed) exercises without any logged set yet
    for exercise_id, previous in saved_progress.items():
        if exercise_id not in progress:
            progress[exercise_id] = ExerciseProgress(
                completed=previous.completed,
                start_time=previous.start_time,
            )

    return progress


def restore_timer_state(
    session: WorkoutSession,
    exercise_ids: Iterable[int],
    now: datetime,
) -> RestoredState:
    """Rebuild timer state for ``session`` as of ``now``."""
    saved, raw = parse_saved_state(session.active_timer_state)
    state = TimerState(exercise_progress=_rebuild_progress(session, saved))

    # Rows written before the blob carried paused bases use the column totals
    if raw is not None and isinstance(raw.get("pausedSetSeconds"), int):
        state.paused_set_seconds = saved.paused_set_seconds
    else:
        state.paused_set_seconds = session.total_set_duration or 0
    if raw is not None and isinstance(raw.get("pausedRestSeconds"), int):
        state.paused_rest_seconds = saved.paused_rest_seconds
    else:
        state.paused_rest_seconds = session.total_rest_duration or 0

    restored = RestoredState(
        state=state,
        current_exercise_id=None,
        total_seconds=elapsed_seconds(session.check_in_time, now),
        from_saved_state=saved is not None,
    )

    if saved is not None:
        if saved.is_set_active and saved.cumulative_set_start_time:
            state.is_set_active = True
            state.cumulative_set_start_time = saved.cumulative_set_start_time
            state.set_start_time = saved.set_start_time
            restored.set_seconds = elapsed_seconds(saved.set_start_time, now)

        if saved.is_resting and saved.cumulative_rest_start_time:
            if state.is_set_active:
                logger.warning(
                    "Session %s saved both set and rest running; keeping the set",
                    session.id,
                )
            else:
                state.is_resting = True
                state.cumulative_rest_start_time = saved.cumulative_rest_start_time
                state.rest_start_time = saved.rest_start_time
                restored.rest_seconds = elapsed_seconds(saved.rest_start_time, now)

        state.pending_set = saved.pending_set

    known = set(exercise_ids)
    if session.current_exercise_id is not None:
        if session.current_exercise_id in known:
            restored.current_exercise_id = session.current_exercise_id
        else:
            logger.warning(
                "Session %s points at exercise %s which is not in the workout",
                session.id,
                session.current_exercise_id,
            )

    return restored


def build_write_payload(
    machine: TimerStateMachine, now: datetime | None = None
) -> WritePayload:
    """Snapshot the machine for a store write, with totals as of ``now``."""
    now = now or machine.clock.now()
    return WritePayload(
        timer_state=machine.state.to_json(),
        current_exercise_id=machine.current_exercise_id,
        total_set_duration=machine.live_set_seconds(now),
        total_rest_duration=machine.live_rest_seconds(now),
    )
