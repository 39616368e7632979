"""Tests for the session lifecycle controller."""

import asyncio
from datetime import datetime, timezone

import pytest

from setpace.db import SessionRepository
from setpace.exceptions import (
    ActiveSessionExistsError,
    ConfirmationRequired,
    PlanNotFoundError,
    SessionClosedError,
    SessionNotFoundError,
    SetInputError,
    UnknownExerciseError,
)
from setpace.services.active_session import ActiveSessionPublisher, SummaryStatus
from setpace.services.session_tracker import SessionTracker


@pytest.fixture
def ids(sample_plan, seeded_db):
    """Plan, day and exercise IDs of the seeded Push day."""
    push = sample_plan.days[0]
    return {
        "plan": sample_plan.id,
        "day": push.id,
        "bench": push.exercises[0].exercise_id,
        "press": push.exercises[1].exercise_id,
    }


def start(db_path, ids, clock, **kwargs):
    return SessionTracker.start(
        ids["plan"], ids["day"], db_path=db_path, clock=clock, debounce=60, **kwargs
    )


class TestStartAndResume:
    """Tests for starting and resuming sessions."""

    def test_start_creates_session(self, seeded_db, ids, clock):
        """Test that starting checks in and loads the day's exercises."""

        async def run():
            tracker = await start(seeded_db, ids, clock)
            session = await SessionRepository(seeded_db).get_active_session()
            return tracker, session

        tracker, session = asyncio.run(run())

        assert session.id == tracker.session_id
        assert session.check_in_time == clock.now()
        assert [ex.name for ex in tracker.exercises] == ["Bench Press", "Overhead Press"]

    def test_only_one_active_session(self, seeded_db, ids, clock):
        """Test that a second start is refused while one is in progress."""

        async def run():
            first = await start(seeded_db, ids, clock)
            with pytest.raises(ActiveSessionExistsError) as exc_info:
                await start(seeded_db, ids, clock)
            return first, exc_info.value

        first, error = asyncio.run(run())
        assert error.session_id == first.session_id

    def test_unknown_day(self, seeded_db, ids, clock):
        """Test that a day outside the plan is rejected."""
        with pytest.raises(PlanNotFoundError):
            asyncio.run(
                SessionTracker.start(ids["plan"], 999, db_path=seeded_db, clock=clock)
            )

    def test_resume_without_session(self, seeded_db, clock):
        """Test that resuming with nothing in progress fails."""
        with pytest.raises(SessionNotFoundError):
            asyncio.run(SessionTracker.resume(db_path=seeded_db, clock=clock))

    def test_resume_continues_running_set(self, seeded_db, ids, clock):
        """Test that a set running at shutdown keeps counting after resume."""

        async def run():
            tracker = await start(seeded_db, ids, clock)
            await tracker.switch_exercise(ids["bench"])
            await tracker.start_set()
            clock.advance(30)
            await tracker.flush()

            clock.advance(15)
            return await SessionTracker.resume(db_path=seeded_db, clock=clock, debounce=60)

        resumed = asyncio.run(run())
        snap = resumed.snapshot()

        assert snap.current_exercise_id == ids["bench"]
        assert snap.state == "set_active"
        assert snap.set_seconds == 45
        assert snap.cumulative_set_seconds == 45
        assert snap.total_seconds == 45


class TestSets:
    """Tests for logging sets."""

    def test_set_and_rest_are_persisted(self, seeded_db, ids, clock):
        """Test that set duration is stored and rest is patched on the next set."""

        async def run():
            tracker = await start(seeded_db, ids, clock)
            await tracker.switch_exercise(ids["bench"])
            await tracker.start_set()
            clock.advance(40)
            logged = await tracker.complete_set(reps=8, weight="60")
            clock.advance(90)
            await tracker.start_set()
            await tracker.flush()
            session = await SessionRepository(seeded_db).get_session_by_id(tracker.session_id)
            return logged, session

        logged, session = asyncio.run(run())
        stored = session.exercises[0].sets[0]

        assert logged.set_number == 1
        assert logged.weight == 60.0
        assert stored.set_duration == 40
        assert stored.rest_duration == 90
        assert stored.reps == 8

    def test_two_step_logging(self, seeded_db, ids, clock):
        """Test completing a set first and confirming reps while resting."""

        async def run():
            tracker = await start(seeded_db, ids, clock)
            await tracker.switch_exercise(ids["bench"])
            await tracker.start_set()
            clock.advance(35)
            pending = await tracker.complete_set()
            resting = tracker.snapshot().state
            logged = await tracker.log_set("10", "")
            return tracker, pending, resting, logged

        tracker, pending, resting, logged = asyncio.run(run())

        assert pending.set_duration == 35
        assert resting == "resting"
        assert logged.reps == 10
        assert logged.weight is None
        assert tracker.snapshot().has_pending_set is False

    def test_invalid_input_changes_nothing(self, seeded_db, ids, clock):
        """Test that rejected reps leave the set running."""

        async def run():
            tracker = await start(seeded_db, ids, clock)
            await tracker.switch_exercise(ids["bench"])
            await tracker.start_set()
            with pytest.raises(SetInputError):
                await tracker.complete_set(reps="abc", weight=50)
            still_active = tracker.machine.state.is_set_active

            await tracker.complete_set()
            with pytest.raises(SetInputError):
                await tracker.log_set(8, weight=-5)
            return still_active, tracker.machine.state.pending_set

        still_active, pending = asyncio.run(run())

        assert still_active
        assert pending is not None

    def test_suggested_reps(self, seeded_db, ids, clock):
        """Test defaults from the plan's rep range, then from the last set."""

        async def run():
            tracker = await start(seeded_db, ids, clock)
            await tracker.switch_exercise(ids["bench"])
            before = tracker.suggested_reps(), tracker.suggested_weight()
            await tracker.start_set()
            await tracker.complete_set(reps=7, weight=80)
            return before, (tracker.suggested_reps(), tracker.suggested_weight())

        before, after = asyncio.run(run())

        assert before == (6, None)
        assert after == (7, 80.0)

    def test_unknown_exercise(self, seeded_db, ids, clock):
        """Test that exercises outside the day are rejected."""

        async def run():
            tracker = await start(seeded_db, ids, clock)
            await tracker.switch_exercise(9999)

        with pytest.raises(UnknownExerciseError):
            asyncio.run(run())


class TestCompleteExercise:
    """Tests for completing exercises."""

    def test_confirmation_below_target(self, seeded_db, ids, clock):
        """Test that finishing short of the target needs a decision."""

        async def run():
            tracker = await start(seeded_db, ids, clock)
            await tracker.switch_exercise(ids["press"])
            await tracker.start_set()
            await tracker.complete_set(reps=8, weight=40)
            with pytest.raises(ConfirmationRequired) as exc_info:
                await tracker.complete_exercise()
            completed = await tracker.complete_exercise(False)
            return tracker, exc_info.value, completed

        tracker, error, completed = asyncio.run(run())

        assert (error.completed_sets, error.target_sets) == (1, 2)
        assert completed == ids["press"]
        assert tracker.is_exercise_completed(ids["press"]) is False
        assert tracker.machine.current_exercise_id is None

    def test_target_reached_completes(self, seeded_db, ids, clock):
        """Test that reaching the target completes without asking."""

        async def run():
            tracker = await start(seeded_db, ids, clock)
            await tracker.switch_exercise(ids["press"])
            for _ in range(2):
                await tracker.start_set()
                clock.advance(30)
                await tracker.complete_set(reps=8, weight=40)
                clock.advance(60)
            await tracker.complete_exercise()
            await tracker.flush()
            session = await SessionRepository(seeded_db).get_session_by_id(tracker.session_id)
            return tracker, session

        tracker, session = asyncio.run(run())

        assert tracker.is_exercise_completed(ids["press"])
        assert [s.rest_duration for s in session.exercises[0].sets] == [60, 60]
        assert tracker.needs_switch_confirmation(ids["press"]) is not None


class TestFinishAndCancel:
    """Tests for ending sessions."""

    def test_finish_records_duration(self, seeded_db, ids, clock):
        """Test that 10:00:00 to 10:47:30 is stored as 47 minutes."""

        async def run():
            tracker = await start(seeded_db, ids, clock)
            await tracker.switch_exercise(ids["bench"])
            await tracker.start_set()
            clock.advance(60)
            await tracker.complete_set(reps=5, weight=100)
            clock.set(datetime(2024, 3, 4, 10, 47, 30, tzinfo=timezone.utc))
            finished = await tracker.finish()
            active = await SessionRepository(seeded_db).get_active_session()
            return tracker, finished, active

        tracker, finished, active = asyncio.run(run())

        assert finished.total_duration == 47
        assert finished.is_completed
        assert finished.total_set_duration == 60
        assert finished.total_rest_duration == 47 * 60 + 30 - 60
        assert active is None
        assert tracker.closed

    def test_operations_after_finish(self, seeded_db, ids, clock):
        """Test that a finished session rejects further operations."""

        async def run():
            tracker = await start(seeded_db, ids, clock)
            await tracker.finish()
            await tracker.flush()
            await tracker.start_set()

        with pytest.raises(SessionClosedError):
            asyncio.run(run())

    def test_cancel_deletes_session(self, seeded_db, ids, clock):
        """Test that cancelling removes the session and its sets."""

        async def run():
            tracker = await start(seeded_db, ids, clock)
            await tracker.switch_exercise(ids["bench"])
            await tracker.start_set()
            await tracker.complete_set(reps=5, weight=100)
            await tracker.cancel()
            return tracker, await SessionRepository(seeded_db).get_session_by_id(
                tracker.session_id
            )

        tracker, session = asyncio.run(run())

        assert session is None
        with pytest.raises(SessionClosedError):
            asyncio.run(tracker.complete_exercise(True))


class TestSummary:
    """Tests for the published active-session summary."""

    def test_status_follows_timers(self, seeded_db, ids, clock):
        """Test that subscribers see working, resting, paused and then nothing."""
        publisher = ActiveSessionPublisher()
        seen = []
        publisher.subscribe(lambda summary: seen.append(summary.status if summary else None))

        async def run():
            tracker = await start(seeded_db, ids, clock, publisher=publisher)
            await tracker.switch_exercise(ids["bench"])
            await tracker.start_set()
            await tracker.complete_set()
            await tracker.log_set(8, 60)
            await tracker.complete_exercise(True)
            await tracker.finish()
            return publisher.current

        current = asyncio.run(run())

        assert seen[:3] == [SummaryStatus.PAUSED, SummaryStatus.PAUSED, SummaryStatus.WORKING]
        assert SummaryStatus.RESTING in seen
        assert seen[-2] == SummaryStatus.PAUSED
        assert seen[-1] is None
        assert current is None

    def test_start_time_tracks_current_interval(self, seeded_db, ids, clock):
        """Test that the summary times the running set or rest, not the check-in."""
        publisher = ActiveSessionPublisher()
        seen = []
        publisher.subscribe(lambda summary: seen.append(summary.start_time if summary else None))

        async def run():
            tracker = await start(seeded_db, ids, clock, publisher=publisher)
            await tracker.switch_exercise(ids["bench"])
            idle = publisher.current.start_time
            clock.advance(300)
            await tracker.start_set()
            working = publisher.current.start_time
            clock.advance(40)
            await tracker.complete_set(reps=8, weight=60)
            resting = publisher.current.start_time
            await tracker.complete_exercise(True)
            return idle, working, resting, publisher.current.start_time

        idle, working, resting, after = asyncio.run(run())

        assert idle is None
        assert working == datetime(2024, 3, 4, 10, 5, 0, tzinfo=timezone.utc)
        assert resting == datetime(2024, 3, 4, 10, 5, 40, tzinfo=timezone.utc)
        assert after is None
        assert seen[0] is None
