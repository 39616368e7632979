"""End-to-end tests of the HTTP API."""

import asyncio
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from setpace.db import PlanRepository, SessionRepository, init_db
from setpace.models.plan import WorkoutPlan
from setpace.web import create_app


@pytest.fixture
def db_path(tmp_path, plan_data):
    path = tmp_path / "api.db"

    async def seed():
        await init_db(path)
        repo = PlanRepository(path)
        plan_id = await repo.create(WorkoutPlan.from_dict(plan_data))
        await repo.set_active(plan_id)

    asyncio.run(seed())
    return path


@pytest.fixture
def clock(clock):
    clock.set(datetime(2024, 5, 6, 18, 0, 0, tzinfo=timezone.utc))
    return clock


class TestSessionApi:
    """Drive a workout through the HTTP routes."""

    def test_workout_flow(self, db_path, clock):
        """Test start, a logged set, the completion prompt and finish."""
        with TestClient(create_app(db_path, clock)) as client:
            assert client.get("/session").json() == {"active": False}

            started = client.post("/session/start", data={"plan_id": 1, "day_id": 1})
            assert started.status_code == 200
            assert started.json()["summary"]["status"] == "paused"

            client.post("/session/exercise", data={"exercise_id": 1})
            working = client.post("/session/start-set").json()
            assert working["summary"]["status"] == "working"

            clock.advance(40)
            done = client.post("/session/complete-set", data={"reps": "8", "weight": "70"})
            assert done.json()["set"]["set_duration"] == 40
            assert done.json()["timer"]["state"] == "resting"

            clock.advance(60)
            prompt = client.post("/session/complete-exercise")
            assert prompt.status_code == 409
            assert prompt.json()["target_sets"] == 2

            client.post("/session/complete-exercise", data={"mark_complete": "false"})

            clock.advance(seconds=30, minutes=10)
            finished = client.post("/session/finish").json()
            assert finished["session"]["total_duration"] == 12
            assert finished["session"]["total_set_duration"] == 40
            assert finished["session"]["total_rest_duration"] == 60

            streak = client.get("/streak").json()
            assert streak["streak"] == 1
            assert streak["emoji"] == "🔥"

            history = client.get("/session/history").json()["sessions"]
            assert len(history) == 1

    def test_errors(self, db_path, clock):
        """Test error payloads for bad requests."""
        with TestClient(create_app(db_path, clock)) as client:
            assert client.post("/session/start-set").status_code == 404

            client.post("/session/start", data={"plan_id": 1, "day_id": 1})
            conflict = client.post("/session/start", data={"plan_id": 1, "day_id": 2})
            assert conflict.status_code == 409
            assert "error" in conflict.json()

            assert client.post("/session/start-set").json()["error"] == "No exercise selected"
            unknown = client.post("/session/exercise", data={"exercise_id": 42})
            assert "error" in unknown.json()

            client.post("/session/exercise", data={"exercise_id": 1})
            client.post("/session/start-set")
            bad = client.post("/session/complete-set", data={"reps": "-3"})
            assert bad.status_code == 400
            assert client.get("/session").json()["timer"]["state"] == "set_active"

    def test_shutdown_flushes_timer_state(self, db_path, clock):
        """Test that the running set survives an app restart."""
        with TestClient(create_app(db_path, clock)) as client:
            client.post("/session/start", data={"plan_id": 1, "day_id": 1})
            client.post("/session/exercise", data={"exercise_id": 2})
            client.post("/session/start-set")
            clock.advance(20)

        session = asyncio.run(SessionRepository(db_path).get_active_session())
        assert session.current_exercise_id == 2
        assert session.total_set_duration == 20

        clock.advance(10)
        with TestClient(create_app(db_path, clock)) as client:
            timer = client.get("/session").json()["timer"]
            assert timer["state"] == "set_active"
            assert timer["set_seconds"] == 30
            assert timer["cumulative_set_seconds"] == 30

    def test_cancel(self, db_path, clock):
        """Test discarding a session over HTTP."""
        with TestClient(create_app(db_path, clock)) as client:
            client.post("/session/start", data={"plan_id": 1, "day_id": 2})
            assert client.post("/session/cancel").json()["active"] is False
            assert client.get("/session").json() == {"active": False}
