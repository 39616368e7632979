"""Pytest configuration and fixtures."""

import asyncio
import tempfile
from pathlib import Path

import pytest

from setpace.db import PlanRepository, init_db
from setpace.models.plan import PlanDay, PlanExercise, WorkoutPlan


@pytest.fixture
def temp_db_path():
    """Create a temporary database path."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.db"


@pytest.fixture
def sample_plan():
    """A three-day push/pull/legs plan."""
    return WorkoutPlan(
        name="PPL",
        plan_type="Split",
        days=[
            PlanDay(
                name="Push",
                exercises=[
                    PlanExercise(None, "Bench Press", target_sets=3, target_reps="6-8"),
                    PlanExercise(None, "Overhead Press", target_sets=2, target_reps="8-10"),
                ],
            ),
            PlanDay(
                name="Pull",
                exercises=[PlanExercise(None, "Barbell Row", target_sets=3)],
            ),
            PlanDay(
                name="Legs",
                exercises=[PlanExercise(None, "Squat", target_sets=5, target_reps="5")],
            ),
        ],
    )


@pytest.fixture
def seeded_db(temp_db_path, sample_plan):
    """Initialized database holding ``sample_plan`` as the active plan."""

    async def seed():
        await init_db(temp_db_path)
        repo = PlanRepository(temp_db_path)
        plan_id = await repo.create(sample_plan)
        await repo.set_active(plan_id)

    asyncio.run(seed())
    return temp_db_path
