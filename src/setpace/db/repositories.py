"""Data access layer for setpace."""

from datetime import date, datetime
from pathlib import Path

import aiosqlite

from ..models.plan import PlanDay, PlanExercise, WorkoutPlan
from ..models.session import (
    LoggedSet,
    SessionExercise,
    WorkoutSession,
    format_timestamp,
    parse_timestamp,
)
from .engine import get_db_path


class SessionRepository:
    """Repository for workout sessions and their logged sets."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()

    async def create_session(
        self,
        plan_id: int | None,
        day_id: int | None,
        check_in_time: datetime,
        session_date: date,
    ) -> int:
        """Create a new (incomplete) session and return its ID."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                """
                INSERT INTO workout_sessions
                (plan_id, day_id, check_in_time, session_date)
                VALUES (?, ?, ?, ?)
                """,
                (plan_id, day_id, format_timestamp(check_in_time), session_date.isoformat()),
            )
            await db.commit()
            return cursor.lastrowid

    async def get_session_by_id(self, session_id: int) -> WorkoutSession | None:
        """Get a session with its logged sets grouped by exercise."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM workout_sessions WHERE id = ?", (session_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None

            session = self._row_to_session(row)

            cursor = await db.execute(
                """
                SELECT * FROM exercise_performance
                WHERE session_id = ?
                ORDER BY completed_at, id
                """,
                (session_id,),
            )
            set_rows = await cursor.fetchall()

        # Group by exercise, keeping first-logged order
        grouped: dict[int, SessionExercise] = {}
        for set_row in set_rows:
            exercise_id = set_row["exercise_id"]
            if exercise_id not in grouped:
                grouped[exercise_id] = SessionExercise(
                    id=exercise_id, name=set_row["exercise_name"]
                )
            grouped[exercise_id].sets.append(self._row_to_set(set_row))
        session.exercises = list(grouped.values())
        return session

    async def get_active_session(self) -> WorkoutSession | None:
        """Get the single incomplete session, if any."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                """
                SELECT * FROM workout_sessions
                WHERE is_completed = 0
                ORDER BY check_in_time DESC LIMIT 1
                """
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_session(row)

    async def update_timer_state(
        self,
        session_id: int,
        timer_state: str,
        current_exercise_id: int | None,
        total_set_duration: int,
        total_rest_duration: int,
    ) -> None:
        """Persist the serialized timer state and live cumulative durations."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                UPDATE workout_sessions SET
                    active_timer_state = ?, current_exercise_id = ?,
                    total_set_duration = ?, total_rest_duration = ?
                WHERE id = ?
                """,
                (
                    timer_state,
                    current_exercise_id,
                    total_set_duration,
                    total_rest_duration,
                    session_id,
                ),
            )
            await db.commit()

    async def update_durations(
        self, session_id: int, total_set_duration: int, total_rest_duration: int
    ) -> None:
        """Update cumulative set and rest durations."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                UPDATE workout_sessions SET
                    total_set_duration = ?, total_rest_duration = ?
                WHERE id = ?
                """,
                (total_set_duration, total_rest_duration, session_id),
            )
            await db.commit()

    async def finalize_session(
        self, session_id: int, check_out_time: datetime, total_duration_minutes: int
    ) -> None:
        """Stamp check-out, total duration and the completion flag."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                UPDATE workout_sessions SET
                    check_out_time = ?, total_duration = ?, is_completed = 1
                WHERE id = ?
                """,
                (format_timestamp(check_out_time), total_duration_minutes, session_id),
            )
            await db.commit()

    async def delete_session(self, session_id: int) -> None:
        """Delete a session and its logged sets."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "DELETE FROM exercise_performance WHERE session_id = ?", (session_id,)
            )
            await db.execute("DELETE FROM workout_sessions WHERE id = ?", (session_id,))
            await db.commit()

    async def update_notes(self, session_id: int, notes: str) -> None:
        """Update session notes."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "UPDATE workout_sessions SET notes = ? WHERE id = ?", (notes, session_id)
            )
            await db.commit()

    async def log_set(
        self,
        session_id: int,
        exercise_id: int,
        exercise_name: str,
        set_number: int,
        reps: int,
        weight: float | None = None,
        set_duration: int | None = None,
        rest_duration: int | None = None,
        notes: str | None = None,
        completed_at: datetime | None = None,
    ) -> int:
        """Insert a logged set and return its ID."""
        completed_at = completed_at or datetime.now().astimezone()
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                """
                INSERT INTO exercise_performance
                (session_id, exercise_id, exercise_name, set_number, reps, weight,
                 set_duration, rest_duration, completed_at, notes)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    session_id,
                    exercise_id,
                    exercise_name,
                    set_number,
                    reps,
                    weight,
                    set_duration,
                    rest_duration,
                    format_timestamp(completed_at),
                    notes,
                ),
            )
            await db.commit()
            return cursor.lastrowid

    async def patch_set_rest_duration(self, set_id: int, rest_duration: int) -> None:
        """Fill in the rest taken after a set once that rest ends."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "UPDATE exercise_performance SET rest_duration = ? WHERE id = ?",
                (rest_duration, set_id),
            )
            await db.commit()

    async def list_completed_session_dates(self) -> set[date]:
        """Distinct calendar days with a completed session."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "SELECT DISTINCT session_date FROM workout_sessions WHERE is_completed = 1"
            )
            rows = await cursor.fetchall()
            return {date.fromisoformat(row[0]) for row in rows}

    async def get_active_plan_rotation_day_count(self) -> int | None:
        """Number of rotation days in the active plan (None without one)."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "SELECT id FROM workout_plans WHERE is_active = 1 LIMIT 1"
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            cursor = await db.execute(
                "SELECT COUNT(*) FROM plan_days WHERE plan_id = ?", (row[0],)
            )
            count_row = await cursor.fetchone()
            return count_row[0]

    async def list_sessions(self, limit: int = 50) -> list[WorkoutSession]:
        """List completed sessions, most recent first."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                """
                SELECT * FROM workout_sessions
                WHERE is_completed = 1
                ORDER BY session_date DESC, check_in_time DESC
                LIMIT ?
                """,
                (limit,),
            )
            rows = await cursor.fetchall()
            return [self._row_to_session(row) for row in rows]

    async def get_workout_totals(self) -> dict:
        """Total completed workouts, minutes and lifted volume."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                """
                SELECT COUNT(*), COALESCE(SUM(total_duration), 0)
                FROM workout_sessions WHERE is_completed = 1
                """
            )
            workouts, minutes = await cursor.fetchone()
            cursor = await db.execute(
                """
                SELECT COALESCE(SUM(ep.weight * ep.reps), 0)
                FROM exercise_performance ep
                JOIN workout_sessions ws ON ep.session_id = ws.id
                WHERE ws.is_completed = 1 AND ep.weight IS NOT NULL
                """
            )
            (volume,) = await cursor.fetchone()
            return {
                "total_workouts": workouts,
                "total_minutes": minutes,
                "total_volume": volume,
            }

    def _row_to_session(self, row: aiosqlite.Row) -> WorkoutSession:
        """Convert a database row to a WorkoutSession."""
        return WorkoutSession(
            id=row["id"],
            plan_id=row["plan_id"],
            day_id=row["day_id"],
            check_in_time=parse_timestamp(row["check_in_time"]),
            check_out_time=parse_timestamp(row["check_out_time"]),
            total_duration=row["total_duration"],
            session_date=date.fromisoformat(row["session_date"]),
            is_completed=bool(row["is_completed"]),
            notes=row["notes"],
            total_set_duration=row["total_set_duration"] or 0,
            total_rest_duration=row["total_rest_duration"] or 0,
            current_exercise_id=row["current_exercise_id"],
            active_timer_state=row["active_timer_state"],
        )

    def _row_to_set(self, row: aiosqlite.Row) -> LoggedSet:
        """Convert a database row to a LoggedSet."""
        return LoggedSet(
            id=row["id"],
            set_number=row["set_number"],
            reps=row["reps"],
            weight=row["weight"],
            set_duration=row["set_duration"],
            rest_duration=row["rest_duration"],
            completed_at=parse_timestamp(row["completed_at"]),
            notes=row["notes"],
        )


class PlanRepository:
    """Repository for workout plans, rotation days and the exercise library."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()

    async def get_or_create_exercise(self, name: str) -> int:
        """Return the library ID for ``name``, adding it if missing."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "INSERT OR IGNORE INTO exercises (name) VALUES (?)", (name,)
            )
            await db.commit()
            cursor = await db.execute(
                "SELECT id FROM exercises WHERE name = ?", (name,)
            )
            row = await cursor.fetchone()
            return row[0]

    async def create(self, plan: WorkoutPlan) -> int:
        """Create a plan with its days and exercises."""
        for day in plan.days:
            for exercise in day.exercises:
                if exercise.exercise_id is None:
                    exercise.exercise_id = await self.get_or_create_exercise(exercise.name)

        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                """
                INSERT INTO workout_plans (name, type, description, is_active)
                VALUES (?, ?, ?, ?)
                """,
                (plan.name, plan.plan_type, plan.description, int(plan.is_active)),
            )
            plan_id = cursor.lastrowid

            for day_order, day in enumerate(plan.days, start=1):
                cursor = await db.execute(
                    """
                    INSERT INTO plan_days (plan_id, day_name, day_order, notes)
                    VALUES (?, ?, ?, ?)
                    """,
                    (plan_id, day.name, day_order, day.notes),
                )
                day.id = cursor.lastrowid
                for exercise_order, exercise in enumerate(day.exercises, start=1):
                    await db.execute(
                        """
                        INSERT INTO plan_exercises
                        (day_id, exercise_id, exercise_order, target_sets, target_reps, notes)
                        VALUES (?, ?, ?, ?, ?, ?)
                        """,
                        (
                            day.id,
                            exercise.exercise_id,
                            exercise_order,
                            exercise.target_sets,
                            exercise.target_reps,
                            exercise.notes,
                        ),
                    )
            await db.commit()

        plan.id = plan_id
        return plan_id

    async def get(self, plan_id: int) -> WorkoutPlan | None:
        """Get a plan by ID, with days and exercises."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM workout_plans WHERE id = ?", (plan_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None

            cursor = await db.execute(
                "SELECT * FROM plan_days WHERE plan_id = ? ORDER BY day_order",
                (plan_id,),
            )
            day_rows = await cursor.fetchall()
            days = []
            for day_row in day_rows:
                days.append(
                    PlanDay(
                        id=day_row["id"],
                        name=day_row["day_name"],
                        notes=day_row["notes"] or "",
                        exercises=await self._fetch_day_exercises(db, day_row["id"]),
                    )
                )

        return WorkoutPlan(
            id=row["id"],
            name=row["name"],
            plan_type=row["type"],
            description=row["description"] or "",
            is_active=bool(row["is_active"]),
            days=days,
            created_at=datetime.fromisoformat(row["created_at"]) if row["created_at"] else None,
        )

    async def list_all(self) -> list[WorkoutPlan]:
        """List all plans."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute("SELECT id FROM workout_plans ORDER BY id")
            ids = [row[0] for row in await cursor.fetchall()]
        plans = []
        for plan_id in ids:
            plan = await self.get(plan_id)
            if plan:
                plans.append(plan)
        return plans

    async def set_active(self, plan_id: int) -> None:
        """Make ``plan_id`` the only active plan."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("UPDATE workout_plans SET is_active = 0")
            await db.execute(
                "UPDATE workout_plans SET is_active = 1 WHERE id = ?", (plan_id,)
            )
            await db.commit()

    async def get_day_exercises(self, day_id: int) -> list[PlanExercise]:
        """Exercises of a rotation day in plan order."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            return await self._fetch_day_exercises(db, day_id)

    async def _fetch_day_exercises(
        self, db: aiosqlite.Connection, day_id: int
    ) -> list[PlanExercise]:
        cursor = await db.execute(
            """
            SELECT pe.*, e.name AS exercise_name
            FROM plan_exercises pe
            JOIN exercises e ON pe.exercise_id = e.id
            WHERE pe.day_id = ?
            ORDER BY pe.exercise_order
            """,
            (day_id,),
        )
        rows = await cursor.fetchall()
        return [
            PlanExercise(
                exercise_id=row["exercise_id"],
                name=row["exercise_name"],
                target_sets=row["target_sets"],
                target_reps=row["target_reps"],
                notes=row["notes"] or "",
            )
            for row in rows
        ]
