"""Database engine setup and initialization."""

from pathlib import Path

import aiosqlite

from ..config import get_data_dir


def get_db_path(data_dir: Path | None = None) -> Path:
    """Get the database file path."""
    if data_dir is None:
        data_dir = get_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir / "setpace.db"


async def _run_migrations(db: aiosqlite.Connection) -> None:
    """Run database migrations for schema updates."""
    # Databases created before timer persistence lack these columns
    cursor = await db.execute("PRAGMA table_info(workout_sessions)")
    columns = await cursor.fetchall()
    session_columns = {col[1] for col in columns}

    timer_columns = {
        "active_timer_state": "TEXT",
        "current_exercise_id": "INTEGER",
        "total_set_duration": "INTEGER DEFAULT 0",
        "total_rest_duration": "INTEGER DEFAULT 0",
    }
    for name, ddl in timer_columns.items():
        if name not in session_columns:
            await db.execute(f"ALTER TABLE workout_sessions ADD COLUMN {name} {ddl}")

    cursor = await db.execute("PRAGMA table_info(exercise_performance)")
    columns = await cursor.fetchall()
    performance_columns = {col[1] for col in columns}

    for name in ("set_duration", "rest_duration"):
        if name not in performance_columns:
            await db.execute(f"ALTER TABLE exercise_performance ADD COLUMN {name} INTEGER")

    await db.commit()


async def init_db(db_path: Path | None = None) -> None:
    """Initialize the database schema."""
    if db_path is None:
        db_path = get_db_path()

    async with aiosqlite.connect(db_path) as db:
        # Exercise library table
        await db.execute("""
            CREATE TABLE IF NOT EXISTS exercises (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE,
                target_muscle TEXT NOT NULL DEFAULT '',
                category TEXT NOT NULL DEFAULT 'Strength',
                created_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # Workout plans table
        await db.execute("""
            CREATE TABLE IF NOT EXISTS workout_plans (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                type TEXT NOT NULL DEFAULT 'Custom',
                description TEXT,
                is_active INTEGER DEFAULT 0,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # Plan days (workout rotation days)
        await db.execute("""
            CREATE TABLE IF NOT EXISTS plan_days (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                plan_id INTEGER NOT NULL,
                day_name TEXT NOT NULL,
                day_order INTEGER NOT NULL,
                notes TEXT,
                FOREIGN KEY (plan_id) REFERENCES workout_plans(id) ON DELETE CASCADE
            )
        """)

        # Exercises within each day
        await db.execute("""
            CREATE TABLE IF NOT EXISTS plan_exercises (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                day_id INTEGER NOT NULL,
                exercise_id INTEGER NOT NULL,
                exercise_order INTEGER NOT NULL,
                target_sets INTEGER DEFAULT 3,
                target_reps TEXT DEFAULT '8-12',
                notes TEXT,
                FOREIGN KEY (day_id) REFERENCES plan_days(id) ON DELETE CASCADE,
                FOREIGN KEY (exercise_id) REFERENCES exercises(id)
            )
        """)

        # Workout sessions
        await db.execute("""
            CREATE TABLE IF NOT EXISTS workout_sessions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                plan_id INTEGER,
                day_id INTEGER,
                check_in_time TEXT NOT NULL,
                check_out_time TEXT,
                total_duration INTEGER,
                session_date TEXT NOT NULL,
                notes TEXT,
                is_completed INTEGER DEFAULT 0,
                active_timer_state TEXT,
                current_exercise_id INTEGER,
                total_set_duration INTEGER DEFAULT 0,
                total_rest_duration INTEGER DEFAULT 0,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (plan_id) REFERENCES workout_plans(id),
                FOREIGN KEY (day_id) REFERENCES plan_days(id)
            )
        """)

        # Logged sets
        await db.execute("""
            CREATE TABLE IF NOT EXISTS exercise_performance (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                session_id INTEGER NOT NULL,
                exercise_id INTEGER NOT NULL,
                exercise_name TEXT NOT NULL,
                set_number INTEGER NOT NULL,
                reps INTEGER NOT NULL,
                weight REAL,
                set_duration INTEGER,
                rest_duration INTEGER,
                completed_at TEXT,
                notes TEXT,
                FOREIGN KEY (session_id) REFERENCES workout_sessions(id) ON DELETE CASCADE,
                FOREIGN KEY (exercise_id) REFERENCES exercises(id)
            )
        """)

        # Create indexes for common queries
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_sessions_date
            ON workout_sessions(session_date)
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_performance_session
            ON exercise_performance(session_id)
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_plan_days_plan
            ON plan_days(plan_id)
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_plan_exercises_day
            ON plan_exercises(day_id)
        """)

        await db.commit()

        # Run migrations for existing databases
        await _run_migrations(db)
