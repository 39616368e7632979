"""Workout session commands.

Each command restores the session in progress, applies one operation and
writes the timer state back before exiting.
"""

import json
from contextlib import asynccontextmanager

import click

from ..db import SessionRepository, get_db_path
from ..exceptions import ConfirmationRequired, SetpaceError
from ..services.session_tracker import SessionTracker
from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_success,
    echo_warning,
    ensure_initialized,
    format_duration,
    format_table,
    format_weight,
)


@asynccontextmanager
async def open_tracker(ctx: click.Context, session_id: int | None = None):
    """Resume the session, yield the tracker and flush it on the way out."""
    try:
        tracker = await SessionTracker.resume(session_id, db_path=get_db_path())
    except SetpaceError as e:
        echo_error(str(e))
        ctx.exit(1)

    try:
        yield tracker
    except SetpaceError as e:
        echo_error(str(e))
        ctx.exit(1)
    finally:
        await tracker.flush()


def print_status(tracker: SessionTracker) -> None:
    snap = tracker.snapshot()
    click.echo()
    click.echo(f"Session {snap.session_id}  {format_duration(snap.total_seconds)} elapsed")
    click.echo(
        f"  Work: {format_duration(snap.cumulative_set_seconds)}"
        f"   Rest: {format_duration(snap.cumulative_rest_seconds)}"
    )

    if snap.state == "set_active":
        click.echo(click.style(f"  Set in progress: {format_duration(snap.set_seconds)}", fg="green"))
    elif snap.state == "resting":
        click.echo(click.style(f"  Resting: {format_duration(snap.rest_seconds)}", fg="yellow"))
    else:
        click.echo("  Timers paused")

    if snap.has_pending_set:
        echo_warning("Last set not logged yet. Use 'setpace session log-set'")

    click.echo()
    for exercise in tracker.exercises:
        sets = tracker.completed_sets(exercise.exercise_id)
        marker = ">" if exercise.exercise_id == snap.current_exercise_id else " "
        done = " (done)" if tracker.is_exercise_completed(exercise.exercise_id) else ""
        click.echo(
            f" {marker} [{exercise.exercise_id}] {exercise.name}: "
            f"{len(sets)}/{exercise.target_sets} sets{done}"
        )
        for logged in sets:
            click.echo(
                f"       #{logged.set_number}  {logged.reps} x {format_weight(logged.weight)}"
            )


@click.group()
@click.pass_context
def session(ctx):
    """Track a workout session."""
    ensure_initialized(ctx)


@session.command()
@click.argument("plan_id", type=int)
@click.argument("day_id", type=int)
@click.pass_context
@async_command
async def start(ctx, plan_id: int, day_id: int):
    """Check in to a workout for a plan day."""
    try:
        tracker = await SessionTracker.start(plan_id, day_id, db_path=get_db_path())
    except SetpaceError as e:
        echo_error(str(e))
        ctx.exit(1)

    await tracker.flush()
    echo_success(f"Session {tracker.session_id} started")
    print_status(tracker)


@session.command()
@click.option("--json", "as_json", is_flag=True, help="Print the snapshot as JSON")
@click.pass_context
@async_command
async def status(ctx, as_json: bool):
    """Show the session in progress."""
    async with open_tracker(ctx) as tracker:
        if as_json:
            click.echo(json.dumps(tracker.snapshot().to_dict(), indent=2))
        else:
            print_status(tracker)


@session.command()
@click.argument("exercise_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
@async_command
async def exercise(ctx, exercise_id: int, yes: bool):
    """Switch to an exercise."""
    async with open_tracker(ctx) as tracker:
        reason = tracker.needs_switch_confirmation(exercise_id)
        if reason and not yes and not click.confirm(reason):
            echo_info("Cancelled")
            return

        adopted = await tracker.switch_exercise(exercise_id)
        name = tracker.exercise_name(exercise_id)
        if adopted:
            echo_warning(f"Running timer attached to {name}")
        echo_success(f"Now on {name}")


@session.command(name="start-set")
@click.pass_context
@async_command
async def start_set(ctx):
    """Start a set on the current exercise."""
    async with open_tracker(ctx) as tracker:
        if not await tracker.start_set():
            echo_error("Select an exercise first with 'setpace session exercise'")
            ctx.exit(1)
        echo_success(f"Set started on {tracker.exercise_name(tracker.machine.current_exercise_id)}")


@session.command(name="complete-set")
@click.option("--reps", "-r", help="Reps performed; logs the set straight away")
@click.option("--weight", "-w", help="Weight used (omit for bodyweight)")
@click.option("--notes", "-n", help="Notes for this set")
@click.pass_context
@async_command
async def complete_set(ctx, reps: str | None, weight: str | None, notes: str | None):
    """Stop the running set and start resting."""
    async with open_tracker(ctx) as tracker:
        exercise_id = tracker.machine.current_exercise_id
        result = await tracker.complete_set(reps, weight, notes)
        if result is None:
            echo_error("No set in progress")
            ctx.exit(1)

        if reps is None:
            echo_success(f"Set done in {format_duration(result.set_duration)}, resting")
            click.echo(
                f"Log it with: setpace session log-set {tracker.suggested_reps(exercise_id)}"
                + (
                    f" --weight {format_weight(tracker.suggested_weight(exercise_id))}"
                    if tracker.suggested_weight(exercise_id) is not None
                    else ""
                )
            )
        else:
            echo_success(
                f"Logged set {result.set_number}: {result.reps} x {format_weight(result.weight)}"
            )


@session.command(name="log-set")
@click.argument("reps")
@click.option("--weight", "-w", help="Weight used (omit for bodyweight)")
@click.option("--notes", "-n", help="Notes for this set")
@click.pass_context
@async_command
async def log_set(ctx, reps: str, weight: str | None, notes: str | None):
    """Log reps and weight for the set just completed."""
    async with open_tracker(ctx) as tracker:
        logged = await tracker.log_set(reps, weight, notes)
        if logged is None:
            echo_error("No completed set waiting to be logged")
            ctx.exit(1)
        echo_success(
            f"Logged set {logged.set_number}: {logged.reps} x {format_weight(logged.weight)}"
        )


@session.command(name="complete-exercise")
@click.option(
    "--complete/--incomplete",
    "mark_complete",
    default=None,
    help="Mark the exercise complete or incomplete without asking",
)
@click.pass_context
@async_command
async def complete_exercise(ctx, mark_complete: bool | None):
    """Finish the current exercise."""
    async with open_tracker(ctx) as tracker:
        name = tracker.exercise_name(tracker.machine.current_exercise_id)
        try:
            exercise_id = await tracker.complete_exercise(mark_complete)
        except ConfirmationRequired as e:
            click.echo(f"You've completed {e.completed_sets}/{e.target_sets} sets for {name}.")
            mark_complete = click.confirm("Mark as complete?", default=False)
            exercise_id = await tracker.complete_exercise(mark_complete)

        if exercise_id is None:
            echo_info("No exercise selected")
            return
        if mark_complete is False:
            echo_info(f"{name} marked incomplete")
        else:
            echo_success(f"{name} complete")


@session.command()
@click.argument("text")
@click.pass_context
@async_command
async def notes(ctx, text: str):
    """Set the notes of the session in progress."""
    async with open_tracker(ctx) as tracker:
        await tracker.update_notes(text)
        echo_success("Notes saved")


@session.command()
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
@async_command
async def finish(ctx, yes: bool):
    """Check out and save the workout."""
    async with open_tracker(ctx) as tracker:
        completed = sum(
            1 for ex in tracker.exercises if tracker.is_exercise_completed(ex.exercise_id)
        )
        click.echo(f"You completed {completed}/{len(tracker.exercises)} exercises.")
        if not yes and not click.confirm("End session?"):
            echo_info("Cancelled")
            return

        finished = await tracker.finish()
        echo_success(
            f"Workout saved: {finished.total_duration} min, "
            f"{format_duration(finished.total_set_duration)} working, "
            f"{format_duration(finished.total_rest_duration)} resting"
        )


@session.command()
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
@async_command
async def cancel(ctx, yes: bool):
    """Discard the session in progress and its logged sets."""
    async with open_tracker(ctx) as tracker:
        if not yes and not click.confirm("Discard this workout and all its sets?"):
            echo_info("Cancelled")
            return
        session_id = tracker.session_id
        await tracker.cancel()
        echo_success(f"Session {session_id} discarded")


@session.command()
@click.option("--limit", "-l", default=20, type=int, help="Number of sessions to show")
@async_command
async def history(limit: int):
    """List completed workouts."""
    repo = SessionRepository(get_db_path())
    sessions = await repo.list_sessions(limit)
    if not sessions:
        echo_info("No completed workouts yet")
        return

    headers = ["ID", "Date", "Minutes", "Work", "Rest", "Notes"]
    rows = [
        [
            str(s.id),
            s.session_date.isoformat(),
            str(s.total_duration or 0),
            format_duration(s.total_set_duration),
            format_duration(s.total_rest_duration),
            (s.notes or "")[:30],
        ]
        for s in sessions
    ]
    click.echo()
    click.echo(format_table(headers, rows))
