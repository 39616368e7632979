"""Workout plan commands."""

import json
from pathlib import Path

import click

from ..db import PlanRepository, get_db_path
from ..models.plan import WorkoutPlan
from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_success,
    ensure_initialized,
    format_table,
)


@click.group()
@click.pass_context
def plans(ctx):
    """Manage workout plans and their rotation days."""
    ensure_initialized(ctx)


@plans.command(name="import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--activate", "-a", is_flag=True, help="Make this the active plan")
@click.pass_context
@async_command
async def import_plan(ctx, path: Path, activate: bool):
    """Import a plan from a JSON file.

    The file holds a name, optional type and description, and a list of
    days, each with exercises given as name, sets and reps:

        {"name": "PPL", "days": [{"name": "Push", "exercises":
          [{"name": "Bench Press", "sets": 4, "reps": "6-8"}]}]}
    """
    try:
        data = json.loads(path.read_text())
        plan = WorkoutPlan.from_dict(data, is_active=activate)
    except (ValueError, KeyError, TypeError) as e:
        echo_error(f"Invalid plan file: {e}")
        ctx.exit(1)

    if not plan.days:
        echo_error("Plan has no days")
        ctx.exit(1)

    repo = PlanRepository(get_db_path())
    plan_id = await repo.create(plan)
    if activate:
        await repo.set_active(plan_id)

    echo_success(f"Imported plan '{plan.name}' (ID: {plan_id}, {len(plan.days)} days)")
    if activate:
        echo_info("Plan is now active")


@plans.command(name="list")
@async_command
async def list_plans():
    """List all plans."""
    repo = PlanRepository(get_db_path())
    all_plans = await repo.list_all()

    if not all_plans:
        echo_info("No plans found. Import one with 'setpace plans import'")
        return

    headers = ["ID", "Name", "Type", "Days", "Active"]
    rows = [
        [
            str(plan.id),
            plan.name[:30] + "..." if len(plan.name) > 30 else plan.name,
            plan.plan_type,
            str(plan.rotation_day_count),
            "*" if plan.is_active else "",
        ]
        for plan in all_plans
    ]

    click.echo()
    click.echo(format_table(headers, rows))
    click.echo()
    click.echo(f"Total: {len(all_plans)} plan(s)")


@plans.command()
@click.argument("plan_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Print the plan as JSON")
@click.pass_context
@async_command
async def show(ctx, plan_id: int, as_json: bool):
    """Show a plan's days and exercises."""
    repo = PlanRepository(get_db_path())
    plan = await repo.get(plan_id)
    if not plan:
        echo_error(f"Plan ID {plan_id} not found")
        ctx.exit(1)

    if as_json:
        click.echo(json.dumps(plan.to_dict(), indent=2))
        return

    click.echo()
    click.echo("=" * 60)
    click.echo(f"Plan: {plan.name} (ID: {plan.id}){' [active]' if plan.is_active else ''}")
    click.echo("=" * 60)
    if plan.description:
        click.echo(plan.description)

    for day in plan.days:
        click.echo()
        click.echo(f"Day {day.id}: {day.name}")
        click.echo("-" * 40)
        for exercise in day.exercises:
            line = f"  [{exercise.exercise_id}] {exercise.name}: {exercise.target_sets} x {exercise.target_reps}"
            if exercise.notes:
                line += f"  ({exercise.notes})"
            click.echo(line)


@plans.command()
@click.argument("plan_id", type=int)
@click.pass_context
@async_command
async def activate(ctx, plan_id: int):
    """Make a plan the active one (used for streak grace periods)."""
    repo = PlanRepository(get_db_path())
    plan = await repo.get(plan_id)
    if not plan:
        echo_error(f"Plan ID {plan_id} not found")
        ctx.exit(1)

    await repo.set_active(plan_id)
    echo_success(f"Plan '{plan.name}' is now active")
