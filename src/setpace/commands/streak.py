"""Streak command."""

import json

import click

from ..db import get_db_path
from ..services.streak import StreakService
from .base import async_command, ensure_initialized


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Print streak and achievements as JSON")
@click.option("--achievements", "-a", is_flag=True, help="Also list achievements")
@click.pass_context
@async_command
async def streak(ctx, as_json: bool, achievements: bool):
    """Show the current workout streak."""
    ensure_initialized(ctx)
    service = StreakService(get_db_path())
    result = await service.current_streak()

    if as_json:
        payload = result.to_dict()
        if achievements:
            payload.update(await service.achievements())
        click.echo(json.dumps(payload, indent=2))
        return

    colors = {
        "active": "green",
        "warning_low": "yellow",
        "warning_high": "red",
        "broken": "red",
    }
    click.echo(click.style(result.message, fg=colors.get(result.status.value)))
    if result.days_since_last_workout is not None:
        click.echo(
            f"Last workout {result.days_since_last_workout} day(s) ago, "
            f"grace period {result.grace_period} day(s)"
        )

    if achievements:
        data = await service.achievements()
        click.echo()
        for name, unlocked in data["achievements"].items():
            mark = click.style("x", fg="green") if unlocked else " "
            click.echo(f"  [{mark}] {name.replace('_', ' ').title()}")
        stats = data["stats"]
        click.echo()
        click.echo(
            f"{stats['total_workouts']} workouts, {stats['total_minutes']} minutes, "
            f"{stats['total_volume']:.1f} t lifted"
        )
