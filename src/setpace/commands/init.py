"""Initialize project command."""

import click

from ..config import get_data_dir
from ..db import get_db_path, init_db
from .base import async_command, echo_info, echo_success


@click.command()
@async_command
async def init():
    """Initialize the setpace data directory and database.

    Safe to run again: existing databases are migrated in place.
    """
    data_dir = get_data_dir()
    db_path = get_db_path(data_dir)

    echo_info(f"Initializing setpace in {data_dir}")
    await init_db(db_path)
    echo_success("Database initialized")

    click.echo()
    click.echo("setpace is ready to use!")
    click.echo()
    click.echo("Next steps:")
    click.echo("  1. Import a plan:      setpace plans import plan.json --activate")
    click.echo("  2. Start a workout:    setpace session start <plan_id> <day_id>")
    click.echo("  3. Check your streak:  setpace streak")
