"""CLI entry point for setpace."""

import logging

import click

from . import __version__
from .commands import init, plans, serve, session, streak


@click.group()
@click.version_option(version=__version__, prog_name="setpace")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def main(verbose: bool):
    """setpace: workout session tracker with set/rest timers and streaks.

    Example usage:

        # Initialize the project
        setpace init

        # Import and activate a plan
        setpace plans import ppl.json --activate

        # Train
        setpace session start 1 1
        setpace session exercise 3
        setpace session start-set
        setpace session complete-set --reps 8 --weight 60
        setpace session finish
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


main.add_command(init)
main.add_command(plans)
main.add_command(session)
main.add_command(streak)
main.add_command(serve)


def run():
    """Run the CLI."""
    main()


if __name__ == "__main__":
    run()
