"""CLI package for slated."""

from __future__ import annotations

import sys

# Ensure stdout handles Unicode when piped (e.g., `slated show today | more`)
if hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")

import click

from slated import __version__
from slated.cli.config_cmd import register_config_commands
from slated.cli.tasks import register_task_commands
from slated.cli.utils import ensure_setup
from slated.cli.watch import register_watch_commands


@click.group()
@click.version_option(version=__version__, prog_name="slated")
def cli() -> None:
    """Move and repeat checkbox tasks across daily markdown notes.

    Tasks are '- [ ]' lines. Moving one copies it under the tasks header of
    another day's note. Tasks tagged with @repeat(...) get their next
    occurrence once they're checked off.
    """
    ensure_setup()


# Register all command groups
register_task_commands(cli)
register_config_commands(cli)
register_watch_commands(cli)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = ["cli", "main"]
