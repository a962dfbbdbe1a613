"""CLI command for the focus watcher."""

from __future__ import annotations

import click

from slated.cli.utils import console
from slated.config import get_config


def register_watch_commands(cli: click.Group) -> None:
    """Register the watch command."""
    cli.add_command(watch_cmd)


@click.command("watch")
@click.option("-q", "--quiet", is_flag=True, help="Only log to .slated/watch.log")
def watch_cmd(quiet: bool) -> None:
    """Watch notes and repeat completed tasks as you move between them.

    Saving a different note than last time counts as switching focus to it.
    The note you left is then scanned for checked-off repeating tasks, and
    their next occurrence is added to the right daily note.

    Runs until interrupted with Ctrl+C.
    """
    from slated.daemon import run_watcher

    config = get_config()
    console.print(
        f"[dim]Watching {config.notes_root} (Ctrl+C to stop)...[/dim]"
    )
    run_watcher(config, foreground=not quiet)
    console.print("[dim]Watcher stopped[/dim]")
