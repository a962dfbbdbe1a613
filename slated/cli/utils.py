"""Shared utilities for CLI commands."""

from __future__ import annotations

import asyncio
from datetime import date
from pathlib import Path

import click
from rich.console import Console

from slated.config import Config, get_config, init_config
from slated.core.errors import (
    ConcurrentModificationError,
    DestinationUnavailableError,
    MalformedTagError,
    NotATaskError,
    SlatedError,
)
from slated.core.repeat import parse_repeat_rule
from slated.core.store import FileNoteStore
from slated.models import RepeatRule, Task
from slated.utils.dates import parse_fuzzy_date, parse_fuzzy_date_future

# Main console for stdout (user-facing output)
console = Console(highlight=False)


def ensure_setup() -> None:
    """Ensure slated is set up (creates config and directories on first run)."""
    config = get_config()
    if not config.slated_dir.exists():
        init_config(config.notes_root)


def get_store(config: Config | None = None) -> FileNoteStore:
    """Build the file-backed note store for the configured notes root."""
    if config is None:
        config = get_config()
    return FileNoteStore(
        config.notes_root, config.daily_title_format, config.week_start_day
    )


def resolve_note_arg(store: FileNoteStore, note: str) -> str:
    """Turn a NOTE argument into a note id.

    Accepts a note id (``projects/ideas``), a path to a markdown file, or a
    date expression (``today``, ``friday``, ``2025-12-01``). Dates resolve to
    the daily note, which is created if missing.
    """
    candidate = Path(note).expanduser()
    if candidate.suffix == ".md" and candidate.is_file():
        try:
            return store.note_id_for(candidate)
        except ValueError:
            console.print(f"[red]Not inside the notes root:[/red] {note}")
            console.print(f"[dim]Notes root is {store.notes_root}[/dim]")
            raise SystemExit(1) from None

    try:
        if store.path_for(note).is_file():
            return note
    except ValueError:
        pass

    dt = parse_fuzzy_date(note)
    if dt is None:
        console.print(f"[red]Note not found:[/red] {note}")
        console.print("[dim]Use a note id, a .md path or a date like 'today'.[/dim]")
        raise SystemExit(1)

    try:
        return asyncio.run(store.resolve_note(dt))
    except DestinationUnavailableError as e:
        print_error(e)
        raise SystemExit(1) from None


def line_to_index(line: int) -> int:
    """Convert a 1-based LINE argument to a 0-based index."""
    if line < 1:
        console.print(f"[red]Invalid line number:[/red] {line}")
        console.print("[dim]Line numbers start at 1.[/dim]")
        raise SystemExit(1)
    return line - 1


def print_error(error: SlatedError) -> None:
    """Print an engine error with a hint on what to do about it."""
    console.print(f"[red]Error:[/red] {error}")
    if isinstance(error, ConcurrentModificationError):
        console.print("[dim]The note was edited meanwhile. Run the command again.[/dim]")
    elif isinstance(error, DestinationUnavailableError):
        console.print("[dim]Nothing was changed. Check the notes root is writable.[/dim]")
    elif isinstance(error, NotATaskError):
        console.print("[dim]Use 'slated show NOTE' to find the task's line number.[/dim]")
    elif isinstance(error, MalformedTagError):
        console.print("[dim]Examples: 'every day', 'every 2 weeks on mon,fri', 'monthly'.[/dim]")


class ClickPrompt:
    """Prompt implementation that asks on the terminal.

    Preset answers are returned without asking. An empty answer cancels.
    """

    def __init__(self, destination: date | None = None, rule: RepeatRule | None = None):
        self.destination = destination
        self.rule = rule

    async def ask_date(self, task: Task) -> date | None:
        if self.destination is not None:
            return self.destination

        while True:
            answer = click.prompt(
                f"Move '{task.text}' to (e.g. tomorrow, friday, 2025-12-01)",
                default="",
                show_default=False,
            )
            if not answer.strip():
                return None
            parsed = parse_fuzzy_date_future(answer)
            if parsed is not None:
                return parsed
            console.print(f"[yellow]Could not understand date:[/yellow] {answer}")

    async def ask_repeat_rule(self, task: Task) -> RepeatRule | None:
        if self.rule is not None:
            return self.rule

        while True:
            answer = click.prompt(
                f"Repeat '{task.text}' (e.g. every day, every 2 weeks on mon)",
                default="",
                show_default=False,
            )
            if not answer.strip():
                return None
            try:
                return parse_repeat_rule(answer)
            except MalformedTagError as e:
                console.print(f"[yellow]{e}[/yellow]")
