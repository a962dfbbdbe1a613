"""Task-related CLI commands: move, repeat, scan, focus and show."""

from __future__ import annotations

import asyncio

import click
from rich.markup import escape
from rich.text import Text

from slated.cli.utils import (
    ClickPrompt,
    console,
    get_store,
    line_to_index,
    print_error,
    resolve_note_arg,
)
from slated.config import get_config
from slated.core.commands import (
    clear_repeat_command,
    configure_repeat_command,
    move_task_command,
)
from slated.core.errors import SlatedError
from slated.core.preview import render_note_lines
from slated.core.relocation import RelocationResult
from slated.core.repeat import format_repeat_rule, parse_repeat_rule
from slated.core.scanner import FocusScanController, ScanReport
from slated.daemon import FocusState
from slated.utils.dates import parse_fuzzy_date_future


def register_task_commands(cli: click.Group) -> None:
    """Register all task-related commands with the CLI."""
    cli.add_command(move_cmd)
    cli.add_command(repeat_cmd)
    cli.add_command(scan_cmd)
    cli.add_command(focus_cmd)
    cli.add_command(show_cmd)


def _print_relocation(result: RelocationResult) -> None:
    dest = result.destination
    console.print(
        f"[green]Moved[/green] {escape(result.task.text)} "
        f"[dim]→[/dim] [cyan]{dest.note}[/cyan]:{dest.line + 1}"
    )
    if result.origin_action == "stub":
        console.print(f"[dim]Left a link at {result.origin.note}:{result.origin.line + 1}[/dim]")
    elif result.origin_action == "deleted":
        console.print(f"[dim]Removed line {result.origin.line + 1} of {result.origin.note}[/dim]")


def _print_report(report: ScanReport) -> None:
    for result in report.relocated:
        _print_relocation(result)
    for error in report.errors:
        console.print(f"[yellow]Skipped:[/yellow] {escape(error)}")
    if not report.relocated and not report.errors:
        scanned = ", ".join(report.scanned) or "nothing"
        console.print(f"[dim]No completed repeating tasks in {scanned}.[/dim]")


@click.command("move")
@click.argument("note")
@click.argument("line", type=int)
@click.option("--to", "to_date", help="Destination date (asks if omitted)")
def move_cmd(note: str, line: int, to_date: str | None) -> None:
    """Move the task on LINE of NOTE to another day's note.

    NOTE is a note id, a .md path, or a date such as 'today'. LINE is
    1-based.

    \b
    Examples:
      slated move today 12 --to tomorrow
      slated move 2025-11-28 7 --to "next monday"
      slated move projects/ideas 3
    """
    config = get_config()
    store = get_store(config)
    note_id = resolve_note_arg(store, note)
    index = line_to_index(line)

    destination = None
    if to_date is not None:
        destination = parse_fuzzy_date_future(to_date)
        if destination is None:
            console.print(f"[red]Could not understand date:[/red] {to_date}")
            console.print("[dim]Try 'tomorrow', 'friday', '+3' or '2025-12-01'.[/dim]")
            raise SystemExit(1)

    try:
        result = asyncio.run(
            move_task_command(
                store, ClickPrompt(destination=destination), note_id, index, config.tasks
            )
        )
    except SlatedError as e:
        print_error(e)
        raise SystemExit(1) from None
    except OSError as e:
        console.print(f"[red]Error:[/red] Could not read {note_id}: {e}")
        raise SystemExit(1) from None

    if result is None:
        console.print("[dim]Cancelled.[/dim]")
        return
    _print_relocation(result)


@click.command("repeat")
@click.argument("note")
@click.argument("line", type=int)
@click.option("--rule", "-r", help="Repeat rule, e.g. 'every 2 weeks on mon'")
@click.option("--clear", is_flag=True, help="Stop the task from repeating")
def repeat_cmd(note: str, line: int, rule: str | None, clear: bool) -> None:
    """Set or clear the repeat rule of the task on LINE of NOTE.

    The task stays where it is. Once it's checked off, the next occurrence
    is created the next time the note loses focus or is scanned.

    \b
    Examples:
      slated repeat today 5 --rule "every week"
      slated repeat today 5 --rule "every 2 weeks on mon,thu"
      slated repeat today 5 --clear
    """
    if rule is not None and clear:
        console.print("[red]Use either --rule or --clear, not both.[/red]")
        raise SystemExit(1)

    store = get_store()
    note_id = resolve_note_arg(store, note)
    index = line_to_index(line)

    try:
        if clear:
            task = asyncio.run(clear_repeat_command(store, note_id, index))
            console.print(f"[green]Cleared[/green] repeat on {escape(task.text)}")
            return

        preset = parse_repeat_rule(rule) if rule is not None else None
        task = asyncio.run(
            configure_repeat_command(store, ClickPrompt(rule=preset), note_id, index)
        )
    except SlatedError as e:
        print_error(e)
        raise SystemExit(1) from None
    except OSError as e:
        console.print(f"[red]Error:[/red] Could not read {note_id}: {e}")
        raise SystemExit(1) from None

    if task is None:
        console.print("[dim]Cancelled.[/dim]")
        return
    assert task.repeat_rule is not None and task.due_date is not None
    console.print(
        f"[green]Repeating[/green] {escape(task.text)} "
        f"[cyan]{format_repeat_rule(task.repeat_rule)}[/cyan] "
        f"[dim]from {task.due_date.isoformat()}[/dim]"
    )


@click.command("scan")
@click.argument("note")
def scan_cmd(note: str) -> None:
    """Create the next occurrence of completed repeating tasks in NOTE."""
    store = get_store()
    note_id = resolve_note_arg(store, note)
    controller = FocusScanController(store, lambda: get_config().tasks)
    _print_report(asyncio.run(controller.scan_note(note_id)))


@click.command("focus")
@click.argument("note")
def focus_cmd(note: str) -> None:
    """Tell slated NOTE now has focus.

    The previously focused note is scanned first, then NOTE. Use this from
    an editor hook when switching files.
    """
    config = get_config()
    store = get_store(config)
    note_id = resolve_note_arg(store, note)
    state = FocusState(config.focus_state_path)

    controller = FocusScanController(
        store, lambda: get_config().tasks, previous=state.read()
    )
    report = asyncio.run(controller.on_focus_changed(note_id))
    state.write(controller.previous)
    _print_report(report)


@click.command("show")
@click.argument("note")
@click.option("--raw", is_flag=True, help="Print moved tasks without the arrow")
def show_cmd(note: str, raw: bool) -> None:
    """Print NOTE with line numbers."""
    store = get_store()
    note_id = resolve_note_arg(store, note)

    try:
        lines = asyncio.run(store.read_lines(note_id))
    except OSError as e:
        console.print(f"[red]Error:[/red] Could not read {note_id}: {e}")
        raise SystemExit(1) from None

    display = lines if raw else list(render_note_lines(lines))
    console.print(f"[bold]{note_id}[/bold]")
    width = len(str(len(display)))
    for number, text in enumerate(display, start=1):
        console.print(Text.assemble((f"{number:>{width}} ", "dim"), text))
