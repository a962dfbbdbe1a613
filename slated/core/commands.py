"""User-facing task commands: move a task, configure its repetition."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Protocol

from slated.config import TaskConfig
from slated.core.errors import ConcurrentModificationError, NotATaskError
from slated.core.relocation import RelocationResult, relocate_task
from slated.core.store import NoteStore
from slated.core.tasks import parse_task_line, serialize_task
from slated.models import RepeatRule, Task, TaskStatus
from slated.utils.markdown import note_date_from_lines

logger = logging.getLogger(__name__)


class Prompt(Protocol):
    """Asks the user for input. Returning None means the user cancelled.

    Implementations may take as long as they like; nothing is locked while
    waiting for an answer.
    """

    async def ask_date(self, task: Task) -> date | None: ...

    async def ask_repeat_rule(self, task: Task) -> RepeatRule | None: ...


async def find_task(store: NoteStore, note_id: str, line_index: int) -> Task | None:
    """Return the task at a note line, or None if that line isn't a task."""
    lines = await store.read_lines(note_id)
    if not 0 <= line_index < len(lines):
        return None
    return parse_task_line(
        lines[line_index], line_index, note_id, note_date_from_lines(lines, note_id)
    )


async def _require_task(store: NoteStore, note_id: str, line_index: int) -> Task:
    task = await find_task(store, note_id, line_index)
    if task is None:
        raise NotATaskError(f"Line {line_index + 1} of {note_id} is not a task")
    return task


async def move_task_command(
    store: NoteStore,
    prompt: Prompt,
    note_id: str,
    line_index: int,
    settings: TaskConfig,
) -> RelocationResult | None:
    """Ask for a destination date and move the task there.

    Returns:
        The relocation result, or None if the user cancelled.

    Raises:
        NotATaskError: If the line is not a task, or is already a moved stub.
    """
    task = await _require_task(store, note_id, line_index)
    if task.status == TaskStatus.MOVED:
        raise NotATaskError(f"Line {line_index + 1} of {note_id} was already moved")

    destination = await prompt.ask_date(task)
    if destination is None:
        logger.debug("Move of %r cancelled", task.text)
        return None

    return await relocate_task(store, task, destination, settings)


async def _rewrite_task(store: NoteStore, task: Task, updated: Task) -> Task:
    """Replace a task's line in place, checking it hasn't changed meanwhile."""
    assert task.location is not None and task.raw is not None
    lines = await store.read_lines(task.location.note)
    index = task.location.line
    found = lines[index] if 0 <= index < len(lines) else None
    if found != task.raw:
        raise ConcurrentModificationError(task.location.note, index, task.raw, found)

    new_line = serialize_task(updated)
    if new_line != task.raw:
        lines[index] = new_line
        await store.write_lines(task.location.note, lines)
    updated.raw = new_line
    return updated


async def configure_repeat_command(
    store: NoteStore,
    prompt: Prompt,
    note_id: str,
    line_index: int,
    today: date | None = None,
) -> Task | None:
    """Ask for a repeat rule and store it on the task line.

    The task is not relocated. Tasks without a due date get one anchored on
    the note's date, or today for undated notes.

    Returns:
        The updated task, or None if the user cancelled.
    """
    task = await _require_task(store, note_id, line_index)
    if task.status == TaskStatus.MOVED:
        raise NotATaskError(f"Line {line_index + 1} of {note_id} was already moved")

    rule = await prompt.ask_repeat_rule(task)
    if rule is None:
        logger.debug("Repeat configuration of %r cancelled", task.text)
        return None

    due_date = task.due_date
    if due_date is None:
        lines = await store.read_lines(note_id)
        due_date = note_date_from_lines(lines, note_id) or today or date.today()

    updated = replace(task, repeat_rule=rule, due_date=due_date)
    return await _rewrite_task(store, task, updated)


async def clear_repeat_command(store: NoteStore, note_id: str, line_index: int) -> Task:
    """Remove the repeat rule from a task line, keeping its @due() tag."""
    task = await _require_task(store, note_id, line_index)
    assert task.raw is not None
    # A due date implied by the note's date is not written out
    explicit = parse_task_line(task.raw)
    due_date = explicit.due_date if explicit is not None else None
    return await _rewrite_task(
        store, task, replace(task, repeat_rule=None, due_date=due_date)
    )
