"""Task relocation: moving and repeating tasks across notes.

A relocation runs in two phases. The plan phase reads the origin and the
destination and fails without touching anything if either read fails or the
origin line no longer matches. The apply phase writes the destination first
and only then rewrites the origin, so a crash in between leaves a duplicate
task rather than a lost one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date

from slated.config import TaskConfig
from slated.core.errors import ConcurrentModificationError, DestinationUnavailableError
from slated.core.repeat import next_occurrence
from slated.core.store import NoteStore, insert_under_header
from slated.core.tasks import (
    ORIGIN_ALIAS,
    locate_task_line,
    make_moved_stub,
    serialize_task,
)
from slated.models import Location, Task, TaskRef, TaskStatus

logger = logging.getLogger(__name__)


@dataclass
class RelocationResult:
    """Outcome of a committed relocation."""

    task: Task  # The new task as written at the destination
    origin: Location
    destination: Location
    origin_action: str  # "stub", "deleted" or "unchanged"


def is_due_for_repeat(task: Task) -> bool:
    """Check whether a task should spawn its next occurrence."""
    return task.status == TaskStatus.DONE and task.is_repeating


def build_relocated_task(task: Task, destination: date, settings: TaskConfig) -> Task:
    """Build the active copy of a task for its destination note.

    Text, unknown tags and the repeat rule carry over; status resets to TODO
    and the due date becomes the destination date. A backlink to the origin
    line is only written when the origin is kept as a stub.
    """
    backlink = None
    if settings.preserve_moved_tasks and task.location is not None:
        backlink = TaskRef(
            note=task.location.note,
            line=task.location.line,
            alias=ORIGIN_ALIAS if settings.alias_links else None,
        )

    repeat_rule = task.repeat_rule
    if not settings.preserve_moved_tasks and not settings.carry_repeat_on_delete:
        repeat_rule = None

    return replace(
        task,
        status=TaskStatus.TODO,
        due_date=destination,
        repeat_rule=repeat_rule,
        backlink=backlink,
        indent="",
        location=None,
        raw=None,
    )


def _check_origin(lines: list[str], task: Task) -> None:
    """Raise ConcurrentModificationError if the origin line was changed."""
    assert task.location is not None and task.raw is not None
    index = task.location.line
    found = lines[index] if 0 <= index < len(lines) else None
    if found != task.raw:
        raise ConcurrentModificationError(task.location.note, index, task.raw, found)


def _predict_origin_index(lines: list[str], task: Task, settings: TaskConfig) -> int:
    assert task.location is not None and task.raw is not None
    planned, _ = insert_under_header(
        lines, settings.tasks_header, "", settings.blank_line_after_header
    )
    index = locate_task_line(planned, task.location.line, task.raw)
    return task.location.line if index is None else index


async def relocate_task(
    store: NoteStore,
    task: Task,
    destination: date,
    settings: TaskConfig,
) -> RelocationResult:
    """Move a task to the note for a destination date.

    Args:
        store: Note storage.
        task: A task produced by parse_task_line, with location and raw set.
        destination: Date whose note receives the task.
        settings: Configuration snapshot for this operation.

    Returns:
        Where the new task landed and what happened at the origin.

    Raises:
        DestinationUnavailableError: If the destination note can't be resolved
            or read. Nothing is written.
        ConcurrentModificationError: If the origin line changed since the task
            was parsed. Nothing is written when detected before the
            destination write.
    """
    if task.location is None or task.raw is None:
        raise ValueError("Only tasks parsed from a note can be relocated")
    origin = task.location

    # Plan: both ends must be readable before anything is written
    origin_lines = await store.read_lines(origin.note)
    _check_origin(origin_lines, task)

    try:
        dest_note = await store.resolve_note(destination)
        await store.read_lines(dest_note)
    except DestinationUnavailableError:
        raise
    except OSError as e:
        raise DestinationUnavailableError(
            f"Could not open note for {destination.isoformat()}: {e}"
        ) from e

    new_task = build_relocated_task(task, destination, settings)
    if dest_note == origin.note and new_task.backlink is not None:
        # Point the backlink at where the origin line will sit after the insert
        shifted = _predict_origin_index(origin_lines, task, settings)
        new_task.backlink = replace(new_task.backlink, line=shifted)
    new_line = serialize_task(new_task)

    # Apply: re-read the origin right before committing the destination write
    _check_origin(await store.read_lines(origin.note), task)

    dest_index = await store.insert_under_header(
        dest_note,
        settings.tasks_header,
        new_line,
        settings.blank_line_after_header,
    )
    dest_location = Location(dest_note, dest_index)
    logger.info(
        "Inserted task at %s line %d: %s", dest_note, dest_index + 1, new_task.text
    )

    # Our own insert may have shifted the origin when both are the same note
    origin_lines = await store.read_lines(origin.note)
    origin_index = locate_task_line(origin_lines, origin.line, task.raw)
    if origin_index is None:
        logger.warning(
            "Origin line in %s changed after the destination write; task is duplicated",
            origin.note,
        )
        raise ConcurrentModificationError(origin.note, origin.line, task.raw, None)

    new_origin_lines = list(origin_lines)
    if settings.preserve_moved_tasks:
        stub = make_moved_stub(
            TaskRef(note=dest_note, line=dest_index), indent=task.indent
        )
        new_origin_lines[origin_index] = serialize_task(stub)
        origin_action = "stub"
    else:
        del new_origin_lines[origin_index]
        origin_action = "deleted"

    if new_origin_lines != origin_lines:
        await store.write_lines(origin.note, new_origin_lines)
    else:
        origin_action = "unchanged"

    if origin.note == dest_note and origin_action == "deleted" and origin_index < dest_index:
        dest_location = Location(dest_note, dest_index - 1)

    new_task.location = dest_location
    new_task.raw = new_line
    return RelocationResult(
        task=new_task,
        origin=Location(origin.note, origin_index),
        destination=dest_location,
        origin_action=origin_action,
    )


async def repeat_task(store: NoteStore, task: Task, settings: TaskConfig) -> RelocationResult:
    """Create the next occurrence of a completed repeating task."""
    if task.repeat_rule is None or task.due_date is None:
        raise ValueError("Task has no repeat rule anchored on a due date")
    destination = next_occurrence(task.repeat_rule, task.due_date)
    logger.debug("Repeating %r from %s to %s", task.text, task.due_date, destination)
    return await relocate_task(store, task, destination, settings)
