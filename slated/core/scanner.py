"""Focus-driven scanning for repeating tasks.

When focus leaves a note, every completed task with a repeat rule in it gets
its next occurrence created. The newly focused note is scanned too, so edits
made elsewhere are picked up. Scans never overlap: a focus event that arrives
while a scan is running waits for it to finish.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from slated.config import TaskConfig
from slated.core.errors import SlatedError
from slated.core.relocation import RelocationResult, is_due_for_repeat, repeat_task
from slated.core.store import NoteStore
from slated.core.tasks import parse_task_line
from slated.models import Task, TaskStatus
from slated.utils.markdown import note_date_from_lines
from slated.utils.patterns import CODE_FENCE_PATTERN

logger = logging.getLogger(__name__)


@dataclass
class ScanReport:
    """What a scan did."""

    scanned: list[str] = field(default_factory=list)
    relocated: list[RelocationResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def merge(self, other: ScanReport) -> None:
        self.scanned.extend(other.scanned)
        self.relocated.extend(other.relocated)
        self.errors.extend(other.errors)


def _note_tasks(lines: list[str], note_id: str) -> Iterator[Task]:
    """Yield the tasks of a note, skipping fenced code blocks."""
    note_date = note_date_from_lines(lines, note_id)
    in_code_block = False

    for index, line in enumerate(lines):
        if CODE_FENCE_PATTERN.match(line):
            in_code_block = not in_code_block
            continue
        if in_code_block:
            continue

        task = parse_task_line(line, index, note_id, note_date)
        if task is not None:
            yield task


def find_due_tasks(lines: list[str], note_id: str) -> list[Task]:
    """Parse a note's lines and return the tasks due for repetition.

    Lines inside fenced code blocks are ignored.
    """
    return [task for task in _note_tasks(lines, note_id) if is_due_for_repeat(task)]


def find_unanchored_tasks(lines: list[str], note_id: str) -> list[Task]:
    """Return completed tasks with a repeat rule but no date to repeat from.

    These have no @due() tag and live in a note without a date.
    """
    return [
        task
        for task in _note_tasks(lines, note_id)
        if task.status == TaskStatus.DONE
        and task.repeat_rule is not None
        and task.due_date is None
    ]


class FocusScanController:
    """Reacts to note focus changes by repeating completed tasks.

    The controller owns the "previous focus" value. Settings are read through
    ``settings`` on every scan so each scan works on a fresh snapshot.
    """

    def __init__(
        self,
        store: NoteStore,
        settings: Callable[[], TaskConfig] | TaskConfig,
        previous: str | None = None,
    ):
        self.store = store
        self._settings = settings
        self.previous = previous
        self._lock = asyncio.Lock()

    def settings(self) -> TaskConfig:
        if isinstance(self._settings, TaskConfig):
            return self._settings
        return self._settings()

    async def on_focus_changed(self, note_id: str | None) -> ScanReport:
        """Handle a focus change to note_id (None when focus left all notes).

        Scans the previously focused note first, then the new one.
        """
        report = ScanReport()
        async with self._lock:
            previous, self.previous = self.previous, note_id
            logger.debug("Focus changed: %s -> %s", previous, note_id)

            if previous is not None and previous != note_id:
                report.merge(await self._scan(previous))
            if note_id is not None:
                report.merge(await self._scan(note_id))

        return report

    async def scan_note(self, note_id: str) -> ScanReport:
        """Scan one note, waiting for any scan already in progress."""
        async with self._lock:
            return await self._scan(note_id)

    async def _scan(self, note_id: str) -> ScanReport:
        report = ScanReport(scanned=[note_id])
        settings = self.settings()
        # Keyed by line text and its copy number among identical lines
        failed: set[tuple[str, int]] = set()
        checked_anchors = False

        # Re-read after every relocation since line indexes shift
        while True:
            try:
                lines = await self.store.read_lines(note_id)
            except OSError as e:
                logger.warning("Failed to read %s: %s", note_id, e)
                report.errors.append(f"{note_id}: {e}")
                return report

            if not checked_anchors:
                checked_anchors = True
                for task in find_unanchored_tasks(lines, note_id):
                    assert task.location is not None
                    logger.warning(
                        "Cannot repeat %r in %s line %d: "
                        "no @due() date and the note has no date",
                        task.text,
                        note_id,
                        task.location.line + 1,
                    )
                    report.errors.append(
                        f"{note_id}: {task.text}: no due date to repeat from"
                    )

            pending = [
                (task, key)
                for task, key in _keyed_by_copy(find_due_tasks(lines, note_id))
                if key not in failed
            ]
            if not pending:
                return report

            task, key = pending[0]
            try:
                result = await repeat_task(self.store, task, settings)
            except (SlatedError, OSError) as e:
                failed.add(key)
                logger.warning("Could not repeat %r in %s: %s", task.text, note_id, e)
                report.errors.append(f"{note_id}: {task.text}: {e}")
                continue

            logger.info(
                "Repeated %r to %s", task.text, result.destination.note
            )
            report.relocated.append(result)


def _keyed_by_copy(tasks: list[Task]) -> list[tuple[Task, tuple[str, int]]]:
    """Pair each task with (raw line, number of identical lines before it)."""
    seen: dict[str, int] = {}
    keyed = []
    for task in tasks:
        raw = task.raw or ""
        copy = seen.get(raw, 0)
        seen[raw] = copy + 1
        keyed.append((task, (raw, copy)))
    return keyed
