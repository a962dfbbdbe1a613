"""Tests for slated.core.relocation module."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import date

import pytest

from slated.config import TaskConfig
from slated.core.errors import ConcurrentModificationError, DestinationUnavailableError
from slated.core.relocation import (
    build_relocated_task,
    is_due_for_repeat,
    relocate_task,
    repeat_task,
)
from slated.core.tasks import parse_task_line
from slated.models import Location, RepeatRule, RepeatUnit, TaskRef, TaskStatus

ORIGIN = "daily/2025-11-28"
TOMORROW = "daily/2025-11-29"

ORIGIN_LINES = [
    "# 2025-11-28",
    "",
    "## Tasks",
    "",
    "- [ ] Write report @priority(1)",
    "- [x] Water plants @repeat(every 3 days)",
]


@pytest.fixture
def store(memory_store):
    memory_store.notes[ORIGIN] = list(ORIGIN_LINES)
    return memory_store


def _task(store, index: int):
    return parse_task_line(store.notes[ORIGIN][index], index, ORIGIN)


class TestIsDueForRepeat:
    """Tests for is_due_for_repeat()."""

    def test_done_repeating_task(self):
        assert is_due_for_repeat(parse_task_line(ORIGIN_LINES[5], 5, ORIGIN))

    def test_open_repeating_task(self):
        task = parse_task_line("- [ ] Water @repeat(daily)", 0, ORIGIN)
        assert not is_due_for_repeat(task)

    def test_done_task_without_rule(self):
        assert not is_due_for_repeat(parse_task_line("- [x] Once", 0, ORIGIN))

    def test_cancelled_repeating_task(self):
        task = parse_task_line("- [-] Water @repeat(daily)", 0, ORIGIN)
        assert not is_due_for_repeat(task)


class TestBuildRelocatedTask:
    """Tests for build_relocated_task()."""

    def test_resets_status_and_due_date(self):
        task = parse_task_line(ORIGIN_LINES[5], 5, ORIGIN)
        new = build_relocated_task(task, date(2025, 12, 1), TaskConfig())
        assert new.status == TaskStatus.TODO
        assert new.due_date == date(2025, 12, 1)
        assert new.text == "Water plants"
        assert new.repeat_rule == RepeatRule(RepeatUnit.DAY, 3)
        assert new.backlink is None
        assert new.location is None

    def test_backlink_only_when_preserving(self):
        task = parse_task_line(ORIGIN_LINES[4], 4, ORIGIN)
        settings = TaskConfig(preserve_moved_tasks=True)
        new = build_relocated_task(task, date(2025, 12, 1), settings)
        assert new.backlink == TaskRef(ORIGIN, 4)

    def test_alias_links(self):
        task = parse_task_line(ORIGIN_LINES[4], 4, ORIGIN)
        settings = TaskConfig(preserve_moved_tasks=True, alias_links=True)
        new = build_relocated_task(task, date(2025, 12, 1), settings)
        assert new.backlink == TaskRef(ORIGIN, 4, "Origin")

    def test_repeat_dropped_when_not_carried(self):
        task = parse_task_line(ORIGIN_LINES[5], 5, ORIGIN)
        settings = TaskConfig(carry_repeat_on_delete=False)
        assert build_relocated_task(task, date(2025, 12, 1), settings).repeat_rule is None

    def test_repeat_kept_with_stub_even_if_not_carried(self):
        task = parse_task_line(ORIGIN_LINES[5], 5, ORIGIN)
        settings = TaskConfig(preserve_moved_tasks=True, carry_repeat_on_delete=False)
        assert build_relocated_task(task, date(2025, 12, 1), settings).repeat_rule is not None

    def test_indent_dropped(self):
        task = parse_task_line("    - [ ] Sub step", 2, ORIGIN)
        assert build_relocated_task(task, date(2025, 12, 1), TaskConfig()).indent == ""


class TestRelocateTask:
    """Tests for relocate_task()."""

    def test_move_deletes_origin_by_default(self, store):
        result = asyncio.run(relocate_task(store, _task(store, 4), date(2025, 11, 29), TaskConfig()))

        assert store.notes[TOMORROW] == [
            "# 2025-11-29",
            "",
            "## Tasks",
            "",
            "- [ ] Write report @due(2025-11-29) @priority(1)",
        ]
        assert store.notes[ORIGIN] == ORIGIN_LINES[:4] + ORIGIN_LINES[5:]
        assert result.origin_action == "deleted"
        assert result.destination == Location(TOMORROW, 4)
        assert result.task.location == Location(TOMORROW, 4)

    def test_destination_written_before_origin(self, store):
        asyncio.run(relocate_task(store, _task(store, 4), date(2025, 11, 29), TaskConfig()))
        assert store.writes == [TOMORROW, ORIGIN]

    def test_move_leaves_stub_when_preserving(self, store):
        settings = TaskConfig(preserve_moved_tasks=True)
        result = asyncio.run(relocate_task(store, _task(store, 4), date(2025, 11, 29), settings))

        assert store.notes[ORIGIN][4] == "- [>] [[daily/2025-11-29#L5]]"
        assert store.notes[TOMORROW][4] == (
            "- [ ] Write report @due(2025-11-29) @from([[daily/2025-11-28#L5]]) @priority(1)"
        )
        assert result.origin_action == "stub"

    def test_stub_keeps_indent(self, store):
        store.notes[ORIGIN][4] = "  - [ ] Write report"
        settings = TaskConfig(preserve_moved_tasks=True)
        asyncio.run(relocate_task(store, _task(store, 4), date(2025, 11, 29), settings))
        assert store.notes[ORIGIN][4] == "  - [>] [[daily/2025-11-29#L5]]"

    def test_alias_backlink(self, store):
        settings = TaskConfig(preserve_moved_tasks=True, alias_links=True)
        asyncio.run(relocate_task(store, _task(store, 4), date(2025, 11, 29), settings))
        assert "@from([[daily/2025-11-28#L5|Origin]])" in store.notes[TOMORROW][4]

    def test_text_and_unknown_tags_preserved(self, store):
        result = asyncio.run(relocate_task(store, _task(store, 4), date(2025, 11, 29), TaskConfig()))
        moved = parse_task_line(store.notes[TOMORROW][4])
        assert moved.text == "Write report"
        assert moved.extra_tags == ("@priority(1)",)
        assert result.task == moved

    def test_custom_header_created(self, store):
        settings = TaskConfig(tasks_header="### Todo", blank_line_after_header=False)
        asyncio.run(relocate_task(store, _task(store, 4), date(2025, 11, 29), settings))
        assert store.notes[TOMORROW] == [
            "# 2025-11-29",
            "",
            "### Todo",
            "- [ ] Write report @due(2025-11-29) @priority(1)",
        ]

    def test_conflict_before_write_changes_nothing(self, store):
        task = _task(store, 4)
        store.notes[ORIGIN][4] = "- [ ] Write the report @priority(1)"

        with pytest.raises(ConcurrentModificationError) as exc_info:
            asyncio.run(relocate_task(store, task, date(2025, 11, 29), TaskConfig()))

        assert exc_info.value.found == "- [ ] Write the report @priority(1)"
        assert store.writes == []
        assert TOMORROW not in store.notes

    def test_conflict_after_destination_write_duplicates(self, store):
        def edit_origin(s):
            s.notes[ORIGIN][4] = "- [x] Write report @priority(1)"

        store.before_insert = edit_origin

        with pytest.raises(ConcurrentModificationError):
            asyncio.run(relocate_task(store, _task(store, 4), date(2025, 11, 29), TaskConfig()))

        assert store.writes == [TOMORROW]
        assert store.notes[ORIGIN][4] == "- [x] Write report @priority(1)"

    def test_destination_unavailable_changes_nothing(self, store):
        store.unavailable_dates.add(date(2025, 11, 29))

        with pytest.raises(DestinationUnavailableError):
            asyncio.run(relocate_task(store, _task(store, 4), date(2025, 11, 29), TaskConfig()))

        assert store.writes == []
        assert store.notes[ORIGIN] == ORIGIN_LINES

    def test_unreadable_destination_changes_nothing(self, store):
        store.unreadable.add(TOMORROW)

        with pytest.raises(DestinationUnavailableError):
            asyncio.run(relocate_task(store, _task(store, 4), date(2025, 11, 29), TaskConfig()))

        assert store.writes == []
        assert store.notes[ORIGIN] == ORIGIN_LINES

    def test_same_note_delete(self, store):
        result = asyncio.run(relocate_task(store, _task(store, 4), date(2025, 11, 28), TaskConfig()))

        assert store.notes[ORIGIN] == [
            "# 2025-11-28",
            "",
            "## Tasks",
            "",
            "- [ ] Write report @due(2025-11-28) @priority(1)",
            "- [x] Water plants @repeat(every 3 days)",
        ]
        assert result.origin == Location(ORIGIN, 5)
        assert result.destination == Location(ORIGIN, 4)

    def test_same_note_stub_points_at_shifted_lines(self, store):
        settings = TaskConfig(preserve_moved_tasks=True)
        asyncio.run(relocate_task(store, _task(store, 4), date(2025, 11, 28), settings))

        lines = store.notes[ORIGIN]
        assert lines[4] == (
            "- [ ] Write report @due(2025-11-28) @from([[daily/2025-11-28#L6]]) @priority(1)"
        )
        assert lines[5] == "- [>] [[daily/2025-11-28#L5]]"

    def test_task_without_location_rejected(self, store):
        task = replace(_task(store, 4), location=None)
        with pytest.raises(ValueError):
            asyncio.run(relocate_task(store, task, date(2025, 11, 29), TaskConfig()))


class TestRepeatTask:
    """Tests for repeat_task()."""

    def test_next_occurrence_created(self, store):
        result = asyncio.run(repeat_task(store, _task(store, 5), TaskConfig()))

        assert result.destination.note == "daily/2025-12-01"
        assert store.notes["daily/2025-12-01"][4] == (
            "- [ ] Water plants @due(2025-12-01) @repeat(every 3 days)"
        )
        assert "- [x] Water plants @repeat(every 3 days)" not in store.notes[ORIGIN]

    def test_preserved_origin_is_no_longer_due(self, store):
        settings = TaskConfig(preserve_moved_tasks=True)
        asyncio.run(repeat_task(store, _task(store, 5), settings))

        stub = parse_task_line(store.notes[ORIGIN][5], 5, ORIGIN)
        assert stub.status == TaskStatus.MOVED
        assert not is_due_for_repeat(stub)

    def test_task_without_rule_rejected(self, store):
        with pytest.raises(ValueError):
            asyncio.run(repeat_task(store, _task(store, 4), TaskConfig()))
