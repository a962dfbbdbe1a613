"""Tests for the focus watcher."""

from __future__ import annotations

import asyncio
import json
import os
import time
from pathlib import Path
from types import SimpleNamespace

import pytest

from slated.config import TaskConfig
from slated.core.scanner import FocusScanController
from slated.core.store import FileNoteStore
from slated.daemon import FocusState, FocusWatcher, NoteFocusHandler, WatchdogAdapter

NOTE_ID = "daily/2025/Nov24-Nov30/2025-11-28"
NEXT_ID = "daily/2025/Nov24-Nov30/2025-11-29"


def _event(event_type: str, src: Path, dest: Path | None = None, is_directory: bool = False):
    event = SimpleNamespace(
        event_type=event_type, src_path=str(src), is_directory=is_directory
    )
    if dest is not None:
        event.dest_path = str(dest)
    return event


class TestFocusState:
    """Tests for FocusState persistence."""

    def test_missing_file(self, tmp_path: Path):
        assert FocusState(tmp_path / "focus.json").read() is None

    def test_write_then_read(self, tmp_path: Path):
        state = FocusState(tmp_path / ".slated" / "focus.json")
        state.write("projects/plan")

        assert state.read() == "projects/plan"
        data = json.loads((tmp_path / ".slated" / "focus.json").read_text())
        assert "updated" in data

    def test_corrupt_file(self, tmp_path: Path):
        path = tmp_path / "focus.json"
        path.write_text("{not json")
        assert FocusState(path).read() is None


class TestNoteFocusHandler:
    """Tests for NoteFocusHandler event filtering and debounce."""

    def test_ignores_non_markdown_and_hidden(self, tmp_path: Path):
        handler = NoteFocusHandler(tmp_path, debounce_seconds=0)
        handler.on_modified(_event("modified", tmp_path / "image.png"))
        handler.on_modified(_event("modified", tmp_path / ".slated" / "notes.md"))
        handler.on_modified(_event("modified", tmp_path.parent / "elsewhere.md"))
        handler.on_modified(_event("modified", tmp_path / "folder.md", is_directory=True))

        assert handler.pending == {}

    def test_returns_settled_path_once(self, tmp_path: Path):
        note = tmp_path / "plan.md"
        note.write_text("# Plan\n")
        handler = NoteFocusHandler(tmp_path, debounce_seconds=0)

        handler.on_modified(_event("modified", note))

        assert handler.process_pending() == note
        assert handler.process_pending() is None

    def test_waits_for_debounce(self, tmp_path: Path):
        note = tmp_path / "plan.md"
        note.write_text("# Plan\n")
        handler = NoteFocusHandler(tmp_path, debounce_seconds=60)

        handler.on_created(_event("created", note))

        assert handler.process_pending() is None
        handler.last_change = time.time() - 61
        assert handler.process_pending() == note

    def test_moved_uses_destination(self, tmp_path: Path):
        note = tmp_path / "plan.md"
        note.write_text("# Plan\n")
        handler = NoteFocusHandler(tmp_path, debounce_seconds=0)

        handler.on_moved(_event("moved", tmp_path / ".plan.md.swp", dest=note))

        assert handler.process_pending() == note

    def test_suppresses_own_writes(self, tmp_path: Path):
        note = tmp_path / "plan.md"
        note.write_text("# Plan\n")
        handler = NoteFocusHandler(tmp_path, debounce_seconds=0)
        handler.suppress({note})

        handler.on_modified(_event("modified", note))
        assert handler.process_pending() is None

        # A later edit by the user changes the mtime and is picked up again
        mtime = note.stat().st_mtime_ns + 1_000_000
        os.utime(note, ns=(mtime, mtime))
        handler.on_modified(_event("modified", note))
        assert handler.process_pending() == note

    def test_own_write_not_recorded(self, tmp_path: Path):
        note = tmp_path / "plan.md"
        note.write_text("# Plan\n")
        handler = NoteFocusHandler(tmp_path, debounce_seconds=0)
        handler.suppress({note})

        handler.on_modified(_event("modified", note))

        assert handler.pending == {}

    def test_own_write_does_not_hide_user_edit(self, tmp_path: Path):
        user_note = tmp_path / "plan.md"
        written = tmp_path / "daily.md"
        user_note.write_text("# Plan\n")
        written.write_text("# Daily\n")
        handler = NoteFocusHandler(tmp_path, debounce_seconds=0)

        # The watcher's write is seen before it is registered as its own
        handler.on_modified(_event("modified", user_note))
        handler.on_modified(_event("modified", written))
        handler.suppress({written})

        assert handler.process_pending() == user_note
        assert handler.process_pending() is None

    def test_latest_edit_wins(self, tmp_path: Path):
        first = tmp_path / "a.md"
        second = tmp_path / "b.md"
        first.write_text("a\n")
        second.write_text("b\n")
        handler = NoteFocusHandler(tmp_path, debounce_seconds=0)

        handler.on_modified(_event("modified", first))
        handler.on_modified(_event("modified", second))
        handler.on_modified(_event("modified", first))

        assert handler.process_pending() == first

    def test_deleted_before_processing(self, tmp_path: Path):
        handler = NoteFocusHandler(tmp_path, debounce_seconds=0)
        handler.on_modified(_event("modified", tmp_path / "gone.md"))
        assert handler.process_pending() is None

    def test_adapter_dispatch(self, tmp_path: Path):
        note = tmp_path / "plan.md"
        handler = NoteFocusHandler(tmp_path, debounce_seconds=0)
        adapter = WatchdogAdapter(handler)

        adapter.dispatch(_event("deleted", note))
        assert handler.pending == {}

        adapter.dispatch(_event("modified", note))
        assert note in handler.pending


@pytest.fixture
def watcher(temp_notes_root: Path, create_note) -> FocusWatcher:
    create_note(
        NOTE_ID,
        "---\ndate: '2025-11-28'\n---\n# Friday\n\n## Tasks\n\n"
        "- [x] Stretch @repeat(daily)\n- [ ] Write report\n",
    )
    create_note("projects/plan", "# Plan\n")

    root = temp_notes_root.resolve()
    store = FileNoteStore(root)
    controller = FocusScanController(store, TaskConfig())
    handler = NoteFocusHandler(root, debounce_seconds=0)
    state = FocusState(root / ".slated" / "focus.json")
    return FocusWatcher(store, controller, handler, state)


class TestFocusWatcher:
    """Tests for FocusWatcher.handle_path()."""

    def test_focus_change_repeats_tasks(self, watcher: FocusWatcher):
        root = watcher.store.notes_root
        asyncio.run(watcher.handle_path(root / f"{NOTE_ID}.md"))
        report = asyncio.run(watcher.handle_path(root / "projects" / "plan.md"))

        assert report is not None
        assert watcher.controller.previous == "projects/plan"
        assert watcher.focus_state.read() == "projects/plan"
        next_note = (root / f"{NEXT_ID}.md").read_text(encoding="utf-8")
        assert "- [ ] Stretch @due(2025-11-29) @repeat(every day)" in next_note

    def test_same_note_is_not_a_focus_change(self, watcher: FocusWatcher):
        path = watcher.store.notes_root / "projects" / "plan.md"
        assert asyncio.run(watcher.handle_path(path)) is not None
        assert asyncio.run(watcher.handle_path(path)) is None

    def test_own_writes_are_suppressed(self, watcher: FocusWatcher):
        root = watcher.store.notes_root
        origin = root / f"{NOTE_ID}.md"
        report = asyncio.run(watcher.handle_path(origin))
        assert len(report.relocated) == 1

        watcher.handler.on_modified(_event("modified", origin))
        assert watcher.handler.process_pending() is None

    def test_path_outside_root(self, watcher: FocusWatcher, tmp_path: Path):
        assert asyncio.run(watcher.handle_path(tmp_path / "other.md")) is None
        assert watcher.controller.previous is None

    def test_run_stops(self, watcher: FocusWatcher):
        calls = []

        def should_stop() -> bool:
            calls.append(1)
            return len(calls) > 2

        asyncio.run(watcher.run(should_stop, poll_interval=0))
        assert len(calls) == 3

