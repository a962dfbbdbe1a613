"""Focus watcher for slated.

Watches the notes root for edits and treats "a different note was modified"
as the user moving focus to that note. Each focus change is handed to a
:class:`FocusScanController`, so completed repeating tasks get their next
occurrence without running ``slated scan`` by hand.
"""

from __future__ import annotations

import asyncio
import json
import logging
import signal
import sys
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from slated.core.scanner import FocusScanController, ScanReport
from slated.core.store import FileNoteStore

if TYPE_CHECKING:
    from watchdog.events import FileSystemEvent

    from slated.config import Config

logger = logging.getLogger("slated.daemon")


class FocusState:
    """The last focused note, persisted between runs."""

    def __init__(self, state_file: Path):
        self.state_file = state_file

    def read(self) -> str | None:
        """Return the last focused note id, or None if unknown."""
        if not self.state_file.exists():
            return None
        try:
            data = json.loads(self.state_file.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return None
        previous = data.get("previous") if isinstance(data, dict) else None
        return previous if isinstance(previous, str) else None

    def write(self, note_id: str | None) -> None:
        data = {"previous": note_id, "updated": time.time()}
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            self.state_file.write_text(json.dumps(data), encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to write focus state: %s", e)


class NoteFocusHandler:
    """Track which markdown notes were edited, most recent last.

    Events arrive on watchdog's thread while ``process_pending`` runs on the
    watcher's event loop, so the pending set is guarded by a lock.
    """

    def __init__(self, notes_root: Path, debounce_seconds: float = 2.0):
        self.notes_root = notes_root
        self.debounce_seconds = debounce_seconds
        self.pending: dict[Path, float] = {}
        self.last_change: float = 0.0
        self._own_writes: dict[Path, int] = {}
        self._lock = threading.Lock()

    def _should_handle(self, path: str) -> bool:
        """Check if this path is a note we care about."""
        if not path.endswith(".md"):
            return False
        try:
            relative = Path(path).relative_to(self.notes_root)
        except ValueError:
            return False
        # Skip hidden files and the .slated directory
        return not any(part.startswith(".") for part in relative.parts)

    def _is_own_write(self, path: Path) -> bool:
        try:
            mtime = path.stat().st_mtime_ns
        except OSError:
            return False
        with self._lock:
            return self._own_writes.get(path) == mtime

    def _record(self, path: str) -> None:
        if not self._should_handle(path):
            return
        note = Path(path)
        if self._is_own_write(note):
            return
        now = time.time()
        with self._lock:
            # Re-inserting moves the note to the end, so the dict stays in edit order
            self.pending.pop(note, None)
            self.pending[note] = now
            self.last_change = now

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._record(str(event.src_path))

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._record(str(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle renames, including editors that save through a temp file."""
        if not event.is_directory and hasattr(event, "dest_path"):
            self._record(str(event.dest_path))

    def suppress(self, paths: set[Path]) -> None:
        """Ignore the change events caused by our own writes to paths."""
        for path in paths:
            try:
                mtime = path.stat().st_mtime_ns
            except OSError:
                mtime = None
            with self._lock:
                if mtime is None:
                    self._own_writes.pop(path, None)
                else:
                    self._own_writes[path] = mtime

    def process_pending(self) -> Path | None:
        """Return the note edited last once edits have settled, else None.

        Notes whose current content is our own write are skipped, so an edit
        to another note in the same window is not lost to them.
        """
        with self._lock:
            if not self.pending:
                return None
            if time.time() - self.last_change < self.debounce_seconds:
                return None  # Wait for changes to settle
            candidates = list(reversed(self.pending))
            self.pending.clear()

        for path in candidates:
            if not path.exists():
                continue  # Deleted before we got to it
            if self._is_own_write(path):
                continue
            return path
        return None


class WatchdogAdapter:
    """Adapter to connect our handler to watchdog's FileSystemEventHandler."""

    def __init__(self, handler: NoteFocusHandler):
        self.handler = handler

    def dispatch(self, event: FileSystemEvent) -> None:
        """Dispatch event to the appropriate handler method."""
        if event.event_type == "modified":
            self.handler.on_modified(event)
        elif event.event_type == "created":
            self.handler.on_created(event)
        elif event.event_type == "moved":
            self.handler.on_moved(event)


class FocusWatcher:
    """Turn settled note edits into focus-change events."""

    def __init__(
        self,
        store: FileNoteStore,
        controller: FocusScanController,
        handler: NoteFocusHandler,
        focus_state: FocusState,
    ):
        self.store = store
        self.controller = controller
        self.handler = handler
        self.focus_state = focus_state

    async def handle_path(self, path: Path) -> ScanReport | None:
        """Feed an edited note path to the controller as a focus change."""
        try:
            note_id = self.store.note_id_for(path)
        except ValueError:
            logger.debug("Ignoring path outside notes root: %s", path)
            return None

        if note_id == self.controller.previous:
            return None

        report = await self.controller.on_focus_changed(note_id)
        self.focus_state.write(note_id)

        written: set[Path] = set()
        for result in report.relocated:
            written.add(self.store.path_for(result.origin.note))
            written.add(self.store.path_for(result.destination.note))
        self.handler.suppress(written)

        for error in report.errors:
            logger.warning("Scan error: %s", error)
        if report.relocated:
            logger.info(
                "Focus %s: repeated %d task(s)", note_id, len(report.relocated)
            )
        return report

    async def run(
        self, should_stop: Callable[[], bool], poll_interval: float = 1.0
    ) -> None:
        while not should_stop():
            path = self.handler.process_pending()
            if path is not None:
                await self.handle_path(path)
            await asyncio.sleep(poll_interval)


def run_watcher(config: Config, foreground: bool = True) -> None:
    """Watch the notes root until interrupted."""
    from watchdog.events import FileSystemEventHandler
    from watchdog.observers import Observer

    from slated.config import get_config

    config.slated_dir.mkdir(parents=True, exist_ok=True)

    # Setup logging
    handlers: list[logging.Handler] = [logging.FileHandler(config.log_path)]
    if foreground:
        handlers.append(logging.StreamHandler())

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
    )

    running = True

    def handle_shutdown(signum, frame):
        nonlocal running
        logger.info("Received shutdown signal")
        running = False

    signal.signal(signal.SIGTERM, handle_shutdown)
    signal.signal(signal.SIGINT, handle_shutdown)
    if sys.platform == "win32":
        signal.signal(signal.SIGBREAK, handle_shutdown)

    store = FileNoteStore(
        config.notes_root, config.daily_title_format, config.week_start_day
    )
    focus_state = FocusState(config.focus_state_path)
    controller = FocusScanController(
        store, lambda: get_config().tasks, previous=focus_state.read()
    )
    focus_handler = NoteFocusHandler(
        config.notes_root.resolve(), config.watch.debounce_seconds
    )
    watcher = FocusWatcher(store, controller, focus_handler, focus_state)

    class WatchdogHandler(FileSystemEventHandler):
        def __init__(self, adapter: WatchdogAdapter):
            super().__init__()
            self.adapter = adapter

        def on_any_event(self, event):
            self.adapter.dispatch(event)

    observer = Observer()
    observer.schedule(
        WatchdogHandler(WatchdogAdapter(focus_handler)),
        str(focus_handler.notes_root),
        recursive=True,
    )
    observer.start()
    logger.info("Watching: %s", config.notes_root)

    try:
        asyncio.run(watcher.run(lambda: not running))
    except Exception as e:
        logger.error("Watcher error: %s", e)
        raise
    finally:
        observer.stop()
        observer.join()
        logger.info("Watcher stopped")
