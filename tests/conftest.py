"""Shared fixtures for slated tests."""

from __future__ import annotations

from collections.abc import Callable, Generator, Sequence
from datetime import date
from pathlib import Path

import pytest
from click.testing import CliRunner

from slated import config as config_module
from slated.cli import config_cmd as cli_config_module
from slated.cli import tasks as cli_tasks_module
from slated.cli import utils as cli_utils_module
from slated.cli import watch as cli_watch_module
from slated.config import Config, TaskConfig
from slated.core.errors import DestinationUnavailableError
from slated.core.store import insert_under_header


class MemoryNoteStore:
    """In-memory NoteStore with failure and conflict injection.

    Daily notes are keyed ``daily/YYYY-MM-DD``.
    """

    def __init__(self, notes: dict[str, Sequence[str]] | None = None):
        self.notes: dict[str, list[str]] = {
            note_id: list(lines) for note_id, lines in (notes or {}).items()
        }
        self.writes: list[str] = []
        self.unavailable_dates: set[date] = set()
        self.unreadable: set[str] = set()
        # Called with the store right before a header insert is applied
        self.before_insert: Callable[[MemoryNoteStore], None] | None = None

    async def resolve_note(self, dt: date) -> str:
        if dt in self.unavailable_dates:
            raise DestinationUnavailableError(f"No note for {dt.isoformat()}")
        note_id = f"daily/{dt.isoformat()}"
        self.notes.setdefault(note_id, [f"# {dt.isoformat()}"])
        return note_id

    async def read_lines(self, note_id: str) -> list[str]:
        if note_id in self.unreadable:
            raise OSError(f"Permission denied: {note_id}")
        if note_id not in self.notes:
            raise FileNotFoundError(note_id)
        return list(self.notes[note_id])

    async def write_lines(self, note_id: str, lines: Sequence[str]) -> None:
        self.notes[note_id] = list(lines)
        self.writes.append(note_id)

    async def insert_under_header(
        self,
        note_id: str,
        header: str,
        new_line: str,
        blank_line_after_header: bool,
    ) -> int:
        if self.before_insert is not None:
            self.before_insert(self)
        lines = await self.read_lines(note_id)
        new_lines, index = insert_under_header(
            lines, header, new_line, blank_line_after_header
        )
        await self.write_lines(note_id, new_lines)
        return index


class ScriptedPrompt:
    """Prompt returning preset answers. None answers mean cancel."""

    def __init__(self, destination: date | None = None, rule=None):
        self.destination = destination
        self.rule = rule
        self.asked: list[str] = []

    async def ask_date(self, task):
        self.asked.append("date")
        return self.destination

    async def ask_repeat_rule(self, task):
        self.asked.append("rule")
        return self.rule


@pytest.fixture
def memory_store() -> MemoryNoteStore:
    """Create an empty in-memory note store."""
    return MemoryNoteStore()


@pytest.fixture
def make_prompt() -> type[ScriptedPrompt]:
    """Return the scripted prompt class, called with preset answers."""
    return ScriptedPrompt


@pytest.fixture
def task_settings() -> TaskConfig:
    """Default engine settings."""
    return TaskConfig()


@pytest.fixture
def temp_notes_root(tmp_path: Path) -> Path:
    """Create a temporary notes root directory with .slated folder."""
    notes_root = tmp_path / "notes"
    notes_root.mkdir(parents=True)
    (notes_root / ".slated").mkdir()
    return notes_root


@pytest.fixture
def temp_config(temp_notes_root: Path) -> Generator[Config]:
    """Create a temporary configuration for testing."""
    cfg = Config(
        notes_root=temp_notes_root,
        editor="echo",  # No-op editor for testing
    )
    (temp_notes_root / "daily").mkdir(exist_ok=True)

    yield cfg

    config_module.reset_config()


@pytest.fixture
def mock_config(temp_config: Config, monkeypatch: pytest.MonkeyPatch) -> Config:
    """Mock get_config() to return temp_config.

    Patches get_config in slated.config and in every module that imports it
    at module level.
    """
    config_module.reset_config()
    monkeypatch.setattr(config_module, "_config", temp_config)
    monkeypatch.setattr(config_module, "get_config", lambda: temp_config)
    monkeypatch.setattr(cli_utils_module, "get_config", lambda: temp_config)
    monkeypatch.setattr(cli_tasks_module, "get_config", lambda: temp_config)
    monkeypatch.setattr(cli_config_module, "get_config", lambda: temp_config)
    monkeypatch.setattr(cli_watch_module, "get_config", lambda: temp_config)
    return temp_config


@pytest.fixture
def fixed_today(monkeypatch: pytest.MonkeyPatch) -> date:
    """Fix date.today() to a known value for deterministic tests."""
    fixed = date(2025, 11, 28)  # A Friday

    class MockDate(date):
        @classmethod
        def today(cls) -> date:
            return fixed

    monkeypatch.setattr("slated.utils.dates.date", MockDate)
    monkeypatch.setattr("slated.core.commands.date", MockDate)
    return fixed


@pytest.fixture
def create_note(temp_notes_root: Path) -> Callable[[str, str], Path]:
    """Factory fixture to create note files from a note id and content."""

    def _create_note(note_id: str, content: str) -> Path:
        note_path = temp_notes_root / f"{note_id}.md"
        note_path.parent.mkdir(parents=True, exist_ok=True)
        note_path.write_text(content, encoding="utf-8")
        return note_path

    return _create_note


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click CLI runner for testing commands."""
    return CliRunner()
