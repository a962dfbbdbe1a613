"""Configuration dataclass models for slated."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class TaskConfig:
    """Settings consumed by the task engine.

    Frozen so each engine operation works on an immutable snapshot.
    """

    tasks_header: str = "## Tasks"  # Header of the section new tasks go under
    blank_line_after_header: bool = True  # Keep an empty line below the header
    preserve_moved_tasks: bool = False  # Leave a [>] stub instead of deleting
    alias_links: bool = False  # Render origin backlinks as [[note|Origin]]
    carry_repeat_on_delete: bool = True  # Keep @repeat when the origin is deleted


@dataclass
class WatchConfig:
    """Configuration for the focus watcher."""

    debounce_seconds: float = 2.0  # Wait for edits to settle before scanning


@dataclass
class Config:
    """Application configuration."""

    notes_root: Path
    editor: str
    tasks: TaskConfig = field(default_factory=TaskConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    daily_title_format: str = "%A, %B %d, %Y"  # e.g., "Friday, November 28, 2025"
    week_start_day: str = "monday"  # monday or sunday, used for daily folders

    @property
    def slated_dir(self) -> Path:
        """Return path to .slated configuration directory."""
        return self.notes_root / ".slated"

    @property
    def config_path(self) -> Path:
        """Return path to config file."""
        return self.slated_dir / "config.yaml"

    @property
    def focus_state_path(self) -> Path:
        """Return path to the file remembering the last focused note."""
        return self.slated_dir / "focus.json"

    @property
    def log_path(self) -> Path:
        """Return path to the watcher log file."""
        return self.slated_dir / "watch.log"


# Default configuration values
DEFAULT_NOTES_ROOT = Path.home() / "notes"
DEFAULT_EDITOR = "micro"

DEFAULT_CONFIG_YAML = """\
# slated configuration

# Root directory for all notes
notes_root: ~/notes

# Editor to use (uses $EDITOR if set, otherwise this value)
editor: micro

# Task moving and repetition
tasks:
  tasks_header: "## Tasks"       # Section new and moved tasks are inserted under
  blank_line_after_header: true  # Leave an empty line below headers
  preserve_moved_tasks: false    # Keep a [>] link where a task used to be
  alias_links: false             # Show backlinks as "Origin" instead of the note path
  carry_repeat_on_delete: true   # Keep repeating when the original line is deleted

# Background watcher (slated watch)
watch:
  debounce_seconds: 2.0

# Daily notes
daily_title_format: "%A, %B %d, %Y"  # e.g., "Friday, November 28, 2025"
week_start_day: monday  # monday or sunday
"""
