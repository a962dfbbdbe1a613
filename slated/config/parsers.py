"""Configuration parsing functions for slated."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from .models import DEFAULT_NOTES_ROOT, TaskConfig, WatchConfig


def expand_path(path: str | Path) -> Path:
    """Expand ~ and environment variables in a path."""
    path_str = str(path)
    # Expand environment variables
    path_str = os.path.expandvars(path_str)
    # Expand ~
    return Path(path_str).expanduser()


def get_default_notes_root() -> Path:
    """Get the default notes root directory."""
    # Check environment variable first
    env_root = os.environ.get("SLATED_NOTES_ROOT")
    if env_root:
        return expand_path(env_root)
    return DEFAULT_NOTES_ROOT


def get_config_path(notes_root: Path | None = None) -> Path:
    """Get the path to the config file."""
    if notes_root is None:
        notes_root = get_default_notes_root()
    return notes_root / ".slated" / "config.yaml"


def _parse_task_config(data: dict[str, Any] | None) -> TaskConfig:
    """Parse the tasks configuration section."""
    if data is None:
        data = {}

    defaults = TaskConfig()
    return TaskConfig(
        tasks_header=str(data.get("tasks_header", defaults.tasks_header)),
        blank_line_after_header=bool(
            data.get("blank_line_after_header", defaults.blank_line_after_header)
        ),
        preserve_moved_tasks=bool(
            data.get("preserve_moved_tasks", defaults.preserve_moved_tasks)
        ),
        alias_links=bool(data.get("alias_links", defaults.alias_links)),
        carry_repeat_on_delete=bool(
            data.get("carry_repeat_on_delete", defaults.carry_repeat_on_delete)
        ),
    )


def _parse_watch_config(data: dict[str, Any] | None) -> WatchConfig:
    """Parse the watch configuration section."""
    if data is None:
        data = {}

    return WatchConfig(
        debounce_seconds=float(data.get("debounce_seconds", 2.0)),
    )
