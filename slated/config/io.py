"""Configuration I/O functions for slated."""

from __future__ import annotations

import os
from dataclasses import fields, is_dataclass
from pathlib import Path
from typing import Any

import yaml

from .models import DEFAULT_CONFIG_YAML, DEFAULT_EDITOR, Config, WatchConfig
from .parsers import (
    _parse_task_config,
    _parse_watch_config,
    expand_path,
    get_config_path,
    get_default_notes_root,
)


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from YAML file.

    Missing files and missing keys fall back to defaults.
    """
    if config_path is None:
        config_path = get_config_path()

    if config_path.exists():
        with config_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    # If notes_root not in config file, respect SLATED_NOTES_ROOT via get_default_notes_root()
    if "notes_root" in data:
        notes_root = expand_path(data["notes_root"])
    else:
        notes_root = get_default_notes_root()

    # Get editor: prefer $EDITOR environment variable
    editor = os.environ.get("EDITOR") or data.get("editor", DEFAULT_EDITOR)

    return Config(
        notes_root=notes_root,
        editor=editor,
        tasks=_parse_task_config(data.get("tasks")),
        watch=_parse_watch_config(data.get("watch")),
        daily_title_format=data.get("daily_title_format", "%A, %B %d, %Y"),
        week_start_day=data.get("week_start_day", "monday"),
    )


def _serialize_dataclass_fields(
    obj: Any,
    defaults: Any | None = None,
    exclude: set[str] | None = None,
) -> dict[str, Any]:
    """Serialize a dataclass to a dict using field introspection.

    Args:
        obj: The dataclass instance to serialize.
        defaults: Optional defaults instance to compare against. If provided,
            only fields that differ from defaults will be included.
        exclude: Set of field names to exclude from serialization.

    Returns:
        Dictionary of field names to values.

    """
    if not is_dataclass(obj):
        raise TypeError(f"{obj} is not a dataclass instance")

    exclude = exclude or set()
    result: dict[str, Any] = {}

    for _field in fields(obj):
        if _field.name in exclude:
            continue

        value = getattr(obj, _field.name)
        if value is None:
            continue

        if defaults is not None and value == getattr(defaults, _field.name, None):
            continue

        if isinstance(value, Path):
            value = str(value)

        result[_field.name] = value

    return result


def save_config(config: Config) -> None:
    """Save configuration to YAML file.

    Task settings are always written in full so the file documents them;
    watch settings only when they differ from the defaults.
    """
    data: dict[str, Any] = {
        "notes_root": str(config.notes_root),
        "editor": config.editor,
        "tasks": _serialize_dataclass_fields(config.tasks),
    }

    watch_data = _serialize_dataclass_fields(config.watch, defaults=WatchConfig())
    if watch_data:
        data["watch"] = watch_data

    data["daily_title_format"] = config.daily_title_format
    data["week_start_day"] = config.week_start_day

    config.config_path.parent.mkdir(parents=True, exist_ok=True)
    with config.config_path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


def ensure_directories(config: Config) -> None:
    """Create required directories if they don't exist."""
    config.slated_dir.mkdir(parents=True, exist_ok=True)
    (config.notes_root / "daily").mkdir(parents=True, exist_ok=True)


def init_config(notes_root: Path | None = None) -> Config:
    """Initialize configuration for first-time setup.

    Creates default config file and directory structure.
    """
    if notes_root is None:
        notes_root = get_default_notes_root()

    config_path = get_config_path(notes_root)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    if not config_path.exists():
        # Update notes_root so SLATED_NOTES_ROOT is respected in the generated file
        default_data = yaml.safe_load(DEFAULT_CONFIG_YAML)
        default_data["notes_root"] = str(notes_root)
        with config_path.open("w", encoding="utf-8") as f:
            f.write("# slated configuration\n\n")
            yaml.safe_dump(default_data, f, default_flow_style=False, sort_keys=False)

    config = load_config(config_path)
    ensure_directories(config)

    return config

