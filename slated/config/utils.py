"""Configuration utility functions for slated."""

from __future__ import annotations

from dataclasses import replace
from typing import Any

# Configurable settings with descriptions
CONFIGURABLE_SETTINGS = {
    "editor": "Text editor command (e.g., code, vim, micro)",
    "daily_title_format": "Daily note title format (e.g., %A, %B %d, %Y)",
    "week_start_day": "First day of week for daily note folders (monday or sunday)",
    "tasks.tasks_header": "Header new and moved tasks are inserted under (default: ## Tasks)",
    "tasks.blank_line_after_header": "Leave an empty line below headers (true/false)",
    "tasks.preserve_moved_tasks": "Leave a [>] link where a moved task used to be (true/false)",
    "tasks.alias_links": "Render origin backlinks with the 'Origin' alias (true/false)",
    "tasks.carry_repeat_on_delete": "Keep @repeat when the original line is deleted (true/false)",
    "watch.debounce_seconds": "Seconds to wait for edits to settle before scanning (default 2)",
}

# Valid boolean string values
BOOL_TRUE_VALUES = ("true", "1", "yes", "on")
BOOL_FALSE_VALUES = ("false", "0", "no", "off")

WEEK_START_DAYS = ("monday", "sunday")


def parse_bool_strict(value: str, setting_name: str) -> bool:
    """Parse a boolean string value strictly.

    Args:
        value: String value to parse (e.g., "true", "false", "1", "0")
        setting_name: Name of the setting (for error messages)

    Returns:
        Boolean value

    Raises:
        ValueError: If the value is not a recognized boolean string

    """
    lower = value.lower()
    if lower in BOOL_TRUE_VALUES:
        return True
    if lower in BOOL_FALSE_VALUES:
        return False
    valid = ", ".join(BOOL_TRUE_VALUES + BOOL_FALSE_VALUES)
    raise ValueError(
        f"Invalid boolean value '{value}' for {setting_name}. Valid: {valid}"
    )


def get_config_value(key: str) -> Any:
    """Get a config value by dot-notation key.

    Args:
        key: Configuration key (e.g., 'editor', 'tasks.tasks_header')

    Returns:
        The configuration value, or None if not found.

    """
    # Import here to avoid circular imports
    from . import get_config

    config = get_config()
    parts = key.split(".")

    if len(parts) == 1:
        if key in ("editor", "daily_title_format", "week_start_day"):
            return getattr(config, key)
        elif key == "notes_root":
            return str(config.notes_root)
    elif parts[0] == "tasks" and len(parts) == 2:
        attr = parts[1]
        if hasattr(config.tasks, attr):
            return getattr(config.tasks, attr)
    elif parts[0] == "watch" and len(parts) == 2:
        attr = parts[1]
        if hasattr(config.watch, attr):
            return getattr(config.watch, attr)

    return None


def set_config_value(key: str, value: str) -> bool:
    """Set a config value by dot-notation key and save the config file.

    Args:
        key: Configuration key (must be listed in CONFIGURABLE_SETTINGS)
        value: String value, converted to the setting's type

    Returns:
        True if the setting was updated, False if the key is unknown.

    Raises:
        ValueError: If the value is invalid for the setting.

    """
    from . import get_config
    from .io import save_config

    if key not in CONFIGURABLE_SETTINGS:
        return False

    config = get_config()
    parts = key.split(".")

    if len(parts) == 1:
        if key == "week_start_day":
            value = value.lower()
            if value not in WEEK_START_DAYS:
                raise ValueError(
                    f"Invalid week_start_day '{value}'. Valid: {', '.join(WEEK_START_DAYS)}"
                )
        setattr(config, key, value)
    elif parts[0] == "tasks":
        attr = parts[1]
        current = getattr(config.tasks, attr)
        if isinstance(current, bool):
            new_value: Any = parse_bool_strict(value, key)
        else:
            if not value.strip():
                raise ValueError(f"{key} cannot be empty")
            new_value = value
        # TaskConfig is frozen, so swap in an updated copy
        config.tasks = replace(config.tasks, **{attr: new_value})
    elif parts[0] == "watch":
        try:
            seconds = float(value)
        except ValueError:
            raise ValueError(f"Invalid number '{value}' for {key}") from None
        if seconds < 0:
            raise ValueError(f"{key} cannot be negative")
        config.watch.debounce_seconds = seconds
    else:
        return False

    save_config(config)
    return True


def list_config_settings() -> dict[str, tuple[str, Any]]:
    """List all configurable settings with their descriptions and current values."""
    return {
        key: (description, get_config_value(key))
        for key, description in CONFIGURABLE_SETTINGS.items()
    }
