"""Configuration for slated.

Settings live in ``<notes_root>/.slated/config.yaml``. Engine code never
reads this package directly: callers pass it a ``TaskConfig`` snapshot taken
from ``get_config().tasks``.
"""

from __future__ import annotations

from .io import (
    _serialize_dataclass_fields,
    ensure_directories,
    init_config,
    load_config,
    save_config,
)
from .models import (
    DEFAULT_CONFIG_YAML,
    DEFAULT_EDITOR,
    DEFAULT_NOTES_ROOT,
    Config,
    TaskConfig,
    WatchConfig,
)
from .parsers import (
    _parse_task_config,
    _parse_watch_config,
    expand_path,
    get_config_path,
    get_default_notes_root,
)
from .utils import (
    BOOL_FALSE_VALUES,
    BOOL_TRUE_VALUES,
    CONFIGURABLE_SETTINGS,
    get_config_value,
    list_config_settings,
    parse_bool_strict,
    set_config_value,
)

# Singleton config instance
_config: Config | None = None


def get_config() -> Config:
    """Return the process-wide Config, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached Config so the next get_config() reloads the file."""
    global _config
    _config = None


__all__ = [
    "BOOL_FALSE_VALUES",
    "BOOL_TRUE_VALUES",
    "CONFIGURABLE_SETTINGS",
    "DEFAULT_CONFIG_YAML",
    "DEFAULT_EDITOR",
    "DEFAULT_NOTES_ROOT",
    "Config",
    "TaskConfig",
    "WatchConfig",
    "_parse_task_config",
    "_parse_watch_config",
    "_serialize_dataclass_fields",
    "ensure_directories",
    "expand_path",
    "get_config",
    "get_config_path",
    "get_config_value",
    "get_default_notes_root",
    "init_config",
    "list_config_settings",
    "load_config",
    "parse_bool_strict",
    "reset_config",
    "save_config",
    "set_config_value",
]
