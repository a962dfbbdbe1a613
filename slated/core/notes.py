"""Note path helpers for slated."""

from __future__ import annotations

from datetime import date
from pathlib import Path

from slated.utils.dates import get_week_folder_name
from slated.utils.markdown import create_daily_note_template

NOTE_SUFFIX = ".md"


def normalize_path(path: Path | str) -> str:
    """Normalize a path to a consistent string format.

    Uses forward slashes for cross-platform consistency.
    """
    if isinstance(path, Path):
        return path.as_posix()
    return str(path).replace("\\", "/")


def get_daily_note_path(dt: date, notes_root: Path, week_start_day: str = "monday") -> Path:
    """Get the path for a daily note.

    Daily notes are stored as: daily/YYYY/Nov24-Nov30/YYYY-MM-DD.md
    (organized by week)
    """
    week_folder = get_week_folder_name(dt, week_start_day)
    return notes_root / "daily" / str(dt.year) / week_folder / f"{dt.isoformat()}.md"


def ensure_daily_note(
    dt: date,
    notes_root: Path,
    title_format: str = "%A, %B %d, %Y",
    week_start_day: str = "monday",
) -> Path:
    """Ensure a daily note exists, creating it if necessary.

    Returns the path to the note.
    """
    path = get_daily_note_path(dt, notes_root, week_start_day)

    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(create_daily_note_template(dt, title_format), encoding="utf-8")

    return path


def note_id_for_path(path: Path, notes_root: Path) -> str:
    """Convert a note path to its id: posix path relative to the root, no suffix.

    Raises:
        ValueError: If the path is outside notes_root.
    """
    relative = path.resolve().relative_to(notes_root.resolve())
    if relative.suffix == NOTE_SUFFIX:
        relative = relative.with_suffix("")
    return normalize_path(relative)


def path_for_note_id(note_id: str, notes_root: Path) -> Path:
    """Convert a note id back to a path under notes_root.

    Raises:
        ValueError: If the id escapes notes_root.
    """
    path = (notes_root / f"{note_id}{NOTE_SUFFIX}").resolve()
    path.relative_to(notes_root.resolve())
    return path
