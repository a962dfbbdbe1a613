"""Data models for slated."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class TaskStatus(Enum):
    """Task status states."""

    TODO = "todo"  # [ ]
    DONE = "done"  # [x] or [X]
    CANCELLED = "cancelled"  # [-]
    MOVED = "moved"  # [>]

    @classmethod
    def from_marker(cls, marker: str) -> TaskStatus:
        """Create TaskStatus from checkbox marker character."""
        if marker in ("x", "X"):
            return cls.DONE
        elif marker == "-":
            return cls.CANCELLED
        elif marker == ">":
            return cls.MOVED
        else:
            return cls.TODO

    @property
    def marker(self) -> str:
        """Return the checkbox marker for this status."""
        if self == TaskStatus.DONE:
            return "x"
        elif self == TaskStatus.CANCELLED:
            return "-"
        elif self == TaskStatus.MOVED:
            return ">"
        else:
            return " "


class RepeatUnit(Enum):
    """Interval unit of a repeat rule."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class RepeatRule:
    """A recurrence rule attached to a task.

    ``weekdays`` holds ``date.weekday()`` numbers (Monday=0) and is only
    meaningful for weekly rules.
    """

    unit: RepeatUnit
    count: int = 1
    weekdays: frozenset[int] = frozenset()

    def __post_init__(self) -> None:
        if self.count < 1:
            raise ValueError(f"Repeat interval must be at least 1, got {self.count}")
        if any(not 0 <= day <= 6 for day in self.weekdays):
            raise ValueError(f"Invalid weekday numbers: {sorted(self.weekdays)}")


@dataclass(frozen=True)
class TaskRef:
    """A backlink to a note, optionally to a specific line of it."""

    note: str
    line: int | None = None  # 0-based; rendered 1-based as #L<n>
    alias: str | None = None


@dataclass(frozen=True)
class Location:
    """Where a task currently lives. Recomputed on every parse."""

    note: str
    line: int  # 0-based line index


@dataclass
class Task:
    """The structured form of one checkbox line."""

    status: TaskStatus
    text: str  # Display text without marker syntax or metadata tags
    due_date: date | None = None
    repeat_rule: RepeatRule | None = None
    backlink: TaskRef | None = None  # Origin link, or destination link on MOVED stubs
    extra_tags: tuple[str, ...] = ()  # Unknown or undecodable tags, verbatim
    indent: str = ""
    location: Location | None = field(default=None, compare=False)
    raw: str | None = field(default=None, compare=False, repr=False)

    @property
    def is_moved(self) -> bool:
        return self.status == TaskStatus.MOVED

    @property
    def is_repeating(self) -> bool:
        """Check if the task carries a repeat rule with an anchor date."""
        return self.repeat_rule is not None and self.due_date is not None
