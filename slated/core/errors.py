"""Exceptions raised by slated task operations."""

from __future__ import annotations


class SlatedError(Exception):
    """Base exception for task lifecycle errors."""

    pass


class DestinationUnavailableError(SlatedError):
    """The note store could not resolve or create the destination note."""

    pass


class ConcurrentModificationError(SlatedError):
    """The origin line changed between reading it and writing it back."""

    def __init__(self, note_id: str, line_index: int, expected: str, found: str | None):
        self.note_id = note_id
        self.line_index = line_index
        self.expected = expected
        self.found = found
        super().__init__(
            f"Line {line_index + 1} of {note_id} changed since it was read"
        )


class NotATaskError(SlatedError):
    """A command was pointed at a line that is not a task."""

    pass


class MalformedTagError(SlatedError, ValueError):
    """An inline metadata tag value could not be decoded."""

    pass
