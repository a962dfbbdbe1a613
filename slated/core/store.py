"""Note storage used by the task engine.

The engine talks to notes only through the :class:`NoteStore` protocol. Every
call may suspend, and a note is always rewritten as a whole, never patched in
place.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from collections.abc import Sequence
from datetime import date
from pathlib import Path
from typing import Protocol

from slated.core.errors import DestinationUnavailableError
from slated.core.notes import ensure_daily_note, note_id_for_path, path_for_note_id

logger = logging.getLogger(__name__)


class NoteStore(Protocol):
    """Storage collaborator consumed by the relocation engine and scanner."""

    async def resolve_note(self, dt: date) -> str:
        """Get or create the note for a date and return its id."""
        ...

    async def read_lines(self, note_id: str) -> list[str]:
        """Return the full current content of a note as lines."""
        ...

    async def write_lines(self, note_id: str, lines: Sequence[str]) -> None:
        """Atomically replace the full content of a note."""
        ...

    async def insert_under_header(
        self,
        note_id: str,
        header: str,
        new_line: str,
        blank_line_after_header: bool,
    ) -> int:
        """Insert a line under a header, returning its 0-based index."""
        ...


def insert_under_header(
    lines: Sequence[str],
    header: str,
    new_line: str,
    blank_line_after_header: bool,
) -> tuple[list[str], int]:
    """Insert new_line at the top of the section headed by header.

    If the header exists (matched verbatim, ignoring trailing whitespace), the
    line goes right after the header and its blank separator line. A missing
    separator is added first when blank_line_after_header is set.

    If the header is missing, it is appended to the end of the note (separated
    from existing content by a blank line) followed by the new line, with the
    same blank line rule.

    Returns:
        Tuple of (new_lines, index_of_inserted_line).
    """
    result = list(lines)
    wanted = header.rstrip()

    header_idx = next(
        (i for i, line in enumerate(result) if line.rstrip() == wanted), None
    )

    if header_idx is not None:
        insert_idx = header_idx + 1
        if insert_idx < len(result) and not result[insert_idx].strip():
            insert_idx += 1
        elif blank_line_after_header:
            result.insert(insert_idx, "")
            insert_idx += 1
        result.insert(insert_idx, new_line)
        return result, insert_idx

    # Drop trailing blank lines so the separator is added exactly once
    while result and not result[-1].strip():
        result.pop()
    if result:
        result.append("")
    result.append(header)
    if blank_line_after_header:
        result.append("")
    result.append(new_line)
    return result, len(result) - 1


class FileNoteStore:
    """NoteStore backed by markdown files under a notes root.

    Note ids are posix paths relative to the root without the .md suffix,
    e.g. ``daily/2025/Nov24-Nov30/2025-11-28``.
    """

    def __init__(
        self,
        notes_root: Path,
        daily_title_format: str = "%A, %B %d, %Y",
        week_start_day: str = "monday",
    ):
        self.notes_root = notes_root
        self.daily_title_format = daily_title_format
        self.week_start_day = week_start_day

    def path_for(self, note_id: str) -> Path:
        """Return the file path of a note id."""
        return path_for_note_id(note_id, self.notes_root)

    def note_id_for(self, path: Path) -> str:
        """Return the note id of a file path under the notes root."""
        return note_id_for_path(path, self.notes_root)

    async def resolve_note(self, dt: date) -> str:
        try:
            path = await asyncio.to_thread(
                ensure_daily_note,
                dt,
                self.notes_root,
                self.daily_title_format,
                self.week_start_day,
            )
        except OSError as e:
            raise DestinationUnavailableError(
                f"Could not create note for {dt.isoformat()}: {e}"
            ) from e
        return self.note_id_for(path)

    async def read_lines(self, note_id: str) -> list[str]:
        path = self.path_for(note_id)
        content = await asyncio.to_thread(path.read_text, encoding="utf-8")
        return content.splitlines()

    async def write_lines(self, note_id: str, lines: Sequence[str]) -> None:
        path = self.path_for(note_id)
        content = "\n".join(lines) + "\n"
        await asyncio.to_thread(_atomic_write, path, content)
        logger.debug("Wrote %d lines to %s", len(lines), note_id)

    async def insert_under_header(
        self,
        note_id: str,
        header: str,
        new_line: str,
        blank_line_after_header: bool,
    ) -> int:
        lines = await self.read_lines(note_id)
        new_lines, index = insert_under_header(
            lines, header, new_line, blank_line_after_header
        )
        await self.write_lines(note_id, new_lines)
        return index


def _atomic_write(path: Path, content: str) -> None:
    """Write content to a temporary sibling file, then swap it into place."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
