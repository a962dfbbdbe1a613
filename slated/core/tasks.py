"""Task line parsing and serialization for slated.

A task line is a markdown checkbox item with optional inline metadata tags::

    - [ ] Buy milk @due(2025-12-01) @repeat(every week) @from([[daily/2025-11-24#L7|Origin]])

Parsing never raises. Lines that are not checkbox items yield ``None``, and
tags that cannot be decoded are carried through untouched in
``Task.extra_tags``.
"""

from __future__ import annotations

from datetime import date

from slated.core.errors import MalformedTagError
from slated.core.repeat import format_repeat_rule, parse_repeat_rule
from slated.models import Location, RepeatRule, Task, TaskRef, TaskStatus
from slated.utils.dates import parse_date_from_filename, parse_iso_date
from slated.utils.patterns import BACKLINK_PATTERN, TAG_TOKEN_PATTERN, TASK_PATTERN

DUE_TAG = "due"
REPEAT_TAG = "repeat"
BACKLINK_TAG = "from"

ORIGIN_ALIAS = "Origin"


def is_task(line: str) -> bool:
    """Check whether a raw line is a checkbox task line."""
    return TASK_PATTERN.match(line) is not None


def clean_task_text(content: str) -> str:
    """Remove all @tag(...) tokens from content and collapse whitespace."""
    content = TAG_TOKEN_PATTERN.sub("", content)
    return " ".join(content.split())


def parse_backlink(text: str) -> TaskRef | None:
    """Parse a [[note#L12|alias]] link into a TaskRef."""
    match = BACKLINK_PATTERN.match(text.strip())
    if not match:
        return None
    line = match.group("line")
    if line is not None and int(line) < 1:
        return None
    return TaskRef(
        note=match.group("note").strip(),
        line=int(line) - 1 if line is not None else None,
        alias=match.group("alias"),
    )


def format_backlink(ref: TaskRef) -> str:
    """Render a TaskRef as a wiki link."""
    target = ref.note
    if ref.line is not None:
        target += f"#L{ref.line + 1}"
    if ref.alias:
        target += f"|{ref.alias}"
    return f"[[{target}]]"


def _decode_tag(name: str, value: str) -> date | RepeatRule | TaskRef:
    """Decode a known tag value, raising MalformedTagError when it can't be."""
    if name == DUE_TAG:
        parsed = parse_iso_date(value)
        if parsed is None:
            raise MalformedTagError(f"Invalid due date: {value!r}")
        return parsed
    if name == REPEAT_TAG:
        return parse_repeat_rule(value)
    ref = parse_backlink(value)
    if ref is None:
        raise MalformedTagError(f"Invalid backlink: {value!r}")
    return ref


def parse_task_line(
    line: str,
    line_index: int = 0,
    note_id: str | None = None,
    note_date: date | None = None,
) -> Task | None:
    """Parse a raw line into a Task.

    Args:
        line: The raw text of the line.
        line_index: 0-based index of the line within its note.
        note_id: Identifier of the note the line lives in.
        note_date: Date of the note, used as the due date of repeating tasks
            that carry no @due() tag. Falls back to a date in the note id.

    Returns:
        The parsed Task, or None if the line is not a task.
    """
    match = TASK_PATTERN.match(line)
    if not match:
        return None

    status = TaskStatus.from_marker(match.group("state"))
    content = (match.group("content") or "").strip()
    location = Location(note_id, line_index) if note_id is not None else None

    if status == TaskStatus.MOVED:
        # Moved stubs hold only a backlink; no tags are read from them
        target = parse_backlink(content)
        return Task(
            status=status,
            text=format_backlink(target) if target is not None else content,
            backlink=target,
            indent=match.group("indent"),
            location=location,
            raw=line,
        )

    due_date: date | None = None
    repeat_rule: RepeatRule | None = None
    backlink: TaskRef | None = None
    extra_tags: list[str] = []

    for tag in TAG_TOKEN_PATTERN.finditer(content):
        name = tag.group("name").lower()
        already_set = (
            (name == DUE_TAG and due_date is not None)
            or (name == REPEAT_TAG and repeat_rule is not None)
            or (name == BACKLINK_TAG and backlink is not None)
        )
        if name not in (DUE_TAG, REPEAT_TAG, BACKLINK_TAG) or already_set:
            extra_tags.append(tag.group(0))
            continue
        try:
            value = _decode_tag(name, tag.group("value"))
        except MalformedTagError:
            extra_tags.append(tag.group(0))
            continue
        if isinstance(value, RepeatRule):
            repeat_rule = value
        elif isinstance(value, TaskRef):
            backlink = value
        else:
            due_date = value

    if repeat_rule is not None and due_date is None:
        if note_date is None and note_id is not None:
            note_date = parse_date_from_filename(note_id)
        due_date = note_date

    return Task(
        status=status,
        text=clean_task_text(content),
        due_date=due_date,
        repeat_rule=repeat_rule,
        backlink=backlink,
        extra_tags=tuple(extra_tags),
        indent=match.group("indent"),
        location=location,
        raw=line,
    )


def serialize_task(task: Task) -> str:
    """Render a Task back to its raw line.

    Tags are written in a fixed order: @due, @repeat and @from, followed by
    any unknown tags in the order they appeared.
    """
    prefix = f"{task.indent}- [{task.status.marker}]"

    if task.status == TaskStatus.MOVED:
        body = format_backlink(task.backlink) if task.backlink else task.text
        return f"{prefix} {body}".rstrip()

    parts = [task.text] if task.text else []
    if task.due_date is not None:
        parts.append(f"@{DUE_TAG}({task.due_date.isoformat()})")
    if task.repeat_rule is not None:
        parts.append(f"@{REPEAT_TAG}({format_repeat_rule(task.repeat_rule)})")
    if task.backlink is not None:
        parts.append(f"@{BACKLINK_TAG}({format_backlink(task.backlink)})")

    parts.extend(task.extra_tags)

    if not parts:
        return prefix
    return f"{prefix} {' '.join(parts)}"


def make_moved_stub(destination: TaskRef, indent: str = "") -> Task:
    """Build the MOVED placeholder left behind at a relocated task's origin."""
    return Task(
        status=TaskStatus.MOVED,
        text=format_backlink(destination),
        backlink=destination,
        indent=indent,
    )


def locate_task_line(
    lines: list[str],
    expected_index: int,
    expected_line: str,
    search_radius: int = 10,
) -> int | None:
    """Find the current index of a task line, searching near where it was.

    When a note is edited, stored line indexes go stale. This checks the
    expected index first and then searches nearby lines, alternating above
    and below, for an identical line.

    Returns:
        0-based index where the line was found, or None if not found.
    """
    if 0 <= expected_index < len(lines) and lines[expected_index] == expected_line:
        return expected_index

    for offset in range(1, search_radius + 1):
        for candidate in (expected_index - offset, expected_index + offset):
            if 0 <= candidate < len(lines) and lines[candidate] == expected_line:
                return candidate

    return None
