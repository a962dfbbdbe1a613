"""Read-only rendering of notes with moved tasks shown as arrows.

A moved stub's list item text always starts with the fixed-width prefix
``MOVED_PREFIX``. Renderers cut exactly that many characters and put an icon
in front of what remains, so the stub serializer must never change it.
"""

from __future__ import annotations

from collections.abc import Iterator

from slated.utils.patterns import TASK_PATTERN

MOVED_PREFIX = "[>] "
MOVED_ICON = "↪"

LIST_MARKER = "- "


def strip_moved_prefix(text: str) -> str:
    """Strip the moved prefix from list item text, if present."""
    if text.startswith(MOVED_PREFIX):
        return text[len(MOVED_PREFIX) :]
    return text


def render_note_lines(lines: list[str], icon: str = MOVED_ICON) -> Iterator[str]:
    """Yield display lines, replacing moved-stub prefixes with an icon.

    All other lines are yielded unchanged.
    """
    for line in lines:
        match = TASK_PATTERN.match(line)
        if not match or match.group("state") != ">":
            yield line
            continue

        indent = match.group("indent")
        item_text = line[len(indent) + len(LIST_MARKER) :]
        yield f"{indent}{LIST_MARKER}{icon} {strip_moved_prefix(item_text)}"
