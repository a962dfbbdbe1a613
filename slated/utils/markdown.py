"""Markdown and frontmatter utilities."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

import frontmatter
import yaml

from slated.utils.dates import parse_date_from_filename


def parse_note_text(text: str) -> tuple[dict[str, Any], str]:
    """Split note text into (frontmatter_dict, body_content).

    If no frontmatter exists, returns an empty dict and the full content.
    """
    post = frontmatter.loads(text)
    return dict(post.metadata), post.content


def extract_date(meta: dict[str, Any], name: str) -> date | None:
    """Extract the date of a note from frontmatter, falling back to its name."""
    if "date" in meta:
        value = meta["date"]
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            parsed = parse_date_from_filename(value)
            if parsed:
                return parsed

    return parse_date_from_filename(name)


def generate_frontmatter(meta: dict[str, Any]) -> str:
    """Generate YAML frontmatter string from a dictionary."""
    if not meta:
        return ""

    yaml_str = yaml.safe_dump(meta, default_flow_style=False, sort_keys=False)
    return f"---\n{yaml_str}---\n\n"


def create_daily_note_template(dt: date, title_format: str = "%A, %B %d, %Y") -> str:
    """Generate a template for daily notes."""
    meta = {"date": dt.isoformat()}
    content = generate_frontmatter(meta)
    content += f"# {dt.strftime(title_format)}\n"
    return content


def note_date_from_lines(lines: list[str], note_id: str) -> date | None:
    """Work out the date a note belongs to from its frontmatter or its id."""
    try:
        meta, _ = parse_note_text("\n".join(lines))
    except yaml.YAMLError:
        meta = {}
    return extract_date(meta, note_id)
