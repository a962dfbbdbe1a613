"""Centralized regex patterns for parsing task lines.

This module consolidates the patterns used for recognizing checkbox lines,
inline metadata tags, wiki-style backlinks and ISO dates.
"""

from __future__ import annotations

import re

# Checkbox list line. Captures: [ ] todo, [x]/[X] done, [-] cancelled, [>] moved
TASK_PATTERN = re.compile(
    r"^(?P<indent>\s*)- \[(?P<state>[ xX>-])\](?: (?P<content>.*))?$"
)

# Inline metadata tag: @name(value), standing alone between whitespace.
# Values may hold one level of nested parens.
TAG_TOKEN_PATTERN = re.compile(
    r"(?<!\S)@(?P<name>[a-zA-Z][a-zA-Z0-9_-]*)"
    r"\((?P<value>[^()]*(?:\([^()]*\)[^()]*)*)\)(?=\s|$)"
)

# Wiki-style backlink: [[note#L12|alias]], anchor and alias optional
BACKLINK_PATTERN = re.compile(
    r"^\[\[(?P<note>[^|\]#]+)(?:#L(?P<line>\d+))?(?:\|(?P<alias>[^\]]+))?\]\]$"
)

# ISO date inside a @due() tag or a note id
ISO_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

# Pattern to detect fenced code blocks
CODE_FENCE_PATTERN = re.compile(r"^\s*```")
