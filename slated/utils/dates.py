"""Date parsing and formatting utilities."""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import date, timedelta

from dateutil import parser as dateutil_parser
from dateutil.relativedelta import FR, MO, SA, SU, TH, TU, WE, relativedelta, weekday

from slated.utils.patterns import ISO_DATE_PATTERN

# Weekday name to dateutil weekday constant
WEEKDAYS: dict[str, weekday] = {
    "monday": MO,
    "tuesday": TU,
    "wednesday": WE,
    "thursday": TH,
    "friday": FR,
    "saturday": SA,
    "sunday": SU,
    "mon": MO,
    "tue": TU,
    "wed": WE,
    "thu": TH,
    "fri": FR,
    "sat": SA,
    "sun": SU,
}

# Short names used when writing weekday sets back out, indexed by date.weekday()
WEEKDAY_ABBREVIATIONS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

# Named date shortcuts
NAMED_DATES: dict[str, Callable[[], date]] = {
    "today": lambda: date.today(),
    "yesterday": lambda: date.today() - timedelta(days=1),
    "tomorrow": lambda: date.today() + timedelta(days=1),
}


def weekday_number(name: str) -> int | None:
    """Return the date.weekday() number for a weekday name, or None."""
    wd = WEEKDAYS.get(name.strip().lower())
    if wd is None:
        return None
    return wd.weekday


def parse_fuzzy_date(text: str) -> date | None:
    """Parse a fuzzy date expression into a date object.

    Supports:
    - Named dates: "today", "yesterday", "tomorrow"
    - Weekday names: "friday", "next friday", "last monday"
    - Relative: "next week", "last week", "+3" (days from today)
    - Natural language: "nov 20", "november 20 2025"
    - ISO format: "2025-11-20"

    Bare weekday names mean the most recent occurrence (past or today).
    Returns None if parsing fails.
    """
    return _parse_date(text, future=False)


def parse_fuzzy_date_future(text: str) -> date | None:
    """Parse a fuzzy date expression with weekday names defaulting to NEXT occurrence.

    Unlike parse_fuzzy_date(), bare weekday names like "friday" return
    the next Friday (or today, if today is Friday). This is the natural
    reading when picking where a task should move to.
    """
    return _parse_date(text, future=True)


def _parse_date(text: str, future: bool) -> date | None:
    if not text:
        return None

    text = text.strip().lower()
    if not text:
        return None

    # Check named dates first
    if text in NAMED_DATES:
        return NAMED_DATES[text]()

    # Relative day offsets: +7
    offset_match = re.match(r"^\+(\d+)$", text)
    if offset_match:
        return date.today() + timedelta(days=int(offset_match.group(1)))

    # Handle "next week" / "last week"
    if text == "next week":
        return date.today() + timedelta(weeks=1)
    if text == "last week":
        return date.today() - timedelta(weeks=1)

    # Handle weekday names (with optional "next" or "last" prefix)
    next_match = re.match(r"^next\s+(\w+)$", text)
    last_match = re.match(r"^last\s+(\w+)$", text)

    if next_match and next_match.group(1) in WEEKDAYS:
        wd = WEEKDAYS[next_match.group(1)]
        return date.today() + relativedelta(days=1, weekday=wd(+1))

    if last_match and last_match.group(1) in WEEKDAYS:
        wd = WEEKDAYS[last_match.group(1)]
        return date.today() + relativedelta(days=-1, weekday=wd(-1))

    if text in WEEKDAYS:
        wd = WEEKDAYS[text]
        # relativedelta(weekday=X(+1)) returns today when today is X
        direction = +1 if future else -1
        return date.today() + relativedelta(weekday=wd(direction))

    # Try dateutil parser for everything else
    try:
        parsed = dateutil_parser.parse(text, fuzzy=True, dayfirst=False)
        return parsed.date()
    except (ValueError, TypeError, OverflowError):
        pass

    return None


def parse_iso_date(text: str) -> date | None:
    """Parse a strict YYYY-MM-DD date, returning None on anything else."""
    match = ISO_DATE_PATTERN.match(text.strip())
    if not match:
        return None
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return None


def parse_date_from_filename(filename: str) -> date | None:
    """Extract date from YYYY-MM-DD pattern in filename.

    Example: "2025-11-26.md" -> date(2025, 11, 26)
    """
    match = re.search(r"(\d{4})-(\d{2})-(\d{2})", filename)
    if match:
        try:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError:
            pass
    return None


def get_week_range(dt: date | None = None, week_start_day: str = "monday") -> tuple[date, date]:
    """Get the start and end of the week containing dt.

    Args:
        dt: The date to get the week for (defaults to today).
        week_start_day: First day of week ("monday" or "sunday").

    Returns:
        Tuple of (start_date, end_date) for the week.
    """
    if dt is None:
        dt = date.today()

    if week_start_day == "sunday":
        # Sunday = 6, so we need (dt.weekday() + 1) % 7 days back
        days_since_sunday = (dt.weekday() + 1) % 7
        start = dt - timedelta(days=days_since_sunday)
    else:
        start = dt - timedelta(days=dt.weekday())

    end = start + timedelta(days=6)
    return start, end


def get_week_folder_name(dt: date | None = None, week_start_day: str = "monday") -> str:
    """Get the week folder name for a date (e.g., 'Nov24-Nov30')."""
    if dt is None:
        dt = date.today()
    start, end = get_week_range(dt, week_start_day)
    return f"{start.strftime('%b%d')}-{end.strftime('%b%d')}"
