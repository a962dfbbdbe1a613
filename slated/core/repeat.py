"""Repeat rule parsing, formatting and evaluation."""

from __future__ import annotations

import re
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from slated.core.errors import MalformedTagError
from slated.models import RepeatRule, RepeatUnit
from slated.utils.dates import WEEKDAY_ABBREVIATIONS, weekday_number

# every [N] day(s)|week(s)|month(s) [on mon,fri]
RULE_PATTERN = re.compile(
    r"^every(?:\s+(?P<count>\d+))?\s+(?P<unit>days?|weeks?|months?)"
    r"(?:\s+on\s+(?P<weekdays>[a-z][a-z,\s]*))?$"
)

# every mon,thu
WEEKDAY_RULE_PATTERN = re.compile(r"^every\s+(?P<weekdays>[a-z][a-z,\s]*)$")

SHORTHANDS = {
    "daily": RepeatUnit.DAY,
    "weekly": RepeatUnit.WEEK,
    "monthly": RepeatUnit.MONTH,
}


def _parse_weekdays(text: str) -> frozenset[int]:
    days: set[int] = set()
    for name in re.split(r"[,\s]+", text.strip()):
        if not name:
            continue
        number = weekday_number(name)
        if number is None:
            raise MalformedTagError(f"Unknown weekday in repeat rule: {name!r}")
        days.add(number)
    return frozenset(days)


def parse_repeat_rule(text: str) -> RepeatRule:
    """Parse the text of a @repeat() tag into a RepeatRule.

    Accepts "every day", "every 3 days", "every 2 weeks on mon,thu",
    "every month", "every friday", and the shorthands daily/weekly/monthly.

    Raises:
        MalformedTagError: If the text is not a recognized rule.
    """
    normalized = " ".join(text.strip().lower().split())
    if not normalized:
        raise MalformedTagError("Empty repeat rule")

    if normalized in SHORTHANDS:
        return RepeatRule(unit=SHORTHANDS[normalized])

    match = RULE_PATTERN.match(normalized)
    if match:
        count = int(match.group("count") or 1)
        if count < 1:
            raise MalformedTagError(f"Repeat interval must be at least 1: {text!r}")
        unit = RepeatUnit(match.group("unit").rstrip("s"))
        weekdays = frozenset()
        if match.group("weekdays"):
            if unit != RepeatUnit.WEEK:
                raise MalformedTagError(f"Weekdays only apply to weekly rules: {text!r}")
            weekdays = _parse_weekdays(match.group("weekdays"))
        return RepeatRule(unit=unit, count=count, weekdays=weekdays)

    match = WEEKDAY_RULE_PATTERN.match(normalized)
    if match:
        return RepeatRule(
            unit=RepeatUnit.WEEK, weekdays=_parse_weekdays(match.group("weekdays"))
        )

    raise MalformedTagError(f"Unrecognized repeat rule: {text!r}")


def format_repeat_rule(rule: RepeatRule) -> str:
    """Format a RepeatRule as canonical @repeat() text."""
    unit = rule.unit.value
    if rule.count == 1:
        text = f"every {unit}"
    else:
        text = f"every {rule.count} {unit}s"
    if rule.weekdays:
        names = ",".join(WEEKDAY_ABBREVIATIONS[day] for day in sorted(rule.weekdays))
        text += f" on {names}"
    return text


def next_occurrence(rule: RepeatRule, from_date: date) -> date:
    """Compute the next date a rule fires after from_date.

    - Daily rules add ``count`` days.
    - Weekly rules without weekdays add ``count`` weeks. With a weekday set,
      the result is the earliest matching weekday strictly after from_date;
      when that crosses into a later week, ``count - 1`` extra weeks are added.
    - Monthly rules keep the day of month, clamped to the end of shorter months.

    The result is always strictly after from_date.
    """
    if rule.unit == RepeatUnit.DAY:
        return from_date + timedelta(days=rule.count)

    if rule.unit == RepeatUnit.MONTH:
        # relativedelta clamps Jan 31 + 1 month to Feb 28/29
        return from_date + relativedelta(months=rule.count)

    if not rule.weekdays:
        return from_date + timedelta(weeks=rule.count)

    candidate = from_date + timedelta(days=1)
    while candidate.weekday() not in rule.weekdays:
        candidate += timedelta(days=1)

    week_start = from_date - timedelta(days=from_date.weekday())
    if rule.count > 1 and candidate - week_start >= timedelta(weeks=1):
        candidate += timedelta(weeks=rule.count - 1)
    return candidate
