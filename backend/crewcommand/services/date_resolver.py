"""
Relative date resolution for spoken commands.

Every phrase is resolved against the caller's local date, never the server
clock. "This week" runs from today through Saturday, the last scheduled
workday, and a Sunday starts a fresh week. "Next week" is the Monday through
Sunday span that follows it, so the two never share a day.
"""

import re
from datetime import date, timedelta
from typing import Iterable, List, Optional

from crewcommand.exceptions import ValidationError

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def next_weekday(today: date, weekday: int) -> date:
    """Next occurrence of weekday strictly after today"""
    days_ahead = weekday - today.weekday()
    if days_ahead <= 0:
        days_ahead += 7
    return today + timedelta(days=days_ahead)


def resolve_dates(phrase: str, today: date) -> List[date]:
    """
    Expand a spoken date phrase into concrete calendar dates.

    Args:
        phrase: "today", "tomorrow", "Monday", "next week", "2026-01-15", ...
        today: The caller's local date

    Returns:
        One or more dates in chronological order

    Raises:
        ValidationError: If the phrase is not recognized
    """
    normalized = (phrase or "").strip().lower()

    if not normalized:
        raise ValidationError("No date provided")

    if normalized == "today":
        return [today]

    if normalized == "tomorrow":
        return [today + timedelta(days=1)]

    if normalized == "yesterday":
        return [today - timedelta(days=1)]

    for index, name in enumerate(WEEKDAYS):
        if name in normalized:
            return [next_weekday(today, index)]

    if "next week" in normalized:
        # On Sunday "this week" already covers the coming Monday to Saturday
        monday = today + timedelta(days=8 - (today.weekday() + 1) % 7)
        return [monday + timedelta(days=i) for i in range(7)]

    if "this week" in normalized or "rest of" in normalized:
        # Sunday counts as the start of a fresh week
        days_left = 7 - ((today.weekday() + 1) % 7)
        return [today + timedelta(days=i) for i in range(days_left)]

    if ISO_DATE_PATTERN.match(normalized):
        try:
            return [date.fromisoformat(normalized)]
        except ValueError:
            raise ValidationError(f'"{phrase}" is not a valid calendar date')

    raise ValidationError(f'Could not understand the date "{phrase}"')


def resolve_single_date(phrase: Optional[str], today: date, default: str = "today") -> date:
    """
    Resolve a phrase that must name one day, using the first date of a range.

    A missing phrase falls back to `default` ("today" for queries,
    "tomorrow" for creation-style actions).
    """
    return resolve_dates(phrase or default, today)[0]


def resolve_date_list(phrases: Optional[Iterable[str]], today: date, default: str = "tomorrow") -> List[date]:
    """
    Resolve several phrases into one ordered list of distinct dates.

    Order follows the phrases as spoken; duplicates keep their first position.
    """
    phrases = [p for p in (phrases or []) if p and p.strip()]
    if not phrases:
        phrases = [default]

    resolved: List[date] = []
    for phrase in phrases:
        for day in resolve_dates(phrase, today):
            if day not in resolved:
                resolved.append(day)
    return resolved
