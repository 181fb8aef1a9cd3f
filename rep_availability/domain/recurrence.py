"""
Recurrence expansion: turns a requested window into concrete calendar dates
tagged with the weekday names used by the weekly availability templates.
"""

import re
from datetime import date
from typing import List, Tuple

import pendulum
from pendulum import DateTime

from .exceptions import InvalidDateError
from .models import WEEKDAY_NAMES, DateWindow

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def weekday_name(day: date) -> str:
    """Return the canonical English weekday name for a date."""
    return WEEKDAY_NAMES[day.weekday()]


def current_week(as_of: DateTime, timezone: str) -> DateWindow:
    """
    Return the Monday-to-Sunday week containing ``as_of``.

    The week is computed in the organizational timezone, so an instant late on
    Sunday in UTC may already belong to the next week locally.
    """
    local = as_of.in_timezone(timezone)
    return DateWindow(start=local.start_of("week"), end=local.end_of("week"))


def parse_day(value: str, timezone: str) -> DateTime:
    """
    Parse a strict ``YYYY-MM-DD`` string into the start of that day.

    Raises:
        InvalidDateError: If the string does not match the pattern or is not
            a real calendar date.
    """
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise InvalidDateError(f"Invalid date '{value}'. Expected format YYYY-MM-DD.")

    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=timezone).start_of("day")
    except ValueError as exc:
        raise InvalidDateError(f"Invalid date '{value}': {exc}") from exc


def single_day(value: str, timezone: str) -> DateWindow:
    """Return the window covering one explicit calendar date."""
    start = parse_day(value, timezone)
    return DateWindow(start=start, end=start.end_of("day"))


def expand_window(window: DateWindow) -> List[Tuple[date, str]]:
    """Expand a window into ordered ``(date, weekday name)`` markers."""
    return [(day, weekday_name(day)) for day in window.days()]
