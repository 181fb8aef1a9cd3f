"""
Expansion of declared times of day into buffered candidate instants.

Each declared time produces three candidates: the time itself plus one hour
before and one hour after. The buffer models the minimum gap the sales team
keeps between appointments.
"""

import logging
import re
from datetime import date, time
from typing import Any, Iterable, List, Optional

import pendulum
from pendulum import DateTime

from .models import CandidateSlot

logger = logging.getLogger(__name__)

TIME_OF_DAY_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")

BUFFER_HOURS = 1


def parse_time_of_day(value: Any) -> Optional[time]:
    """
    Parse ``H:MM``, ``HH:MM`` or ``HH:MM:SS`` into a time.

    Returns None for anything else, including out-of-range values such as
    ``25:99``.
    """
    if not isinstance(value, str):
        return None

    match = TIME_OF_DAY_PATTERN.match(value.strip())
    if not match:
        return None

    hour, minute = int(match.group(1)), int(match.group(2))
    second = int(match.group(3) or 0)

    if hour > 23 or minute > 59 or second > 59:
        return None

    return time(hour, minute, second)


def anchor(day: date, time_of_day: time, timezone: str) -> DateTime:
    """Place a time of day on a calendar date in the given timezone."""
    return pendulum.datetime(
        day.year,
        day.month,
        day.day,
        time_of_day.hour,
        time_of_day.minute,
        time_of_day.second,
        tz=timezone,
    )


def expand_time(day: date, time_of_day: time, timezone: str) -> List[CandidateSlot]:
    """
    Return the anchor and its two buffer siblings.

    Hour arithmetic is exact elapsed time, so the siblings roll across
    midnight and daylight-saving transitions.
    """
    base = anchor(day, time_of_day, timezone)
    return [
        CandidateSlot(instant=base.subtract(hours=BUFFER_HOURS), time_of_day=time_of_day, offset_hours=-BUFFER_HOURS),
        CandidateSlot(instant=base, time_of_day=time_of_day, offset_hours=0),
        CandidateSlot(instant=base.add(hours=BUFFER_HOURS), time_of_day=time_of_day, offset_hours=BUFFER_HOURS),
    ]


def expand_slots(times: Iterable[Any], day: date, timezone: str) -> List[CandidateSlot]:
    """
    Expand every valid declared time for ``day`` into candidate slots.

    Invalid entries are dropped with a warning; the remaining entries are
    still expanded. The result is sorted chronologically.
    """
    candidates: List[CandidateSlot] = []

    for value in times:
        time_of_day = parse_time_of_day(value)
        if time_of_day is None:
            logger.warning("Invalid time string format: %r", value)
            continue

        candidates.extend(expand_time(day, time_of_day, timezone))

    return sorted(candidates, key=lambda candidate: candidate.instant)


def render_time_of_day(instant: DateTime, timezone: str) -> str:
    """Render an instant as ``HH:MM:SS`` wall-clock time in the timezone."""
    return instant.in_timezone(timezone).format("HH:mm:ss")
