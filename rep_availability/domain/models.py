"""
Domain models for availability windows, templates, appointments and results.
"""

from dataclasses import dataclass, field
from datetime import time
from typing import Any, Dict, List, Optional

from pendulum import Date, DateTime

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

DEFAULT_MAX_APPOINTMENTS = 1


@dataclass(frozen=True)
class DateWindow:
    """
    An immutable window of calendar time expressed in the organizational timezone.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    @property
    def timezone_name(self) -> str:
        return self.start.timezone_name

    def contains_day(self, day: Date) -> bool:
        """Check whether a calendar date lies inside the window."""
        return self.start.date() <= day <= self.end.date()

    def days(self) -> List[Date]:
        """Return every calendar date touched by the window, in order."""
        days: List[Date] = []
        current = self.start.start_of("day")

        while current <= self.end:
            days.append(current.date())
            current = current.add(days=1)

        return days

    def to_utc(self) -> "DateWindow":
        """Return the same window with both bounds converted to UTC."""
        return DateWindow(start=self.start.in_timezone("UTC"), end=self.end.in_timezone("UTC"))

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('YYYY-MM-DD HH:mm')}"


@dataclass(frozen=True)
class StaffMember:
    """A read-only snapshot of a sales rep taken from the roster."""
    staff_id: str
    name: str
    capabilities: List[str] = field(default_factory=list)


@dataclass
class AvailabilityTemplate:
    """
    Recurring weekly availability for one staff member.

    ``days`` maps canonical weekday names to the declared time-of-day strings.
    """
    staff_id: str
    days: Dict[str, List[str]] = field(default_factory=dict)
    max_appointments_per_day: int = DEFAULT_MAX_APPOINTMENTS

    def slots_for(self, weekday: str) -> List[str]:
        """Return the declared time-of-day strings for a weekday (empty if none)."""
        return list(self.days.get(weekday, []))

    def is_empty(self) -> bool:
        return not any(self.days.values())


@dataclass(frozen=True)
class Appointment:
    """
    A booked appointment. Instants are stored in UTC.

    An appointment without ``end`` is a single-point event.
    """
    appointment_id: str
    staff_id: str
    start: DateTime
    end: Optional[DateTime] = None


@dataclass(frozen=True)
class CandidateSlot:
    """
    A concrete, bookable-if-free instant derived from a template entry.

    ``offset_hours`` is -1, 0 or +1 relative to the declared time of day.
    """
    instant: DateTime
    time_of_day: time
    offset_hours: int = 0

    @property
    def day(self) -> Date:
        return self.instant.date()


@dataclass
class DayAvailability:
    """Free time-of-day strings for one calendar day."""
    day: Date
    slots: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"day": self.day.isoformat(), "slots": list(self.slots)}


@dataclass
class StaffAvailability:
    """Availability of one staff member over the requested window."""
    staff_id: str
    staff_name: str
    capabilities: List[str] = field(default_factory=list)
    availability: List[DayAvailability] = field(default_factory=list)

    def has_slots(self) -> bool:
        return any(day.slots for day in self.availability)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "staffId": self.staff_id,
            "staffName": self.staff_name,
            "capabilities": list(self.capabilities),
            "availability": [day.to_dict() for day in self.availability],
        }


@dataclass
class AvailabilityResponse:
    """Envelope returned to the transport layer."""
    success: bool
    message: str
    data: List[StaffAvailability] = field(default_factory=list)

    FOUND_MESSAGE = "Availability slots retrieved successfully"
    EMPTY_MESSAGE = "No availability slots found"

    @classmethod
    def from_results(cls, results: List[StaffAvailability]) -> "AvailabilityResponse":
        """Build a successful response whose message reflects whether any slot is free."""
        found = any(staff.has_slots() for staff in results)
        message = cls.FOUND_MESSAGE if found else cls.EMPTY_MESSAGE
        return cls(success=True, message=message, data=results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "data": [staff.to_dict() for staff in self.data],
        }
