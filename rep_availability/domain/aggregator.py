"""
Assembly of per-staff, per-day free slots into the response structure.
"""

from datetime import date
from typing import Dict, Iterable, List

from .models import CandidateSlot, DateWindow, DayAvailability, StaffAvailability, StaffMember
from .slot_expander import render_time_of_day


class AvailabilityAggregator:
    """
    Collects free slots and produces the ordered availability list.

    Staff members are kept in the order they are registered. Every registered
    staff member appears in the output, with an empty availability list when
    no day qualified.
    """

    def __init__(self, window: DateWindow, timezone: str):
        self.window = window
        self.timezone = timezone
        self._staff: Dict[str, StaffAvailability] = {}

    def register(self, staff: StaffMember) -> StaffAvailability:
        """Ensure a staff member has an entry and return it."""
        if staff.staff_id not in self._staff:
            self._staff[staff.staff_id] = StaffAvailability(
                staff_id=staff.staff_id,
                staff_name=staff.name,
                capabilities=list(staff.capabilities),
            )
        return self._staff[staff.staff_id]

    def add_day(self, staff: StaffMember, day: date, free: Iterable[CandidateSlot]) -> None:
        """Record the free candidates of one day, rendered as ``HH:MM:SS``."""
        slots: List[str] = []
        for candidate in free:
            rendered = render_time_of_day(candidate.instant, self.timezone)
            if rendered not in slots:
                slots.append(rendered)

        self.register(staff).availability.append(DayAvailability(day=day, slots=slots))

    def results(self) -> List[StaffAvailability]:
        """Return entries with days filtered to the window and sorted chronologically."""
        results: List[StaffAvailability] = []

        for entry in self._staff.values():
            days = sorted(
                (day for day in entry.availability if self.window.contains_day(day.day)),
                key=lambda day: day.day,
            )
            results.append(
                StaffAvailability(
                    staff_id=entry.staff_id,
                    staff_name=entry.staff_name,
                    capabilities=list(entry.capabilities),
                    availability=days,
                )
            )

        return results
