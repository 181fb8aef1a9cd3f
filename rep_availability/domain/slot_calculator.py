"""
Core business logic for calculating available appointment slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

import logging
from typing import Dict, Iterable, List, Mapping

from .aggregator import AvailabilityAggregator
from .conflicts import ConflictResolver
from .models import Appointment, AvailabilityTemplate, DateWindow, StaffAvailability, StaffMember
from .recurrence import expand_window
from .slot_expander import expand_slots
from .timezones import TimezoneNormalizer

logger = logging.getLogger(__name__)


class SlotCalculator:
    """
    Calculates free appointment slots per staff member.

    Algorithm:
    1. Expand the requested window into calendar dates with weekday names
    2. For each staff member with a template, look up the weekday's declared times
    3. Expand each declared time into the time itself plus one hour either side
    4. Drop the whole day if the staff member's appointment cap is reached,
       otherwise drop every candidate an appointment conflicts with
    5. Aggregate the rest per staff member, filtered to the window and sorted
    """

    def __init__(self, normalizer: TimezoneNormalizer):
        self.normalizer = normalizer

    @property
    def timezone(self) -> str:
        return self.normalizer.timezone

    def find_available_slots(
        self,
        window: DateWindow,
        staff: Iterable[StaffMember],
        templates: Mapping[str, AvailabilityTemplate],
        appointments: Iterable[Appointment],
    ) -> List[StaffAvailability]:
        """
        Find free slots for every staff member that has a template.

        Args:
            window: Requested window in the organizational timezone
            staff: Roster snapshot
            templates: Staff id -> weekly availability template
            appointments: Booked appointments for the roster, any staff member

        Returns:
            List of StaffAvailability in roster order
        """
        appointments_by_staff = self._group_appointments(appointments)
        marked_days = expand_window(window)
        aggregator = AvailabilityAggregator(window=window, timezone=self.timezone)

        for member in staff:
            template = templates.get(member.staff_id)
            if template is None:
                logger.debug("No availability template for staff %s", member.staff_id)
                continue

            aggregator.register(member)
            resolver = ConflictResolver(
                appointments=appointments_by_staff.get(member.staff_id, []),
                max_appointments_per_day=template.max_appointments_per_day,
                normalizer=self.normalizer,
            )

            for day, weekday in marked_days:
                if weekday not in template.days:
                    continue

                declared = template.slots_for(weekday)

                candidates = expand_slots(declared, day, self.timezone)
                free = resolver.free_slots(day, candidates)
                logger.debug(
                    "Staff %s on %s (%s): %d candidate(s), %d free",
                    member.staff_id,
                    day,
                    weekday,
                    len(candidates),
                    len(free),
                )
                aggregator.add_day(member, day, free)

        return aggregator.results()

    @staticmethod
    def _group_appointments(appointments: Iterable[Appointment]) -> Dict[str, List[Appointment]]:
        grouped: Dict[str, List[Appointment]] = {}
        for appointment in appointments:
            grouped.setdefault(appointment.staff_id, []).append(appointment)
        return grouped
