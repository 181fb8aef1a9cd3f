"""
Conflict resolution between candidate slots and booked appointments.

All comparisons happen in the organizational timezone. The rules are
asymmetric for multi-day appointments: the first day is blocked
from the start time onwards (inclusive), the last day up to the end time
(exclusive), and every day in between is blocked entirely.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from pendulum import DateTime

from .models import Appointment, CandidateSlot, DEFAULT_MAX_APPOINTMENTS
from .timezones import TimezoneNormalizer

logger = logging.getLogger(__name__)

# Single-point appointments block slots whose wall-clock hour is within this
# many hours of the appointment's hour. Minutes are ignored.
HOUR_BAND = 1


@dataclass(frozen=True)
class LocalAppointment:
    """An appointment with its instants converted to the organizational timezone."""
    appointment_id: str
    start: DateTime
    end: Optional[DateTime] = None

    @property
    def is_multi_day(self) -> bool:
        return self.end is not None and self.end.date() > self.start.date()


def within_hour_band(slot: DateTime, start: DateTime) -> bool:
    """Literal hour-bucket comparison on the same calendar date."""
    return slot.date() == start.date() and abs(slot.hour - start.hour) <= HOUR_BAND


def slot_conflicts(slot: DateTime, appointment: LocalAppointment) -> bool:
    """
    Decide whether a localized slot instant collides with an appointment.

    The slot's own calendar date is used, so a buffer sibling that rolled past
    midnight is judged on the date it actually falls on.
    """
    start, end = appointment.start, appointment.end

    if end is None:
        return within_hour_band(slot, start)

    if not appointment.is_multi_day:
        return within_hour_band(slot, start) or start <= slot < end

    slot_day = slot.date()
    start_day, end_day = start.date(), end.date()

    if start_day < slot_day < end_day:
        return True
    if slot_day == start_day:
        return slot.time() >= start.time()
    if slot_day == end_day:
        return slot.time() < end.time()
    return False


class ConflictResolver:
    """
    Filters one staff member's candidate slots against their appointments.

    Usage:
        resolver = ConflictResolver(appointments, max_appointments_per_day=2, normalizer=tz)
        free = resolver.free_slots(day, candidates)
    """

    def __init__(
        self,
        appointments: Iterable[Appointment],
        max_appointments_per_day: int = DEFAULT_MAX_APPOINTMENTS,
        normalizer: Optional[TimezoneNormalizer] = None,
    ):
        self.normalizer = normalizer or TimezoneNormalizer()
        self.max_appointments_per_day = max_appointments_per_day
        self.appointments: List[LocalAppointment] = [
            LocalAppointment(
                appointment_id=appointment.appointment_id,
                start=self.normalizer.to_org(appointment.start),
                end=self.normalizer.to_org(appointment.end) if appointment.end is not None else None,
            )
            for appointment in appointments
        ]

    def appointments_on(self, day: date) -> int:
        """Count appointments starting on ``day`` in the organizational timezone."""
        return sum(1 for appointment in self.appointments if appointment.start.date() == day)

    def is_capped(self, day: date) -> bool:
        """True when the day's appointment count has reached the per-day cap."""
        return self.appointments_on(day) >= self.max_appointments_per_day

    def is_blocked(self, candidate: CandidateSlot) -> bool:
        slot = self.normalizer.to_org(candidate.instant)
        for appointment in self.appointments:
            if slot_conflicts(slot, appointment):
                logger.debug(
                    "Slot %s conflicts with appointment %s",
                    slot.to_datetime_string(),
                    appointment.appointment_id,
                )
                return True
        return False

    def free_slots(self, day: date, candidates: Iterable[CandidateSlot]) -> List[CandidateSlot]:
        """
        Return the candidates for ``day`` that no appointment blocks.

        A capped day yields nothing regardless of individual conflicts.
        """
        if self.is_capped(day):
            logger.debug(
                "Day %s capped: %d appointment(s), max %d",
                day,
                self.appointments_on(day),
                self.max_appointments_per_day,
            )
            return []

        return [candidate for candidate in candidates if not self.is_blocked(candidate)]
