"""
Domain layer - Pure business logic without external dependencies.
"""

from .conflicts import ConflictResolver
from .models import (
    Appointment,
    AvailabilityResponse,
    AvailabilityTemplate,
    CandidateSlot,
    DateWindow,
    DayAvailability,
    StaffAvailability,
    StaffMember,
)
from .slot_calculator import SlotCalculator
from .timezones import TimezoneNormalizer

__all__ = [
    "Appointment",
    "AvailabilityResponse",
    "AvailabilityTemplate",
    "CandidateSlot",
    "ConflictResolver",
    "DateWindow",
    "DayAvailability",
    "SlotCalculator",
    "StaffAvailability",
    "StaffMember",
    "TimezoneNormalizer",
]
