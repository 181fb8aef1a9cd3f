"""
Boundary parsing of stored rows into domain objects.

Stored rows carry JSON-encoded nested fields (capability categories and
availability entries). They are decoded exactly once here. Corruption is
skipped at the smallest possible granularity: a single capability, a single
availability entry, a single appointment or a single staff member's template.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pendulum
from pendulum import DateTime

from .exceptions import MalformedRecordError
from .models import (
    DEFAULT_MAX_APPOINTMENTS,
    WEEKDAY_NAMES,
    Appointment,
    AvailabilityTemplate,
    StaffMember,
)

logger = logging.getLogger(__name__)


def decode_json_entry(entry: Any) -> Any:
    """Decode a JSON string; already-decoded values pass through."""
    if isinstance(entry, (dict, list)):
        return entry
    if not isinstance(entry, str):
        raise MalformedRecordError(f"Expected a JSON string, got {type(entry).__name__}")
    try:
        return json.loads(entry)
    except ValueError as exc:
        raise MalformedRecordError(f"Invalid JSON: {exc}") from exc


def parse_instant(value: Any) -> DateTime:
    """
    Parse a stored timestamp into a UTC instant.

    Timestamps without an offset are taken to be UTC.
    """
    if isinstance(value, datetime):
        parsed = value if isinstance(value, DateTime) else pendulum.instance(value)
        return parsed.in_timezone("UTC")

    if not isinstance(value, str) or not value.strip():
        raise MalformedRecordError(f"Missing timestamp: {value!r}")

    try:
        parsed = pendulum.parse(value.strip())
    except ValueError as exc:
        raise MalformedRecordError(f"Unparseable timestamp {value!r}: {exc}") from exc

    if not isinstance(parsed, DateTime):
        raise MalformedRecordError(f"Timestamp {value!r} is not a date and time")

    return parsed.in_timezone("UTC")


def parse_capabilities(raw: Any, staff_id: str = "") -> List[str]:
    """Extract capability names from serialized category entries."""
    if not isinstance(raw, list):
        return []

    capabilities: List[str] = []
    for entry in raw:
        try:
            category = decode_json_entry(entry)
        except MalformedRecordError as exc:
            logger.warning("Skipping capability entry for staff %s: %s", staff_id, exc)
            continue

        name = category.get("name") if isinstance(category, dict) else None
        if isinstance(name, str) and name:
            capabilities.append(name)
        else:
            logger.warning("Skipping capability entry without a name for staff %s: %r", staff_id, entry)

    return capabilities


def parse_staff(row: Mapping[str, Any]) -> StaffMember:
    """Build a StaffMember from a roster row."""
    staff_id = row.get("Id")
    if staff_id in (None, ""):
        raise MalformedRecordError(f"Roster row without Id: {row!r}")

    staff_id = str(staff_id)
    return StaffMember(
        staff_id=staff_id,
        name=str(row.get("Name") or ""),
        capabilities=parse_capabilities(row.get("Project_Categories"), staff_id),
    )


def parse_max_appointments(value: Any) -> int:
    """Return the per-day cap; absent, zero, negative or garbage values mean 1."""
    try:
        cap = int(value)
    except (TypeError, ValueError, OverflowError):
        if value is not None:
            logger.warning("Invalid max appointments value %r, using %d", value, DEFAULT_MAX_APPOINTMENTS)
        return DEFAULT_MAX_APPOINTMENTS

    return cap if cap > 0 else DEFAULT_MAX_APPOINTMENTS


def parse_template(row: Mapping[str, Any]) -> Optional[AvailabilityTemplate]:
    """
    Build an AvailabilityTemplate from a stored row.

    Returns None when the row carries no usable availability at all, which
    excludes the staff member from the results.
    """
    staff_id = row.get("User")
    if staff_id in (None, ""):
        logger.warning("Skipping availability row without User: %r", row)
        return None
    staff_id = str(staff_id)

    raw_entries = row.get("Availability_Slots")
    if isinstance(raw_entries, str):
        try:
            raw_entries = decode_json_entry(raw_entries)
        except MalformedRecordError as exc:
            logger.warning("Skipping availability for staff %s: %s", staff_id, exc)
            return None

    if not isinstance(raw_entries, list):
        logger.warning("Availability_Slots is not a list for staff %s: %r", staff_id, raw_entries)
        return None

    days: Dict[str, List[Any]] = {}
    for entry in raw_entries:
        try:
            decoded = decode_json_entry(entry)
        except MalformedRecordError as exc:
            logger.warning("Skipping availability entry for staff %s: %s", staff_id, exc)
            continue

        if not isinstance(decoded, dict):
            logger.warning("Skipping availability entry for staff %s: %r", staff_id, entry)
            continue

        day = decoded.get("day")
        slots = decoded.get("slots")
        if day not in WEEKDAY_NAMES:
            logger.warning("Skipping availability entry with unknown day %r for staff %s", day, staff_id)
            continue
        if not isinstance(slots, list):
            logger.warning("Skipping %s availability with non-list slots for staff %s", day, staff_id)
            continue

        days.setdefault(day, []).extend(slots)

    template = AvailabilityTemplate(
        staff_id=staff_id,
        days=days,
        max_appointments_per_day=parse_max_appointments(row.get("Max_Numbers_Count_of_Appointments")),
    )

    if template.is_empty():
        logger.info("Staff %s has no usable availability entries", staff_id)
        return None

    return template


def parse_appointment(row: Mapping[str, Any]) -> Appointment:
    """
    Build an Appointment from an event row.

    Raises:
        MalformedRecordError: If the start is missing or unparseable, or the
            end precedes the start.
    """
    appointment_id = str(row.get("Id") or "")
    start = parse_instant(row.get("Scheduled_Time"))

    end: Optional[DateTime] = None
    raw_end = row.get("End_Time")
    if raw_end not in (None, ""):
        try:
            end = parse_instant(raw_end)
        except MalformedRecordError as exc:
            logger.warning("Ignoring end time of appointment %s: %s", appointment_id, exc)

    if end is not None and end < start:
        raise MalformedRecordError(
            f"Appointment {appointment_id} ends ({end}) before it starts ({start})"
        )

    return Appointment(
        appointment_id=appointment_id,
        staff_id="" if row.get("Staff") is None else str(row["Staff"]),
        start=start,
        end=end,
    )


def parse_roster(rows: Iterable[Mapping[str, Any]]) -> List[StaffMember]:
    """Parse roster rows, skipping corrupt ones."""
    staff: List[StaffMember] = []
    for row in rows:
        try:
            staff.append(parse_staff(row))
        except MalformedRecordError as exc:
            logger.warning("Skipping roster row: %s", exc)
    return staff


def parse_templates(rows: Iterable[Mapping[str, Any]]) -> Dict[str, AvailabilityTemplate]:
    """Parse availability rows into a staff id -> template map."""
    templates: Dict[str, AvailabilityTemplate] = {}
    for row in rows:
        template = parse_template(row)
        if template is not None and template.staff_id not in templates:
            templates[template.staff_id] = template
    return templates


def parse_appointments(rows: Iterable[Mapping[str, Any]]) -> List[Appointment]:
    """Parse appointment rows, skipping any that cannot take part in conflict checks."""
    appointments: List[Appointment] = []
    for row in rows:
        try:
            appointments.append(parse_appointment(row))
        except MalformedRecordError as exc:
            logger.warning("Skipping appointment %s: %s", row.get("Id"), exc)
    return appointments
