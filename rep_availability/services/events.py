"""
CRUD operations over appointment events.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol

import pendulum

from ..domain.exceptions import EventNotFoundError, EventValidationError, MalformedRecordError
from ..domain.records import parse_instant

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

REQUIRED_FIELDS = ("Event_Type", "Scheduled_Time", "Status")


class EventStoreProtocol(Protocol):
    """Protocol describing the event persistence behaviour needed by the service."""

    async def list_events(self) -> List[Row]:
        """Return every stored event."""

    async def get_event(self, event_id: str) -> Optional[Row]:
        """Return one event, or None when it does not exist."""

    async def insert_event(self, payload: Mapping[str, Any]) -> Row:
        """Store a new event and return the stored row."""

    async def update_event(self, event_id: str, changes: Mapping[str, Any]) -> Optional[Row]:
        """Apply changes and return the updated row, or None when it does not exist."""

    async def delete_event(self, event_id: str) -> Optional[Row]:
        """Delete an event and return the deleted row, or None when it does not exist."""


def validate_times(payload: Mapping[str, Any]) -> None:
    """
    Check that the event's timestamps parse and are in order.

    Raises:
        EventValidationError: If Scheduled_Time or End_Time is unparseable,
            or End_Time precedes Scheduled_Time.
    """
    start = end = None
    try:
        if payload.get("Scheduled_Time") is not None:
            start = parse_instant(payload["Scheduled_Time"])
        if payload.get("End_Time") not in (None, ""):
            end = parse_instant(payload["End_Time"])
    except MalformedRecordError as exc:
        raise EventValidationError(str(exc)) from exc

    if start is not None and end is not None and end < start:
        raise EventValidationError("End_Time must not be before Scheduled_Time")


class EventService:
    """Validates and forwards event operations to the event store."""

    def __init__(self, store: EventStoreProtocol) -> None:
        self._store = store

    async def create(self, payload: Mapping[str, Any]) -> Row:
        """
        Create an event.

        Raises:
            EventValidationError: If a required field is missing or the
                timestamps are invalid.
        """
        missing = [name for name in REQUIRED_FIELDS if not payload.get(name)]
        if missing:
            raise EventValidationError(f"{', '.join(REQUIRED_FIELDS)} are required (missing: {', '.join(missing)})")

        validate_times(payload)
        created = await self._store.insert_event(dict(payload))
        logger.info("Created event %s", created.get("Id"))
        return created

    async def list(self) -> List[Row]:
        return await self._store.list_events()

    async def get(self, event_id: str) -> Row:
        event = await self._store.get_event(self._require_id(event_id))
        if event is None:
            raise EventNotFoundError(f"Event not found: {event_id}")
        return event

    async def update(self, event_id: str, changes: Mapping[str, Any]) -> Row:
        """
        Update an event and stamp ``Updated_At``.

        Raises:
            EventValidationError: If no changes are given or timestamps are invalid.
            EventNotFoundError: If the event does not exist.
        """
        event_id = self._require_id(event_id)
        if not changes:
            raise EventValidationError("No update data provided")

        validate_times(changes)
        updates = dict(changes)
        updates["Updated_At"] = pendulum.now("UTC").to_iso8601_string()

        updated = await self._store.update_event(event_id, updates)
        if updated is None:
            raise EventNotFoundError(f"Event not found or no changes made: {event_id}")
        return updated

    async def delete(self, event_id: str) -> Row:
        deleted = await self._store.delete_event(self._require_id(event_id))
        if deleted is None:
            raise EventNotFoundError(f"Event not found: {event_id}")
        logger.info("Deleted event %s", event_id)
        return deleted

    @staticmethod
    def _require_id(event_id: str) -> str:
        if not event_id:
            raise EventValidationError("Event ID is required")
        return str(event_id)
