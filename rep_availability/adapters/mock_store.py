"""
In-memory scheduling and event store for testing without Supabase.
"""

import copy
import json
import uuid
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pendulum
from pendulum import DateTime

from ..domain.exceptions import MalformedRecordError
from ..domain.records import parse_instant

Row = Dict[str, Any]

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_store_data.json"


class MockStore:
    """
    Store that serves rows from a JSON fixture or an explicit mapping.

    The data layout mirrors the Supabase tables:

        {
            "users": [{"Id", "Name", "Project_Categories", "Est_App_Login", "Active"}],
            "availability": [{"User", "Availability_Slots", "Max_Numbers_Count_of_Appointments"}],
            "events": [{"Id", "Staff", "Scheduled_Time", "End_Time", ...}],
            "timezone": "America/Los_Angeles"
        }

    Rows are returned as copies, so callers cannot mutate the store by accident.
    """

    def __init__(self, data: Optional[Mapping[str, Any]] = None, data_file: Optional[Path] = None):
        """
        Initialize the mock store.

        Args:
            data: Explicit table data; takes precedence over ``data_file``
            data_file: JSON fixture to load (defaults to the packaged fixture)
        """
        if data is None:
            data = self._load_data(data_file or DEFAULT_DATA_FILE)

        self.users: List[Row] = copy.deepcopy(list(data.get("users", [])))
        self.availability: List[Row] = copy.deepcopy(list(data.get("availability", [])))
        self.events: List[Row] = copy.deepcopy(list(data.get("events", [])))
        self.timezone: Optional[str] = data.get("timezone")

    @staticmethod
    def _load_data(data_file: Path) -> Dict[str, Any]:
        """Load fixture data from a JSON file."""
        if not data_file.exists():
            return {}

        with open(data_file, "r", encoding="utf-8") as f:
            return json.load(f)

    # Scheduling store

    async def fetch_roster(self) -> List[Row]:
        return [
            copy.deepcopy(user)
            for user in self.users
            if user.get("Est_App_Login") is True and user.get("Active") is True
        ]

    async def fetch_templates(self, staff_ids: Sequence[str]) -> List[Row]:
        wanted = {str(staff_id) for staff_id in staff_ids}
        return [copy.deepcopy(row) for row in self.availability if str(row.get("User")) in wanted]

    async def fetch_appointments(self, staff_ids: Sequence[str], start: DateTime, end: DateTime) -> List[Row]:
        """
        Return appointments overlapping the window.

        Rows whose timestamps cannot be read are passed through unfiltered so
        that the domain layer decides how to treat them.
        """
        wanted = {str(staff_id) for staff_id in staff_ids}
        rows: List[Row] = []

        for event in self.events:
            if str(event.get("Staff")) not in wanted:
                continue

            try:
                event_start = parse_instant(event.get("Scheduled_Time"))
                raw_end = event.get("End_Time")
                event_end = parse_instant(raw_end) if raw_end else None
            except MalformedRecordError:
                rows.append(copy.deepcopy(event))
                continue

            starts_inside = start <= event_start <= end
            runs_into = event_start <= end and event_end is not None and event_end >= start
            if starts_inside or runs_into:
                rows.append(copy.deepcopy(event))

        return rows

    async def fetch_timezone_setting(self) -> Optional[str]:
        return self.timezone

    # Event store

    async def list_events(self) -> List[Row]:
        return copy.deepcopy(self.events)

    async def get_event(self, event_id: str) -> Optional[Row]:
        event = self._find_event(event_id)
        return copy.deepcopy(event) if event is not None else None

    async def insert_event(self, payload: Mapping[str, Any]) -> Row:
        event = dict(payload)
        event.setdefault("Id", str(uuid.uuid4()))
        event.setdefault("Created_At", pendulum.now("UTC").to_iso8601_string())
        self.events.append(event)
        return copy.deepcopy(event)

    async def update_event(self, event_id: str, changes: Mapping[str, Any]) -> Optional[Row]:
        event = self._find_event(event_id)
        if event is None:
            return None
        event.update(changes)
        return copy.deepcopy(event)

    async def delete_event(self, event_id: str) -> Optional[Row]:
        event = self._find_event(event_id)
        if event is None:
            return None
        self.events.remove(event)
        return copy.deepcopy(event)

    def _find_event(self, event_id: str) -> Optional[Row]:
        for event in self.events:
            if str(event.get("Id")) == str(event_id):
                return event
        return None
