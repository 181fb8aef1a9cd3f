"""
Supabase REST (PostgREST) client for roster, availability, event and settings data.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import requests
from pendulum import DateTime

from ..config import SupabaseConfig, TablesConfig
from ..domain.exceptions import DataFetchError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]
Params = List[Tuple[str, str]]


def in_filter(values: Sequence[str]) -> str:
    """Build a PostgREST ``in`` filter with quoted values."""
    quoted = ",".join('"{}"'.format(str(value).replace('"', '\\"')) for value in values)
    return f"in.({quoted})"


class PostgrestClient:
    """
    Client for the Supabase REST API.

    Blocking HTTP calls run in a worker thread so the async service can issue
    independent fetches concurrently. Availability templates and settings
    live in a separate schema selected through the ``Accept-Profile`` header.
    """

    def __init__(
        self,
        config: SupabaseConfig,
        tables: Optional[TablesConfig] = None,
        timezone_setting_key: str = "default_timezone",
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the PostgREST client.

        Args:
            config: Supabase connection settings
            tables: Table names (defaults match the CRM schema)
            timezone_setting_key: Key of the organizational timezone setting
            session: Optional requests session (shared connection pool)
        """
        self.config = config
        self.tables = tables or TablesConfig()
        self.timezone_setting_key = timezone_setting_key
        self.session = session or requests.Session()
        self.headers = {
            "apikey": config.key,
            "Authorization": f"Bearer {config.key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def request(
        self,
        method: str,
        table: str,
        *,
        params: Optional[Params] = None,
        payload: Any = None,
        schema: Optional[str] = None,
        prefer: Optional[str] = None,
    ) -> List[Row]:
        """
        Perform one PostgREST request and return the rows it yields.

        Raises:
            DataFetchError: If the HTTP call fails or returns invalid JSON
        """
        url = f"{self.config.rest_url()}/{table}"
        headers = dict(self.headers)
        if schema:
            headers["Accept-Profile"] = schema
            headers["Content-Profile"] = schema
        if prefer:
            headers["Prefer"] = prefer

        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                params=params,
                json=payload,
                timeout=self.config.timeout_seconds,
            )
            response.raise_for_status()
            data = response.json() if response.content else []
        except requests.exceptions.RequestException as e:
            raise DataFetchError(f"{method} {table} failed: {e}") from e
        except ValueError as e:
            raise DataFetchError(f"{method} {table} returned invalid JSON: {e}") from e

        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        return list(data)

    # Scheduling store

    def get_roster(self) -> List[Row]:
        return self.request(
            "GET",
            self.tables.users,
            params=[
                ("select", "Id,Name,Project_Categories"),
                ("Est_App_Login", "eq.true"),
                ("Active", "eq.true"),
            ],
        )

    def get_templates(self, staff_ids: Sequence[str]) -> List[Row]:
        if not staff_ids:
            return []
        return self.request(
            "GET",
            self.tables.availability,
            params=[
                ("select", "User,Availability_Slots,Max_Numbers_Count_of_Appointments"),
                ("User", in_filter(staff_ids)),
            ],
            schema=self.config.settings_schema,
        )

    def get_appointments(self, staff_ids: Sequence[str], start: DateTime, end: DateTime) -> List[Row]:
        """
        Get appointments overlapping the UTC window.

        An appointment overlaps when it starts inside the window, or starts
        before it and ends at or after the window start.
        """
        if not staff_ids:
            return []

        start_iso = start.in_timezone("UTC").to_iso8601_string()
        end_iso = end.in_timezone("UTC").to_iso8601_string()
        rows = self.request(
            "GET",
            self.tables.events,
            params=[
                ("select", "Id,Scheduled_Time,End_Time,Staff"),
                ("Staff", in_filter(staff_ids)),
                ("Scheduled_Time", f"lte.{end_iso}"),
                ("or", f"(Scheduled_Time.gte.{start_iso},End_Time.gte.{start_iso})"),
                ("order", "Scheduled_Time.asc"),
            ],
        )
        logger.debug("Found %d appointment(s) between %s and %s", len(rows), start_iso, end_iso)
        return rows

    def get_timezone_setting(self) -> Optional[str]:
        rows = self.request(
            "GET",
            self.tables.settings,
            params=[
                ("select", "Value"),
                ("Key", f"eq.{self.timezone_setting_key}"),
                ("limit", "1"),
            ],
            schema=self.config.settings_schema,
        )
        if not rows:
            return None
        value = rows[0].get("Value")
        return value if isinstance(value, str) else None

    async def fetch_roster(self) -> List[Row]:
        return await asyncio.to_thread(self.get_roster)

    async def fetch_templates(self, staff_ids: Sequence[str]) -> List[Row]:
        return await asyncio.to_thread(self.get_templates, list(staff_ids))

    async def fetch_appointments(self, staff_ids: Sequence[str], start: DateTime, end: DateTime) -> List[Row]:
        return await asyncio.to_thread(self.get_appointments, list(staff_ids), start, end)

    async def fetch_timezone_setting(self) -> Optional[str]:
        return await asyncio.to_thread(self.get_timezone_setting)

    # Event store

    async def list_events(self) -> List[Row]:
        return await asyncio.to_thread(
            self.request, "GET", self.tables.events, params=[("select", "*")]
        )

    async def get_event(self, event_id: str) -> Optional[Row]:
        rows = await asyncio.to_thread(
            self.request,
            "GET",
            self.tables.events,
            params=[("select", "*"), ("Id", f"eq.{event_id}"), ("limit", "1")],
        )
        return rows[0] if rows else None

    async def insert_event(self, payload: Mapping[str, Any]) -> Row:
        rows = await asyncio.to_thread(
            self.request,
            "POST",
            self.tables.events,
            payload=[dict(payload)],
            prefer="return=representation",
        )
        if not rows:
            raise DataFetchError("Failed to create event, no data returned")
        return rows[0]

    async def update_event(self, event_id: str, changes: Mapping[str, Any]) -> Optional[Row]:
        rows = await asyncio.to_thread(
            self.request,
            "PATCH",
            self.tables.events,
            params=[("Id", f"eq.{event_id}")],
            payload=dict(changes),
            prefer="return=representation",
        )
        return rows[0] if rows else None

    async def delete_event(self, event_id: str) -> Optional[Row]:
        rows = await asyncio.to_thread(
            self.request,
            "DELETE",
            self.tables.events,
            params=[("Id", f"eq.{event_id}")],
            prefer="return=representation",
        )
        return rows[0] if rows else None
