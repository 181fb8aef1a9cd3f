"""
Application service computing sales-rep availability.

The service coordinates the data-access collaborator (roster, availability
templates, appointments and the timezone setting) and delegates the actual
slot computation to the domain-level ``SlotCalculator``. Independent fetches
are dispatched concurrently: the roster together with the timezone setting,
then templates together with appointments once the roster is known.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

import pendulum
from pendulum import DateTime

from ..domain.conflicts import HOUR_BAND
from ..domain.exceptions import DataFetchError
from ..domain.models import (
    Appointment,
    AvailabilityResponse,
    AvailabilityTemplate,
    DateWindow,
    StaffAvailability,
    StaffMember,
)
from ..domain.records import parse_appointments, parse_roster, parse_templates
from ..domain.recurrence import current_week, parse_day, single_day
from ..domain.slot_calculator import SlotCalculator
from ..domain.slot_expander import BUFFER_HOURS
from ..domain.timezones import UTC, TimezoneNormalizer

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class SchedulingStoreProtocol(Protocol):
    """Protocol describing the data-access behaviour needed by the service."""

    async def fetch_roster(self) -> List[Row]:
        """Return active staff enabled for appointment scheduling."""

    async def fetch_templates(self, staff_ids: Sequence[str]) -> List[Row]:
        """Return raw availability rows for the given staff."""

    async def fetch_appointments(
        self,
        staff_ids: Sequence[str],
        start: DateTime,
        end: DateTime,
    ) -> List[Row]:
        """Return raw appointment rows overlapping the UTC window."""

    async def fetch_timezone_setting(self) -> Optional[str]:
        """Return the organizational timezone identifier, if configured."""


class AvailabilityFinderService:
    """
    Orchestrates data retrieval and availability calculation.

    Dependency inversion toward a protocol makes it easy to plug in the
    PostgREST adapter or the in-memory mock store in tests.
    """

    def __init__(
        self,
        store: SchedulingStoreProtocol,
        fallback_timezone: str = UTC,
        calculator_factory: Callable[[TimezoneNormalizer], SlotCalculator] = SlotCalculator,
    ) -> None:
        self._store = store
        self._fallback_timezone = fallback_timezone
        self._calculator_factory = calculator_factory

    async def current_week(self, *, as_of: Optional[DateTime] = None) -> AvailabilityResponse:
        """Availability for the Monday-to-Sunday week containing ``as_of``."""
        as_of = as_of or pendulum.now(UTC)
        return await self._find(lambda tz: current_week(as_of, tz))

    async def for_day(self, day: str) -> AvailabilityResponse:
        """
        Availability for one explicit ``YYYY-MM-DD`` date.

        Raises:
            InvalidDateError: Before any fetch, when ``day`` is malformed.
        """
        parse_day(day, UTC)
        return await self._find(lambda tz: single_day(day, tz))

    async def _find(self, build_window: Callable[[str], DateWindow]) -> AvailabilityResponse:
        try:
            roster_rows, normalizer = await asyncio.gather(
                self._store.fetch_roster(),
                TimezoneNormalizer.from_settings(self._store, self._fallback_timezone),
            )

            window = build_window(normalizer.timezone)
            staff = parse_roster(roster_rows)
            if not staff:
                logger.info("No active staff enabled for appointments")
                return AvailabilityResponse.from_results([])

            templates, appointments = await self.fetch_window_data(staff=staff, window=window)
        except DataFetchError as exc:
            logger.error("Availability computation failed: %s", exc)
            raise

        results = self.calculate_availability(
            window=window,
            staff=staff,
            templates=templates,
            appointments=appointments,
            normalizer=normalizer,
        )
        return AvailabilityResponse.from_results(results)

    async def fetch_window_data(
        self,
        *,
        staff: Sequence[StaffMember],
        window: DateWindow,
    ) -> Tuple[Dict[str, AvailabilityTemplate], List[Appointment]]:
        """Fetch templates and appointments for the roster concurrently and parse them."""
        staff_ids = [member.staff_id for member in staff]
        utc_window = window.to_utc()
        # Buffer candidates spill past the window edges and are compared by hour band.
        margin = BUFFER_HOURS + HOUR_BAND
        fetch_start = utc_window.start.subtract(hours=margin)
        fetch_end = utc_window.end.add(hours=margin)

        template_rows, appointment_rows = await asyncio.gather(
            self._store.fetch_templates(staff_ids),
            self._store.fetch_appointments(staff_ids, fetch_start, fetch_end),
        )

        templates = parse_templates(template_rows)
        appointments = parse_appointments(appointment_rows)
        logger.debug(
            "Fetched %d template(s) and %d appointment(s) for %s",
            len(templates),
            len(appointments),
            window,
        )
        return templates, appointments

    def calculate_availability(
        self,
        *,
        window: DateWindow,
        staff: Sequence[StaffMember],
        templates: Mapping[str, AvailabilityTemplate],
        appointments: Sequence[Appointment],
        normalizer: TimezoneNormalizer,
    ) -> List[StaffAvailability]:
        """Calculate availability from already-fetched data."""
        calculator = self._calculator_factory(normalizer)
        return calculator.find_available_slots(
            window=window,
            staff=staff,
            templates=templates,
            appointments=appointments,
        )
