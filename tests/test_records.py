"""
Tests for boundary parsing of stored rows.
"""

import json

import pendulum
import pytest

from rep_availability.domain.exceptions import MalformedRecordError
from rep_availability.domain.records import (
    parse_appointment,
    parse_appointments,
    parse_capabilities,
    parse_instant,
    parse_max_appointments,
    parse_roster,
    parse_template,
    parse_templates,
)


def _entry(day, slots):
    return json.dumps({"day": day, "slots": slots})


class TestCapabilities:
    """Capability categories are JSON strings with a name field."""

    def test_names_are_extracted_and_garbage_skipped(self):
        raw = [
            '{"id": 1, "name": "Kitchen Remodel"}',
            "not json",
            '{"id": 2}',
            {"name": "Roofing"},
            42,
        ]

        assert parse_capabilities(raw, "rep-1") == ["Kitchen Remodel", "Roofing"]

    def test_non_list_yields_empty(self):
        assert parse_capabilities(None) == []
        assert parse_capabilities("Kitchen") == []


class TestRoster:

    def test_rows_without_id_are_skipped(self):
        staff = parse_roster(
            [
                {"Id": "rep-1", "Name": "Alex", "Project_Categories": ['{"name": "Roofing"}']},
                {"Name": "Nobody"},
            ]
        )

        assert [member.staff_id for member in staff] == ["rep-1"]
        assert staff[0].capabilities == ["Roofing"]


class TestTemplates:
    """Availability template parsing."""

    def test_valid_template(self):
        template = parse_template(
            {
                "User": "rep-1",
                "Availability_Slots": [_entry("Monday", ["09:00"]), _entry("Friday", ["13:30", "15:00"])],
                "Max_Numbers_Count_of_Appointments": 3,
            }
        )

        assert template.staff_id == "rep-1"
        assert template.slots_for("Monday") == ["09:00"]
        assert template.slots_for("Friday") == ["13:30", "15:00"]
        assert template.max_appointments_per_day == 3

    def test_bad_entries_are_dropped_individually(self):
        template = parse_template(
            {
                "User": "rep-1",
                "Availability_Slots": [
                    "{broken",
                    _entry("Funday", ["09:00"]),
                    json.dumps({"day": "Tuesday", "slots": "09:00"}),
                    _entry("Wednesday", ["10:00"]),
                ],
            }
        )

        assert template.days == {"Wednesday": ["10:00"]}

    def test_duplicate_days_are_merged(self):
        template = parse_template(
            {
                "User": "rep-1",
                "Availability_Slots": [_entry("Monday", ["09:00"]), _entry("Monday", ["14:00"])],
            }
        )

        assert template.slots_for("Monday") == ["09:00", "14:00"]

    def test_decoded_entries_are_accepted(self):
        template = parse_template(
            {"User": "rep-1", "Availability_Slots": [{"day": "Monday", "slots": ["09:00"]}]}
        )

        assert template.slots_for("Monday") == ["09:00"]

    def test_non_list_slots_field_drops_template(self):
        assert parse_template({"User": "rep-1", "Availability_Slots": {"day": "Monday"}}) is None
        assert parse_template({"User": "rep-1", "Availability_Slots": None}) is None
        assert parse_template({"User": "rep-1", "Availability_Slots": "{oops"}) is None

    def test_template_without_usable_entries_is_dropped(self):
        assert parse_template({"User": "rep-1", "Availability_Slots": ["garbage"]}) is None

    def test_zero_staff_id_is_kept(self):
        template = parse_template({"User": 0, "Availability_Slots": [_entry("Monday", ["09:00"])]})

        assert template.staff_id == "0"

    def test_parse_templates_keeps_first_row_per_staff(self):
        templates = parse_templates(
            [
                {"User": "rep-1", "Availability_Slots": [_entry("Monday", ["09:00"])]},
                {"User": "rep-1", "Availability_Slots": [_entry("Monday", ["17:00"])]},
                {"User": "rep-2", "Availability_Slots": "broken"},
            ]
        )

        assert list(templates) == ["rep-1"]
        assert templates["rep-1"].slots_for("Monday") == ["09:00"]

    @pytest.mark.parametrize(
        "value, expected",
        [(None, 1), (0, 1), (-2, 1), ("3", 3), (4, 4), ("many", 1), (float("inf"), 1)],
    )
    def test_max_appointments_defaults_to_one(self, value, expected):
        assert parse_max_appointments(value) == expected


class TestAppointments:
    """Appointment row parsing."""

    def test_valid_appointment_with_end(self):
        appointment = parse_appointment(
            {
                "Id": "evt-1",
                "Staff": "rep-1",
                "Scheduled_Time": "2025-05-12T15:00:00+00:00",
                "End_Time": "2025-05-12T16:00:00Z",
            }
        )

        assert appointment.appointment_id == "evt-1"
        assert appointment.staff_id == "rep-1"
        assert appointment.start == pendulum.datetime(2025, 5, 12, 15, tz="UTC")
        assert appointment.end == pendulum.datetime(2025, 5, 12, 16, tz="UTC")

    def test_offset_timestamps_are_normalised_to_utc(self):
        appointment = parse_appointment(
            {"Id": "evt-1", "Staff": "rep-1", "Scheduled_Time": "2025-05-12T09:00:00-07:00"}
        )

        assert appointment.start.timezone_name == "UTC"
        assert appointment.start.hour == 16
        assert appointment.end is None

    def test_naive_timestamp_is_utc(self):
        assert parse_instant("2025-05-12T09:00:00") == pendulum.datetime(2025, 5, 12, 9, tz="UTC")

    @pytest.mark.parametrize("value", [None, "", "yesterday-ish", 12345])
    def test_missing_or_bad_start_is_malformed(self, value):
        with pytest.raises(MalformedRecordError):
            parse_appointment({"Id": "evt-1", "Staff": "rep-1", "Scheduled_Time": value})

    def test_unparseable_end_is_ignored(self):
        appointment = parse_appointment(
            {"Id": "evt-1", "Staff": "rep-1", "Scheduled_Time": "2025-05-12T15:00:00Z", "End_Time": "soon"}
        )

        assert appointment.end is None

    def test_end_before_start_is_malformed(self):
        with pytest.raises(MalformedRecordError, match="ends"):
            parse_appointment(
                {
                    "Id": "evt-1",
                    "Staff": "rep-1",
                    "Scheduled_Time": "2025-05-12T15:00:00Z",
                    "End_Time": "2025-05-12T14:00:00Z",
                }
            )

    def test_parse_appointments_skips_only_bad_rows(self):
        appointments = parse_appointments(
            [
                {"Id": "good", "Staff": "rep-1", "Scheduled_Time": "2025-05-12T15:00:00Z"},
                {"Id": "bad", "Staff": "rep-1", "Scheduled_Time": None},
                {"Id": "also-good", "Staff": "rep-2", "Scheduled_Time": "2025-05-13T15:00:00Z"},
            ]
        )

        assert [a.appointment_id for a in appointments] == ["good", "also-good"]
