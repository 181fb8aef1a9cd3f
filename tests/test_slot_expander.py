"""
Tests for slot expansion.
"""

from datetime import time

import pendulum
import pytest

from rep_availability.domain.slot_expander import (
    expand_slots,
    parse_time_of_day,
    render_time_of_day,
)


def _rendered(candidates, tz):
    return [render_time_of_day(candidate.instant, tz) for candidate in candidates]


class TestParseTimeOfDay:
    """Tests for time-of-day validation."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("9:00", time(9, 0)),
            ("09:00", time(9, 0)),
            ("09:00:30", time(9, 0, 30)),
            ("23:59:59", time(23, 59, 59)),
            ("00:00", time(0, 0)),
        ],
    )
    def test_valid_formats(self, value, expected):
        assert parse_time_of_day(value) == expected

    @pytest.mark.parametrize("value", ["25:99", "24:00", "12:60", "abc", "9", "09:00:", "", None, 900])
    def test_invalid_values(self, value):
        assert parse_time_of_day(value) is None


class TestExpandSlots:
    """Tests for buffered candidate generation."""

    def test_three_candidates_per_entry_sorted(self):
        """Every valid entry yields base, one hour before and one hour after."""
        day = pendulum.date(2025, 5, 12)

        candidates = expand_slots(["09:00"], day, "UTC")

        assert len(candidates) == 3
        assert _rendered(candidates, "UTC") == ["08:00:00", "09:00:00", "10:00:00"]
        assert [c.offset_hours for c in candidates] == [-1, 0, 1]

    def test_multiple_entries_are_merged_chronologically(self):
        day = pendulum.date(2025, 5, 12)

        candidates = expand_slots(["14:00", "09:30"], day, "Europe/Berlin")

        assert len(candidates) == 6
        assert _rendered(candidates, "Europe/Berlin") == [
            "08:30:00",
            "09:30:00",
            "10:30:00",
            "13:00:00",
            "14:00:00",
            "15:00:00",
        ]
        instants = [c.instant for c in candidates]
        assert instants == sorted(instants)

    def test_malformed_entries_are_skipped(self):
        """Invalid strings are dropped without affecting the valid ones."""
        day = pendulum.date(2025, 5, 12)

        candidates = expand_slots(["25:99", "abc", "09:00", None], day, "UTC")

        assert _rendered(candidates, "UTC") == ["08:00:00", "09:00:00", "10:00:00"]

    def test_round_trip_preserves_wall_clock(self):
        day = pendulum.date(2025, 5, 12)

        for value in ["07:15:00", "13:45:30", "9:05"]:
            base = [c for c in expand_slots([value], day, "America/New_York") if c.offset_hours == 0][0]
            assert render_time_of_day(base.instant, "America/New_York") == parse_time_of_day(value).strftime("%H:%M:%S")

    def test_anchor_is_in_organizational_timezone(self):
        day = pendulum.date(2025, 5, 12)

        base = expand_slots(["09:00"], day, "America/Los_Angeles")[1]

        assert base.instant.in_timezone("UTC").hour == 16

    def test_buffer_rolls_back_across_midnight(self):
        day = pendulum.date(2025, 5, 12)

        candidates = expand_slots(["00:30"], day, "UTC")

        assert candidates[0].day.isoformat() == "2025-05-11"
        assert _rendered(candidates, "UTC") == ["23:30:00", "00:30:00", "01:30:00"]

    def test_buffer_rolls_forward_across_midnight(self):
        day = pendulum.date(2025, 5, 12)

        candidates = expand_slots(["23:30"], day, "UTC")

        assert candidates[-1].day.isoformat() == "2025-05-13"
        assert _rendered(candidates, "UTC") == ["22:30:00", "23:30:00", "00:30:00"]

    def test_spring_forward_uses_elapsed_hours(self):
        """On 2024-03-31 Berlin clocks jump from 02:00 to 03:00."""
        day = pendulum.date(2024, 3, 31)

        candidates = expand_slots(["03:00"], day, "Europe/Berlin")

        assert _rendered(candidates, "Europe/Berlin") == ["01:00:00", "03:00:00", "04:00:00"]
        assert candidates[1].instant.timestamp() - candidates[0].instant.timestamp() == 3600

    def test_fall_back_uses_elapsed_hours(self):
        """On 2024-10-27 Berlin clocks fall back from 03:00 to 02:00."""
        day = pendulum.date(2024, 10, 27)

        candidates = expand_slots(["03:00"], day, "Europe/Berlin")

        assert _rendered(candidates, "Europe/Berlin") == ["02:00:00", "03:00:00", "04:00:00"]
        assert candidates[2].instant.timestamp() - candidates[1].instant.timestamp() == 3600
