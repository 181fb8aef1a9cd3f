"""
Tests for recurrence expansion.
"""

import pendulum
import pytest

from rep_availability.domain.exceptions import InvalidDateError
from rep_availability.domain.recurrence import (
    current_week,
    expand_window,
    parse_day,
    single_day,
    weekday_name,
)


class TestCurrentWeek:
    """Tests for the Monday-to-Sunday window."""

    def test_week_starts_monday_and_ends_sunday(self):
        """A Wednesday as-of instant yields the surrounding Monday-Sunday week."""
        as_of = pendulum.parse("2025-05-14 15:30", tz="UTC")  # Wednesday

        window = current_week(as_of, "UTC")

        assert window.start == pendulum.parse("2025-05-12 00:00", tz="UTC")
        assert window.end.to_date_string() == "2025-05-18"
        assert window.end.hour == 23
        assert window.end.minute == 59
        assert window.end.second == 59

    def test_monday_and_sunday_belong_to_same_week(self):
        monday = current_week(pendulum.parse("2025-05-12 00:00", tz="UTC"), "UTC")
        sunday = current_week(pendulum.parse("2025-05-18 23:00", tz="UTC"), "UTC")

        assert monday == sunday

    def test_week_computed_in_organizational_timezone(self):
        """Late Sunday in UTC is already Monday in Tokyo."""
        as_of = pendulum.parse("2025-05-18 20:00", tz="UTC")

        window = current_week(as_of, "Asia/Tokyo")

        assert window.start.to_date_string() == "2025-05-19"
        assert window.start.timezone_name == "Asia/Tokyo"

    def test_expand_window_tags_weekday_names(self):
        window = current_week(pendulum.parse("2025-05-14 12:00", tz="UTC"), "UTC")

        marked = expand_window(window)

        assert [name for _, name in marked] == [
            "Monday",
            "Tuesday",
            "Wednesday",
            "Thursday",
            "Friday",
            "Saturday",
            "Sunday",
        ]
        assert marked[0][0].isoformat() == "2025-05-12"
        assert marked[-1][0].isoformat() == "2025-05-18"


class TestSingleDay:
    """Tests for explicit date windows."""

    def test_valid_date(self):
        window = single_day("2025-06-12", "America/Los_Angeles")

        assert window.start.to_datetime_string() == "2025-06-12 00:00:00"
        assert window.end.to_date_string() == "2025-06-12"
        assert [name for _, name in expand_window(window)] == ["Thursday"]

    @pytest.mark.parametrize(
        "value",
        ["2025-13-40", "2025-02-30", "2025-6-12", "12-06-2025", "abc", "", "2025-06-12T00:00"],
    )
    def test_invalid_date_raises_client_error(self, value):
        with pytest.raises(InvalidDateError):
            single_day(value, "UTC")

    def test_non_string_is_rejected(self):
        with pytest.raises(InvalidDateError):
            parse_day(None, "UTC")


def test_weekday_name():
    assert weekday_name(pendulum.date(2025, 5, 12)) == "Monday"
    assert weekday_name(pendulum.date(2025, 5, 18)) == "Sunday"
