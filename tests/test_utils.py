"""
Unit tests for the time codec and calendar helpers.
"""

from datetime import date, time

import pytest

from utils import brl, format_minutes, month_key, month_label, month_range, parse_iso_date, parse_time


class TestFormatMinutes:
    """Tests for format_minutes."""

    @pytest.mark.parametrize("minutes, expected", [
        (0, "0:00"),
        (528, "8:48"),
        (-65, "-1:05"),
        (5, "0:05"),
        (-60, "-1:00"),
        (1440, "24:00"),
    ])
    def test_format(self, minutes, expected):
        assert format_minutes(minutes) == expected


class TestParseTime:
    """Tests for parse_time soft-fail decoding."""

    def test_valid(self):
        assert parse_time("08:30") == 510
        assert parse_time("8:05") == 485
        assert parse_time(" 23:59 ") == 1439

    def test_time_object(self):
        assert parse_time(time(17, 0)) == 1020

    @pytest.mark.parametrize("raw", ["", None, "abc", "8:xx", "25:00", "12:60", "08:30:00", "-1:00", "0830"])
    def test_invalid_is_zero(self, raw):
        assert parse_time(raw) == 0

    def test_midnight_reads_as_unset(self):
        """Known boundary case: a genuine 00:00 is indistinguishable from an empty field."""
        assert parse_time("00:00") == parse_time("") == 0

    @pytest.mark.parametrize("minutes", [1, 59, 60, 528, 1439])
    def test_round_trip_non_negative(self, minutes):
        assert parse_time(format_minutes(minutes)) == minutes

    def test_round_trip_edges(self):
        # zero round-trips only by coincidence with "unset"
        assert parse_time(format_minutes(0)) == 0
        # negatives and full days are not times of day
        assert parse_time(format_minutes(-65)) == 0
        assert parse_time(format_minutes(1440)) == 0


class TestMonths:
    """Tests for month helpers."""

    def test_month_key(self):
        assert month_key(date(2024, 3, 9)) == "2024-03"

    def test_month_range_leap(self):
        assert month_range("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))

    def test_month_range_december(self):
        assert month_range("2023-12") == (date(2023, 12, 1), date(2023, 12, 31))

    def test_month_label(self):
        assert month_label("2024-02") == "Fevereiro de 2024"

    def test_parse_iso_date(self):
        assert parse_iso_date("2024-02-29") == date(2024, 2, 29)
        assert parse_iso_date("2023-02-29") is None
        assert parse_iso_date("") is None


def test_brl():
    assert brl(1234.5) == "R$ 1.234,50"
    assert brl(0) == "R$ 0,00"
