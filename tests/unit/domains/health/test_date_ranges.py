"""Tests for day keys and range presets."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from carecrafter.domains.health.domain_logic.date_ranges import (
    DateRange,
    InvalidDateError,
    day_key,
    days_between,
    is_weekend,
    parse_day_key,
    preset_range,
    resolve_range,
    shift_day,
    short_label,
    weekday_index,
)

TODAY = date(2026, 2, 14)


class TestDayKeys:
    def test_day_key_from_date(self):
        assert day_key(date(2026, 2, 3)) == "2026-02-03"

    def test_day_key_from_datetime_drops_time(self):
        assert day_key(datetime(2026, 2, 11)) == "2026-02-11"
        assert day_key(datetime(2026, 2, 11, 23, 59)) == "2026-02-11"

    def test_days_between_datetimes(self):
        assert days_between(datetime(2026, 2, 9, 22), datetime(2026, 2, 11, 1)) == 2

    def test_day_key_from_string_is_canonical(self):
        assert day_key("2026-02-03") == "2026-02-03"

    @pytest.mark.parametrize("bad", ["2026-2-3", "03/02/2026", "2026-02-30", "", "yesterday"])
    def test_invalid_keys_raise(self, bad):
        with pytest.raises(InvalidDateError):
            parse_day_key(bad)

    def test_invalid_date_error_is_value_error(self):
        with pytest.raises(ValueError):
            day_key("2026-13-01")

    def test_shift_day_crosses_month(self):
        assert shift_day("2026-03-01", -1) == "2026-02-28"
        assert shift_day("2026-02-28", 1) == "2026-03-01"

    def test_days_between(self):
        assert days_between("2026-02-01", "2026-02-14") == 13
        assert days_between("2026-02-14", "2026-02-01") == -13

    def test_keys_sort_chronologically(self):
        keys = ["2026-02-10", "2025-12-31", "2026-01-05"]
        assert sorted(keys) == ["2025-12-31", "2026-01-05", "2026-02-10"]


class TestLabels:
    def test_short_label(self):
        assert short_label("2026-02-03") == "Feb 3"
        assert short_label("2026-12-25") == "Dec 25"

    def test_weekday_index_starts_on_sunday(self):
        assert weekday_index("2026-02-15") == 0  # Sunday
        assert weekday_index("2026-02-16") == 1  # Monday
        assert weekday_index("2026-02-14") == 6  # Saturday

    def test_is_weekend(self):
        assert is_weekend("2026-02-14")
        assert is_weekend("2026-02-15")
        assert not is_weekend("2026-02-13")


class TestPresets:
    def test_last_7_days_includes_today(self):
        period = preset_range("last_7_days", TODAY)
        assert period == DateRange(start="2026-02-08", end="2026-02-14", label="Last 7 Days")
        assert period.total_days == 7

    def test_last_30_days(self):
        period = preset_range("last_30_days", TODAY)
        assert period.start == "2026-01-16"
        assert period.total_days == 30

    def test_all_time_is_a_year(self):
        period = preset_range("all_time", TODAY)
        assert period.total_days == 365
        assert period.label == "All Time"

    def test_unknown_preset_raises(self):
        with pytest.raises(InvalidDateError, match="Unknown range preset"):
            preset_range("last_week", TODAY)


class TestResolveRange:
    def test_explicit_dates_win(self):
        period = resolve_range("2026-01-01", "2026-01-31", "last_7_days", TODAY)
        assert period == DateRange(start="2026-01-01", end="2026-01-31")
        assert period.label == "Custom Range"

    def test_falls_back_to_preset_when_one_date_missing(self):
        period = resolve_range("2026-01-01", None, "last_7_days", TODAY)
        assert period.start == "2026-02-08"

    def test_invalid_explicit_date_raises(self):
        with pytest.raises(InvalidDateError):
            resolve_range("2026-01-01", "2026-01-32", "last_7_days", TODAY)

    def test_start_after_end_raises(self):
        with pytest.raises(InvalidDateError, match="after end date"):
            resolve_range("2026-02-10", "2026-02-01", "last_7_days", TODAY)

    def test_single_day_range(self):
        period = resolve_range("2026-02-10", "2026-02-10", "last_7_days", TODAY)
        assert period.total_days == 1
