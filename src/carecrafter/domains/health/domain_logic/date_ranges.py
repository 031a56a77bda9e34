"""Calendar-day keys and date-range selection.

Entries are keyed and compared as ``YYYY-MM-DD`` strings, never as
instants, so a range query can't drift across a timezone boundary.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta

_DAY_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Preset name -> (label, length in days)
PRESET_RANGES = {
    "last_7_days": ("Last 7 Days", 7),
    "last_30_days": ("Last 30 Days", 30),
    "last_90_days": ("Last 90 Days", 90),
    "all_time": ("All Time", 365),
}


class InvalidDateError(ValueError):
    """Raised when a value is not a valid YYYY-MM-DD calendar day."""


@dataclass
class DateRange:
    start: str
    end: str
    label: str = "Custom Range"

    @property
    def total_days(self) -> int:
        return days_between(self.start, self.end) + 1


def parse_day_key(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` key into a date.

    Raises:
        InvalidDateError: If the string is not a real calendar day.
    """
    if not isinstance(value, str) or not _DAY_KEY_RE.match(value):
        raise InvalidDateError(f"Expected a YYYY-MM-DD date, got {value!r}")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidDateError(f"Not a calendar day: {value!r}") from exc


def day_key(value: date | str) -> str:
    """Normalize a date, datetime or day-key string to the canonical key.

    A ``datetime`` keeps only its calendar day; the time part is dropped.
    """
    if isinstance(value, str):
        return parse_day_key(value).isoformat()
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def shift_day(key: str, days: int) -> str:
    return (parse_day_key(key) + timedelta(days=days)).isoformat()


def days_between(start: date | str, end: date | str) -> int:
    """Whole days from ``start`` to ``end`` (negative if end is earlier)."""
    return (parse_day_key(day_key(end)) - parse_day_key(day_key(start))).days


def short_label(key: str) -> str:
    """Display form of a day key, e.g. ``2026-02-03`` -> ``Feb 3``."""
    day = parse_day_key(key)
    return f"{day:%b} {day.day}"


def weekday_index(key: str) -> int:
    """Day of week with 0 = Sunday through 6 = Saturday."""
    return (parse_day_key(key).weekday() + 1) % 7


def is_weekend(key: str) -> bool:
    return weekday_index(key) in (0, 6)


def preset_range(name: str, today: date) -> DateRange:
    """The preset window ending today (inclusive)."""
    if name not in PRESET_RANGES:
        raise InvalidDateError(
            f"Unknown range preset: {name!r}. Valid: {', '.join(PRESET_RANGES)}"
        )
    label, days = PRESET_RANGES[name]
    end = today.isoformat()
    return DateRange(start=shift_day(end, -(days - 1)), end=end, label=label)


def resolve_range(
    start: str | None,
    end: str | None,
    preset: str,
    today: date,
) -> DateRange:
    """Use explicit dates when both are given, otherwise the preset.

    Raises:
        InvalidDateError: If a date or the preset is invalid, or the explicit
            start falls after the end.
    """
    if start and end:
        period = DateRange(start=day_key(start), end=day_key(end))
        if period.start > period.end:
            raise InvalidDateError(
                f"Start date {period.start} is after end date {period.end}"
            )
        return period
    return preset_range(preset, today)
