"""
Temporal Value Normalizer

The incident store serializes dates and times in two shapes:
- ISO strings: "2024-05-03", "10:30:00", "2024-05-03T10:30:00Z"
- Component arrays: [2024, 5, 3], [10, 30], [2024, 5, 3, 10, 30, 0, 123000000]

Every consumer goes through this module to obtain one canonical value
(date, time, timezone-aware datetime), to render it for display, and to
turn it back into the ISO shape the store accepts on write.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import date, datetime, time, tzinfo
from typing import Any

from conducta.config import settings
from conducta.core.errors import MalformedTemporalValue

SPANISH_MONTHS = (
    "ene", "feb", "mar", "abr", "may", "jun", "jul", "ago", "sep", "oct", "nov", "dic",
)  # fmt: skip

# Minimum components per kind. Timestamps may omit seconds: the store drops
# trailing zero components when it serializes a local date-time as an array.
DATE_COMPONENTS = 3
TIME_COMPONENTS = 2
TIMESTAMP_COMPONENTS = 5

_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2})(?:\.(\d{1,9}))?)?$")

DateInput = str | Sequence[int] | date
TimeInput = str | Sequence[int] | time
TimestampInput = str | Sequence[int] | datetime


def _components(kind: str, value: Sequence[Any], minimum: int) -> list[int]:
    """Validate a component array and return its integer components."""
    if len(value) < minimum:
        raise MalformedTemporalValue(
            kind, value, f"expected at least {minimum} components, got {len(value)}"
        )
    parts = list(value)
    for part in parts:
        # bool is an int subclass but never a valid component
        if isinstance(part, bool) or not isinstance(part, int):
            raise MalformedTemporalValue(kind, value, f"component {part!r} is not an integer")
    return parts


def _calendar_date(kind: str, raw: Any, year: int, month: int, day: int) -> date:
    # Wire months are 1-based, the same convention as datetime.date
    try:
        return date(year, month, day)
    except ValueError as e:
        raise MalformedTemporalValue(kind, raw, str(e)) from e


def _time_of_day(
    kind: str, raw: Any, hour: int, minute: int, second: int = 0, micro: int = 0
) -> time:
    try:
        return time(hour, minute, second, micro)
    except ValueError as e:
        raise MalformedTemporalValue(kind, raw, str(e)) from e


def _nanos_to_micros(nanos: int) -> int:
    return min(nanos // 1000, 999_999)


def _fraction_to_micros(fraction: str | None) -> int:
    if not fraction:
        return 0
    return int(fraction.ljust(9, "0")[:9]) // 1000


def normalize_date(value: DateInput) -> date:
    """Normalize an incident date from either wire shape.

    Args:
        value: "YYYY-MM-DD", an ISO date-time string, [year, month, day], or a date

    Returns:
        Calendar date

    Raises:
        MalformedTemporalValue: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        match = _DATE_RE.match(text)
        if match:
            year, month, day = (int(g) for g in match.groups())
            return _calendar_date("date", value, year, month, day)
        try:
            return datetime.fromisoformat(text).date()
        except ValueError as e:
            raise MalformedTemporalValue("date", value, "not an ISO date") from e

    if isinstance(value, Sequence):
        year, month, day = _components("date", value, DATE_COMPONENTS)[:3]
        return _calendar_date("date", value, year, month, day)

    raise MalformedTemporalValue("date", value, f"unsupported type {type(value).__name__}")


def normalize_time(value: TimeInput) -> time:
    """Normalize a time of day from "HH:MM[:SS]" or [hour, minute, ...].

    Raises:
        MalformedTemporalValue: If the value cannot be parsed
    """
    if isinstance(value, time):
        return value.replace(tzinfo=None)

    if isinstance(value, str):
        match = _TIME_RE.match(value.strip())
        if not match:
            raise MalformedTemporalValue("time", value, "expected HH:MM or HH:MM:SS")
        hour, minute, second, fraction = match.groups()
        return _time_of_day(
            "time",
            value,
            int(hour),
            int(minute),
            int(second or 0),
            _fraction_to_micros(fraction),
        )

    if isinstance(value, Sequence):
        parts = _components("time", value, TIME_COMPONENTS)
        hour, minute = parts[:2]
        second = parts[2] if len(parts) > 2 else 0
        micro = _nanos_to_micros(parts[3]) if len(parts) > 3 else 0
        return _time_of_day("time", value, hour, minute, second, micro)

    raise MalformedTemporalValue("time", value, f"unsupported type {type(value).__name__}")


def normalize_timestamp(value: TimestampInput, tz: tzinfo | None = None) -> datetime:
    """Normalize an instant from an ISO date-time string or component array.

    The store emits local date-times without an offset; those are read in
    ``tz`` (the configured institution timezone by default). Values that
    carry their own offset keep it.

    Args:
        value: ISO date-time string, [y, m, d, h, mi, s, nanos], or a datetime
        tz: Zone for offset-less values

    Returns:
        Timezone-aware datetime

    Raises:
        MalformedTemporalValue: If the value cannot be parsed
    """
    zone = tz or settings.zone

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise MalformedTemporalValue("timestamp", value, "not an ISO date-time") from e
    elif isinstance(value, Sequence):
        parts = _components("timestamp", value, TIMESTAMP_COMPONENTS)
        year, month, day, hour, minute = parts[:5]
        second = parts[5] if len(parts) > 5 else 0
        micro = _nanos_to_micros(parts[6]) if len(parts) > 6 else 0
        day_part = _calendar_date("timestamp", value, year, month, day)
        time_part = _time_of_day("timestamp", value, hour, minute, second, micro)
        parsed = datetime.combine(day_part, time_part)
    else:
        raise MalformedTemporalValue(
            "timestamp", value, f"unsupported type {type(value).__name__}"
        )

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone)
    return parsed


# ============================================================================
# Rendering (display)
# ============================================================================


def render_date(value: DateInput) -> str:
    """Render as "D-mon-YYYY", e.g. "3-may-2024"."""
    day = normalize_date(value)
    return f"{day.day}-{SPANISH_MONTHS[day.month - 1]}-{day.year}"


def render_time(value: TimeInput) -> str:
    """Render as "HH:MM"."""
    return normalize_time(value).strftime("%H:%M")


def render_timestamp(value: TimestampInput, tz: tzinfo | None = None) -> str:
    """Render as "D-mon-YYYY HH:MM" in the institution timezone."""
    zone = tz or settings.zone
    instant = normalize_timestamp(value, tz=zone).astimezone(zone)
    return f"{render_date(instant.date())} {instant.strftime('%H:%M')}"


# ============================================================================
# Wire serialization (write path always emits ISO strings)
# ============================================================================


def to_wire_date(value: DateInput) -> str:
    """Serialize as "YYYY-MM-DD"."""
    return normalize_date(value).isoformat()


def to_wire_time(value: TimeInput) -> str:
    """Serialize as "HH:MM:SS"; a missing seconds component becomes ":00"."""
    return normalize_time(value).replace(microsecond=0).isoformat(timespec="seconds")


def to_wire_timestamp(value: TimestampInput, tz: tzinfo | None = None) -> str:
    """Serialize as an ISO 8601 date-time with offset."""
    return normalize_timestamp(value, tz=tz).isoformat()
