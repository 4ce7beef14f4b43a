"""
Conversions between a business's local wall clock and absolute instants.

All scheduling math runs on timezone-aware UTC instants; local ``HH:MM``
strings only exist at the edges (requests, stored appointments, emails).
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from booking_engine.application.exceptions import InvalidBookingRequest, InvalidTimezone
from booking_engine.domain.entities.interval import Interval

_CLOCK_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def load_timezone(name: str | ZoneInfo) -> ZoneInfo:
    if isinstance(name, ZoneInfo):
        return name
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as e:
        raise InvalidTimezone(f"Unknown timezone: {name!r}") from e


def parse_clock(value: str) -> time:
    match = _CLOCK_RE.match((value or "").strip())
    if not match:
        raise InvalidBookingRequest(f"Time must be 24-hour HH:MM, got {value!r}")
    return time(hour=int(match.group(1)), minute=int(match.group(2)))


def to_instant(on_date: date, local_time: str, timezone: str | ZoneInfo) -> datetime:
    """
    Resolve a local wall-clock time on a date to a UTC instant.

    Ambiguous times (clocks falling back) resolve to their first occurrence.
    Times skipped by a spring-forward gap do not exist and are rejected.
    """
    tz = load_timezone(timezone)
    local = datetime.combine(on_date, parse_clock(local_time), tzinfo=tz)
    instant = local.astimezone(dt_timezone.utc)
    if instant.astimezone(tz).replace(tzinfo=None) != local.replace(tzinfo=None):
        raise InvalidBookingRequest(
            f"{on_date.isoformat()} {local_time} does not exist in {tz.key} (daylight-saving gap)"
        )
    return instant


def add_minutes(instant: datetime, minutes: int) -> datetime:
    return instant + timedelta(minutes=minutes)


def to_local_clock_string(instant: datetime, timezone: str | ZoneInfo) -> str:
    return instant.astimezone(load_timezone(timezone)).strftime("%H:%M")


def interval_for(on_date: date, start_time: str, duration_minutes: int, timezone: str | ZoneInfo) -> Interval:
    start = to_instant(on_date, start_time, timezone)
    return Interval(start=start, end=add_minutes(start, duration_minutes))
