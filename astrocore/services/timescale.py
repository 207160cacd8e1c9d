"""Civil time <-> Julian Day conversion.

Kept free of the Swiss Ephemeris binding so the solver and the placement
engine can be unit-tested without it.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import InvalidBirthInput

UNIX_EPOCH_JD = 2440587.5
SECONDS_PER_DAY = 86400.0


def _zone(tz: str) -> ZoneInfo:
    if not tz or not isinstance(tz, str):
        raise InvalidBirthInput(f"Missing timezone: {tz!r}")
    try:
        return ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidBirthInput(f"Unrecognised timezone: {tz!r}") from exc


def local_to_utc(date_str: str, time_str: str, tz: str) -> datetime:
    """Resolve a wall-clock date/time in ``tz`` to an aware UTC datetime.

    ``time_str`` may be ``HH:MM`` or ``HH:MM:SS``. DST rules come from the
    IANA database; ambiguous wall times take the first occurrence (``fold=0``).
    """

    zone = _zone(tz)
    try:
        dt_local = datetime.fromisoformat(f"{date_str}T{time_str}")
    except (TypeError, ValueError) as exc:
        raise InvalidBirthInput(f"Malformed date/time: {date_str!r} {time_str!r}") from exc
    if dt_local.tzinfo is not None:
        raise InvalidBirthInput(f"Local time must not carry an offset: {time_str!r}")
    return dt_local.replace(tzinfo=zone).astimezone(timezone.utc)


def julian_day(dt_utc: datetime) -> float:
    """Gregorian-calendar Julian Day for an aware (or naive UTC) datetime."""

    if dt_utc.tzinfo is not None:
        dt_utc = dt_utc.astimezone(timezone.utc)
    year, month = dt_utc.year, dt_utc.month
    day = (
        dt_utc.day
        + dt_utc.hour / 24.0
        + dt_utc.minute / 1440.0
        + dt_utc.second / SECONDS_PER_DAY
        + dt_utc.microsecond / (SECONDS_PER_DAY * 1_000_000)
    )
    if month <= 2:
        year -= 1
        month += 12
    a = year // 100
    b = 2 - a + a // 4
    return (
        math.floor(365.25 * (year + 4716))
        + math.floor(30.6001 * (month + 1))
        + day
        + b
        - 1524.5
    )


def to_jd_utc(date_str: str, time_str: str, tz: str) -> float:
    """Convert a local date/time to a Julian day in UTC."""

    return julian_day(local_to_utc(date_str, time_str, tz))


def jd_to_datetime(jd: float) -> datetime:
    seconds = (jd - UNIX_EPOCH_JD) * SECONDS_PER_DAY
    return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=seconds)


def datetime_to_jd(dt: datetime) -> float:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    delta = dt - datetime(1970, 1, 1, tzinfo=timezone.utc)
    return UNIX_EPOCH_JD + delta.total_seconds() / SECONDS_PER_DAY


def year_bounds(year: int) -> Tuple[float, float]:
    """Julian Days for Jan 1 00:00:00 and Dec 31 23:59:59 UTC."""

    start = datetime(year, 1, 1, tzinfo=timezone.utc)
    end = datetime(year, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
    return datetime_to_jd(start), datetime_to_jd(end)


__all__ = [
    "UNIX_EPOCH_JD",
    "datetime_to_jd",
    "jd_to_datetime",
    "julian_day",
    "local_to_utc",
    "to_jd_utc",
    "year_bounds",
]
