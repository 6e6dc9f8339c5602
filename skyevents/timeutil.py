"""Time-scale and angle helpers shared by the ephemeris and event solvers."""

from __future__ import annotations

import math
from datetime import datetime, timedelta

import erfa

__all__ = [
    "J2000_JD",
    "require_utc",
    "julian_date",
    "julian_centuries",
    "gmst_degrees",
    "normalize_degrees",
    "normalize_hours",
]

J2000_JD = 2451545.0
DAYS_PER_CENTURY = 36525.0
SIDEREAL_RATE = 1.002737909  # sidereal hours per UT hour


def require_utc(dt: datetime) -> datetime:
    """Return *dt* unchanged if it is tagged as UTC, otherwise raise ``ValueError``.

    The tzinfo must carry a fixed zero offset. A named zone that merely
    happens to be at UTC+0 on that date (``Europe/London`` in winter) is
    rejected; convert with ``astimezone(UTC)`` first.
    """

    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware (UTC)")
    if dt.tzinfo.utcoffset(None) != timedelta(0):
        raise ValueError(f"datetime must carry a fixed zero UTC offset, got {dt.tzinfo!r}")
    return dt


def _day_fraction(dt: datetime) -> float:
    seconds = dt.hour * 3600 + dt.minute * 60 + dt.second + dt.microsecond / 1_000_000
    return seconds / 86400.0


def julian_date(dt: datetime) -> float:
    """Julian Date of a UTC instant.

    UTC is used directly as UT; the leap-second and UT1 corrections are far
    below the resolution of the low-precision series built on top of it.
    """

    require_utc(dt)
    djm0, djm = erfa.cal2jd(dt.year, dt.month, dt.day)
    return float(djm0) + float(djm) + _day_fraction(dt)


def julian_centuries(jd: float) -> float:
    return (jd - J2000_JD) / DAYS_PER_CENTURY


def gmst_degrees(dt: datetime) -> float:
    """Greenwich Mean Sidereal Time of a UTC instant, in degrees."""

    jd = julian_date(dt)
    jd0 = math.floor(jd - 0.5) + 0.5
    t0 = julian_centuries(jd0)
    gmst0h = normalize_hours(6.697374558 + 2400.051336 * t0 + 0.000025862 * t0 * t0)
    ut_hours = (jd - jd0) * 24.0
    gmst = normalize_hours(gmst0h + ut_hours * SIDEREAL_RATE)
    return normalize_degrees(gmst * 15.0)


def normalize_degrees(angle: float) -> float:
    result = math.fmod(angle, 360.0)
    return result + 360.0 if result < 0 else result


def normalize_hours(hours: float) -> float:
    result = math.fmod(hours, 24.0)
    return result + 24.0 if result < 0 else result
