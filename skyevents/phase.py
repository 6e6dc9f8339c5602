"""Moon phase from the mean synodic month."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from .timeutil import julian_date

__all__ = ["SYNODIC_MONTH_DAYS", "MoonPhase", "MoonPhaseSample", "compute_moon_phase", "phase_for_fraction"]

SYNODIC_MONTH_DAYS = 29.5305882
# 2000-01-06 00:00 UT, close to the new moon of 2000-01-06 18:14 UT.
NEW_MOON_EPOCH_JD = 2451549.5


class MoonPhase(str, Enum):
    new_moon = "New Moon"
    waxing_crescent = "Waxing Crescent"
    first_quarter = "First Quarter"
    waxing_gibbous = "Waxing Gibbous"
    full_moon = "Full Moon"
    waning_gibbous = "Waning Gibbous"
    last_quarter = "Last Quarter"
    waning_crescent = "Waning Crescent"


@dataclass(frozen=True)
class MoonPhaseSample:
    instant: datetime
    age_days: float
    illuminated_fraction: float
    phase: MoonPhase


def phase_for_fraction(fraction: float) -> MoonPhase:
    """Name of the phase for a fraction of the synodic month in [0, 1)."""

    if fraction < 0.03 or fraction > 0.97:
        return MoonPhase.new_moon
    if fraction < 0.22:
        return MoonPhase.waxing_crescent
    if fraction < 0.28:
        return MoonPhase.first_quarter
    if fraction < 0.47:
        return MoonPhase.waxing_gibbous
    if fraction < 0.53:
        return MoonPhase.full_moon
    if fraction < 0.72:
        return MoonPhase.waning_gibbous
    if fraction < 0.78:
        return MoonPhase.last_quarter
    return MoonPhase.waning_crescent


def compute_moon_phase(instant: datetime) -> MoonPhaseSample:
    """Age, illuminated fraction and phase name of the Moon at *instant*.

    *instant* may carry any time zone; naive datetimes are rejected.
    """

    if instant.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    jd = julian_date(instant.astimezone(UTC))
    age = (jd - NEW_MOON_EPOCH_JD) % SYNODIC_MONTH_DAYS
    fraction = age / SYNODIC_MONTH_DAYS
    illumination = 0.5 * (1.0 - math.cos(2.0 * math.pi * fraction))
    return MoonPhaseSample(
        instant=instant,
        age_days=age,
        illuminated_fraction=illumination,
        phase=phase_for_fraction(fraction),
    )
