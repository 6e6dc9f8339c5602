"""Daily almanac tables combining the Moon and Sun computations."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Dict, List, Optional

from joblib import Parallel, cpu_count, delayed

from .ephemeris import MoonEphemeris
from .horizon import MoonRiseSet, compute_moon_rise_set
from .phase import MoonPhaseSample, compute_moon_phase
from .sun import Phenomenon, PhenomenonResult, compute_sun_phenomenon

__all__ = ["DailyAlmanac", "compute_almanac", "compute_almanac_range"]

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailyAlmanac:
    day: date
    moon_phase: MoonPhaseSample
    moon: MoonRiseSet
    sun: Dict[Phenomenon, PhenomenonResult]


def compute_almanac(
    lat: float,
    lon: float,
    day: date,
    tz: tzinfo,
    ephemeris: Optional[MoonEphemeris] = None,
) -> DailyAlmanac:
    """Moon phase at local noon, moonrise/moonset and every Sun phenomenon for *day*."""

    noon = datetime.combine(day, time(12), tzinfo=tz)
    sun = {
        phenomenon: compute_sun_phenomenon(lat, lon, phenomenon, day, tz)
        for phenomenon in Phenomenon
    }
    return DailyAlmanac(
        day=day,
        moon_phase=compute_moon_phase(noon),
        moon=compute_moon_rise_set(lat, lon, day, tz, ephemeris),
        sun=sun,
    )


def compute_almanac_range(
    lat: float,
    lon: float,
    start: date,
    days: int,
    tz: tzinfo,
    ephemeris: Optional[MoonEphemeris] = None,
    n_jobs: int = 1,
) -> List[DailyAlmanac]:
    """Almanacs for *days* consecutive local days starting at *start*.

    Days are independent, so with ``n_jobs > 1`` they are computed in joblib
    worker processes.
    """

    if days < 1:
        raise ValueError(f"days must be at least 1, got {days}")
    dates = [start + timedelta(days=offset) for offset in range(days)]

    n_jobs = max(1, min(n_jobs, cpu_count(), len(dates)))
    if n_jobs == 1:
        results = [compute_almanac(lat, lon, day, tz, ephemeris) for day in dates]
    else:
        results = Parallel(n_jobs=n_jobs)(
            delayed(compute_almanac)(lat, lon, day, tz, ephemeris) for day in dates
        )

    LOGGER.debug(
        json.dumps(
            {
                "event": "almanac_range",
                "start": start.isoformat(),
                "days": days,
                "n_jobs": n_jobs,
            }
        )
    )
    return list(results)
