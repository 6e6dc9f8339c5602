"""Closed-form sunrise, sunset and twilight times.

Implements the almanac algorithm published by the US Naval Observatory
(the "NOAA sunrise equation" in its common form): the Sun's position is
evaluated once at an approximate event time and the hour angle at which the
Sun reaches the phenomenon's zenith angle is solved directly.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from .timeutil import normalize_degrees, normalize_hours

__all__ = [
    "PHENOMENA",
    "Phenomenon",
    "PhenomenonResult",
    "PhenomenonStatus",
    "compute_sun_phenomenon",
    "sun_event_utc_hour",
]

LOGGER = logging.getLogger(__name__)


class Phenomenon(str, Enum):
    """Solar phenomena with a defined zenith angle."""

    astronomical_dawn = "astronomical_dawn"
    astronomical_dusk = "astronomical_dusk"
    nautical_dawn = "nautical_dawn"
    nautical_dusk = "nautical_dusk"
    civil_dawn = "civil_dawn"
    civil_dusk = "civil_dusk"
    sunrise = "sunrise"
    sunset = "sunset"

    @classmethod
    def parse(cls, value: Union[str, "Phenomenon"]) -> "Phenomenon":
        """Accept ``"Astronomical_Dawn"``, ``"civil-dusk"``, ``"Sunrise"`` and the like."""

        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(key)
        except ValueError as exc:
            raise ValueError(f"Unsupported phenomenon: {value}") from exc

    @property
    def zenith(self) -> float:
        return PHENOMENA[self][0]

    @property
    def is_rising(self) -> bool:
        return PHENOMENA[self][1]


# zenith angle in degrees, rising
PHENOMENA: Dict[Phenomenon, Tuple[float, bool]] = {
    Phenomenon.astronomical_dawn: (108.0, True),
    Phenomenon.astronomical_dusk: (108.0, False),
    Phenomenon.nautical_dawn: (102.0, True),
    Phenomenon.nautical_dusk: (102.0, False),
    Phenomenon.civil_dawn: (96.0, True),
    Phenomenon.civil_dusk: (96.0, False),
    # 90 degrees plus 34' refraction and 16' solar semi-diameter.
    Phenomenon.sunrise: (90.833, True),
    Phenomenon.sunset: (90.833, False),
}

_FALLBACKS: Dict[Phenomenon, Phenomenon] = {
    Phenomenon.astronomical_dawn: Phenomenon.nautical_dawn,
    Phenomenon.astronomical_dusk: Phenomenon.nautical_dusk,
}


class PhenomenonStatus(str, Enum):
    found = "found"
    absent = "absent"
    fallback = "fallback"


@dataclass(frozen=True)
class PhenomenonResult:
    """Outcome of a Sun phenomenon lookup.

    ``found`` carries the local time of the requested phenomenon, ``absent``
    carries no time, and ``fallback`` carries the time of ``computed``, a less
    strict phenomenon evaluated because the requested one does not occur.
    """

    status: PhenomenonStatus
    requested: Phenomenon
    computed: Optional[Phenomenon] = None
    time: Optional[datetime] = None

    @classmethod
    def found(cls, phenomenon: Phenomenon, when: datetime) -> "PhenomenonResult":
        return cls(PhenomenonStatus.found, phenomenon, phenomenon, when)

    @classmethod
    def absent(cls, phenomenon: Phenomenon) -> "PhenomenonResult":
        return cls(PhenomenonStatus.absent, phenomenon)

    @classmethod
    def fallback(
        cls, phenomenon: Phenomenon, substitute: Phenomenon, when: datetime
    ) -> "PhenomenonResult":
        return cls(PhenomenonStatus.fallback, phenomenon, substitute, when)

    @property
    def occurs(self) -> bool:
        return self.status is PhenomenonStatus.found


def sun_event_utc_hour(
    day_of_year: int,
    lat: float,
    lon: float,
    zenith: float,
    is_rising: bool,
) -> Optional[float]:
    """UTC hour in [0, 24) at which the Sun reaches *zenith*, or ``None``.

    ``None`` means the Sun never reaches that zenith angle on the day: polar
    day, polar night, or a twilight that does not end.
    """

    lng_hour = lon / 15.0
    base_hour = 6.0 if is_rising else 18.0
    t = day_of_year + (base_hour - lng_hour) / 24.0

    mean_anomaly = 0.9856 * t - 3.289
    m_rad = math.radians(mean_anomaly)
    true_longitude = normalize_degrees(
        mean_anomaly + 1.916 * math.sin(m_rad) + 0.020 * math.sin(2.0 * m_rad) + 282.634
    )
    l_rad = math.radians(true_longitude)

    right_ascension = normalize_degrees(math.degrees(math.atan(0.91764 * math.tan(l_rad))))
    # Put the right ascension in the same quadrant as the longitude.
    right_ascension += math.floor(true_longitude / 90.0) * 90.0 - math.floor(right_ascension / 90.0) * 90.0
    right_ascension /= 15.0

    sin_dec = 0.39782 * math.sin(l_rad)
    cos_dec = math.cos(math.asin(sin_dec))
    lat_rad = math.radians(lat)
    cos_h = (math.cos(math.radians(zenith)) - sin_dec * math.sin(lat_rad)) / (
        cos_dec * math.cos(lat_rad)
    )
    if cos_h < -1.0 or cos_h > 1.0:
        return None

    hour_angle = math.degrees(math.acos(cos_h))
    if is_rising:
        hour_angle = 360.0 - hour_angle
    hour_angle /= 15.0

    local_mean_time = hour_angle + right_ascension - 0.06571 * t - 6.622
    return normalize_hours(local_mean_time - lng_hour)


def _utc_hour_to_local(day: date, utc_hour: float, tz: tzinfo) -> datetime:
    """Place a UTC hour, truncated to the minute, on the local calendar day *day*.

    The hour is tried on the UTC dates around *day* and the instant whose
    local date is *day* wins. Far from Greenwich this is not the UTC date
    itself: Tokyo sunrise is the previous UTC evening, and a California
    sunset falls after the next UTC midnight.
    """

    hours = int(utc_hour)
    minutes = int((utc_hour - hours) * 60.0)
    offset = timedelta(hours=hours, minutes=minutes)
    for shift in (0, -1, 1):
        utc_day = day + timedelta(days=shift)
        candidate = (datetime.combine(utc_day, time(), tzinfo=UTC) + offset).astimezone(tz)
        if candidate.date() == day:
            return candidate
    return (datetime.combine(day, time(), tzinfo=UTC) + offset).astimezone(tz)


def _event_time(
    phenomenon: Phenomenon, lat: float, lon: float, day: date, tz: tzinfo
) -> Optional[datetime]:
    day_of_year = day.timetuple().tm_yday
    utc_hour = sun_event_utc_hour(day_of_year, lat, lon, phenomenon.zenith, phenomenon.is_rising)
    if utc_hour is None:
        return None
    return _utc_hour_to_local(day, utc_hour, tz)


def compute_sun_phenomenon(
    lat: float,
    lon: float,
    phenomenon: Union[str, Phenomenon],
    day: date,
    tz: tzinfo,
) -> PhenomenonResult:
    """Local time of a Sun phenomenon on *day*, always dated *day* in *tz*.

    Astronomical dawn and dusk that do not occur fall back to nautical dawn
    and dusk; the result then has status ``fallback`` and names the
    phenomenon actually computed.

    Raises
    ------
    ValueError
        If *phenomenon* is not a supported name.
    """

    requested = Phenomenon.parse(phenomenon)
    when = _event_time(requested, lat, lon, day, tz)
    if when is not None:
        return PhenomenonResult.found(requested, when)

    substitute = _FALLBACKS.get(requested)
    if substitute is not None:
        fallback_time = _event_time(substitute, lat, lon, day, tz)
        if fallback_time is not None:
            LOGGER.debug(
                json.dumps(
                    {
                        "event": "sun_phenomenon_fallback",
                        "requested": requested.value,
                        "computed": substitute.value,
                        "day": day.isoformat(),
                        "lat": lat,
                        "lon": lon,
                    }
                )
            )
            return PhenomenonResult.fallback(requested, substitute, fallback_time)

    return PhenomenonResult.absent(requested)
