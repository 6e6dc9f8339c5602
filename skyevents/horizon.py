"""Horizon-crossing solver and moonrise/moonset for a local calendar day."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple, Union

from .ephemeris import MOON_MEAN_DISTANCE_ER, AltitudeSample, MoonEphemeris, topocentric_altitude
from .timeutil import require_utc

__all__ = [
    "BISECTION_ITERATIONS",
    "SCAN_STEP",
    "CrossingEvent",
    "Direction",
    "MoonRiseSet",
    "compute_moon_rise_set",
    "local_day_bounds",
    "lunar_horizon_offset",
    "refine_crossing",
    "scan_crossings",
    "select_day_events",
]

LOGGER = logging.getLogger(__name__)

SCAN_STEP = timedelta(minutes=1)
# Six halvings of a one-minute bracket: 60 s / 2**6 ~ 0.94 s.
BISECTION_ITERATIONS = 6
SCAN_LEAD = timedelta(hours=12)
SCAN_LAG = timedelta(hours=36)

STANDARD_REFRACTION_DEG = 34.0 / 60.0
MOON_RADIUS_EARTH_RADII = 0.2725

AltitudeFunction = Callable[[datetime], AltitudeSample]
HorizonOffset = Union[float, Callable[[AltitudeSample], float]]


class Direction(str, Enum):
    """Direction of a horizon crossing."""

    rising = "rising"
    setting = "setting"


@dataclass(frozen=True)
class CrossingEvent:
    instant_utc: datetime
    direction: Direction


@dataclass(frozen=True)
class MoonRiseSet:
    """Moonrise and moonset inside one local calendar day.

    ``status`` is ``"ok"`` when at least one event occurs, otherwise
    ``"always_up"`` or ``"always_down"``.
    """

    day: date
    moonrise: Optional[datetime]
    moonset: Optional[datetime]
    status: str


def lunar_horizon_offset(sample: AltitudeSample) -> float:
    """Altitude of the Moon's centre when its upper limb meets the refracted horizon.

    The lunar semi-diameter is ``asin(R_moon / distance)`` with the Moon's
    radius (0.2725) and its distance both in Earth radii, giving about 0.26
    degrees at mean distance.
    """

    distance = sample.distance_earth_radii or MOON_MEAN_DISTANCE_ER
    semi_diameter = math.degrees(math.asin(MOON_RADIUS_EARTH_RADII / distance))
    return -(STANDARD_REFRACTION_DEG + semi_diameter)


def _margin(sample: AltitudeSample, offset: HorizonOffset) -> float:
    threshold = offset(sample) if callable(offset) else offset
    return sample.altitude_deg - threshold


def refine_crossing(
    left: datetime,
    margin_left: float,
    right: datetime,
    margin_fn: Callable[[datetime], float],
    iterations: int = BISECTION_ITERATIONS,
) -> datetime:
    """Narrow ``[left, right]`` by bisection and return the left endpoint.

    The right half is kept whenever ``margin_left * margin_mid <= 0``;
    otherwise the left endpoint advances to the midpoint.
    """

    for _ in range(iterations):
        mid = left + (right - left) / 2
        margin_mid = margin_fn(mid)
        if margin_left * margin_mid <= 0:
            right = mid
        else:
            left, margin_left = mid, margin_mid
    return left


def scan_crossings(
    start: datetime,
    end: datetime,
    altitude_fn: AltitudeFunction,
    offset: HorizonOffset = 0.0,
    step: timedelta = SCAN_STEP,
) -> List[CrossingEvent]:
    """Sample ``altitude_fn`` from *start* to *end* and return refined crossings.

    A sample exactly on the threshold counts as being below it for a rising
    crossing and above it for a setting crossing.
    """

    require_utc(start)
    require_utc(end)
    if step <= timedelta(0):
        raise ValueError("scan step must be positive")

    def margin_at(instant: datetime) -> float:
        return _margin(altitude_fn(instant), offset)

    events: List[CrossingEvent] = []
    prev_time = start
    prev_margin = margin_at(start)
    current = start + step
    while current <= end:
        margin = margin_at(current)
        if prev_margin <= 0 < margin:
            crossing = refine_crossing(prev_time, prev_margin, current, margin_at)
            events.append(CrossingEvent(crossing, Direction.rising))
        if prev_margin >= 0 > margin:
            crossing = refine_crossing(prev_time, prev_margin, current, margin_at)
            events.append(CrossingEvent(crossing, Direction.setting))
        prev_time, prev_margin = current, margin
        current += step
    return events


def local_day_bounds(day: date, tz: tzinfo) -> Tuple[datetime, datetime]:
    """UTC instants of local midnight on *day* and on the following day."""

    start = datetime.combine(day, time(), tzinfo=tz).astimezone(UTC)
    end = datetime.combine(day + timedelta(days=1), time(), tzinfo=tz).astimezone(UTC)
    return start, end


def select_day_events(
    events: Sequence[CrossingEvent],
    day: date,
    tz: tzinfo,
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """First rising and first setting crossing whose local date is *day*.

    Returned instants are expressed in *tz*. Later crossings in the same
    direction are discarded.
    """

    local_events = sorted(
        (
            (event.instant_utc.astimezone(tz), event.direction)
            for event in events
        ),
        key=lambda item: item[0],
    )
    rise: Optional[datetime] = None
    set_: Optional[datetime] = None
    for local, direction in local_events:
        if local.date() != day:
            continue
        if direction is Direction.rising and rise is None:
            rise = local
        elif direction is Direction.setting and set_ is None:
            set_ = local
        if rise is not None and set_ is not None:
            break
    return rise, set_


def compute_moon_rise_set(
    lat: float,
    lon: float,
    day: date,
    tz: tzinfo,
    ephemeris: Optional[MoonEphemeris] = None,
) -> MoonRiseSet:
    """Compute moonrise and moonset for a local calendar day.

    Parameters
    ----------
    lat, lon:
        Geographic coordinates in degrees (east-positive longitude).
    day:
        Local calendar date.
    tz:
        Time zone of *day*; results are expressed in it.
    ephemeris:
        Moon position provider, the Kepler model when omitted.
    """

    if not -90.0 <= lat <= 90.0:
        raise ValueError(f"latitude out of range: {lat}")
    if not -180.0 <= lon <= 180.0:
        raise ValueError(f"longitude out of range: {lon}")

    def altitude_fn(instant: datetime) -> AltitudeSample:
        return topocentric_altitude(instant, lat, lon, ephemeris)

    day_start, _ = local_day_bounds(day, tz)
    events = scan_crossings(
        day_start - SCAN_LEAD,
        day_start + SCAN_LAG,
        altitude_fn,
        offset=lunar_horizon_offset,
    )
    moonrise, moonset = select_day_events(events, day, tz)

    if moonrise is not None or moonset is not None:
        status = "ok"
    elif _margin(altitude_fn(day_start), lunar_horizon_offset) > 0:
        status = "always_up"
    else:
        status = "always_down"

    LOGGER.debug(
        json.dumps(
            {
                "event": "moon_rise_set",
                "lat": lat,
                "lon": lon,
                "day": day.isoformat(),
                "crossings": len(events),
                "status": status,
            }
        )
    )
    return MoonRiseSet(day=day, moonrise=moonrise, moonset=moonset, status=status)
