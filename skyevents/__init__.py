"""Moon phase, moonrise/moonset and twilight computations."""

from .almanac import DailyAlmanac, compute_almanac, compute_almanac_range
from .ephemeris import EphemerisError, get_ephemeris, topocentric_altitude
from .horizon import MoonRiseSet, compute_moon_rise_set
from .phase import MoonPhase, MoonPhaseSample, compute_moon_phase
from .sun import Phenomenon, PhenomenonResult, PhenomenonStatus, compute_sun_phenomenon

__all__ = [
    "DailyAlmanac",
    "EphemerisError",
    "MoonPhase",
    "MoonPhaseSample",
    "MoonRiseSet",
    "Phenomenon",
    "PhenomenonResult",
    "PhenomenonStatus",
    "compute_almanac",
    "compute_almanac_range",
    "compute_moon_phase",
    "compute_moon_rise_set",
    "compute_sun_phenomenon",
    "get_ephemeris",
    "topocentric_altitude",
]
