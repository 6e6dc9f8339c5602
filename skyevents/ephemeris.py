"""Low-precision Moon ephemerides and the topocentric altitude of the Moon.

Positions are geocentric equatorial Cartesian vectors expressed in Earth
radii. The observer sits on a spherical Earth of radius 1, so the topocentric
vector (Moon minus observer) already contains the lunar parallax.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Tuple, Type

import numpy as np

from .timeutil import gmst_degrees, julian_centuries, julian_date, normalize_degrees, require_utc

__all__ = [
    "AltitudeSample",
    "EphemerisError",
    "KeplerMoonEphemeris",
    "MoonEphemeris",
    "SeriesMoonEphemeris",
    "DEFAULT_EPHEMERIS",
    "EARTH_RADIUS_KM",
    "available_ephemerides",
    "ecliptic_to_equatorial",
    "get_ephemeris",
    "observer_position",
    "solve_kepler",
    "topocentric_altitude",
]

OBLIQUITY_DEG = 23.4393  # J2000, no precession.
MOON_MEAN_DISTANCE_ER = 60.2666

# Eccentric anomaly refinement. Six Newton steps from the second-order seed
# leave an anomaly error below 1e-7 rad for e = 0.0549.
KEPLER_ITERATIONS = 6
KEPLER_TOLERANCE = 1e-7

# Days since 2000 Jan 0.0 UT, the epoch of the orbital elements.
_ELEMENTS_EPOCH_JD = 2451543.5


class EphemerisError(RuntimeError):
    """Raised when a position or altitude cannot be computed."""


@dataclass(frozen=True)
class AltitudeSample:
    """Altitude of the Moon for one instant and observer."""

    instant: datetime
    altitude_deg: float
    distance_earth_radii: Optional[float] = None


def ecliptic_to_equatorial(vector: np.ndarray) -> np.ndarray:
    """Rotate an ecliptic (x, y, z) vector about the x axis by the obliquity."""

    eps = math.radians(OBLIQUITY_DEG)
    cos_eps, sin_eps = math.cos(eps), math.sin(eps)
    x, y, z = vector
    return np.array(
        [x, y * cos_eps - z * sin_eps, y * sin_eps + z * cos_eps],
        dtype=float,
    )


def _spherical_to_cartesian(lon_deg: float, lat_deg: float, radius: float) -> np.ndarray:
    lon = math.radians(lon_deg)
    lat = math.radians(lat_deg)
    return np.array(
        [
            radius * math.cos(lat) * math.cos(lon),
            radius * math.cos(lat) * math.sin(lon),
            radius * math.sin(lat),
        ],
        dtype=float,
    )


class MoonEphemeris:
    """Base class of the Moon position providers."""

    name = "abstract"

    def position(self, utc: datetime) -> np.ndarray:
        """Geocentric equatorial position of the Moon in Earth radii."""

        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def solve_kepler(mean_anomaly: float, eccentricity: float) -> float:
    """Eccentric anomaly (radians) for a mean anomaly in radians."""

    e = eccentricity
    anomaly = mean_anomaly + e * math.sin(mean_anomaly) * (1.0 + e * math.cos(mean_anomaly))
    for _ in range(KEPLER_ITERATIONS):
        step = (anomaly - e * math.sin(anomaly) - mean_anomaly) / (1.0 - e * math.cos(anomaly))
        anomaly -= step
        if abs(step) < KEPLER_TOLERANCE:
            break
    return anomaly


class KeplerMoonEphemeris(MoonEphemeris):
    """Moon on a precessing Kepler ellipse with the main periodic perturbations.

    Orbital elements and perturbation terms follow Paul Schlyter's
    "How to compute planetary positions"; the result is good to a few
    arc-minutes, which keeps rise and set times well inside a minute.
    """

    name = "kepler"

    def elements(self, d: float) -> Tuple[float, float, float, float, float, float]:
        """Return ``(N, i, w, a, e, M)`` for *d* days since 2000 Jan 0.0 UT."""

        node = normalize_degrees(125.1228 - 0.0529538083 * d)
        inclination = 5.1454
        perigee = normalize_degrees(318.0634 + 0.1643573223 * d)
        mean_anomaly = normalize_degrees(115.3654 + 13.0649929509 * d)
        return node, inclination, perigee, MOON_MEAN_DISTANCE_ER, 0.054900, mean_anomaly

    def ecliptic(self, utc: datetime) -> Tuple[float, float, float]:
        """Ecliptic longitude, latitude (degrees) and distance (Earth radii)."""

        d = julian_date(utc) - _ELEMENTS_EPOCH_JD
        node, inclination, perigee, a, e, mean_anomaly = self.elements(d)

        ecc = solve_kepler(math.radians(mean_anomaly), e)
        xv = a * (math.cos(ecc) - e)
        yv = a * math.sqrt(1.0 - e * e) * math.sin(ecc)
        true_anomaly = math.atan2(yv, xv)
        r = math.hypot(xv, yv)

        n = math.radians(node)
        i = math.radians(inclination)
        vw = true_anomaly + math.radians(perigee)
        x = r * (math.cos(n) * math.cos(vw) - math.sin(n) * math.sin(vw) * math.cos(i))
        y = r * (math.sin(n) * math.cos(vw) + math.cos(n) * math.sin(vw) * math.cos(i))
        z = r * math.sin(vw) * math.sin(i)
        lon = math.degrees(math.atan2(y, x))
        lat = math.degrees(math.atan2(z, math.hypot(x, y)))

        sun_anomaly = normalize_degrees(356.0470 + 0.9856002585 * d)
        sun_longitude = normalize_degrees(282.9404 + 4.70935e-5 * d + sun_anomaly)
        moon_longitude = normalize_degrees(node + perigee + mean_anomaly)
        ms = math.radians(sun_anomaly)
        mm = math.radians(mean_anomaly)
        dd = math.radians(normalize_degrees(moon_longitude - sun_longitude))
        ff = math.radians(normalize_degrees(moon_longitude - node))

        lon += (
            -1.274 * math.sin(mm - 2 * dd)  # evection
            + 0.658 * math.sin(2 * dd)  # variation
            - 0.186 * math.sin(ms)  # yearly equation
            - 0.059 * math.sin(2 * mm - 2 * dd)
            - 0.057 * math.sin(mm - 2 * dd + ms)
            + 0.053 * math.sin(mm + 2 * dd)
            + 0.046 * math.sin(2 * dd - ms)
            + 0.041 * math.sin(mm - ms)
            - 0.035 * math.sin(dd)  # parallactic equation
            - 0.031 * math.sin(mm + ms)
            - 0.015 * math.sin(2 * ff - 2 * dd)
            + 0.011 * math.sin(mm - 4 * dd)
        )
        lat += (
            -0.173 * math.sin(ff - 2 * dd)
            - 0.055 * math.sin(mm - ff - 2 * dd)
            - 0.046 * math.sin(mm + ff - 2 * dd)
            + 0.033 * math.sin(ff + 2 * dd)
            + 0.017 * math.sin(2 * mm + ff)
        )
        r += -0.58 * math.cos(mm - 2 * dd) - 0.46 * math.cos(2 * dd)
        return normalize_degrees(lon), lat, r

    def position(self, utc: datetime) -> np.ndarray:
        lon, lat, r = self.ecliptic(utc)
        return ecliptic_to_equatorial(_spherical_to_cartesian(lon, lat, r))


EARTH_RADIUS_KM = 6378.14
_SERIES_MEAN_DISTANCE_KM = 385000.56

# (longitude deg, latitude deg, distance km, D, M, M', F)
_SERIES_TERMS: Tuple[Tuple[float, float, float, int, int, int, int], ...] = (
    (6.2886, 0.0, -20905.355, 0, 0, 1, 0),
    (1.2740, 0.0, -3699.111, 2, 0, -1, 0),
    (0.6583, 0.0, -2955.968, 2, 0, 0, 0),
    (0.2136, 0.0, -569.925, 0, 0, 2, 0),
    (-0.1851, 0.0, 0.0, 0, 1, 0, 0),
    (-0.1143, 0.0, 0.0, 0, 0, 0, 2),
    (0.0, 5.128, 0.0, 0, 0, 0, 1),
    (0.0, 0.280, 0.0, 0, 0, 1, 1),
    (0.0, 0.277, 0.0, 0, 0, 1, -1),
    (0.0, 0.173, 0.0, 2, 0, 0, -1),
)


class SeriesMoonEphemeris(MoonEphemeris):
    """Compact Meeus series over the four fundamental lunar arguments.

    Longitude and latitude terms are sines, distance terms are cosines of the
    same arguments. Distance terms keep Meeus's kilometres and the sum is
    converted to Earth radii. Accurate to roughly a quarter of a degree.
    """

    name = "series"

    def ecliptic(self, utc: datetime) -> Tuple[float, float, float]:
        t = julian_centuries(julian_date(utc))
        elongation = math.radians(normalize_degrees(297.85036 + 445267.11148 * t - 0.0019142 * t * t))
        sun_anomaly = math.radians(normalize_degrees(357.52772 + 35999.05034 * t - 0.0001603 * t * t))
        moon_anomaly = math.radians(normalize_degrees(134.96298 + 477198.867398 * t + 0.0086972 * t * t))
        latitude_arg = math.radians(normalize_degrees(93.27191 + 483202.017538 * t - 0.0036825 * t * t))

        d_lon = d_lat = d_dist = 0.0
        for c_lon, c_lat, c_dist, i_d, i_m, i_mp, i_f in _SERIES_TERMS:
            arg = i_d * elongation + i_m * sun_anomaly + i_mp * moon_anomaly + i_f * latitude_arg
            d_lon += c_lon * math.sin(arg)
            d_lat += c_lat * math.sin(arg)
            d_dist += c_dist * math.cos(arg)

        lon = normalize_degrees(218.316 + 481267.8813 * t + d_lon)
        return lon, d_lat, (_SERIES_MEAN_DISTANCE_KM + d_dist) / EARTH_RADIUS_KM

    def position(self, utc: datetime) -> np.ndarray:
        lon, lat, r = self.ecliptic(utc)
        return ecliptic_to_equatorial(_spherical_to_cartesian(lon, lat, r))


_PROVIDERS: Dict[str, Type[MoonEphemeris]] = {
    KeplerMoonEphemeris.name: KeplerMoonEphemeris,
    SeriesMoonEphemeris.name: SeriesMoonEphemeris,
}

DEFAULT_EPHEMERIS: MoonEphemeris = KeplerMoonEphemeris()


def available_ephemerides() -> Tuple[str, ...]:
    return tuple(sorted(_PROVIDERS))


def get_ephemeris(name: str) -> MoonEphemeris:
    """Instantiate the Moon position provider registered under *name*."""

    try:
        provider = _PROVIDERS[name.strip().lower()]
    except KeyError as exc:
        raise ValueError(
            f"Unsupported ephemeris: {name} (expected one of {', '.join(available_ephemerides())})"
        ) from exc
    return provider()


def observer_position(utc: datetime, lat: float, lon: float) -> np.ndarray:
    """Unit vector from the Earth's centre to the observer, equatorial frame."""

    local_angle = normalize_degrees(gmst_degrees(utc) + lon)
    return _spherical_to_cartesian(local_angle, lat, 1.0)


def topocentric_altitude(
    utc: datetime,
    lat: float,
    lon: float,
    ephemeris: Optional[MoonEphemeris] = None,
) -> AltitudeSample:
    """Altitude of the Moon's centre above the observer's geometric horizon."""

    require_utc(utc)
    provider = ephemeris or DEFAULT_EPHEMERIS
    moon = provider.position(utc)
    site = observer_position(utc, lat, lon)

    topocentric = moon - site
    distance = float(np.linalg.norm(topocentric))
    if distance == 0:
        raise EphemerisError("Degenerate topocentric vector encountered")
    site_up = site / np.linalg.norm(site)
    cos_zenith = float(np.clip(np.dot(topocentric, site_up) / distance, -1.0, 1.0))
    altitude = 90.0 - math.degrees(math.acos(cos_zenith))
    return AltitudeSample(
        instant=utc,
        altitude_deg=altitude,
        distance_earth_radii=float(np.linalg.norm(moon)),
    )
