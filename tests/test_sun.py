from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

import pytest

from skyevents.sun import (
    PHENOMENA,
    Phenomenon,
    PhenomenonResult,
    PhenomenonStatus,
    compute_sun_phenomenon,
    sun_event_utc_hour,
)

WROCLAW = (51.1, 17.03)


def _local_mean_hours(when: datetime, lon: float) -> float:
    utc = when.astimezone(UTC)
    return (utc.hour + utc.minute / 60.0 + lon / 15.0) % 24.0


def test_zenith_table():
    assert PHENOMENA[Phenomenon.astronomical_dawn] == (108.0, True)
    assert PHENOMENA[Phenomenon.nautical_dusk] == (102.0, False)
    assert Phenomenon.civil_dawn.zenith == 96.0
    assert Phenomenon.sunset.zenith == 90.833
    assert Phenomenon.sunrise.is_rising and not Phenomenon.sunset.is_rising


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Astronomical_Dawn", Phenomenon.astronomical_dawn),
        ("civil-dusk", Phenomenon.civil_dusk),
        ("Nautical Dawn", Phenomenon.nautical_dawn),
        (" Sunrise ", Phenomenon.sunrise),
        (Phenomenon.sunset, Phenomenon.sunset),
    ],
)
def test_parse_phenomenon(name, expected: Phenomenon):
    assert Phenomenon.parse(name) is expected


def test_unknown_phenomenon_is_invalid_argument():
    with pytest.raises(ValueError, match="Unsupported phenomenon"):
        compute_sun_phenomenon(0.0, 0.0, "Golden_Hour", date(2025, 3, 20), UTC)


def test_utc_hour_is_normalised():
    for day_of_year in (1, 80, 172, 266, 355):
        for lon in (-179.0, -60.0, 0.0, 60.0, 179.0):
            hour = sun_event_utc_hour(day_of_year, 10.0, lon, 90.833, True)
            assert hour is not None and 0.0 <= hour < 24.0


@pytest.mark.parametrize("lon", [0.0, 45.0, -45.0, 90.0])
def test_equinox_day_at_equator_is_twelve_hours(lon: float):
    day = date(2025, 3, 20)
    sunrise = compute_sun_phenomenon(0.0, lon, "Sunrise", day, UTC)
    sunset = compute_sun_phenomenon(0.0, lon, "Sunset", day, UTC)
    assert sunrise.status is PhenomenonStatus.found
    assert sunset.status is PhenomenonStatus.found

    day_length = sunset.time - sunrise.time
    assert abs(day_length - timedelta(hours=12)) < timedelta(minutes=10)
    assert _local_mean_hours(sunrise.time, lon) == pytest.approx(6.0, abs=0.35)
    assert _local_mean_hours(sunset.time, lon) == pytest.approx(18.0, abs=0.35)


def test_midnight_sun_has_no_sunset_nor_astronomical_night():
    day = date(2025, 6, 21)
    tz = ZoneInfo("Europe/Oslo")

    sunset = compute_sun_phenomenon(70.0, 20.0, "Sunset", day, tz)
    assert sunset == PhenomenonResult.absent(Phenomenon.sunset)
    assert sunset.time is None

    dusk = compute_sun_phenomenon(70.0, 20.0, "Astronomical_Dusk", day, tz)
    dawn = compute_sun_phenomenon(70.0, 20.0, "Astronomical_Dawn", day, tz)
    # Nautical twilight does not end either, so no fallback is available.
    assert dusk.status is PhenomenonStatus.absent
    assert dawn.status is PhenomenonStatus.absent
    assert dusk.computed is None


def test_astronomical_dusk_falls_back_to_nautical(warsaw: ZoneInfo):
    lat, lon = WROCLAW
    day = date(2025, 6, 21)

    result = compute_sun_phenomenon(lat, lon, "Astronomical_Dusk", day, warsaw)
    nautical = compute_sun_phenomenon(lat, lon, "Nautical_Dusk", day, warsaw)

    assert result.status is PhenomenonStatus.fallback
    assert result.requested is Phenomenon.astronomical_dusk
    assert result.computed is Phenomenon.nautical_dusk
    assert not result.occurs
    assert nautical.status is PhenomenonStatus.found
    assert result.time == nautical.time


def test_astronomical_dawn_falls_back_to_nautical(warsaw: ZoneInfo):
    lat, lon = WROCLAW
    result = compute_sun_phenomenon(lat, lon, Phenomenon.astronomical_dawn, date(2025, 6, 21), warsaw)
    assert result.status is PhenomenonStatus.fallback
    assert result.computed is Phenomenon.nautical_dawn
    assert result.time is not None and result.time.hour < 4


def test_nautical_twilight_never_falls_back():
    result = compute_sun_phenomenon(70.0, 20.0, "Nautical_Dusk", date(2025, 6, 21), UTC)
    assert result == PhenomenonResult.absent(Phenomenon.nautical_dusk)


def test_polar_night_has_no_sunrise():
    result = compute_sun_phenomenon(78.22, 15.65, "Sunrise", date(2025, 12, 21), UTC)
    assert result.status is PhenomenonStatus.absent


def test_wroclaw_sunrise_and_sunset(warsaw: ZoneInfo):
    lat, lon = WROCLAW
    day = date(2025, 3, 16)
    sunrise = compute_sun_phenomenon(lat, lon, "Sunrise", day, warsaw)
    sunset = compute_sun_phenomenon(lat, lon, "Sunset", day, warsaw)

    assert sunrise.occurs and sunset.occurs
    assert sunrise.time.tzinfo is warsaw
    assert time(5, 45) <= sunrise.time.time() <= time(6, 20)
    assert time(17, 35) <= sunset.time.time() <= time(18, 15)


def test_times_are_truncated_to_minutes(warsaw: ZoneInfo):
    lat, lon = WROCLAW
    result = compute_sun_phenomenon(lat, lon, "Civil_Dawn", date(2025, 3, 16), warsaw)
    assert result.time.second == 0 and result.time.microsecond == 0


def test_phenomena_are_ordered_through_the_day(warsaw: ZoneInfo):
    lat, lon = WROCLAW
    day = date(2025, 3, 16)
    order = [
        Phenomenon.astronomical_dawn,
        Phenomenon.nautical_dawn,
        Phenomenon.civil_dawn,
        Phenomenon.sunrise,
        Phenomenon.sunset,
        Phenomenon.civil_dusk,
        Phenomenon.nautical_dusk,
        Phenomenon.astronomical_dusk,
    ]
    times = [compute_sun_phenomenon(lat, lon, phenomenon, day, warsaw).time for phenomenon in order]
    assert all(when is not None for when in times)
    assert times == sorted(times)


def test_sunrise_east_of_greenwich_stays_on_local_day():
    # Tokyo sunrise happens on the previous UTC date.
    tokyo = ZoneInfo("Asia/Tokyo")
    day = date(2025, 3, 16)
    result = compute_sun_phenomenon(35.68, 139.69, "Sunrise", day, tokyo)
    assert result.status is PhenomenonStatus.found
    assert result.time.date() == day
    assert time(5, 35) <= result.time.time() <= time(6, 5)
    assert result.time.astimezone(UTC).date() == date(2025, 3, 15)


def test_sunset_west_of_greenwich_stays_on_local_day():
    # Los Angeles sunset happens after the next UTC midnight.
    los_angeles = ZoneInfo("America/Los_Angeles")
    day = date(2025, 3, 16)
    result = compute_sun_phenomenon(34.05, -118.24, "Sunset", day, los_angeles)
    assert result.status is PhenomenonStatus.found
    assert result.time.date() == day
    assert time(18, 50) <= result.time.time() <= time(19, 15)
    assert result.time.astimezone(UTC).date() == date(2025, 3, 17)
