"""Pydantic models for API requests and responses."""

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from skyevents.phase import MoonPhase
from skyevents.sun import Phenomenon, PhenomenonStatus


class LocationDayParams(BaseModel):
    """Validated query parameters shared by the per-day endpoints."""

    lat: float = Field(..., ge=-90.0, le=90.0, description="Latitude in degrees")
    lon: float = Field(..., ge=-180.0, le=180.0, description="Longitude in degrees (east positive)")
    day: date = Field(..., description="Local calendar date (YYYY-MM-DD)")
    tz: Optional[str] = Field(
        None, description="IANA time zone of the date; the configured default when omitted"
    )


class SunPhenomenonParams(LocationDayParams):
    phenomenon: str = Field(
        ...,
        description="One of astronomical_dawn, nautical_dawn, civil_dawn, sunrise, "
        "sunset, civil_dusk, nautical_dusk, astronomical_dusk",
    )


class AlmanacParams(LocationDayParams):
    days: int = Field(1, ge=1, description="Number of consecutive days")


class MoonPhaseParams(BaseModel):
    at: datetime = Field(..., description="Instant (ISO-8601); naive values are read in tz")
    tz: Optional[str] = Field(None, description="IANA time zone for naive instants")


class MoonPhaseResponse(BaseModel):
    ok: bool = True
    at: str = Field(..., description="Instant of the sample (ISO-8601)")
    age_days: float = Field(..., description="Days since the mean new moon")
    illuminated_fraction: float = Field(..., ge=0.0, le=1.0)
    phase: MoonPhase


class MoonRiseSetResponse(BaseModel):
    ok: bool = True
    status: str = Field(..., description="ok, always_up or always_down")
    day: date
    latitude: float
    longitude: float
    tz: str
    moonrise_local: Optional[str] = None
    moonset_local: Optional[str] = None
    moonrise_utc: Optional[str] = None
    moonset_utc: Optional[str] = None
    ephemeris: str = Field(..., description="Moon position model")


class SunPhenomenonResponse(BaseModel):
    ok: bool = True
    status: PhenomenonStatus
    requested: Phenomenon
    computed: Optional[Phenomenon] = Field(
        None, description="Phenomenon the time belongs to; differs from requested on fallback"
    )
    day: date
    latitude: float
    longitude: float
    tz: str
    time_local: Optional[str] = None
    time_utc: Optional[str] = None


class SunEventSummary(BaseModel):
    status: PhenomenonStatus
    computed: Optional[Phenomenon] = None
    time_local: Optional[str] = None


class MoonEventSummary(BaseModel):
    status: str
    moonrise_local: Optional[str] = None
    moonset_local: Optional[str] = None


class AlmanacDay(BaseModel):
    day: date
    moon_age_days: float
    moon_illuminated_fraction: float
    moon_phase: MoonPhase
    moon: MoonEventSummary
    sun: Dict[Phenomenon, SunEventSummary]


class AlmanacResponse(BaseModel):
    ok: bool = True
    latitude: float
    longitude: float
    tz: str
    ephemeris: str
    days: List[AlmanacDay]


class HealthResponse(BaseModel):
    """Health-check response."""

    ok: bool = True
    ephemeris: str
    default_tz: str


class ErrorResponse(BaseModel):
    """Error payload."""

    ok: bool = False
    code: str
    error: str
