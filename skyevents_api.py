"""FastAPI application exposing Moon phase, moonrise/moonset and twilight computations."""

from __future__ import annotations

import json
import logging
import time
from datetime import UTC, datetime, tzinfo
from typing import Annotated, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from models import (
    AlmanacDay,
    AlmanacParams,
    AlmanacResponse,
    ErrorResponse,
    HealthResponse,
    LocationDayParams,
    MoonEventSummary,
    MoonPhaseParams,
    MoonPhaseResponse,
    MoonRiseSetResponse,
    SunEventSummary,
    SunPhenomenonParams,
    SunPhenomenonResponse,
)
from skyevents import (
    EphemerisError,
    compute_almanac_range,
    compute_moon_phase,
    compute_moon_rise_set,
    compute_sun_phenomenon,
    get_ephemeris,
)
from skyevents.config import Settings, load_settings, resolve_timezone

LOGGER = logging.getLogger("skyevents-api")

APP_DESCRIPTION = "Moon phase, moonrise/moonset and twilight times from low-precision series"


def _format_utc(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.astimezone(UTC).isoformat().replace("+00:00", "Z")


def _format_local(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.isoformat()


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    payload = ErrorResponse(code=code, error=message)
    LOGGER.error(json.dumps({"event": "error", "code": code, "message": message}))
    return JSONResponse(status_code=status_code, content=payload.model_dump())


def _log_request(event: str, start_time: float, **fields: object) -> None:
    duration_ms = (time.perf_counter() - start_time) * 1000.0
    LOGGER.info(json.dumps({"event": event, **fields, "duration_ms": round(duration_ms, 3)}))


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(level=settings.log_level, format="%(message)s")
    ephemeris = get_ephemeris(settings.ephemeris)

    app = FastAPI(title="Skyevents API", description=APP_DESCRIPTION, version="1.0.0")
    app.state.settings = settings
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def _zone(name: Optional[str]) -> tuple[str, tzinfo]:
        zone_name = name or settings.default_tz
        try:
            return zone_name, resolve_timezone(zone_name)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        messages = ", ".join(error["msg"] for error in exc.errors())
        return _error_response(422, "validation_error", messages)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        detail = exc.detail
        if isinstance(detail, dict):
            message = detail.get("error") or detail.get("message") or str(detail)
        elif isinstance(detail, list):
            message = ", ".join(str(item) for item in detail)
        else:
            message = str(detail)
        return _error_response(exc.status_code, f"http_{exc.status_code}", message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        LOGGER.exception("Unhandled exception", exc_info=exc)
        return _error_response(500, "internal_error", "Unhandled server error")

    error_responses = {
        400: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    }

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(ok=True, ephemeris=ephemeris.name, default_tz=settings.default_tz)

    @app.get("/moon/phase", response_model=MoonPhaseResponse, responses=error_responses)
    def moon_phase_endpoint(params: Annotated[MoonPhaseParams, Query()]) -> MoonPhaseResponse:
        start_time = time.perf_counter()
        at = params.at
        if at.tzinfo is None:
            _, zone = _zone(params.tz)
            at = at.replace(tzinfo=zone)
        sample = compute_moon_phase(at)
        _log_request("moon_phase", start_time, at=at.isoformat(), phase=sample.phase.value)
        return MoonPhaseResponse(
            at=at.isoformat(),
            age_days=sample.age_days,
            illuminated_fraction=sample.illuminated_fraction,
            phase=sample.phase,
        )

    @app.get("/moon/riseset", response_model=MoonRiseSetResponse, responses=error_responses)
    def moon_rise_set_endpoint(
        params: Annotated[LocationDayParams, Query()],
    ) -> MoonRiseSetResponse:
        start_time = time.perf_counter()
        zone_name, zone = _zone(params.tz)
        try:
            result = compute_moon_rise_set(params.lat, params.lon, params.day, zone, ephemeris)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except EphemerisError as exc:
            raise HTTPException(status_code=500, detail=str(exc))

        _log_request(
            "moon_riseset",
            start_time,
            lat=params.lat,
            lon=params.lon,
            day=params.day.isoformat(),
            tz=zone_name,
            status=result.status,
        )
        return MoonRiseSetResponse(
            status=result.status,
            day=params.day,
            latitude=params.lat,
            longitude=params.lon,
            tz=zone_name,
            moonrise_local=_format_local(result.moonrise),
            moonset_local=_format_local(result.moonset),
            moonrise_utc=_format_utc(result.moonrise),
            moonset_utc=_format_utc(result.moonset),
            ephemeris=ephemeris.name,
        )

    @app.get("/sun/phenomenon", response_model=SunPhenomenonResponse, responses=error_responses)
    def sun_phenomenon_endpoint(
        params: Annotated[SunPhenomenonParams, Query()],
    ) -> SunPhenomenonResponse:
        start_time = time.perf_counter()
        zone_name, zone = _zone(params.tz)
        try:
            result = compute_sun_phenomenon(
                params.lat, params.lon, params.phenomenon, params.day, zone
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))

        _log_request(
            "sun_phenomenon",
            start_time,
            lat=params.lat,
            lon=params.lon,
            day=params.day.isoformat(),
            tz=zone_name,
            phenomenon=result.requested.value,
            status=result.status.value,
        )
        return SunPhenomenonResponse(
            status=result.status,
            requested=result.requested,
            computed=result.computed,
            day=params.day,
            latitude=params.lat,
            longitude=params.lon,
            tz=zone_name,
            time_local=_format_local(result.time),
            time_utc=_format_utc(result.time),
        )

    @app.get("/almanac", response_model=AlmanacResponse, responses=error_responses)
    def almanac_endpoint(params: Annotated[AlmanacParams, Query()]) -> AlmanacResponse:
        start_time = time.perf_counter()
        zone_name, zone = _zone(params.tz)
        if params.days > settings.max_days:
            raise HTTPException(
                status_code=400,
                detail=f"days must not exceed {settings.max_days}",
            )
        try:
            almanacs = compute_almanac_range(
                params.lat,
                params.lon,
                params.day,
                params.days,
                zone,
                ephemeris=ephemeris,
                n_jobs=settings.n_jobs,
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except EphemerisError as exc:
            raise HTTPException(status_code=500, detail=str(exc))

        days = [
            AlmanacDay(
                day=almanac.day,
                moon_age_days=almanac.moon_phase.age_days,
                moon_illuminated_fraction=almanac.moon_phase.illuminated_fraction,
                moon_phase=almanac.moon_phase.phase,
                moon=MoonEventSummary(
                    status=almanac.moon.status,
                    moonrise_local=_format_local(almanac.moon.moonrise),
                    moonset_local=_format_local(almanac.moon.moonset),
                ),
                sun={
                    phenomenon: SunEventSummary(
                        status=result.status,
                        computed=result.computed,
                        time_local=_format_local(result.time),
                    )
                    for phenomenon, result in almanac.sun.items()
                },
            )
            for almanac in almanacs
        ]
        _log_request(
            "almanac",
            start_time,
            lat=params.lat,
            lon=params.lon,
            day=params.day.isoformat(),
            days=params.days,
            tz=zone_name,
        )
        return AlmanacResponse(
            latitude=params.lat,
            longitude=params.lon,
            tz=zone_name,
            ephemeris=ephemeris.name,
            days=days,
        )

    return app


app = create_app()
