"""Environment-driven settings for the skyevents service."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .ephemeris import get_ephemeris

__all__ = ["Settings", "load_settings", "resolve_timezone"]

ENV_PREFIX = "SKYEVENTS_"


@dataclass(frozen=True)
class Settings:
    default_tz: str = "UTC"
    ephemeris: str = "kepler"
    max_days: int = 31
    n_jobs: int = 1
    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = ()


def resolve_timezone(name: str) -> ZoneInfo:
    """Return the IANA zone called *name*, raising ``ValueError`` if unknown."""

    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown time zone: {name}") from exc


def _positive_int(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = environ.get(ENV_PREFIX + key)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{key} must be an integer, got {raw!r}") from exc
    if value < 1:
        raise ValueError(f"{ENV_PREFIX}{key} must be at least 1, got {value}")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings` from ``SKYEVENTS_*`` environment variables."""

    env = os.environ if environ is None else environ

    default_tz = env.get(ENV_PREFIX + "DEFAULT_TZ", "UTC").strip() or "UTC"
    resolve_timezone(default_tz)

    ephemeris = env.get(ENV_PREFIX + "EPHEMERIS", "kepler").strip().lower() or "kepler"
    get_ephemeris(ephemeris)

    log_level = env.get(ENV_PREFIX + "LOG_LEVEL", "INFO").strip().upper() or "INFO"
    if log_level not in logging.getLevelNamesMapping():
        raise ValueError(f"{ENV_PREFIX}LOG_LEVEL is not a logging level: {log_level!r}")

    origins = tuple(
        origin.strip()
        for origin in env.get(ENV_PREFIX + "CORS_ORIGINS", "").split(",")
        if origin.strip()
    )

    return Settings(
        default_tz=default_tz,
        ephemeris=ephemeris,
        max_days=_positive_int(env, "MAX_DAYS", 31),
        n_jobs=_positive_int(env, "N_JOBS", 1),
        log_level=log_level,
        cors_origins=origins,
    )
