"""Fetch daily + hourly weather for risk assessment from the Open-Meteo API."""
from __future__ import annotations

import datetime as dt
from typing import Any, Dict

import requests
import requests_cache
from retry_requests import retry

from croprisk.config import settings
from croprisk.errors import WeatherProviderError
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="open_meteo_client")

cache_session = requests_cache.CachedSession(".cache", expire_after=settings.cache_expire_seconds)
session = retry(cache_session, retries=settings.http_retries, backoff_factor=0.2)

HOURLY_VARS = [
    "temperature_2m",
    "relativehumidity_2m",
    "precipitation",
    "windspeed_10m",
    "windgusts_10m",
]

DAILY_VARS = [
    "temperature_2m_max",
    "temperature_2m_min",
    "precipitation_sum",
    "uv_index_max",
    "windspeed_10m_max",
]

EXPECTED_HOURLY_UNITS = {
    "temperature_2m": "°C",
    "relativehumidity_2m": "%",
    "precipitation": "mm",
    "windspeed_10m": "m/s",
    "windgusts_10m": "m/s",
}

# Acceptable alternative units that should not trigger warnings (API/localized differences).
ALLOWED_UNIT_SYNONYMS = {
    "relativehumidity_2m": {"%", "percent"},
    "windspeed_10m": {"m/s", "ms", "km/h", "mph", "kn"},
    "windgusts_10m": {"m/s", "ms", "km/h", "mph", "kn"},
}


def _warn_on_unexpected_units(units: dict, *, context: str):
    """Log a warning if Open-Meteo returns units we did not request."""
    if not units:
        return
    for field, expected in EXPECTED_HOURLY_UNITS.items():
        actual = units.get(field)
        if not actual or actual == expected:
            continue
        allowed = ALLOWED_UNIT_SYNONYMS.get(field, set())
        if actual not in allowed:
            logger.warning(
                "Unexpected Open-Meteo unit",
                extra={"context": context, "field": field, "unit": actual, "expected": expected},
            )


def fetch_risk_payload(
    latitude: float,
    longitude: float,
    *,
    start_date: dt.date,
    end_date: dt.date,
    timezone: str = "auto",
    timeout: float | None = None,
) -> Dict[str, Any]:
    """
    Fetch the raw `daily` + `hourly` payload covering [start_date, end_date].

    Wind speeds are requested in m/s. The payload is returned unmodified so the
    series builder remains the only normalizer. Network and HTTP failures are
    raised as WeatherProviderError.
    """
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "hourly": ",".join(HOURLY_VARS),
        "daily": ",".join(DAILY_VARS),
        "start_date": start_date.isoformat(),
        "end_date": end_date.isoformat(),
        "timezone": timezone,
        "wind_speed_unit": "ms",
    }

    logger.info(
        "Fetching Open-Meteo weather",
        extra={"latitude": latitude, "longitude": longitude, "start_date": params["start_date"],
               "end_date": params["end_date"]},
    )
    try:
        resp = session.get(settings.open_meteo_url, params=params, timeout=timeout or settings.request_timeout_seconds)
        resp.raise_for_status()
        data = resp.json()
    except requests.RequestException as exc:
        logger.error("Open-Meteo request failed", extra={"error": str(exc)})
        raise WeatherProviderError("Failed to fetch weather data.") from exc
    except ValueError as exc:
        raise WeatherProviderError("Open-Meteo returned a non-JSON response.") from exc

    _warn_on_unexpected_units(data.get("hourly_units") or {}, context="risk_hourly")
    logger.debug(
        "Fetched Open-Meteo weather",
        extra={
            "daily_count": len((data.get("daily") or {}).get("time") or []),
            "hourly_count": len((data.get("hourly") or {}).get("time") or []),
        },
    )
    return data
