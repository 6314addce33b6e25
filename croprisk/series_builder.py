"""Normalize a raw Open-Meteo style payload into a WeatherSeries.

The provider returns two co-indexed groups: `daily` (one entry per date) and
`hourly` (one entry per hour). This module folds the hourly entries into the
day they belong to, converts wind speeds to km/h once, and replaces absent
values with explicit `None` samples. Nothing else in the engine constructs a
WeatherSeries.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Mapping, Sequence

from pydantic import ValidationError

from croprisk.domain import DayRecord, HourRecord, WeatherSeries
from croprisk.errors import MalformedSeriesError
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="series_builder")

# Multipliers that convert a provider wind unit into km/h.
WIND_TO_KMH = {
    "m/s": 3.6,
    "ms": 3.6,
    "km/h": 1.0,
    "kmh": 1.0,
    "mph": 1.609344,
    "kn": 1.852,
    "knots": 1.852,
}
DEFAULT_WIND_UNIT = "m/s"

# Open-Meteo renamed several variables; accept both spellings.
DAILY_FIELDS = {
    "temp_max_c": ("temperature_2m_max",),
    "temp_min_c": ("temperature_2m_min",),
    "precipitation_mm": ("precipitation_sum",),
    "uv_index_max": ("uv_index_max",),
    "wind_speed_max_kmh": ("windspeed_10m_max", "wind_speed_10m_max"),
}
HOURLY_FIELDS = {
    "temperature_c": ("temperature_2m",),
    "humidity_percent": ("relativehumidity_2m", "relative_humidity_2m"),
    "precipitation_mm": ("precipitation",),
    "wind_speed_kmh": ("windspeed_10m", "wind_speed_10m"),
    "wind_gust_kmh": ("windgusts_10m", "wind_gusts_10m"),
}


def _column(group: Mapping[str, Any], names: Sequence[str], length: int) -> List[Any]:
    """Return the first matching array padded with None up to `length`."""
    for name in names:
        values = group.get(name)
        if values is not None:
            values = list(values)
            return values[:length] + [None] * (length - len(values))
    return [None] * length


def _unit_for(units: Mapping[str, Any] | None, names: Sequence[str]) -> str | None:
    """Look up the unit string the provider reported for a variable."""
    if not units:
        return None
    for name in names:
        if units.get(name):
            return str(units[name])
    return None


def _wind_factor(unit: str | None) -> float:
    """Resolve the km/h multiplier for a wind unit, failing on unknown units."""
    key = (unit or DEFAULT_WIND_UNIT).strip().lower()
    if key not in WIND_TO_KMH:
        raise MalformedSeriesError(f"Unsupported wind speed unit '{unit}'")
    factor = WIND_TO_KMH[key]
    assert factor > 0, "wind conversion factor must be positive"
    return factor


def _to_kmh(value: Any, factor: float) -> float | None:
    """Convert a wind sample, keeping missing samples missing."""
    if value is None:
        return None
    return float(value) * factor


def _parse_date(raw: Any) -> dt.date:
    """Parse a daily `time` entry (YYYY-MM-DD)."""
    try:
        return dt.date.fromisoformat(str(raw)[:10])
    except ValueError as exc:
        raise MalformedSeriesError(f"Invalid daily date '{raw}'") from exc


def _parse_hour(raw: Any) -> dt.datetime:
    """Parse an hourly `time` entry (YYYY-MM-DDTHH:MM)."""
    try:
        return dt.datetime.fromisoformat(str(raw))
    except ValueError as exc:
        raise MalformedSeriesError(f"Invalid hourly timestamp '{raw}'") from exc


def build_weather_series(payload: Mapping[str, Any], *, wind_speed_unit: str | None = None) -> WeatherSeries:
    """
    Build a WeatherSeries from a provider payload.

    `wind_speed_unit` overrides the unit reported in `hourly_units`; when
    neither is present the speeds are assumed to be m/s. Hourly entries whose
    date has no daily entry are dropped. Raises MalformedSeriesError when the
    daily group is empty or repeats a date.
    """
    daily = payload.get("daily") or {}
    hourly = payload.get("hourly") or {}
    daily_times = list(daily.get("time") or [])
    if not daily_times:
        raise MalformedSeriesError("Daily weather data is empty")

    dates = [_parse_date(t) for t in daily_times]
    seen: set[dt.date] = set()
    for d in dates:
        if d in seen:
            raise MalformedSeriesError(f"Duplicate daily date {d.isoformat()}")
        seen.add(d)

    hourly_factor = _wind_factor(
        wind_speed_unit or _unit_for(payload.get("hourly_units"), HOURLY_FIELDS["wind_speed_kmh"])
    )
    daily_factor = _wind_factor(
        wind_speed_unit or _unit_for(payload.get("daily_units"), DAILY_FIELDS["wind_speed_max_kmh"])
        or _unit_for(payload.get("hourly_units"), HOURLY_FIELDS["wind_speed_kmh"])
    )

    n_days = len(dates)
    daily_cols = {field: _column(daily, names, n_days) for field, names in DAILY_FIELDS.items()}

    hour_times = list(hourly.get("time") or [])
    n_hours = len(hour_times)
    hourly_cols = {field: _column(hourly, names, n_hours) for field, names in HOURLY_FIELDS.items()}

    hours_by_date: Dict[dt.date, List[HourRecord]] = {d: [] for d in dates}
    dropped = 0
    try:
        for i, raw_time in enumerate(hour_times):
            stamp = _parse_hour(raw_time)
            bucket = hours_by_date.get(stamp.date())
            if bucket is None:
                dropped += 1
                continue
            fields = {field: col[i] for field, col in hourly_cols.items()}
            for key in ("wind_speed_kmh", "wind_gust_kmh"):
                fields[key] = _to_kmh(fields[key], hourly_factor)
            bucket.append(HourRecord(time=stamp, **fields))

        days: List[DayRecord] = []
        for i, d in enumerate(dates):
            fields = {field: col[i] for field, col in daily_cols.items()}
            fields["wind_speed_max_kmh"] = _to_kmh(fields["wind_speed_max_kmh"], daily_factor)
            days.append(DayRecord(date=d, hours=tuple(hours_by_date[d]), **fields))

        days.sort(key=lambda day: day.date)
        series = WeatherSeries(days=tuple(days))
    except (ValidationError, TypeError, ValueError) as exc:
        raise MalformedSeriesError(f"Weather payload failed validation: {exc}") from exc

    if dropped:
        logger.debug("Dropped hourly samples without a matching day", extra={"dropped": dropped})
    logger.debug(
        "Built weather series",
        extra={"days": n_days, "hours": n_hours - dropped, "first": min(dates).isoformat()},
    )
    return series
