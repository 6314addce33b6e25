"""Weather payload sources for the risk engine."""

from .base import CallableWeatherPayloadSource, WeatherPayloadSource
from .open_meteo_client import fetch_risk_payload


def default_data_source() -> WeatherPayloadSource:
    """Open-Meteo backed source used when callers do not inject one."""
    return CallableWeatherPayloadSource(fetch_risk_payload)


__all__ = [
    "CallableWeatherPayloadSource",
    "WeatherPayloadSource",
    "default_data_source",
    "fetch_risk_payload",
]
