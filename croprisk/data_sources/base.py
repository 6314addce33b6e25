"""Interfaces and helpers for weather payload sources."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Callable, Dict, Protocol


class WeatherPayloadSource(Protocol):
    """Anything that can return a raw daily + hourly weather payload for a location."""

    def fetch_payload(
        self,
        latitude: float,
        longitude: float,
        *,
        start_date: dt.date,
        end_date: dt.date,
        timezone: str = "auto",
    ) -> Dict[str, Any]:
        """Return the provider payload covering [start_date, end_date]."""
        ...


@dataclass
class CallableWeatherPayloadSource(WeatherPayloadSource):
    """Wrap a fetch callable so it can be swapped for a fixture or another provider."""

    fetch: Callable[..., Dict[str, Any]]

    def fetch_payload(self, *args, **kwargs) -> Dict[str, Any]:
        """Delegate to the configured callable."""
        return self.fetch(*args, **kwargs)
