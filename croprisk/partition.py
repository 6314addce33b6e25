"""Split a WeatherSeries into history and forecast views around a reference date."""

from __future__ import annotations

import datetime as dt
from typing import Tuple

from croprisk.domain import DayRecord, WeatherSeries
from croprisk.errors import EmptyForecastError
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="partition")


def partition_series(
    series: WeatherSeries, today: dt.date
) -> Tuple[Tuple[DayRecord, ...], Tuple[DayRecord, ...]]:
    """
    Return `(history_days, forecast_days)`.

    History holds days strictly before `today`; forecast holds `today` and
    later. Chronological order is preserved in both. An empty history is
    valid, an empty forecast raises EmptyForecastError.
    """
    history = tuple(d for d in series.days if d.date < today)
    forecast = tuple(d for d in series.days if d.date >= today)

    if not forecast:
        raise EmptyForecastError(f"No forecast data on or after {today.isoformat()}")

    logger.debug(
        "Partitioned weather series",
        extra={"today": today.isoformat(), "history_days": len(history), "forecast_days": len(forecast)},
    )
    return history, forecast
