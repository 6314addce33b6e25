"""Fetch a weather window for a location and turn it into a risk report."""
from __future__ import annotations

import datetime as dt
from typing import Tuple

from croprisk.config import Settings, settings as default_settings
from croprisk.data_sources import WeatherPayloadSource, default_data_source
from croprisk.domain import RiskReport
from croprisk.report import assemble_report, utc_now
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="forecast_service")


def resolve_date_window(today: dt.date, *, history_days: int, forecast_days: int) -> Tuple[dt.date, dt.date]:
    """Return the (start, end) dates that cover the history and forecast windows."""
    return today - dt.timedelta(days=history_days), today + dt.timedelta(days=forecast_days)


def get_risk_report(
    latitude: float,
    longitude: float,
    *,
    today: dt.date | None = None,
    data_source: WeatherPayloadSource | None = None,
    settings: Settings | None = None,
) -> RiskReport:
    """
    Fetch weather for `history_days` before and `forecast_days` after `today`
    and assemble the risk report.

    Without `today` the location's date is only known once the payload
    arrives (it is within a day of the UTC date), so the fetched window is
    widened by one day on each side and the report uses the payload's date.

    The `data_source` argument lets you inject alternate providers (fixtures,
    cached layers, a different API). Provider failures propagate as
    WeatherProviderError; series failures as MalformedSeriesError or
    EmptyForecastError.
    """
    cfg = settings or default_settings
    if today is None:
        start, end = resolve_date_window(
            utc_now().date(), history_days=cfg.history_days + 1, forecast_days=cfg.forecast_days + 1
        )
    else:
        start, end = resolve_date_window(today, history_days=cfg.history_days, forecast_days=cfg.forecast_days)

    ds = data_source or default_data_source()
    payload = ds.fetch_payload(latitude, longitude, start_date=start, end_date=end, timezone=cfg.timezone)
    logger.debug("Fetched weather payload", extra={"start_date": start.isoformat(), "end_date": end.isoformat()})

    return assemble_report(payload, today, max_workers=cfg.rule_workers)
