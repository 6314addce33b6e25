"""Assemble a RiskReport from a raw weather payload.

Build the series, split it at `today`, run every registered rule against its
partition and collect the findings in registration order. Both fatal
conditions (malformed daily data, empty forecast) surface before any rule
runs.
"""

from __future__ import annotations

import datetime as dt
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Mapping, Sequence

from croprisk.domain import DayRecord, RiskFinding, RiskReport
from croprisk.errors import MalformedSeriesError
from croprisk.partition import partition_series
from croprisk.rules import RULES, RiskRule, RuleScope
from croprisk.series_builder import build_weather_series
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="report")


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def location_today(payload: Mapping[str, Any]) -> dt.date:
    """
    Current date at the forecast location.

    Open-Meteo dates its series in the location's time when asked for
    `timezone=auto` and reports the offset as `utc_offset_seconds`. Payloads
    without an offset fall back to the server's local date.
    """
    offset = payload.get("utc_offset_seconds")
    if offset is None:
        return dt.date.today()
    if isinstance(offset, bool) or not isinstance(offset, (int, float)):
        raise MalformedSeriesError(f"utc_offset_seconds must be a number, got {offset!r}")
    return (utc_now() + dt.timedelta(seconds=offset)).date()


def _days_for(rule: RiskRule, history: Sequence[DayRecord], forecast: Sequence[DayRecord]) -> Sequence[DayRecord]:
    """Select the partition a rule is registered against."""
    if rule.scope == RuleScope.HISTORY:
        return history
    if rule.scope == RuleScope.FORECAST:
        return forecast
    raise AssertionError(f"unhandled rule scope {rule.scope!r}")


def evaluate_rules(
    history: Sequence[DayRecord],
    forecast: Sequence[DayRecord],
    rules: Sequence[RiskRule] = RULES,
    *,
    max_workers: int | None = None,
) -> RiskReport:
    """
    Run `rules` and return their findings in registration order.

    With `max_workers` > 1 the rules are evaluated concurrently on a thread
    pool; results are still placed by rule index, so the report is identical
    to a serial run.
    """
    if max_workers and max_workers > 1 and len(rules) > 1:
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="risk-rule") as pool:
            futures = [pool.submit(rule.evaluate, _days_for(rule, history, forecast)) for rule in rules]
            findings: List[RiskFinding] = [f.result() for f in futures]
    else:
        findings = [rule.evaluate(_days_for(rule, history, forecast)) for rule in rules]

    assert len(findings) == len(rules), "every rule must yield exactly one finding"
    for rule, finding in zip(rules, findings):
        logger.debug("Evaluated rule", extra={"rule": rule.name, "finding": finding.to_record()})
    return RiskReport(findings=tuple(findings))


def assemble_report(
    payload: Mapping[str, Any],
    today: dt.date | None = None,
    *,
    rules: Sequence[RiskRule] = RULES,
    wind_speed_unit: str | None = None,
    max_workers: int | None = None,
) -> RiskReport:
    """
    Pure entry point: provider payload in, ordered RiskReport out.

    `today` defaults to the current date at the forecast location (see
    `location_today`). Raises MalformedSeriesError or EmptyForecastError;
    rules themselves never raise for thin data.
    """
    reference = today or location_today(payload)
    series = build_weather_series(payload, wind_speed_unit=wind_speed_unit)
    history, forecast = partition_series(series, reference)

    report = evaluate_rules(history, forecast, rules, max_workers=max_workers)
    logger.info(
        "Assembled risk report",
        extra={
            "today": reference.isoformat(),
            "history_days": len(history),
            "forecast_days": len(forecast),
            "findings": len(report.findings),
        },
    )
    return report
