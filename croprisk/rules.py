"""Deterministic risk rules over a partitioned weather series.

Each rule is a pure function of the days it is given and returns exactly one
finding. Rules never raise for missing or short data: they fall back to the
non-alarming classification (Low risk, Good conditions) and say so in the
finding details. Rules do not depend on each other and can run in any order.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, Sequence, Tuple

from croprisk.domain import (
    DROUGHT_STRESS_LABEL,
    FLOODING_LABEL,
    FUNGAL_DISEASE_LABEL,
    SPRAYING_LABEL,
    DayRecord,
    HazardFinding,
    HourRecord,
    RiskFinding,
    RiskLevel,
    Suitability,
    SuitabilityFinding,
)

# Fungal disease: warm, saturated hours sustained long enough for spores to germinate.
FUNGAL_TEMP_MIN_C = 20.0
FUNGAL_TEMP_MAX_C = 28.0
FUNGAL_HUMIDITY_MIN_PERCENT = 85.0  # exclusive
FUNGAL_MIN_RUN_HOURS = 6

DROUGHT_MIN_DRY_DAYS = 7
DROUGHT_TEMP_MAX_C = 32.0  # exclusive

FLOOD_SINGLE_DAY_MM = 50.0  # exclusive
FLOOD_WINDOW_DAYS = 3
FLOOD_WINDOW_MM = 100.0  # exclusive

SPRAY_MAX_WIND_KMH = 15.0  # exclusive
SPRAY_RAIN_WINDOW_HOURS = 6
SPRAY_RAIN_WINDOW_MM = 2.0  # exclusive

ONE_DAY = dt.timedelta(days=1)


class RuleScope(str, Enum):
    """Which partition of the series a rule consumes."""
    HISTORY = "history"
    FORECAST = "forecast"


@dataclass(frozen=True)
class RiskRule:
    """A named rule bound to the partition it evaluates."""
    name: str
    scope: RuleScope
    evaluate: Callable[[Sequence[DayRecord]], RiskFinding]


def _precip(value: float | None) -> float:
    """Missing precipitation counts as no rain."""
    return 0.0 if value is None else value


def _consecutive(hours: Sequence[HourRecord]) -> bool:
    """Return True if the hours carry hourly consecutive timestamps."""
    for prev, curr in zip(hours, hours[1:]):
        delta = (curr.time - prev.time).total_seconds()
        if abs(delta - 3600) > 90:  # allow a small drift
            return False
    return True


def _forward_windows(hours: Sequence[HourRecord], width: int) -> Iterator[Tuple[int, Sequence[HourRecord]]]:
    """Yield `(start, hours)` for every full, gap-free window of `width` hours."""
    assert width > 0, "window width must be positive"
    for start in range(len(hours) - width + 1):
        window = hours[start : start + width]
        if _consecutive(window):
            yield start, window


def _fungal_hour_qualifies(hour: HourRecord) -> bool:
    """Warm and humid enough to count toward a fungal infection period."""
    if hour.temperature_c is None or hour.humidity_percent is None:
        return False
    return (
        FUNGAL_TEMP_MIN_C <= hour.temperature_c <= FUNGAL_TEMP_MAX_C
        and hour.humidity_percent > FUNGAL_HUMIDITY_MIN_PERCENT
    )


def longest_qualifying_run(hours: Sequence[HourRecord]) -> int:
    """Longest run of consecutive qualifying hours.

    A failing hour resets the count, and so does a missing hour: the run only
    grows while timestamps advance one hour at a time.
    """
    running = 0
    longest = 0
    prev: HourRecord | None = None
    for hour in hours:
        if prev is not None and not _consecutive((prev, hour)):
            running = 0
        running = running + 1 if _fungal_hour_qualifies(hour) else 0
        longest = max(longest, running)
        prev = hour
    return longest


def check_fungal_disease(days: Sequence[DayRecord]) -> HazardFinding:
    """High on the first forecast day with a long enough warm/humid run, else Low."""
    for day in days:
        run = longest_qualifying_run(day.hours)
        if run >= FUNGAL_MIN_RUN_HOURS:
            return HazardFinding(
                label=FUNGAL_DISEASE_LABEL,
                level=RiskLevel.HIGH,
                details=f"On {day.date.isoformat()}, conditions are favorable for {run} consecutive hours.",
            )

    details = "Conditions are not favorable for powdery mildew."
    missing = sum(1 for d in days if not d.hours)
    if missing:
        details += f" Hourly data was unavailable for {missing} of {len(days)} forecast day(s)."
    return HazardFinding(label=FUNGAL_DISEASE_LABEL, level=RiskLevel.LOW, details=details)


def trailing_dry_streak(days: Sequence[DayRecord]) -> int:
    """Count zero-precipitation calendar days backward from the most recent day."""
    streak = 0
    later: DayRecord | None = None
    for day in reversed(days):
        # an absent date or a missing daily total ends the streak
        if later is not None and later.date - day.date != ONE_DAY:
            break
        if day.precipitation_mm is None or day.precipitation_mm != 0:
            break
        streak += 1
        later = day
    return streak


def check_drought_stress(days: Sequence[DayRecord]) -> HazardFinding:
    """High when the current dry streak is long and the latest day was hot."""
    if not days:
        return HazardFinding(
            label=DROUGHT_STRESS_LABEL,
            level=RiskLevel.LOW,
            details="No recent weather history was available; drought stress could not be assessed.",
        )

    streak = trailing_dry_streak(days)
    latest = days[-1]
    hot = latest.temp_max_c is not None and latest.temp_max_c > DROUGHT_TEMP_MAX_C

    if streak >= DROUGHT_MIN_DRY_DAYS and hot:
        return HazardFinding(
            label=DROUGHT_STRESS_LABEL,
            level=RiskLevel.HIGH,
            details=(
                f"No rainfall for {streak} consecutive days with high temperatures "
                f"({latest.temp_max_c:.1f}°C on {latest.date.isoformat()})."
            ),
        )

    if streak < DROUGHT_MIN_DRY_DAYS:
        details = f"Sufficient rainfall has occurred recently (current dry streak: {streak} day(s))."
    elif latest.temp_max_c is None:
        details = (
            f"No rainfall for {streak} consecutive days, but the maximum temperature for "
            f"{latest.date.isoformat()} is unavailable."
        )
    else:
        details = (
            f"No rainfall for {streak} consecutive days, but the maximum temperature of "
            f"{latest.temp_max_c:.1f}°C is not above {DROUGHT_TEMP_MAX_C:.0f}°C."
        )
    return HazardFinding(label=DROUGHT_STRESS_LABEL, level=RiskLevel.LOW, details=details)


def check_flooding_risk(days: Sequence[DayRecord]) -> HazardFinding:
    """High on the first day with a heavy single-day total or a heavy 3-day window.

    The window covers calendar dates, not records: a date absent from the
    forecast contributes 0 mm. Windows running past the last forecast date
    are not evaluated.
    """
    totals = {d.date: _precip(d.precipitation_mm) for d in days}
    last_date = days[-1].date if days else None

    for day in days:
        total = totals[day.date]
        if total > FLOOD_SINGLE_DAY_MM:
            return HazardFinding(
                label=FLOODING_LABEL,
                level=RiskLevel.HIGH,
                details=f"On {day.date.isoformat()}, heavy rainfall of {total:.1f}mm is expected.",
            )
        window_dates = [day.date + ONE_DAY * k for k in range(FLOOD_WINDOW_DAYS)]
        if window_dates[-1] > last_date:
            continue
        window_total = sum(totals.get(d, 0.0) for d in window_dates)
        if window_total > FLOOD_WINDOW_MM:
            return HazardFinding(
                label=FLOODING_LABEL,
                level=RiskLevel.HIGH,
                details=(
                    f"Starting {day.date.isoformat()}, heavy rainfall of {window_total:.1f}mm "
                    f"is expected over {FLOOD_WINDOW_DAYS} days."
                ),
            )

    return HazardFinding(
        label=FLOODING_LABEL,
        level=RiskLevel.LOW,
        details="Forecast rainfall is below flood risk thresholds.",
    )


def check_spraying_conditions(days: Sequence[DayRecord]) -> SuitabilityFinding:
    """Judge today's spray window: Poor on the first windy hour or rainy 6-hour stretch."""
    hours = days[0].hours if days else ()
    if not hours:
        return SuitabilityFinding(
            label=SPRAYING_LABEL,
            assessment=Suitability.GOOD,
            details="No hourly forecast was available for today; no wind or rain limits were detected.",
        )

    rain_windows = {
        start: sum(_precip(h.precipitation_mm) for h in window)
        for start, window in _forward_windows(hours, SPRAY_RAIN_WINDOW_HOURS)
    }

    for i, hour in enumerate(hours):
        clock = hour.time.strftime("%H:%M")
        if hour.wind_speed_kmh is not None and hour.wind_speed_kmh > SPRAY_MAX_WIND_KMH:
            return SuitabilityFinding(
                label=SPRAYING_LABEL,
                assessment=Suitability.POOR,
                details=f"Unsuitable due to high wind speed ({hour.wind_speed_kmh:.1f} km/h) at {clock}.",
            )
        rain_total = rain_windows.get(i)
        if rain_total is not None and rain_total > SPRAY_RAIN_WINDOW_MM:
            return SuitabilityFinding(
                label=SPRAYING_LABEL,
                assessment=Suitability.POOR,
                details=(
                    f"Unsuitable due to {rain_total:.1f}mm rain expected in the "
                    f"{SPRAY_RAIN_WINDOW_HOURS} hours from {clock}."
                ),
            )

    return SuitabilityFinding(
        label=SPRAYING_LABEL,
        assessment=Suitability.GOOD,
        details="Conditions are favorable for spraying.",
    )


# Registration order is report order. Append new rules; do not reorder.
RULES: Tuple[RiskRule, ...] = (
    RiskRule("fungal_disease", RuleScope.FORECAST, check_fungal_disease),
    RiskRule("drought_stress", RuleScope.HISTORY, check_drought_stress),
    RiskRule("flooding", RuleScope.FORECAST, check_flooding_risk),
    RiskRule("spraying", RuleScope.FORECAST, check_spraying_conditions),
)
