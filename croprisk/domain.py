"""Domain vocabulary and strict schemas for weather-driven crop risk reports.

This module defines the stable contract between the series builder, the risk
rules and whatever presents the report: enums, finding labels and frozen
Pydantic models for the records that flow through the engine. No
classification logic lives here.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Annotated, Dict, List, Literal, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _FrozenModel(BaseModel):
    """Base model that rejects unknown fields and cannot be mutated."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class RiskLevel(str, Enum):
    """Severity axis used by hazard rules."""
    HIGH = "High"
    LOW = "Low"


class Suitability(str, Enum):
    """Suitability axis used by operational-decision rules."""
    GOOD = "Good"
    POOR = "Poor"


FUNGAL_DISEASE_LABEL = "Fungal Disease (Powdery Mildew)"
DROUGHT_STRESS_LABEL = "Drought Stress"
FLOODING_LABEL = "Flooding / Root Rot"
SPRAYING_LABEL = "Spraying Conditions"


class HourRecord(_FrozenModel):
    """One hour of weather at a location. `None` marks a missing sample."""
    time: dt.datetime
    temperature_c: float | None = None
    humidity_percent: float | None = None
    precipitation_mm: float | None = Field(default=None, ge=0.0)
    wind_speed_kmh: float | None = None
    wind_gust_kmh: float | None = None


class DayRecord(_FrozenModel):
    """Daily aggregates plus the hours that belong to the same calendar day."""
    date: dt.date
    temp_max_c: float | None = None
    temp_min_c: float | None = None
    precipitation_mm: float | None = Field(default=None, ge=0.0)
    uv_index_max: float | None = None
    wind_speed_max_kmh: float | None = None
    hours: Tuple[HourRecord, ...] = ()

    @model_validator(mode="after")
    def _hours_share_day(self) -> "DayRecord":
        """Every hour must fall on this record's date."""
        for hour in self.hours:
            if hour.time.date() != self.date:
                raise ValueError(f"hour {hour.time.isoformat()} does not belong to {self.date.isoformat()}")
        return self


class WeatherSeries(_FrozenModel):
    """Chronologically ordered, unique-date sequence of day records."""
    days: Tuple[DayRecord, ...]

    @model_validator(mode="after")
    def _strictly_ascending(self) -> "WeatherSeries":
        """Dates must be unique and sorted; gaps are allowed."""
        for prev, curr in zip(self.days, self.days[1:]):
            if curr.date <= prev.date:
                raise ValueError(f"days out of order: {prev.date.isoformat()} then {curr.date.isoformat()}")
        return self

    def __len__(self) -> int:
        return len(self.days)


class HazardFinding(_FrozenModel):
    """Finding on the High/Low risk axis."""
    kind: Literal["risk"] = "risk"
    label: str
    level: RiskLevel
    details: str

    def to_record(self) -> Dict[str, str]:
        """Serialize to the `{risk, level, details}` wire record."""
        return {"risk": self.label, "level": self.level.value, "details": self.details}


class SuitabilityFinding(_FrozenModel):
    """Finding on the Good/Poor suitability axis."""
    kind: Literal["suitability"] = "suitability"
    label: str
    assessment: Suitability
    details: str

    def to_record(self) -> Dict[str, str]:
        """Serialize to the `{condition, assessment, details}` wire record."""
        return {"condition": self.label, "assessment": self.assessment.value, "details": self.details}


RiskFinding = Annotated[Union[HazardFinding, SuitabilityFinding], Field(discriminator="kind")]


class RiskReport(_FrozenModel):
    """Ordered findings, one per registered rule."""
    findings: Tuple[RiskFinding, ...] = ()

    def to_records(self) -> List[Dict[str, str]]:
        """Return the wire representation of every finding, in order."""
        return [f.to_record() for f in self.findings]
