"""
Shared enums and request models.

The enums are the closed vocabularies used across datasources, analysis and
renderers. Request models validate user-supplied signal queries before any
HTTP call is made.
"""

from __future__ import annotations

from datetime import date  # noqa: TC003
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

# =============================================================================
# Geography / time
# =============================================================================


class GeoType(StrEnum):
    """Geographic resolution of a COVIDcast signal."""

    COUNTY = "county"
    HRR = "hrr"
    MSA = "msa"
    DMA = "dma"
    STATE = "state"
    HHS = "hhs"
    NATION = "nation"


class TimeType(StrEnum):
    """Time resolution of a COVIDcast signal."""

    DAY = "day"
    WEEK = "week"


# =============================================================================
# Analysis
# =============================================================================


class GroupBy(StrEnum):
    """Dimension along which independent correlations are computed."""

    LOCATION = "geo_value"
    TIME = "time_value"


class CorrelationMethod(StrEnum):
    """Correlation statistic."""

    PEARSON = "pearson"
    SPEARMAN = "spearman"


# =============================================================================
# Presentation
# =============================================================================


class PlotSubject(StrEnum):
    """Which kind of result a renderer is being asked to draw."""

    SIGNAL = "signal"
    CORRELATION = "correlation"


class PlotType(StrEnum):
    """Supported plot layouts."""

    LINE = "line"
    CHOROPLETH = "choropleth"


# =============================================================================
# Requests
# =============================================================================


class SignalRequest(BaseModel):
    """A validated query for one signal over a date range."""

    model_config = {"str_strip_whitespace": True, "frozen": True}

    data_source: str = Field(..., min_length=1, description="Epidata source, e.g. jhu-csse")
    signal: str = Field(..., min_length=1, description="Signal name within the source")
    start_day: date
    end_day: date
    geo_type: GeoType = GeoType.COUNTY
    geo_values: str | list[str] = "*"
    time_type: TimeType = TimeType.DAY

    @field_validator("geo_values")
    @classmethod
    def _lower_geo_values(cls, v: str | list[str]) -> str | list[str]:
        if isinstance(v, str):
            return v.lower()
        return [g.lower() for g in v]

    @model_validator(mode="after")
    def _check_range(self) -> SignalRequest:
        if self.start_day > self.end_day:
            msg = f"start_day {self.start_day} is after end_day {self.end_day}"
            raise ValueError(msg)
        return self

    @property
    def key(self) -> str:
        """Stable identifier used for store paths and labels."""
        return f"{self.data_source}/{self.signal}/{self.geo_type}"

    def fetch_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``fetch_signal``."""
        return self.model_dump()

