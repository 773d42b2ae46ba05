"""COVIDcast data models."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING, ClassVar

from covidcast_lens.schemas import GeoType, PlotSubject, TimeType

if TYPE_CHECKING:
    from collections.abc import Iterator


def is_missing(value: float | None) -> bool:
    """True for API nulls and NaN."""
    return value is None or math.isnan(value)


@dataclass(frozen=True)
class Observation:
    """One ``(geo_value, time_value)`` row of a signal."""

    geo_value: str
    time_value: date
    value: float | None
    stderr: float | None = None
    sample_size: float | None = None
    issue: date | None = None
    lag: int | None = None

    @property
    def key(self) -> tuple[str, date]:
        return (self.geo_value, self.time_value)

    @property
    def has_value(self) -> bool:
        return not is_missing(self.value)


@dataclass(frozen=True)
class Signal:
    """A fetched signal: observations plus the metadata needed to render it.

    Observations are kept in the order the fetcher produced them (sorted by
    location, then time). The collection is immutable; analysis functions
    derive new structures instead of editing it.
    """

    plot_subject: ClassVar[PlotSubject] = PlotSubject.SIGNAL

    data_source: str
    signal: str
    geo_type: GeoType
    time_type: TimeType = TimeType.DAY
    observations: tuple[Observation, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[Observation]:
        return iter(self.observations)

    def __len__(self) -> int:
        return len(self.observations)

    @property
    def title(self) -> str:
        return f"{self.data_source}:{self.signal}"

    @property
    def geo_values(self) -> list[str]:
        """Distinct locations, sorted."""
        return sorted({o.geo_value for o in self.observations})

    @property
    def time_values(self) -> list[date]:
        """Distinct time values, sorted."""
        return sorted({o.time_value for o in self.observations})

    @property
    def reference_date(self) -> date | None:
        """Latest time value; the default date for a choropleth."""
        times = self.time_values
        return times[-1] if times else None

    @property
    def value_range(self) -> tuple[float, float] | None:
        """(min, max) over non-missing values, or None if there are none."""
        values = [o.value for o in self.observations if o.value is not None and o.has_value]
        if not values:
            return None
        return (min(values), max(values))

    def at(self, time_value: date) -> list[Observation]:
        """Observations for a single time value, sorted by location."""
        return sorted(
            (o for o in self.observations if o.time_value == time_value),
            key=lambda o: o.geo_value,
        )

    def by_location(self) -> dict[str, list[Observation]]:
        """Observations grouped by location, each list sorted by time."""
        groups: dict[str, list[Observation]] = {}
        for obs in sorted(self.observations, key=lambda o: o.key):
            groups.setdefault(obs.geo_value, []).append(obs)
        return groups


@dataclass(frozen=True)
class SignalMeta:
    """One row of the ``covidcast_meta`` endpoint."""

    data_source: str
    signal: str
    time_type: TimeType
    geo_type: GeoType
    min_time: date
    max_time: date
    num_locations: int
    min_value: float | None = None
    max_value: float | None = None
    mean_value: float | None = None
    stdev_value: float | None = None
    max_issue: date | None = None

    @property
    def value_range(self) -> tuple[float, float] | None:
        if self.min_value is None or self.max_value is None:
            return None
        return (self.min_value, self.max_value)
