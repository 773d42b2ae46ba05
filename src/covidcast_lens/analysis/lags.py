"""Sweep the lag between two signals to find where they line up best.

Each lag is an independent ``correlate`` call, so a sweep is just a loop;
summaries reduce every per-lag result to its median/mean coefficient.
"""

from __future__ import annotations

import statistics
from dataclasses import dataclass
from typing import TYPE_CHECKING

from covidcast_lens.analysis.correlation import CorrelationResult, correlate
from covidcast_lens.schemas import CorrelationMethod, GroupBy

if TYPE_CHECKING:
    from collections.abc import Iterable

    from covidcast_lens.datasources.covidcast.models import Signal


@dataclass(frozen=True)
class LagSummary:
    """Summary of one lag's correlation rows."""

    dt_x: int
    median: float | None
    mean: float | None
    groups: int  # rows with a defined coefficient
    pairs: int  # aligned pairs across all rows


def lag_sweep(
    signal_x: Signal | None,
    signal_y: Signal | None,
    lags: Iterable[int],
    group_by: GroupBy | str = GroupBy.LOCATION,
    method: CorrelationMethod | str = CorrelationMethod.PEARSON,
) -> dict[int, CorrelationResult]:
    """Run ``correlate`` once per lag.

    Args:
        signal_x: Leading signal candidate.
        signal_y: Signal it is compared against.
        lags: Values of ``dt_x`` to try; duplicates are computed once.
        group_by: Grouping dimension passed to ``correlate``.
        method: Correlation method passed to ``correlate``.

    Returns:
        Mapping of lag -> CorrelationResult, in ascending lag order.
    """
    return {
        dt: correlate(signal_x, signal_y, group_by, dt_x=dt, method=method)
        for dt in sorted(set(lags))
    }


def summarize_lags(sweep: dict[int, CorrelationResult]) -> list[LagSummary]:
    """Median and mean of the defined coefficients at each lag."""
    summaries: list[LagSummary] = []
    for dt in sorted(sweep):
        result = sweep[dt]
        values = result.defined_values()
        summaries.append(
            LagSummary(
                dt_x=dt,
                median=statistics.median(values) if values else None,
                mean=statistics.fmean(values) if values else None,
                groups=len(values),
                pairs=sum(row.n for row in result.rows),
            )
        )
    return summaries


def best_lag(summaries: list[LagSummary]) -> LagSummary | None:
    """Lag with the highest median correlation.

    Ties go to the lag closest to zero. Returns None if no lag produced a
    defined coefficient.
    """
    candidates = [s for s in summaries if s.median is not None]
    if not candidates:
        return None
    return max(candidates, key=lambda s: (s.median, -abs(s.dt_x), -s.dt_x))
