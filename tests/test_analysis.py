"""Tests for lag sweeps and multi-signal aggregation."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from covidcast_lens.analysis import (
    DuplicateObservationError,
    InvalidArgumentError,
    LagSummary,
    aggregate_signals,
    best_lag,
    column_name,
    lag_sweep,
    summarize_lags,
)
from covidcast_lens.datasources.covidcast.models import Observation, Signal
from covidcast_lens.schemas import CorrelationMethod, GeoType, GroupBy, TimeType

START = date(2020, 9, 1)

# Non-monotone series so only the true shift lines up perfectly
SERIES = {
    "ca": [3.0, 9.0, 1.0, 7.0, 2.0, 8.0, 5.0, 0.0, 6.0, 4.0, 10.0, 1.5, 7.5, 2.5, 9.5],
    "tx": [4.0, 1.0, 8.0, 2.0, 9.0, 3.0, 0.5, 6.0, 7.0, 1.0, 5.5, 8.5, 2.0, 6.5, 3.5],
}
TRUE_LAG = 3


def series_signal(name: str, values: dict[str, list[float]], offset: int = 0) -> Signal:
    """Signal with ``values[geo][i]`` observed ``offset + i`` days after START."""
    return Signal(
        data_source="test",
        signal=name,
        geo_type=GeoType.STATE,
        observations=tuple(
            Observation(geo, START + timedelta(days=offset + i), v)
            for geo, vs in sorted(values.items())
            for i, v in enumerate(vs)
        ),
    )


# y(t) = x(t - 3): y repeats x three days later, over 12 days
X = series_signal("x", {geo: vs[:12] for geo, vs in SERIES.items()})
Y = series_signal("y", {geo: vs[:12] for geo, vs in SERIES.items()}, offset=TRUE_LAG)


class TestLagSweep:
    """Test sweeping dt_x over a range of lags."""

    def test_one_result_per_unique_lag(self) -> None:
        sweep = lag_sweep(X, Y, [2, -1, 0, 2, 1])

        assert list(sweep) == [-1, 0, 1, 2]
        assert all(result.dt_x == dt for dt, result in sweep.items())

    def test_true_lag_correlates_perfectly(self) -> None:
        sweep = lag_sweep(X, Y, range(-4, 5))

        for row in sweep[TRUE_LAG]:
            assert row.value == pytest.approx(1.0)
            assert row.n == 12
        for dt, result in sweep.items():
            if dt != TRUE_LAG:
                assert all(row.value is None or row.value < 0.99 for row in result)

    def test_best_lag_finds_shift(self) -> None:
        summaries = summarize_lags(lag_sweep(X, Y, range(-4, 5)))
        best = best_lag(summaries)

        assert best is not None
        assert best.dt_x == TRUE_LAG
        assert best.median == pytest.approx(1.0)
        assert best.groups == 2
        assert best.pairs == 24

    def test_spearman_by_time(self) -> None:
        sweep = lag_sweep(X, Y, [TRUE_LAG], group_by=GroupBy.TIME, method="spearman")

        result = sweep[TRUE_LAG]
        assert result.method == CorrelationMethod.SPEARMAN
        assert result.group_by == GroupBy.TIME
        assert len(result) == 12

    def test_invalid_arguments_propagate(self) -> None:
        with pytest.raises(InvalidArgumentError):
            lag_sweep(X, Y, [0], method="kendall")


class TestSummarizeLags:
    """Test per-lag summaries."""

    def test_median_and_mean(self) -> None:
        summaries = summarize_lags(lag_sweep(X, Y, [0, TRUE_LAG]))

        assert [s.dt_x for s in summaries] == [0, TRUE_LAG]
        zero = summaries[0]
        assert zero.groups == 2
        assert zero.pairs == 2 * 9
        assert zero.median == pytest.approx(zero.mean)

    def test_lag_without_pairs(self) -> None:
        summaries = summarize_lags(lag_sweep(X, Y, [40]))

        assert summaries == [LagSummary(dt_x=40, median=None, mean=None, groups=0, pairs=0)]


class TestBestLag:
    """Test selection of the best lag."""

    def test_highest_median_wins(self) -> None:
        summaries = [
            LagSummary(dt_x=0, median=0.2, mean=0.2, groups=3, pairs=30),
            LagSummary(dt_x=5, median=0.7, mean=0.5, groups=3, pairs=30),
            LagSummary(dt_x=7, median=0.6, mean=0.9, groups=3, pairs=30),
        ]
        best = best_lag(summaries)
        assert best is not None
        assert best.dt_x == 5

    def test_ties_prefer_smallest_absolute_lag(self) -> None:
        summaries = [
            LagSummary(dt_x=-6, median=0.5, mean=0.5, groups=1, pairs=5),
            LagSummary(dt_x=2, median=0.5, mean=0.5, groups=1, pairs=5),
            LagSummary(dt_x=4, median=0.5, mean=0.5, groups=1, pairs=5),
        ]
        best = best_lag(summaries)
        assert best is not None
        assert best.dt_x == 2

    def test_undefined_medians_ignored(self) -> None:
        summaries = [
            LagSummary(dt_x=0, median=None, mean=None, groups=0, pairs=1),
            LagSummary(dt_x=1, median=-0.3, mean=-0.3, groups=1, pairs=4),
        ]
        best = best_lag(summaries)
        assert best is not None
        assert best.dt_x == 1

    def test_nothing_defined(self) -> None:
        assert best_lag([]) is None
        assert best_lag([LagSummary(0, None, None, 0, 0)]) is None


class TestAggregateSignals:
    """Test the wide multi-signal join."""

    def test_outer_join(self) -> None:
        a = series_signal("a", {"ca": [1.0, 2.0]})
        b = series_signal("b", {"ca": [5.0], "tx": [6.0]}, offset=1)

        rows = aggregate_signals([a, b])

        assert rows == [
            {"geo_value": "ca", "time_value": START, "test_a_0_value": 1.0, "test_b_1_value": None},
            {
                "geo_value": "ca",
                "time_value": START + timedelta(days=1),
                "test_a_0_value": 2.0,
                "test_b_1_value": 5.0,
            },
            {
                "geo_value": "tx",
                "time_value": START + timedelta(days=1),
                "test_a_0_value": None,
                "test_b_1_value": 6.0,
            },
        ]

    def test_shift_lines_up_signals(self) -> None:
        rows = aggregate_signals([X, Y], dt=[TRUE_LAG, 0])

        x_col, y_col = column_name(X, 0), column_name(Y, 1)
        complete = [r for r in rows if r[x_col] is not None and r[y_col] is not None]
        assert len(complete) == 24
        assert all(r[x_col] == r[y_col] for r in complete)

    def test_same_signal_twice_gets_distinct_columns(self) -> None:
        rows = aggregate_signals([X, X], dt=[0, 1])

        assert set(rows[0]) == {"geo_value", "time_value", "test_x_0_value", "test_x_1_value"}

    def test_empty(self) -> None:
        assert aggregate_signals([]) == []

    def test_dt_length_mismatch(self) -> None:
        with pytest.raises(InvalidArgumentError, match="dt has 1 entries"):
            aggregate_signals([X, Y], dt=[1])

    def test_non_integer_shift(self) -> None:
        with pytest.raises(InvalidArgumentError, match="dt must be an integer"):
            aggregate_signals([X, Y], dt=[0, 1.5])  # type: ignore[list-item]

    def test_shift_off_the_calendar(self) -> None:
        with pytest.raises(InvalidArgumentError, match="off the calendar"):
            aggregate_signals([X, Y], dt=[0, 3_000_000])

    def test_time_type_mismatch(self) -> None:
        weekly = Signal("test", "w", GeoType.STATE, TimeType.WEEK)
        with pytest.raises(InvalidArgumentError, match="time type"):
            aggregate_signals([X, weekly])

    def test_duplicates_rejected(self) -> None:
        dup = Signal(
            "test",
            "d",
            GeoType.STATE,
            observations=(Observation("ca", START, 1.0), Observation("ca", START, 2.0)),
        )
        with pytest.raises(DuplicateObservationError):
            aggregate_signals([dup])
