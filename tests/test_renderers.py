"""
Tests for the HTML renderers.
"""

from __future__ import annotations

from datetime import date

import pytest

from covidcast_lens.analysis import InvalidArgumentError, LagSummary, correlate
from covidcast_lens.datasources.covidcast.models import Observation, Signal, SignalMeta
from covidcast_lens.renderers.choropleth import (
    build_correlation_choropleth_html,
    build_signal_choropleth_html,
    meta_value_range,
)
from covidcast_lens.renderers.colors import (
    MISSING_COLOR,
    diverging_color,
    sequential_color,
    series_color,
)
from covidcast_lens.renderers.date_utils import date_range_label, short_date
from covidcast_lens.renderers.lags import build_lag_table_html
from covidcast_lens.renderers.plot import render_plot
from covidcast_lens.renderers.timeseries import (
    build_correlation_timeseries_html,
    build_signal_timeseries_html,
)
from covidcast_lens.schemas import GeoType, GroupBy, PlotType, TimeType


def make_signal(name: str, rows: list[tuple[str, int, float | None]]) -> Signal:
    return Signal(
        data_source="src",
        signal=name,
        geo_type=GeoType.STATE,
        observations=tuple(Observation(geo, date(2020, 9, d), v) for geo, d, v in rows),
    )


SIGNAL_X = make_signal(
    "x",
    [
        ("ny", 1, 1.0), ("ny", 2, 2.0), ("ny", 3, None), ("ny", 4, 3.5),
        ("pa", 1, 4.0), ("pa", 2, 3.0), ("pa", 3, 5.0), ("pa", 4, 1.0),
    ],
)  # fmt: skip
SIGNAL_Y = make_signal(
    "y",
    [
        ("ny", 1, 2.0), ("ny", 2, 4.0), ("ny", 3, 1.0), ("ny", 4, 7.0),
        ("pa", 1, 1.0), ("pa", 2, 2.0), ("pa", 3, 0.5), ("pa", 4, 3.0),
    ],
)  # fmt: skip
EMPTY = make_signal("empty", [])


# =============================================================================
# Helpers
# =============================================================================


class TestColors:
    """Test color scales."""

    def test_missing_is_grey(self) -> None:
        assert sequential_color(None, 0.0, 1.0) == MISSING_COLOR
        assert diverging_color(None) == MISSING_COLOR

    def test_sequential_endpoints(self) -> None:
        assert sequential_color(0.0, 0.0, 10.0) == "#ffffcc"
        assert sequential_color(10.0, 0.0, 10.0) == "#bd0026"
        # Clamped outside the range
        assert sequential_color(99.0, 0.0, 10.0) == "#bd0026"

    def test_sequential_degenerate_range(self) -> None:
        assert sequential_color(5.0, 5.0, 5.0).startswith("#")

    def test_diverging(self) -> None:
        assert diverging_color(0.0) == "#f7f7f7"
        assert diverging_color(1.0) == "#b2182b"
        assert diverging_color(-1.0) == "#2166ac"

    def test_series_colors_cycle(self) -> None:
        assert series_color(0) == series_color(10)
        assert series_color(0) != series_color(1)


class TestDateUtils:
    """Test date labels."""

    @pytest.mark.parametrize(
        ("start", "end", "expected"),
        [
            (date(2020, 9, 1), date(2020, 9, 30), "Sep 1\u201330, 2020"),
            (date(2020, 9, 1), date(2020, 11, 30), "Sep 1\u2013Nov 30, 2020"),
            (date(2020, 12, 1), date(2021, 1, 31), "Dec 1, 2020\u2013Jan 31, 2021"),
            (date(2020, 9, 1), date(2020, 9, 1), "Sep 1, 2020"),
            (None, date(2020, 9, 1), "no data"),
        ],
    )
    def test_date_range_label(self, start: date | None, end: date | None, expected: str) -> None:
        assert date_range_label(start, end) == expected

    def test_short_date(self) -> None:
        assert short_date(date(2020, 9, 14)) == "Sep 14"


# =============================================================================
# Line charts
# =============================================================================


class TestSignalTimeseries:
    """Test signal line charts."""

    def test_one_line_per_location(self) -> None:
        html = build_signal_timeseries_html(SIGNAL_X)

        assert "src:x" in html
        assert "<svg" in html
        assert "New York" in html
        assert "Pennsylvania" in html

    def test_missing_value_breaks_line(self) -> None:
        html = build_signal_timeseries_html(SIGNAL_X, geo_values=["ny"])

        # ny has a gap on Sep 3, so two segments
        assert html.count("<polyline") == 2
        assert "Pennsylvania" not in html

    def test_max_series(self) -> None:
        html = build_signal_timeseries_html(SIGNAL_X, max_series=1)

        assert "New York" in html
        assert "Pennsylvania" not in html

    def test_empty_signal(self) -> None:
        html = build_signal_timeseries_html(EMPTY)

        assert "No data available for this chart." in html
        assert "<svg" not in html


class TestCorrelationTimeseries:
    """Test per-day correlation charts."""

    def test_renders_baseline(self) -> None:
        result = correlate(SIGNAL_X, SIGNAL_Y, GroupBy.TIME)

        html = build_correlation_timeseries_html(result)

        assert "Pearson correlation: src:x vs src:y" in html
        assert 'class="baseline"' in html
        assert "pearson (dt_x=0)" in html

    def test_empty_result(self) -> None:
        result = correlate(EMPTY, SIGNAL_Y, GroupBy.TIME)

        html = build_correlation_timeseries_html(result)

        assert "No data available for this chart." in html


# =============================================================================
# Choropleths
# =============================================================================


class TestSignalChoropleth:
    """Test signal tile maps."""

    def test_defaults_to_latest_day(self) -> None:
        html = build_signal_choropleth_html(SIGNAL_X)

        assert "Sep 4, 2020" in html
        assert ">NY<" in html
        assert ">3.5<" in html

    def test_specific_day_with_missing_value(self) -> None:
        html = build_signal_choropleth_html(SIGNAL_X, time_value=date(2020, 9, 3))

        assert "n/a" in html
        assert MISSING_COLOR in html

    def test_day_without_data(self) -> None:
        html = build_signal_choropleth_html(SIGNAL_X, time_value=date(2020, 10, 1))

        assert "No data available for this map." in html

    def test_empty_signal(self) -> None:
        assert "No data available for this map." in build_signal_choropleth_html(EMPTY)


class TestCorrelationChoropleth:
    """Test correlation tile maps."""

    def test_tiles_show_value_and_count(self) -> None:
        result = correlate(SIGNAL_X, SIGNAL_Y, GroupBy.LOCATION)

        html = build_correlation_choropleth_html(result)

        assert ">PA<" in html
        assert "(n=3)" in html  # ny has a missing x value
        assert "(n=4)" in html
        assert "+1.0" in html  # legend
        assert "-1.0" in html

    def test_empty_result(self) -> None:
        result = correlate(EMPTY, SIGNAL_Y, GroupBy.LOCATION)

        assert "No data available for this map." in build_correlation_choropleth_html(result)


class TestMetaValueRange:
    """Test color limits from metadata."""

    def _meta(self, **stats: float | None) -> SignalMeta:
        return SignalMeta(
            data_source="src",
            signal="sig",
            time_type=TimeType.DAY,
            geo_type=GeoType.STATE,
            min_time=date(2020, 4, 1),
            max_time=date(2020, 11, 30),
            num_locations=52,
            **stats,  # type: ignore[arg-type]
        )

    def test_mean_plus_three_sd(self) -> None:
        meta = self._meta(min_value=0.5, max_value=100.0, mean_value=10.0, stdev_value=2.0)
        assert meta_value_range(meta) == (0.0, 16.0)

    def test_capped_at_max(self) -> None:
        meta = self._meta(min_value=0.0, max_value=12.0, mean_value=10.0, stdev_value=2.0)
        assert meta_value_range(meta) == (0.0, 12.0)

    def test_negative_minimum(self) -> None:
        meta = self._meta(min_value=-4.0, max_value=None, mean_value=0.0, stdev_value=1.0)
        assert meta_value_range(meta) == (-4.0, 3.0)

    def test_missing_stats(self) -> None:
        assert meta_value_range(None) is None
        assert meta_value_range(self._meta()) is None


# =============================================================================
# Lag table
# =============================================================================


class TestLagTable:
    """Test the lag sweep table."""

    def test_best_row_highlighted(self) -> None:
        summaries = [
            LagSummary(dt_x=-1, median=0.25, mean=0.2, groups=2, pairs=10),
            LagSummary(dt_x=0, median=0.5, mean=0.45, groups=2, pairs=12),
            LagSummary(dt_x=1, median=None, mean=None, groups=0, pairs=0),
        ]

        html = build_lag_table_html(summaries, best=summaries[1])

        assert "dt_x = 0 (+0.500)" in html
        assert html.count('class="best"') == 1
        assert "+0.250" in html
        assert "n/a" in html

    def test_without_best(self) -> None:
        summaries = [LagSummary(dt_x=0, median=None, mean=None, groups=0, pairs=0)]

        html = build_lag_table_html(summaries)

        assert "No lag produced a defined correlation." in html

    def test_empty(self) -> None:
        assert build_lag_table_html([]) == "<p>No lag sweep results available.</p>"


# =============================================================================
# render_plot dispatch
# =============================================================================


class TestRenderPlot:
    """Test the subject x plot type switch."""

    def test_signal_line(self) -> None:
        assert render_plot(SIGNAL_X, "line") == build_signal_timeseries_html(SIGNAL_X)

    def test_signal_choropleth_with_options(self) -> None:
        day = date(2020, 9, 2)
        assert render_plot(SIGNAL_X, PlotType.CHOROPLETH, time_value=day) == (
            build_signal_choropleth_html(SIGNAL_X, time_value=day)
        )

    def test_correlation_by_time_as_line(self) -> None:
        result = correlate(SIGNAL_X, SIGNAL_Y, GroupBy.TIME)
        assert render_plot(result) == build_correlation_timeseries_html(result)

    def test_correlation_by_location_as_choropleth(self) -> None:
        result = correlate(SIGNAL_X, SIGNAL_Y, GroupBy.LOCATION)
        assert render_plot(result, "choropleth") == build_correlation_choropleth_html(result)

    def test_correlation_by_location_as_line_rejected(self) -> None:
        result = correlate(SIGNAL_X, SIGNAL_Y, GroupBy.LOCATION)
        with pytest.raises(InvalidArgumentError, match="use choropleth"):
            render_plot(result, PlotType.LINE)

    def test_correlation_by_time_as_choropleth_rejected(self) -> None:
        result = correlate(SIGNAL_X, SIGNAL_Y, GroupBy.TIME)
        with pytest.raises(InvalidArgumentError, match="use line"):
            render_plot(result, PlotType.CHOROPLETH)

    def test_unknown_plot_type(self) -> None:
        with pytest.raises(InvalidArgumentError, match="Unknown plot type"):
            render_plot(SIGNAL_X, "scatter")
