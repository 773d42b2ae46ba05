"""SVG line charts for signals and per-day correlations.

Signals draw one line per location; a correlation grouped by time draws a
single line of coefficients with a zero baseline. Missing values break the
line instead of being interpolated.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any

from covidcast_lens.reference.geography import location_label
from covidcast_lens.renderers import render_template
from covidcast_lens.renderers.colors import series_color
from covidcast_lens.renderers.date_utils import date_range_label, short_date

if TYPE_CHECKING:
    from collections.abc import Callable

    from covidcast_lens.analysis.correlation import CorrelationResult
    from covidcast_lens.datasources.covidcast.models import Signal

# SVG geometry
SVG_WIDTH = 760
SVG_HEIGHT = 320
MARGIN_LEFT = 60
MARGIN_RIGHT = 20
MARGIN_TOP = 20
MARGIN_BOTTOM = 30

DEFAULT_MAX_SERIES = 8
N_Y_TICKS = 5
N_X_TICKS = 6


def _segments(
    points: list[tuple[date, float | None]],
    x_fn: Callable[[date], float],
    y_fn: Callable[[float], float],
) -> list[str]:
    """Polyline point strings, split wherever a value is missing."""
    segments: list[str] = []
    current: list[str] = []
    for day, value in points:
        if value is None:
            if current:
                segments.append(" ".join(current))
                current = []
            continue
        current.append(f"{x_fn(day):.1f},{y_fn(value):.1f}")
    if current:
        segments.append(" ".join(current))
    return segments


def _nice_range(low: float, high: float) -> tuple[float, float]:
    """Pad a value range by 5% so lines don't touch the frame."""
    if high == low:
        pad = abs(high) * 0.1 or 1.0
        return low - pad, high + pad
    pad = (high - low) * 0.05
    return low - pad, high + pad


def _render_chart(
    title: str,
    subtitle: str,
    series: list[dict[str, Any]],
    y_range: tuple[float, float],
    baseline: float | None = None,
) -> str:
    """Lay out axes and polylines, then render the chart template.

    ``series`` entries carry ``label``, ``color`` and ``points`` (list of
    ``(date, value | None)``).
    """
    days = sorted({day for s in series for day, _ in s["points"]})
    if not days:
        return render_template("timeseries.html.j2", title=title, subtitle=subtitle, empty=True)

    plot_right = SVG_WIDTH - MARGIN_RIGHT
    plot_bottom = SVG_HEIGHT - MARGIN_BOTTOM
    plot_width = plot_right - MARGIN_LEFT
    plot_height = plot_bottom - MARGIN_TOP

    first, last = days[0], days[-1]
    span = max((last - first).days, 1)
    y_low, y_high = y_range

    def x_for_day(day: date) -> float:
        return MARGIN_LEFT + (day - first).days / span * plot_width

    def y_for_value(value: float) -> float:
        return plot_bottom - (value - y_low) / (y_high - y_low) * plot_height

    y_ticks = []
    for i in range(N_Y_TICKS + 1):
        val = y_low + (y_high - y_low) * i / N_Y_TICKS
        y_ticks.append({"y": round(y_for_value(val), 1), "label": f"{val:.3g}"})

    step = max(1, len(days) // N_X_TICKS)
    x_ticks = [
        {"x": round(x_for_day(day), 1), "label": short_date(day)} for day in days[::step]
    ]

    lines = [
        {
            "label": s["label"],
            "color": s["color"],
            "segments": _segments(s["points"], x_for_day, y_for_value),
        }
        for s in series
    ]

    baseline_y = None
    if baseline is not None and y_low <= baseline <= y_high:
        baseline_y = round(y_for_value(baseline), 1)

    return render_template(
        "timeseries.html.j2",
        title=title,
        subtitle=subtitle,
        empty=False,
        width=SVG_WIDTH,
        height=SVG_HEIGHT,
        plot_left=MARGIN_LEFT,
        plot_right=plot_right,
        plot_top=MARGIN_TOP,
        plot_bottom=plot_bottom,
        y_ticks=y_ticks,
        x_ticks=x_ticks,
        lines=lines,
        baseline_y=baseline_y,
    )


def build_signal_timeseries_html(
    signal: Signal,
    geo_values: list[str] | None = None,
    max_series: int = DEFAULT_MAX_SERIES,
) -> str:
    """Line chart of a signal, one line per location.

    Args:
        signal: Signal to draw.
        geo_values: Locations to include; defaults to the first ``max_series``
            locations in sorted order.
        max_series: Cap on the number of lines when ``geo_values`` is None.

    Returns:
        Rendered HTML with an inline SVG chart and legend.
    """
    by_location = signal.by_location()
    selected = geo_values if geo_values is not None else sorted(by_location)[:max_series]

    series = []
    for i, geo in enumerate(g for g in selected if g in by_location):
        series.append(
            {
                "label": location_label(signal.geo_type, geo),
                "color": series_color(i),
                "points": [
                    (o.time_value, o.value if o.has_value else None) for o in by_location[geo]
                ],
            }
        )

    values = [v for s in series for _, v in s["points"] if v is not None]
    y_range = _nice_range(min(values), max(values)) if values else (0.0, 1.0)
    times = signal.time_values
    span_label = date_range_label(times[0] if times else None, signal.reference_date)
    subtitle = f"{signal.geo_type} level, {span_label}"
    return _render_chart(signal.title, subtitle, series, y_range)


def build_correlation_timeseries_html(result: CorrelationResult) -> str:
    """Line chart of per-day correlations (``GroupBy.TIME`` results)."""
    points: list[tuple[date, float | None]] = [
        (row.key, row.value) for row in result.rows if isinstance(row.key, date)
    ]
    series = [
        {
            "label": f"{result.method} (dt_x={result.dt_x})",
            "color": series_color(2),
            "points": points,
        }
    ]
    span = result.time_span
    subtitle = (
        f"Across {result.geo_type} locations each day, "
        f"{date_range_label(span[0] if span else None, span[1] if span else None)}"
    )
    return _render_chart(result.title, subtitle, series, result.value_range, baseline=0.0)
