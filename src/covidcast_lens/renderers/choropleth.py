"""Choropleth-style location grids.

Without shapefiles, a "map" here is a grid of location tiles shaded by
value. Signals use a sequential scale over their value range at one
reference date; correlations grouped by location use a diverging scale
centred on zero.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from covidcast_lens.reference.geography import location_label
from covidcast_lens.renderers import render_template
from covidcast_lens.renderers.colors import MISSING_COLOR, diverging_color, sequential_color
from covidcast_lens.renderers.date_utils import date_range_label

if TYPE_CHECKING:
    from datetime import date

    from covidcast_lens.analysis.correlation import CorrelationResult
    from covidcast_lens.datasources.covidcast.models import Signal, SignalMeta

LEGEND_STEPS = 5


def _format_value(value: float | None) -> str:
    return "n/a" if value is None else f"{value:.3g}"


def build_signal_choropleth_html(
    signal: Signal,
    time_value: date | None = None,
    value_range: tuple[float, float] | None = None,
) -> str:
    """Location tiles for one day of a signal.

    Args:
        signal: Signal to draw.
        time_value: Day to show; defaults to the signal's latest time value.
        value_range: Color scale limits; defaults to the signal's full range so
            maps for different days share one scale.

    Returns:
        Rendered HTML fragment.
    """
    day = time_value or signal.reference_date
    observations = signal.at(day) if day else []
    if not observations:
        return render_template("choropleth.html.j2", title=signal.title, subtitle="", empty=True)

    low, high = value_range or signal.value_range or (0.0, 1.0)
    tiles = [
        {
            "label": location_label(signal.geo_type, o.geo_value),
            "code": o.geo_value.upper(),
            "value": _format_value(o.value if o.has_value else None),
            "color": sequential_color(o.value if o.has_value else None, low, high),
        }
        for o in observations
    ]
    legend = [
        {
            "label": _format_value(low + (high - low) * i / (LEGEND_STEPS - 1)),
            "color": sequential_color(low + (high - low) * i / (LEGEND_STEPS - 1), low, high),
        }
        for i in range(LEGEND_STEPS)
    ]
    return render_template(
        "choropleth.html.j2",
        title=signal.title,
        subtitle=f"{signal.geo_type} level, {date_range_label(day, day)}",
        empty=False,
        tiles=tiles,
        legend=legend,
        missing_color=MISSING_COLOR,
    )


def build_correlation_choropleth_html(result: CorrelationResult) -> str:
    """Location tiles shaded by per-location correlation (``GroupBy.LOCATION``)."""
    if not result.rows:
        return render_template("choropleth.html.j2", title=result.title, subtitle="", empty=True)

    tiles: list[dict[str, Any]] = [
        {
            "label": location_label(result.geo_type, str(row.key)),
            "code": str(row.key).upper(),
            "value": f"{_format_value(row.value)} (n={row.n})",
            "color": diverging_color(row.value),
        }
        for row in result.rows
    ]
    low, high = result.value_range
    legend = [
        {
            "label": f"{low + (high - low) * i / (LEGEND_STEPS - 1):+.1f}",
            "color": diverging_color(low + (high - low) * i / (LEGEND_STEPS - 1)),
        }
        for i in range(LEGEND_STEPS)
    ]
    span = result.time_span
    span_label = date_range_label(span[0] if span else None, span[1] if span else None)
    return render_template(
        "choropleth.html.j2",
        title=result.title,
        subtitle=f"Per {result.geo_type}, dt_x={result.dt_x}, {span_label}",
        empty=False,
        tiles=tiles,
        legend=legend,
        missing_color=MISSING_COLOR,
    )


def meta_value_range(meta: SignalMeta | None) -> tuple[float, float] | None:
    """Color scale limits from API metadata: 0 to mean + 3 standard deviations.

    Returns None when the metadata lacks summary statistics.
    """
    if meta is None or meta.mean_value is None or meta.stdev_value is None:
        return None
    high = meta.mean_value + 3 * meta.stdev_value
    if meta.max_value is not None:
        high = min(high, meta.max_value)
    low = min(0.0, meta.min_value) if meta.min_value is not None else 0.0
    if high <= low:
        return None
    return (low, high)
