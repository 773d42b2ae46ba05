"""Lag sweep summary table."""

from __future__ import annotations

from typing import TYPE_CHECKING

from covidcast_lens.renderers import render_template
from covidcast_lens.renderers.colors import diverging_color

if TYPE_CHECKING:
    from covidcast_lens.analysis.lags import LagSummary


def build_lag_table_html(summaries: list[LagSummary], best: LagSummary | None = None) -> str:
    """Table of median/mean correlation per lag, best lag highlighted."""
    if not summaries:
        return "<p>No lag sweep results available.</p>"

    rows = [
        {
            "dt_x": s.dt_x,
            "median": f"{s.median:+.3f}" if s.median is not None else "n/a",
            "mean": f"{s.mean:+.3f}" if s.mean is not None else "n/a",
            "groups": s.groups,
            "pairs": s.pairs,
            "color": diverging_color(s.median),
            "is_best": best is not None and s.dt_x == best.dt_x,
        }
        for s in summaries
    ]
    return render_template("lag_table.html.j2", rows=rows, best=best)
