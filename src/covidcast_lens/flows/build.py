"""
Prefect flow for building the correlation report from cached signals.

Correlates the configured x/y signals per location and per day, sweeps the
lag between them, and writes an HTML page plus the raw correlation rows.

Run locally:
    python -m covidcast_lens.flows.build
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

from prefect import flow, task

from covidcast_lens.analysis import (
    CorrelationResult,
    LagSummary,
    best_lag,
    correlate,
    correlation_to_dict,
    lag_sweep,
    summarize_lags,
)
from covidcast_lens.config import get_settings
from covidcast_lens.datasources import covidcast
from covidcast_lens.flows.fetch import META_PATH, default_requests, request_path
from covidcast_lens.renderers import render_template
from covidcast_lens.renderers.choropleth import meta_value_range
from covidcast_lens.renderers.lags import build_lag_table_html
from covidcast_lens.renderers.plot import render_plot
from covidcast_lens.schemas import CorrelationMethod, GroupBy, PlotType, SignalRequest
from covidcast_lens.store import DataStore

# Store and output paths
store = DataStore(get_settings().data_dir)
CORRELATIONS_PATH = Path("derived/correlations.json")


# =============================================================================
# Data loading tasks
# =============================================================================


@task(name="load-signal")
def load_signal(request: SignalRequest) -> covidcast.Signal | None:
    """Load one signal from store."""
    data = store.read(request_path(request))
    if data is None:
        return None
    return covidcast.signal_from_dict(data)


@task(name="load-metadata")
def load_metadata() -> list[covidcast.SignalMeta]:
    """Load cached API metadata (empty if never fetched)."""
    rows = store.read(META_PATH)
    return covidcast.metadata_from_dict(rows) if rows else []


# =============================================================================
# Analysis tasks
# =============================================================================


@task(name="correlate-signals")
def correlate_signals(
    x: covidcast.Signal,
    y: covidcast.Signal,
    group_by: GroupBy,
    method: CorrelationMethod,
    dt_x: int = 0,
) -> CorrelationResult:
    """Correlate x against y along one dimension."""
    return correlate(x, y, group_by, dt_x=dt_x, method=method)


@task(name="sweep-lags")
def sweep_lags(
    x: covidcast.Signal,
    y: covidcast.Signal,
    max_lag: int,
    method: CorrelationMethod,
) -> list[LagSummary]:
    """Per-location correlation summaries for every lag in [-max_lag, max_lag]."""
    sweep = lag_sweep(x, y, range(-max_lag, max_lag + 1), GroupBy.LOCATION, method)
    return summarize_lags(sweep)


# =============================================================================
# Rendering and output tasks
# =============================================================================


@task(name="build-html")
def build_html(
    x: covidcast.Signal,
    y: covidcast.Signal,
    by_location: CorrelationResult,
    by_time: CorrelationResult,
    summaries: list[LagSummary],
    metas: list[covidcast.SignalMeta] | None = None,
) -> str:
    """Build the report page."""
    metas = metas or []
    x_meta = covidcast.find_meta(metas, x.data_source, x.signal, x.geo_type, x.time_type)
    best = best_lag(summaries)

    return render_template(
        "base.html.j2",
        title="COVIDcast signal correlation",
        updated=datetime.now().astimezone().strftime("%Y-%m-%d %H:%M"),
        x_label=x.title,
        y_label=y.title,
        geo_type=x.geo_type,
        correlation_map=render_plot(by_location, PlotType.CHOROPLETH),
        correlation_timeline=render_plot(by_time, PlotType.LINE),
        lag_table=build_lag_table_html(summaries, best),
        signal_x_map=render_plot(x, PlotType.CHOROPLETH, value_range=meta_value_range(x_meta)),
        signal_x_chart=render_plot(x, PlotType.LINE),
        signal_y_chart=render_plot(y, PlotType.LINE),
    )


@task(name="write-site")
def write_site(html: str) -> Path:
    """Write HTML to site directory."""
    site_dir = store.derived / "site"
    site_dir.mkdir(parents=True, exist_ok=True)
    output_path = site_dir / "index.html"
    with output_path.open("w") as f:
        f.write(html)
    return output_path


@task(name="save-correlations")
def save_correlations(
    by_location: CorrelationResult,
    by_time: CorrelationResult,
    summaries: list[LagSummary],
) -> Path:
    """Save correlation rows and lag summaries as derived JSON."""
    best = best_lag(summaries)
    return store.write(
        CORRELATIONS_PATH,
        {
            "by_location": correlation_to_dict(by_location),
            "by_time": correlation_to_dict(by_time),
            "lags": [
                {"dt_x": s.dt_x, "median": s.median, "mean": s.mean, "groups": s.groups}
                for s in summaries
            ],
            "best_lag": best.dt_x if best else None,
        },
        source="covidcast-lens",
    )


@flow(name="build-report", log_prints=True)
def build_all(
    x_request: SignalRequest | None = None,
    y_request: SignalRequest | None = None,
    max_lag: int | None = None,
    method: CorrelationMethod = CorrelationMethod.PEARSON,
) -> dict[str, Any]:
    """
    Build the correlation report from cached signals.

    Requests default to the x/y pair in settings; run the fetch flow first.
    """
    settings = get_settings()
    default_x, default_y = default_requests(settings)
    x_request = x_request or default_x
    y_request = y_request or default_y
    max_lag = settings.max_lag if max_lag is None else max_lag

    print(f"Loading {x_request.key} and {y_request.key}...")
    x = load_signal(x_request)
    y = load_signal(y_request)
    if x is None or y is None:
        print("Signal data missing. Run fetch flow first.")
        return {"error": "no data"}

    metas = load_metadata()
    if not metas:
        print("Warning: No metadata found. Using observed value ranges for maps.")

    print("Correlating by location and by day...")
    by_location = correlate_signals(x, y, GroupBy.LOCATION, method)
    by_time = correlate_signals(x, y, GroupBy.TIME, method)

    print(f"Sweeping lags -{max_lag}..{max_lag}...")
    summaries = sweep_lags(x, y, max_lag, method)
    best = best_lag(summaries)
    if best is not None:
        print(f"Best lag: dt_x={best.dt_x} (median r={best.median:+.3f})")

    print("Building HTML...")
    html = build_html(x, y, by_location, by_time, summaries, metas)

    print("Writing site...")
    output_path = write_site(html)
    save_correlations(by_location, by_time, summaries)

    print(f"Site built: {output_path}")
    return {
        "pages": 1,
        "output": str(output_path),
        "locations": len(by_location),
        "days": len(by_time),
        "best_lag": best.dt_x if best else None,
    }


if __name__ == "__main__":
    result = build_all()
    print(f"Flow complete: {result}")
