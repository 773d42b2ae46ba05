"""Single entry point for drawing a signal or a correlation result.

Dispatch is an explicit switch over the subject's ``plot_subject`` tag and
the requested ``PlotType``:

=================  ===========================  ==============================
subject            LINE                         CHOROPLETH
=================  ===========================  ==============================
SIGNAL             one line per location        tiles at a reference date
CORRELATION/TIME   coefficient per day          (unsupported)
CORRELATION/LOC    (unsupported)                tiles shaded by coefficient
=================  ===========================  ==============================
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from covidcast_lens.analysis.correlation import InvalidArgumentError
from covidcast_lens.renderers.choropleth import (
    build_correlation_choropleth_html,
    build_signal_choropleth_html,
)
from covidcast_lens.renderers.timeseries import (
    build_correlation_timeseries_html,
    build_signal_timeseries_html,
)
from covidcast_lens.schemas import GroupBy, PlotSubject, PlotType

if TYPE_CHECKING:
    from covidcast_lens.analysis.correlation import CorrelationResult
    from covidcast_lens.datasources.covidcast.models import Signal


def render_plot(
    subject: Signal | CorrelationResult,
    plot_type: PlotType | str = PlotType.LINE,
    **options: Any,
) -> str:
    """Render ``subject`` as ``plot_type``.

    Args:
        subject: A Signal or CorrelationResult.
        plot_type: ``"line"`` or ``"choropleth"``.
        **options: Passed to the selected builder (e.g. ``geo_values``,
            ``time_value``, ``value_range``).

    Raises:
        InvalidArgumentError: For an unknown plot type, or a correlation whose
            grouping can't be drawn that way.
    """
    try:
        kind = PlotType(plot_type)
    except ValueError:
        msg = f"Unknown plot type {plot_type!r}; expected one of: line, choropleth"
        raise InvalidArgumentError(msg) from None

    match subject.plot_subject, kind:
        case PlotSubject.SIGNAL, PlotType.LINE:
            return build_signal_timeseries_html(cast("Signal", subject), **options)
        case PlotSubject.SIGNAL, PlotType.CHOROPLETH:
            return build_signal_choropleth_html(cast("Signal", subject), **options)
        case PlotSubject.CORRELATION, _:
            return _render_correlation(cast("CorrelationResult", subject), kind)

    msg = f"Cannot render {subject.plot_subject} as {kind}"
    raise InvalidArgumentError(msg)


def _render_correlation(result: CorrelationResult, kind: PlotType) -> str:
    match result.group_by, kind:
        case GroupBy.TIME, PlotType.LINE:
            return build_correlation_timeseries_html(result)
        case GroupBy.LOCATION, PlotType.CHOROPLETH:
            return build_correlation_choropleth_html(result)
    msg = (
        f"A correlation grouped by {result.group_by} can't be drawn as {kind}; "
        f"use {'line' if result.group_by == GroupBy.TIME else 'choropleth'}"
    )
    raise InvalidArgumentError(msg)
