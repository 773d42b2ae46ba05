"""Color scales shared by the line and choropleth renderers."""

from __future__ import annotations

MISSING_COLOR = "#cccccc"

_SERIES_COLORS = [
    "#e6194b",  # red
    "#3cb44b",  # green
    "#4363d8",  # blue
    "#f58231",  # orange
    "#911eb4",  # purple
    "#42d4f4",  # cyan
    "#f032e6",  # magenta
    "#bfef45",  # lime
    "#469990",  # teal
    "#9a6324",  # brown
]

# Sequential scale: pale yellow -> dark red
_SEQ_LOW = (255, 255, 204)
_SEQ_HIGH = (189, 0, 38)

# Diverging scale for correlations: blue (-1) -> white (0) -> red (+1)
_DIV_NEG = (33, 102, 172)
_DIV_MID = (247, 247, 247)
_DIV_POS = (178, 24, 43)


def _hex(rgb: tuple[float, float, float]) -> str:
    return "#{:02x}{:02x}{:02x}".format(*(round(c) for c in rgb))


def _mix(a: tuple[int, int, int], b: tuple[int, int, int], t: float) -> str:
    return _hex((a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t, a[2] + (b[2] - a[2]) * t))


def series_color(index: int) -> str:
    """Color for the ``index``-th line of a chart (cycles)."""
    return _SERIES_COLORS[index % len(_SERIES_COLORS)]


def sequential_color(value: float | None, low: float, high: float) -> str:
    """Shade ``value`` on a low..high sequential scale; grey if missing."""
    if value is None:
        return MISSING_COLOR
    if high <= low:
        return _mix(_SEQ_LOW, _SEQ_HIGH, 0.5)
    t = min(1.0, max(0.0, (value - low) / (high - low)))
    return _mix(_SEQ_LOW, _SEQ_HIGH, t)


def diverging_color(value: float | None, limit: float = 1.0) -> str:
    """Shade ``value`` in [-limit, limit] blue-white-red; grey if missing."""
    if value is None:
        return MISSING_COLOR
    t = min(1.0, max(-1.0, value / limit))
    if t < 0:
        return _mix(_DIV_MID, _DIV_NEG, -t)
    return _mix(_DIV_MID, _DIV_POS, t)
