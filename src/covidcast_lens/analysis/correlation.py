"""Correlate two COVIDcast signals, per location or per time value.

Signals are aligned by an inner join on location and (shifted) time, then
split into groups along one dimension:

- ``GroupBy.LOCATION``: one coefficient per location, correlating the two
  time series observed there.
- ``GroupBy.TIME``: one coefficient per day, correlating the two signals
  across all locations on that day.

Shifting ``signal_x`` forward by ``dt_x`` pairs its value at ``t`` with
``signal_y`` at ``t + dt_x``, so a negative ``dt_x`` compares ``x`` against
earlier ``y`` values ("x leads y by |dt_x|"). Sweeping ``dt_x`` and picking
the lag with the strongest median correlation is the usual way to find how
far a leading indicator runs ahead of cases (see ``analysis.lags``).

Degenerate groups (fewer than two pairs, or a constant vector on either
side) get ``value=None`` instead of aborting the whole computation.
"""

from __future__ import annotations

import math
import operator
import statistics
from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

from covidcast_lens.datasources.covidcast.timeutil import shift
from covidcast_lens.schemas import CorrelationMethod, GeoType, GroupBy, PlotSubject, TimeType

if TYPE_CHECKING:
    from collections.abc import Iterator

    from covidcast_lens.datasources.covidcast.models import Observation, Signal

E = TypeVar("E", bound=StrEnum)

# =============================================================================
# Errors
# =============================================================================


class InvalidArgumentError(ValueError):
    """A caller passed an unrecognised option or a missing signal."""


class DuplicateObservationError(InvalidArgumentError):
    """A signal holds two observations for the same (location, time) key."""


# =============================================================================
# Data Model
# =============================================================================


@dataclass(frozen=True)
class AlignedPair:
    """Values of both signals at one location, with ``time_value_y`` shifted."""

    geo_value: str
    time_value_x: date
    time_value_y: date
    value_x: float
    value_y: float


@dataclass(frozen=True)
class CorrelationRow:
    """Correlation for one group. ``value`` is None when undefined."""

    key: str | date
    value: float | None
    n: int


@dataclass(frozen=True)
class CorrelationResult:
    """Ordered correlation rows plus the metadata renderers need."""

    plot_subject: ClassVar[PlotSubject] = PlotSubject.CORRELATION
    value_range: ClassVar[tuple[float, float]] = (-1.0, 1.0)

    rows: tuple[CorrelationRow, ...]
    group_by: GroupBy
    method: CorrelationMethod
    geo_type: GeoType
    time_type: TimeType
    dt_x: int = 0
    dt_y: int = 0
    x_label: str = "x"
    y_label: str = "y"
    time_span: tuple[date, date] | None = None

    def __iter__(self) -> Iterator[CorrelationRow]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def __getitem__(self, index: int) -> CorrelationRow:
        return self.rows[index]

    @property
    def title(self) -> str:
        return f"{self.method.value.title()} correlation: {self.x_label} vs {self.y_label}"

    @property
    def reference_date(self) -> date | None:
        """Last ``x`` time value that took part in any pair."""
        return self.time_span[1] if self.time_span else None

    def defined_values(self) -> list[float]:
        """Coefficients of the rows where one is defined."""
        return [row.value for row in self.rows if row.value is not None]


# =============================================================================
# Argument handling
# =============================================================================


def _coerce(enum_cls: type[E], value: Any, name: str) -> E:
    """Accept an enum member, its value, or its name (any case)."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.lower())
        except ValueError:
            member = enum_cls.__members__.get(value.upper())
            if member is not None:
                return member
    options = ", ".join(m.value for m in enum_cls)
    msg = f"Unknown {name} {value!r}; expected one of: {options}"
    raise InvalidArgumentError(msg)


def check_shift(value: Any, name: str) -> int:
    """Validate a shift given in whole time units."""
    if isinstance(value, bool):
        msg = f"{name} must be an integer number of time units, got {value!r}"
        raise InvalidArgumentError(msg)
    try:
        return operator.index(value)
    except TypeError:
        msg = f"{name} must be an integer number of time units, got {value!r}"
        raise InvalidArgumentError(msg) from None


def _require_signal(signal: Signal | None, name: str) -> Signal:
    if signal is None:
        msg = f"{name} is required"
        raise InvalidArgumentError(msg)
    return signal


def index_unique(signal: Signal, name: str) -> dict[tuple[str, date], Observation]:
    """Map (geo_value, time_value) -> observation, rejecting duplicate keys."""
    index: dict[tuple[str, date], Observation] = {}
    for obs in signal.observations:
        if obs.key in index:
            msg = (
                f"{name} ({signal.title}) has more than one observation for "
                f"{obs.geo_value} on {obs.time_value.isoformat()}"
            )
            raise DuplicateObservationError(msg)
        index[obs.key] = obs
    return index


# =============================================================================
# Alignment
# =============================================================================


def align_pairs(
    signal_x: Signal | None,
    signal_y: Signal | None,
    dt_x: int = 0,
    dt_y: int = 0,
) -> list[AlignedPair]:
    """Inner-join two signals on location and shifted time.

    A pair is formed when ``x.time_value + dt_x == y.time_value + dt_y`` at the
    same location and both values are present. Shifts are in units of the
    signals' time type; a shift that lands outside the calendar matches nothing.

    Returns:
        Pairs in ``signal_x`` order.

    Raises:
        InvalidArgumentError: If a signal is missing, a shift is not an integer,
            or the time types differ.
        DuplicateObservationError: If either signal repeats a (location, time) key.
    """
    x = _require_signal(signal_x, "signal_x")
    y = _require_signal(signal_y, "signal_y")
    dt_x = check_shift(dt_x, "dt_x")
    dt_y = check_shift(dt_y, "dt_y")
    if x.time_type != y.time_type:
        msg = f"Cannot align a {x.time_type} signal with a {y.time_type} signal"
        raise InvalidArgumentError(msg)

    index_unique(x, "signal_x")
    y_index = index_unique(y, "signal_y")
    offset = dt_x - dt_y

    pairs: list[AlignedPair] = []
    for obs in x.observations:
        if not obs.has_value:
            continue
        try:
            target = shift(obs.time_value, offset, x.time_type)
        except OverflowError:
            # Past date.min/date.max, so no y observation can be there
            continue
        match = y_index.get((obs.geo_value, target))
        if match is None or not match.has_value:
            continue
        pairs.append(
            AlignedPair(
                geo_value=obs.geo_value,
                time_value_x=obs.time_value,
                time_value_y=target,
                value_x=obs.value,  # type: ignore[arg-type]
                value_y=match.value,  # type: ignore[arg-type]
            )
        )
    return pairs


# =============================================================================
# Coefficients
# =============================================================================


def _is_constant(values: list[float]) -> bool:
    return all(v == values[0] for v in values)


def _rescale(values: list[float]) -> list[float]:
    """Divide by the largest magnitude so sums of products stay finite."""
    scale = max(abs(v) for v in values)
    return [v / scale for v in values]


def coefficient(
    xs: list[float],
    ys: list[float],
    method: CorrelationMethod = CorrelationMethod.PEARSON,
) -> float | None:
    """Correlation of two equal-length vectors, or None if undefined.

    Spearman ranks each vector (ties share their average rank) and applies
    the product-moment formula to the ranks. Pearson inputs are rescaled
    first, which leaves the coefficient unchanged for very large or very
    small magnitudes.
    """
    if len(xs) != len(ys):
        msg = f"Vectors differ in length: {len(xs)} != {len(ys)}"
        raise InvalidArgumentError(msg)
    if len(xs) < 2 or _is_constant(xs) or _is_constant(ys):
        return None

    kind = "ranked" if method == CorrelationMethod.SPEARMAN else "linear"
    if kind == "linear":
        xs, ys = _rescale(xs), _rescale(ys)
    try:
        r = statistics.correlation(xs, ys, method=kind)
    except statistics.StatisticsError:
        return None
    if math.isnan(r):
        return None
    # Clamp floating-point overshoot like 1.0000000000000002
    return max(-1.0, min(1.0, r))


def _group_pairs(pairs: list[AlignedPair], group_by: GroupBy) -> dict[Any, list[AlignedPair]]:
    groups: dict[Any, list[AlignedPair]] = {}
    for pair in pairs:
        key = pair.geo_value if group_by == GroupBy.LOCATION else pair.time_value_x
        groups.setdefault(key, []).append(pair)
    return groups


def correlate(
    signal_x: Signal | None,
    signal_y: Signal | None,
    group_by: GroupBy | str,
    dt_x: int = 0,
    method: CorrelationMethod | str = CorrelationMethod.PEARSON,
    *,
    dt_y: int = 0,
) -> CorrelationResult:
    """Compute one correlation per location or per time value.

    Args:
        signal_x: First signal.
        signal_y: Second signal.
        group_by: ``GroupBy.LOCATION`` / ``"geo_value"`` or ``GroupBy.TIME`` / ``"time_value"``.
        dt_x: Time units to shift ``signal_x`` forward before aligning.
        method: ``"pearson"`` or ``"spearman"``.
        dt_y: Time units to shift ``signal_y`` forward before aligning.

    Returns:
        CorrelationResult with rows in ascending key order. Groups without
        any aligned pair are omitted; an empty result is not an error.

    Raises:
        InvalidArgumentError: On an unknown ``group_by``/``method``, a non-integer
            shift or a missing signal.
        DuplicateObservationError: If either signal repeats a (location, time) key.
    """
    group = _coerce(GroupBy, group_by, "group_by")
    how = _coerce(CorrelationMethod, method, "method")
    dt_x = check_shift(dt_x, "dt_x")
    dt_y = check_shift(dt_y, "dt_y")
    x = _require_signal(signal_x, "signal_x")
    y = _require_signal(signal_y, "signal_y")

    pairs = align_pairs(x, y, dt_x=dt_x, dt_y=dt_y)
    groups = _group_pairs(pairs, group)

    rows = tuple(
        CorrelationRow(
            key=key,
            value=coefficient(
                [p.value_x for p in groups[key]],
                [p.value_y for p in groups[key]],
                how,
            ),
            n=len(groups[key]),
        )
        for key in sorted(groups)
    )

    time_span = None
    if pairs:
        times = [p.time_value_x for p in pairs]
        time_span = (min(times), max(times))

    return CorrelationResult(
        rows=rows,
        group_by=group,
        method=how,
        geo_type=x.geo_type,
        time_type=x.time_type,
        dt_x=dt_x,
        dt_y=dt_y,
        x_label=x.title,
        y_label=y.title,
        time_span=time_span,
    )


# =============================================================================
# Serialization
# =============================================================================


def correlation_to_dict(result: CorrelationResult) -> dict[str, Any]:
    """Serialize a CorrelationResult to a JSON-compatible dict."""
    return {
        "group_by": result.group_by.value,
        "method": result.method.value,
        "geo_type": result.geo_type.value,
        "time_type": result.time_type.value,
        "dt_x": result.dt_x,
        "dt_y": result.dt_y,
        "x": result.x_label,
        "y": result.y_label,
        "rows": [
            {
                result.group_by.value: (
                    row.key.isoformat() if isinstance(row.key, date) else row.key
                ),
                "value": round(row.value, 4) if row.value is not None else None,
                "n": row.n,
            }
            for row in result.rows
        ],
    }
