"""Combine several signals into one wide table keyed by location and time.

Each signal can be shifted in time first, so a table row at ``t`` can hold
``x`` from ``t - 7`` next to ``y`` from ``t``. The join is a full outer join:
a key present in any signal gets a row, with None where a signal has no
value.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from covidcast_lens.analysis.correlation import InvalidArgumentError, check_shift, index_unique
from covidcast_lens.datasources.covidcast.timeutil import shift

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import date

    from covidcast_lens.datasources.covidcast.models import Signal


def column_name(signal: Signal, position: int) -> str:
    """Column for a signal's values, e.g. ``fb-survey_smoothed_wcli_0_value``."""
    return f"{signal.data_source}_{signal.signal}_{position}_value"


def aggregate_signals(
    signals: Sequence[Signal],
    dt: Sequence[int] | None = None,
) -> list[dict[str, Any]]:
    """Full outer join of signals on (geo_value, time_value).

    Args:
        signals: Signals to combine; all must share a time type.
        dt: Per-signal shift; signal ``i``'s value at ``t`` lands on row ``t + dt[i]``.
            Defaults to no shift.

    Returns:
        Row dicts with ``geo_value``, ``time_value`` and one value column per
        signal, sorted by (geo_value, time_value).

    Raises:
        InvalidArgumentError: If ``dt`` doesn't match ``signals``, shifts a row
            off the calendar, or time types differ.
        DuplicateObservationError: If a signal repeats a (location, time) key.
    """
    if not signals:
        return []
    shifts = [check_shift(s, "dt") for s in dt] if dt is not None else [0] * len(signals)
    if len(shifts) != len(signals):
        msg = f"dt has {len(shifts)} entries for {len(signals)} signals"
        raise InvalidArgumentError(msg)

    time_type = signals[0].time_type
    if any(s.time_type != time_type for s in signals):
        msg = "All signals must share one time type"
        raise InvalidArgumentError(msg)

    columns = [column_name(s, i) for i, s in enumerate(signals)]
    table: dict[tuple[str, date], dict[str, Any]] = {}
    for position, (signal, offset) in enumerate(zip(signals, shifts, strict=True)):
        index = index_unique(signal, f"signals[{position}]")
        for (geo_value, time_value), obs in index.items():
            try:
                key = (geo_value, shift(time_value, offset, time_type))
            except OverflowError:
                msg = f"dt[{position}]={offset} moves {time_value.isoformat()} off the calendar"
                raise InvalidArgumentError(msg) from None
            row = table.get(key)
            if row is None:
                row = {"geo_value": key[0], "time_value": key[1], **dict.fromkeys(columns)}
                table[key] = row
            row[columns[position]] = obs.value

    return [table[key] for key in sorted(table)]
