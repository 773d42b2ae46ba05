"""Conversions between Epidata time values and ``datetime.date``.

Daily signals use ``YYYYMMDD`` integers. Weekly signals use MMWR epiweeks
(``YYYYWW``), which we represent by the Sunday the week starts on so that both
time types share one ordered, shiftable ``date`` axis.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from epiweeks import Week

from covidcast_lens.schemas import TimeType


def parse_time_value(raw: int | str, time_type: TimeType = TimeType.DAY) -> date:
    """Parse an Epidata ``time_value`` / ``issue`` field.

    Raises:
        ValueError: If the value is not a valid day or epiweek.
    """
    text = str(raw).strip()
    if time_type == TimeType.WEEK:
        if len(text) != 6 or not text.isdigit():
            msg = f"Invalid epiweek: {raw!r}"
            raise ValueError(msg)
        return Week.fromstring(text).startdate()
    return datetime.strptime(text, "%Y%m%d").date()


def format_time_value(day: date, time_type: TimeType = TimeType.DAY) -> str:
    """Format a date the way the Epidata API expects it for ``time_type``."""
    if time_type == TimeType.WEEK:
        return Week.fromdate(day).cdcformat()
    return day.strftime("%Y%m%d")


def format_time_range(start: date, end: date, time_type: TimeType = TimeType.DAY) -> str:
    """``"20200101-20200131"`` style range parameter."""
    return f"{format_time_value(start, time_type)}-{format_time_value(end, time_type)}"


def shift(day: date, steps: int, time_type: TimeType = TimeType.DAY) -> date:
    """Move ``day`` by ``steps`` time units (days or epiweeks)."""
    if time_type == TimeType.WEEK:
        return day + timedelta(weeks=steps)
    return day + timedelta(days=steps)


def normalize(day: date, time_type: TimeType = TimeType.DAY) -> date:
    """Snap a date to the start of its time unit."""
    if time_type == TimeType.WEEK:
        return Week.fromdate(day).startdate()
    return day


def count_units(start: date, end: date, time_type: TimeType = TimeType.DAY) -> int:
    """Number of time units from ``start`` through ``end`` inclusive."""
    start, end = normalize(start, time_type), normalize(end, time_type)
    if end < start:
        return 0
    days = (end - start).days
    return days // 7 + 1 if time_type == TimeType.WEEK else days + 1


def split_range(
    start: date,
    end: date,
    units_per_batch: int,
    time_type: TimeType = TimeType.DAY,
) -> list[tuple[date, date]]:
    """Split ``[start, end]`` into contiguous inclusive batches.

    Args:
        start: First day (snapped to its time unit).
        end: Last day (snapped to its time unit).
        units_per_batch: Maximum time units per batch (>= 1).
        time_type: Unit of the batches.

    Returns:
        List of ``(batch_start, batch_end)`` tuples covering the range in order.
    """
    if units_per_batch < 1:
        msg = f"units_per_batch must be >= 1, got {units_per_batch}"
        raise ValueError(msg)

    start, end = normalize(start, time_type), normalize(end, time_type)
    batches: list[tuple[date, date]] = []
    current = start
    while current <= end:
        batch_end = min(shift(current, units_per_batch - 1, time_type), end)
        batches.append((current, batch_end))
        current = shift(batch_end, 1, time_type)
    return batches
