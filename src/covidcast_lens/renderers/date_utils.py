"""Shared date-formatting helpers for renderers."""

from __future__ import annotations

from datetime import date


def date_range_label(start: date | None, end: date | None) -> str:
    """Human-readable label for a date span.

    Returns e.g. ``Sep 1\u201330, 2020`` (same month), ``Sep 1\u2013Nov 30, 2020``
    (same year) or ``Dec 1, 2020\u2013Jan 31, 2021``. Falls back to
    ``no data`` when either end is missing.
    """
    if start is None or end is None:
        return "no data"
    if start == end:
        return f"{start.strftime('%b')} {start.day}, {start.year}"
    start_str = f"{start.strftime('%b')} {start.day}"
    if start.year != end.year:
        return f"{start_str}, {start.year}\u2013{end.strftime('%b')} {end.day}, {end.year}"
    end_str = str(end.day) if start.month == end.month else f"{end.strftime('%b')} {end.day}"
    return f"{start_str}\u2013{end_str}, {end.year}"


def short_date(day: date) -> str:
    """Axis tick label, e.g. ``Sep 14``."""
    return f"{day.strftime('%b')} {day.day}"
