"""Signal fetching and parsing."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

from covidcast_lens.datasources.covidcast import client
from covidcast_lens.datasources.covidcast.models import Observation, Signal
from covidcast_lens.datasources.covidcast.timeutil import (
    count_units,
    format_time_range,
    format_time_value,
    parse_time_value,
    split_range,
)
from covidcast_lens.schemas import GeoType, TimeType

if TYPE_CHECKING:
    from datetime import date

# =============================================================================
# Parsing
# =============================================================================


def parse_float(raw: Any) -> float | None:
    """Coerce an API number to float; nulls, NaN and junk become None."""
    if raw is None:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(value) else value


def _parse_row(row: dict[str, Any], time_type: TimeType) -> Observation | None:
    """Parse one ``epidata`` row. Returns None if geo/time are missing."""
    geo_value = row.get("geo_value")
    time_raw = row.get("time_value")
    if geo_value is None or time_raw is None:
        return None

    issue_raw = row.get("issue")
    lag_raw = row.get("lag")
    return Observation(
        geo_value=str(geo_value).lower(),
        time_value=parse_time_value(time_raw, time_type),
        value=parse_float(row.get("value")),
        stderr=parse_float(row.get("stderr")),
        sample_size=parse_float(row.get("sample_size")),
        issue=parse_time_value(issue_raw, time_type) if issue_raw is not None else None,
        lag=int(lag_raw) if lag_raw is not None else None,
    )


def parse_rows(rows: list[dict[str, Any]], time_type: TimeType = TimeType.DAY) -> list[Observation]:
    """Parse raw ``epidata`` rows into observations sorted by (geo, time)."""
    observations = [obs for row in rows if (obs := _parse_row(row, time_type)) is not None]
    observations.sort(key=lambda o: o.key)
    return observations


# =============================================================================
# Batching
# =============================================================================


def _normalize_geo_values(geo_values: str | list[str]) -> str:
    if isinstance(geo_values, str):
        return geo_values.lower()
    return ",".join(g.lower() for g in geo_values)


def _units_per_batch(geo_type: GeoType, geo_values: str | list[str]) -> int:
    """Time units per request so a batch stays under the row ceiling."""
    if isinstance(geo_values, str) and geo_values == "*":
        locations = client.LOCATION_ESTIMATES.get(geo_type, client.MAX_ROWS_PER_REQUEST)
    elif isinstance(geo_values, str):
        locations = len(geo_values.split(","))
    else:
        locations = max(len(geo_values), 1)
    return max(1, client.MAX_ROWS_PER_REQUEST // locations)


# =============================================================================
# API Fetching
# =============================================================================


def fetch_signal(
    data_source: str,
    signal: str,
    start_day: date,
    end_day: date,
    geo_type: GeoType | str = GeoType.COUNTY,
    geo_values: str | list[str] = "*",
    time_type: TimeType | str = TimeType.DAY,
    *,
    as_of: date | None = None,
    lag: int | None = None,
    batch_days: int | None = None,
) -> Signal:
    """
    Fetch one signal for a date range, batching requests as needed.

    Args:
        data_source: Epidata source name, e.g. ``"fb-survey"``.
        signal: Signal name within the source, e.g. ``"smoothed_wcli"``.
        start_day: First day (inclusive).
        end_day: Last day (inclusive).
        geo_type: Geographic resolution.
        geo_values: ``"*"`` for all locations, one value, or a list.
        time_type: ``"day"`` or ``"week"``.
        as_of: Fetch the data as it was known on this date.
        lag: Fetch only values issued exactly ``lag`` units after their time value.
        batch_days: Override the number of time units per request.

    Returns:
        Signal whose observations are sorted by (geo_value, time_value).

    Raises:
        ValueError: If the date range is inverted or ``as_of`` and ``lag`` are combined.
        CovidcastAPIError: If the API reports an error.
        requests.HTTPError: If a request fails.
    """
    geo_type = GeoType(geo_type)
    time_type = TimeType(time_type)
    if start_day > end_day:
        msg = f"start_day {start_day} is after end_day {end_day}"
        raise ValueError(msg)
    if as_of is not None and lag is not None:
        msg = "as_of and lag cannot be combined"
        raise ValueError(msg)

    units = batch_days or _units_per_batch(geo_type, geo_values)
    base_params: dict[str, Any] = {
        "data_source": data_source,
        "signals": signal,
        "time_type": time_type.value,
        "geo_type": geo_type.value,
        "geo_values": _normalize_geo_values(geo_values),
    }
    if as_of is not None:
        base_params["as_of"] = format_time_value(as_of, time_type)
    if lag is not None:
        base_params["lag"] = lag

    rows: list[dict[str, Any]] = []
    for batch_start, batch_end in split_range(start_day, end_day, units, time_type):
        params = {
            **base_params,
            "time_values": format_time_range(batch_start, batch_end, time_type),
        }
        rows.extend(client.get_covidcast(params))

    return Signal(
        data_source=data_source,
        signal=signal,
        geo_type=geo_type,
        time_type=time_type,
        observations=tuple(parse_rows(rows, time_type)),
    )


def estimated_requests(
    start_day: date,
    end_day: date,
    geo_type: GeoType | str = GeoType.COUNTY,
    geo_values: str | list[str] = "*",
    time_type: TimeType | str = TimeType.DAY,
) -> int:
    """Number of API calls ``fetch_signal`` would make for this query."""
    units = count_units(start_day, end_day, TimeType(time_type))
    per_batch = _units_per_batch(GeoType(geo_type), geo_values)
    return -(-units // per_batch) if units else 0
