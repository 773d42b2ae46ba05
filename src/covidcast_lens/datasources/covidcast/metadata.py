"""Signal metadata from the ``covidcast_meta`` endpoint."""

from __future__ import annotations

from typing import Any

from covidcast_lens.datasources.covidcast import client
from covidcast_lens.datasources.covidcast.models import SignalMeta
from covidcast_lens.datasources.covidcast.signals import parse_float
from covidcast_lens.datasources.covidcast.timeutil import parse_time_value
from covidcast_lens.schemas import GeoType, TimeType


def _parse_meta(row: dict[str, Any]) -> SignalMeta | None:
    """Parse one metadata row. Returns None for unknown geo/time types."""
    try:
        time_type = TimeType(row["time_type"])
        geo_type = GeoType(row["geo_type"])
    except (KeyError, ValueError):
        return None

    max_issue = row.get("max_issue")
    return SignalMeta(
        data_source=row["data_source"],
        signal=row["signal"],
        time_type=time_type,
        geo_type=geo_type,
        min_time=parse_time_value(row["min_time"], time_type),
        max_time=parse_time_value(row["max_time"], time_type),
        num_locations=int(row.get("num_locations") or 0),
        min_value=parse_float(row.get("min_value")),
        max_value=parse_float(row.get("max_value")),
        mean_value=parse_float(row.get("mean_value")),
        stdev_value=parse_float(row.get("stdev_value")),
        max_issue=parse_time_value(max_issue, time_type) if max_issue is not None else None,
    )


def fetch_metadata() -> list[SignalMeta]:
    """Fetch metadata for every available signal.

    Returns:
        List of SignalMeta, one per (source, signal, time type, geo type).

    Raises:
        CovidcastAPIError: If the API reports an error.
        requests.HTTPError: If the request fails.
    """
    metas = [meta for row in client.get_meta() if (meta := _parse_meta(row)) is not None]
    metas.sort(key=lambda m: (m.data_source, m.signal, m.time_type, m.geo_type))
    return metas


def find_meta(
    metas: list[SignalMeta],
    data_source: str,
    signal: str,
    geo_type: GeoType | str,
    time_type: TimeType | str = TimeType.DAY,
) -> SignalMeta | None:
    """Look up the metadata entry for one signal, or None if absent."""
    for meta in metas:
        if (
            meta.data_source == data_source
            and meta.signal == signal
            and meta.geo_type == geo_type
            and meta.time_type == time_type
        ):
            return meta
    return None
