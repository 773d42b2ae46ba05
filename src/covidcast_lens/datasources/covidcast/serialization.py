"""JSON serialization helpers for COVIDcast data structures."""

from __future__ import annotations

from datetime import date
from typing import Any

from covidcast_lens.datasources.covidcast.models import Observation, Signal, SignalMeta
from covidcast_lens.schemas import GeoType, TimeType


def _iso(day: date | None) -> str | None:
    return day.isoformat() if day is not None else None


def _from_iso(text: str | None) -> date | None:
    return date.fromisoformat(text) if text else None


def signal_to_dict(signal: Signal) -> dict[str, Any]:
    """Serialize a Signal to a JSON-compatible dict.

    Observations are stored column-wise to keep cached files compact.
    """
    obs = signal.observations
    return {
        "data_source": signal.data_source,
        "signal": signal.signal,
        "geo_type": signal.geo_type.value,
        "time_type": signal.time_type.value,
        "observations": {
            "geo_value": [o.geo_value for o in obs],
            "time_value": [o.time_value.isoformat() for o in obs],
            "value": [o.value for o in obs],
            "stderr": [o.stderr for o in obs],
            "sample_size": [o.sample_size for o in obs],
            "issue": [_iso(o.issue) for o in obs],
            "lag": [o.lag for o in obs],
        },
    }


def signal_from_dict(data: dict[str, Any]) -> Signal:
    """Rebuild a Signal from ``signal_to_dict`` output.

    Raises:
        KeyError: If a required field is missing.
    """
    cols = data.get("observations", {})
    geo_values: list[str] = cols.get("geo_value", [])
    n = len(geo_values)

    def column(name: str) -> list[Any]:
        values: list[Any] = cols.get(name) or []
        return values if len(values) == n else [None] * n

    time_values = cols.get("time_value", [])
    values, stderrs, sizes = column("value"), column("stderr"), column("sample_size")
    issues, lags = column("issue"), column("lag")

    observations = tuple(
        Observation(
            geo_value=geo_values[i],
            time_value=date.fromisoformat(time_values[i]),
            value=values[i],
            stderr=stderrs[i],
            sample_size=sizes[i],
            issue=_from_iso(issues[i]),
            lag=lags[i],
        )
        for i in range(n)
    )
    return Signal(
        data_source=data["data_source"],
        signal=data["signal"],
        geo_type=GeoType(data["geo_type"]),
        time_type=TimeType(data.get("time_type", TimeType.DAY)),
        observations=observations,
    )


def metadata_to_dict(metas: list[SignalMeta]) -> list[dict[str, Any]]:
    """Serialize metadata entries to a JSON-compatible list."""
    return [
        {
            "data_source": m.data_source,
            "signal": m.signal,
            "time_type": m.time_type.value,
            "geo_type": m.geo_type.value,
            "min_time": m.min_time.isoformat(),
            "max_time": m.max_time.isoformat(),
            "num_locations": m.num_locations,
            "min_value": m.min_value,
            "max_value": m.max_value,
            "mean_value": m.mean_value,
            "stdev_value": m.stdev_value,
            "max_issue": _iso(m.max_issue),
        }
        for m in metas
    ]


def metadata_from_dict(rows: list[dict[str, Any]]) -> list[SignalMeta]:
    """Rebuild metadata entries from ``metadata_to_dict`` output."""
    return [
        SignalMeta(
            data_source=row["data_source"],
            signal=row["signal"],
            time_type=TimeType(row["time_type"]),
            geo_type=GeoType(row["geo_type"]),
            min_time=date.fromisoformat(row["min_time"]),
            max_time=date.fromisoformat(row["max_time"]),
            num_locations=row.get("num_locations", 0),
            min_value=row.get("min_value"),
            max_value=row.get("max_value"),
            mean_value=row.get("mean_value"),
            stdev_value=row.get("stdev_value"),
            max_issue=_from_iso(row.get("max_issue")),
        )
        for row in rows
    ]
