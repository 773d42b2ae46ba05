"""
Prefect flow for fetching COVIDcast signals.

Run locally:
    python -m covidcast_lens.flows.fetch

Run with Prefect dashboard:
    prefect server start &
    python -m covidcast_lens.flows.fetch
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any

from prefect import flow, task

from covidcast_lens.config import get_settings
from covidcast_lens.datasources import covidcast
from covidcast_lens.schemas import SignalRequest
from covidcast_lens.store import DataStore, signal_path

if TYPE_CHECKING:
    from covidcast_lens.config import Settings

# Data store with tiered directories
store = DataStore(get_settings().data_dir)

API_SOURCE = "api.delphi.cmu.edu"
META_PATH = Path("metadata/covidcast_meta.json")

SIGNAL_TTL = timedelta(hours=24)
META_TTL = timedelta(hours=6)


def request_path(request: SignalRequest) -> Path:
    """Store path for a signal request."""
    return signal_path(
        request.data_source,
        request.signal,
        request.geo_type,
        request.start_day,
        request.end_day,
        request.time_type,
    )


def default_requests(settings: Settings) -> list[SignalRequest]:
    """The x/y signal pair configured in settings."""
    return [
        SignalRequest(
            data_source=source,
            signal=signal,
            start_day=settings.start_day,
            end_day=settings.end_day,
            geo_type=settings.geo_type,
        )
        for source, signal in (
            (settings.x_source, settings.x_signal),
            (settings.y_source, settings.y_signal),
        )
    ]


@task(name="fetch-signal", retries=2, retry_delay_seconds=10)
def fetch_signal(request: SignalRequest) -> dict[str, Any]:
    """Fetch one signal from the Epidata API and serialize it."""
    signal = covidcast.fetch_signal(**request.fetch_kwargs())
    return covidcast.signal_to_dict(signal)


@task(name="save-signal")
def save_signal(request: SignalRequest, payload: dict[str, Any]) -> Path:
    """Save a fetched signal via store."""
    return store.write(
        request_path(request),
        payload,
        source=API_SOURCE,
        valid_until=datetime.now(UTC) + SIGNAL_TTL,
        query=request.model_dump(mode="json"),
        rows=len(payload.get("observations", {}).get("geo_value", [])),
    )


@task(name="fetch-metadata", retries=2, retry_delay_seconds=10)
def fetch_metadata() -> list[dict[str, Any]]:
    """Fetch ``covidcast_meta`` and serialize it."""
    return covidcast.metadata_to_dict(covidcast.fetch_metadata())


@task(name="save-metadata")
def save_metadata(rows: list[dict[str, Any]]) -> Path:
    """Save the metadata snapshot via store."""
    return store.write(
        META_PATH,
        rows,
        source=API_SOURCE,
        valid_until=datetime.now(UTC) + META_TTL,
    )


@flow(name="fetch-signals", log_prints=True)
def fetch_all(
    requests: list[SignalRequest] | None = None,
    include_metadata: bool = True,
) -> dict[str, Any]:
    """
    Fetch the configured signals (and metadata) into the store.

    Checks freshness before fetching and skips signals that are still valid.
    """
    settings = get_settings()
    covidcast.use_api_key(settings.api_key)
    requests = requests if requests is not None else default_requests(settings)

    results: dict[str, Any] = {"signals": {}}

    for request in requests:
        path = request_path(request)
        if store.is_fresh(path):
            print(f"{request.key} is fresh, skipping fetch.")
            payload = store.read(path) or {}
        else:
            n_calls = covidcast.estimated_requests(
                request.start_day,
                request.end_day,
                request.geo_type,
                request.geo_values,
                request.time_type,
            )
            print(
                f"Fetching {request.key} {request.start_day}..{request.end_day} "
                f"({n_calls} request(s))..."
            )
            payload = fetch_signal(request)
            output_path = save_signal(request, payload)
            print(f"Saved {request.key} to {output_path}")

        rows = len(payload.get("observations", {}).get("geo_value", []))
        results["signals"][request.key] = rows

    if include_metadata:
        if store.is_fresh(META_PATH):
            print("Metadata is fresh, skipping fetch.")
            meta_rows = store.read(META_PATH) or []
        else:
            print("Fetching COVIDcast metadata...")
            meta_rows = fetch_metadata()
            save_metadata(meta_rows)
        results["metadata_entries"] = len(meta_rows)

    return results


if __name__ == "__main__":
    result = fetch_all()
    print(f"Flow complete: {result}")
