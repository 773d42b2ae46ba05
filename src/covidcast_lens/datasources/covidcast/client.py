"""
COVIDcast (Delphi Epidata) API client.

Low-level HTTP helpers for the ``covidcast`` and ``covidcast_meta``
endpoints. Handles the Epidata response envelope and its result codes.

API docs: https://cmu-delphi.github.io/delphi-epidata/api/covidcast.html
"""

from __future__ import annotations

from typing import Any

from covidcast_lens.schemas import GeoType
from covidcast_lens.services.http import session

# ---------------------------------------------------------------------------
# API configuration
# ---------------------------------------------------------------------------
API_BASE = "https://api.delphi.cmu.edu/epidata"
COVIDCAST_ENDPOINT = "covidcast/"
META_ENDPOINT = "covidcast_meta/"

# Rows per request we plan batches around. The server enforces its own
# ceiling and answers with result code 2 when a response was truncated.
MAX_ROWS_PER_REQUEST = 3650

# ---------------------------------------------------------------------------
# Epidata result codes
# ---------------------------------------------------------------------------
RESULT_SUCCESS = 1
RESULT_TRUNCATED = 2
RESULT_NO_RESULTS = -2

# Rough number of locations per geo type, used to size batches for "*" queries.
LOCATION_ESTIMATES: dict[GeoType, int] = {
    GeoType.COUNTY: 3200,
    GeoType.HRR: 306,
    GeoType.MSA: 392,
    GeoType.DMA: 210,
    GeoType.STATE: 54,
    GeoType.HHS: 10,
    GeoType.NATION: 1,
}

# Module-level API key, set by ``use_api_key``.
_api_key: str | None = None


class CovidcastAPIError(RuntimeError):
    """The API answered with a non-success Epidata result code."""

    def __init__(self, result: int, message: str) -> None:
        super().__init__(f"Epidata error {result}: {message}")
        self.result = result
        self.message = message


def use_api_key(key: str | None) -> None:
    """Send ``key`` with every subsequent request (None to stop)."""
    global _api_key  # noqa: PLW0603
    _api_key = key


def _get(endpoint: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
    """GET an Epidata endpoint and unwrap its ``epidata`` rows.

    Raises:
        requests.HTTPError: On HTTP-level failures.
        CovidcastAPIError: On any result code other than success / no results.
    """
    query = dict(params or {})
    if _api_key:
        query["api_key"] = _api_key

    resp = session.get(f"{API_BASE}/{endpoint}", params=query)
    resp.raise_for_status()
    payload: dict[str, Any] = resp.json()

    result = payload.get("result")
    if result == RESULT_NO_RESULTS:
        return []
    if result != RESULT_SUCCESS:
        code = result if isinstance(result, int) else 0
        raise CovidcastAPIError(code, str(payload.get("message", "unknown error")))

    rows: list[dict[str, Any]] = payload.get("epidata") or []
    return rows


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def get_covidcast(params: dict[str, Any]) -> list[dict[str, Any]]:
    """GET /covidcast/: signal rows for one source/signal/geo/time query."""
    return _get(COVIDCAST_ENDPOINT, params)


def get_meta() -> list[dict[str, Any]]:
    """GET /covidcast_meta/: one row per source/signal/time type/geo type."""
    return _get(META_ENDPOINT)
