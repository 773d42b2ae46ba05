"""COVIDcast signal data source (Delphi Epidata API).

Fetches epidemiological signals (survey indicators, cases, deaths, claims)
indexed by location and day/epiweek.

Public API:
  - client: Low-level HTTP (Epidata envelope, result codes, API key)
  - models: Observation, Signal, SignalMeta
  - signals: fetch_signal, parse_rows
  - metadata: fetch_metadata, find_meta
  - timeutil: parse_time_value, format_time_value, shift
  - serialization: signal_to_dict, signal_from_dict, metadata_to_dict, metadata_from_dict
"""

from covidcast_lens.datasources.covidcast.client import (
    CovidcastAPIError,
    use_api_key,
)
from covidcast_lens.datasources.covidcast.metadata import fetch_metadata, find_meta
from covidcast_lens.datasources.covidcast.models import (
    Observation,
    Signal,
    SignalMeta,
    is_missing,
)
from covidcast_lens.datasources.covidcast.serialization import (
    metadata_from_dict,
    metadata_to_dict,
    signal_from_dict,
    signal_to_dict,
)
from covidcast_lens.datasources.covidcast.signals import (
    estimated_requests,
    fetch_signal,
    parse_rows,
)
from covidcast_lens.datasources.covidcast.timeutil import (
    format_time_value,
    parse_time_value,
    shift,
)

__all__ = [
    "CovidcastAPIError",
    "Observation",
    "Signal",
    "SignalMeta",
    "estimated_requests",
    "fetch_metadata",
    "fetch_signal",
    "find_meta",
    "format_time_value",
    "is_missing",
    "metadata_from_dict",
    "metadata_to_dict",
    "parse_rows",
    "parse_time_value",
    "shift",
    "signal_from_dict",
    "signal_to_dict",
    "use_api_key",
]
