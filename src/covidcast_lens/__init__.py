"""COVIDcast Lens - COVIDcast signal retrieval, lagged correlation, and reports.

Architecture::

    datasources/   COVIDcast Epidata API (signals, metadata, time parsing)
    store.py       Tiered cache with TTL (signals → metadata → derived)
    analysis/      Cross-signal logic (correlation engine, lag sweeps, aggregation)
    renderers/     Pure data → HTML (time series SVG, choropleth tiles)
    flows/         Prefect orchestration (fetch fills the store, build renders a report)
    services/      Shared utilities (HTTP client with retry)

Data flow: datasources → store (cache) → analysis → renderers → derived/site/

Extension points; see each package's docstring for step-by-step guides:
  - New data source:   datasources/__init__.py
  - New analysis:      analysis/__init__.py
  - New UI module:     renderers/__init__.py
"""

__version__ = "0.1.0"
__author__ = "Michael Howden"

from covidcast_lens.analysis.correlation import (
    CorrelationResult,
    CorrelationRow,
    InvalidArgumentError,
    correlate,
)
from covidcast_lens.config import Settings
from covidcast_lens.datasources.covidcast import Observation, Signal, fetch_signal
from covidcast_lens.schemas import CorrelationMethod, GroupBy

__all__ = [
    "CorrelationMethod",
    "CorrelationResult",
    "CorrelationRow",
    "GroupBy",
    "InvalidArgumentError",
    "Observation",
    "Settings",
    "Signal",
    "__version__",
    "correlate",
    "fetch_signal",
]
