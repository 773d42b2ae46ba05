"""Cross-signal analysis: alignment, correlations, lag sweeps, aggregation.

Each module combines 2+ signals into structures that renderers and the CLI
consume directly. This is the domain logic layer.

Dependency rule: analysis/ imports from datasources/ models only.
It never fetches data or produces HTML.

Modules:
  - correlation: signal x signal -> per-location or per-day coefficients
  - lags: correlation across a range of lags -> per-lag summaries, best lag
  - aggregate: N signals (optionally shifted) -> one wide table

Adding an analysis module
-------------------------
1. Create ``analysis/{name}.py`` with a pure function::

       from covidcast_lens.datasources.covidcast import Signal

       def compare_something(x: Signal, y: Signal) -> SomeResult:
           ...

2. Rules:
   - Import datasource *models* only (never call fetch functions here).
   - No I/O, no HTTP, no Prefect decorators.
   - Raise ``InvalidArgumentError`` for bad options; return None for
     undefined statistics instead of raising.

3. Wire into the pipeline (see ``flows/build.py``).

4. Re-export in ``__init__.py`` and add tests in ``tests/test_{name}.py``.
"""

from covidcast_lens.analysis.aggregate import aggregate_signals, column_name
from covidcast_lens.analysis.correlation import (
    AlignedPair,
    CorrelationResult,
    CorrelationRow,
    DuplicateObservationError,
    InvalidArgumentError,
    align_pairs,
    coefficient,
    correlate,
    correlation_to_dict,
)
from covidcast_lens.analysis.lags import LagSummary, best_lag, lag_sweep, summarize_lags

__all__ = [
    "AlignedPair",
    "CorrelationResult",
    "CorrelationRow",
    "DuplicateObservationError",
    "InvalidArgumentError",
    "LagSummary",
    "aggregate_signals",
    "align_pairs",
    "best_lag",
    "coefficient",
    "column_name",
    "correlate",
    "correlation_to_dict",
    "lag_sweep",
    "summarize_lags",
]
