"""
Prefect flows for the data pipeline.

Flows:
- fetch: Download the configured COVIDcast signals and API metadata into the store
- build: Correlate the cached signals, sweep lags, render the HTML report

Usage (local):
    python -m covidcast_lens.flows.fetch
    python -m covidcast_lens.flows.build

Usage (Prefect):
    prefect server start  # Optional, for dashboard
    prefect deployment run 'fetch-signals/default'
"""
