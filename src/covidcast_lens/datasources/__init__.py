"""External data source integrations.

Each subdirectory is one data source with a consistent structure:

    datasources/{name}/
    ├── __init__.py       # Public API re-exports
    ├── client.py         # API URLs, constants, error codes
    ├── models.py         # Dataclasses for API responses
    └── {feature}.py      # Fetch functions (one per endpoint/concept)

Adding a new datasource
-----------------------
1. Create ``datasources/{name}/`` with files above.
   See ``covidcast/`` for a complete example.

2. Write fetch functions that return dataclasses::

       from covidcast_lens.services.http import session

       def fetch_something(...) -> Signal:
           resp = session.get(API_URL, params={...})
           resp.raise_for_status()
           return Signal(...)

   Returning ``Signal`` lets the analysis layer correlate the new source
   against COVIDcast signals without changes.

3. Re-export public API in ``__init__.py`` with ``__all__``.

4. Wire into the pipeline (see ``flows/fetch.py``):
   - Add a ``@task`` that calls your fetch function
   - Pick a store tier + path (e.g. ``signals/mysource/x.json``)
   - Call ``store.write(path, data, source="...", valid_until=...)``

5. Add tests in ``tests/test_{name}.py``.
"""
