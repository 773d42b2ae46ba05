"""Static reference data.

Data that doesn't change with API calls: state codes and names, location
labels for renderers.

Adding a new module:
1. Create ``reference/{name}.py`` with constants/dataclasses
2. Re-export from this ``__init__.py``
"""

from covidcast_lens.reference.geography import STATES as STATES
from covidcast_lens.reference.geography import State as State
from covidcast_lens.reference.geography import abbr_to_fips as abbr_to_fips
from covidcast_lens.reference.geography import fips_to_abbr as fips_to_abbr
from covidcast_lens.reference.geography import location_label as location_label
from covidcast_lens.reference.geography import state_name as state_name
