"""Pure rendering functions: signals and correlation results -> HTML strings.

All renderers follow the same pattern:
  - Input: ``Signal``, ``CorrelationResult`` or analysis summaries
  - Output: str (HTML fragment, not a full page)
  - No side effects, no I/O, no Prefect decorators

Used by flows/build.py which orchestrates the rendering pipeline.

Public API:
  - plot: render_plot (explicit dispatch on subject x plot type)
  - timeseries: build_signal_timeseries_html, build_correlation_timeseries_html
  - choropleth: build_signal_choropleth_html, build_correlation_choropleth_html
  - lags: build_lag_table_html
  - colors: series_color, sequential_color, diverging_color

Adding a renderer (UI module)
-----------------------------
1. Create ``renderers/{name}.py`` with a build function::

       from covidcast_lens.renderers import render_template

       def build_mywidget_html(result: CorrelationResult) -> str:
           rows = [...]
           return render_template("mywidget.html.j2", rows=rows)

2. Create a Jinja2 template in ``templates/{name}.html.j2``.
   Templates produce HTML fragments (no <html>/<body> tags).
   CSS goes in ``templates/base.html.j2`` within the <style> block.

3. If the widget is a new plot layout, add a ``PlotType`` member and a case
   in ``renderers/plot.py``.

4. Wire into ``flows/build.py`` and add tests that assert the returned HTML
   contains expected content.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import jinja2

# Shared Jinja2 environment for all renderers
_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
_jinja_env = jinja2.Environment(
    loader=jinja2.FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=True,
)


def render_template(template_name: str, **kwargs: Any) -> str:
    """Render a Jinja2 template by name."""
    return _jinja_env.get_template(template_name).render(**kwargs)
