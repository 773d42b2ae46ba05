"""
Command-line interface for the application.

This module provides the main entry point for the CLI.
"""

from __future__ import annotations

import argparse
import functools
import http.server
import sys
from datetime import date
from typing import TYPE_CHECKING

import requests

from covidcast_lens import __version__
from covidcast_lens.analysis import (
    InvalidArgumentError,
    best_lag,
    correlate,
    lag_sweep,
    summarize_lags,
)
from covidcast_lens.config import get_settings
from covidcast_lens.datasources import covidcast
from covidcast_lens.flows.build import build_all
from covidcast_lens.flows.fetch import fetch_all
from covidcast_lens.schemas import CorrelationMethod, GeoType, GroupBy
from covidcast_lens.store import DataStore

if TYPE_CHECKING:
    from covidcast_lens.datasources.covidcast import Signal

# Errors reported as a one-line message with exit code 1
_USER_ERRORS = (InvalidArgumentError, covidcast.CovidcastAPIError, requests.RequestException)


def _add_signal_args(parser: argparse.ArgumentParser) -> None:
    """Options selecting the x/y signal pair (defaults come from settings)."""
    parser.add_argument("--x-source", help="Data source of x (default: from settings)")
    parser.add_argument("--x-signal", help="Signal name of x")
    parser.add_argument("--y-source", help="Data source of y")
    parser.add_argument("--y-signal", help="Signal name of y")
    parser.add_argument(
        "--geo-type",
        choices=[g.value for g in GeoType],
        help="Geographic level (default: from settings)",
    )
    parser.add_argument("--start", type=date.fromisoformat, help="First day, YYYY-MM-DD")
    parser.add_argument("--end", type=date.fromisoformat, help="Last day, YYYY-MM-DD")
    parser.add_argument(
        "--method",
        choices=[m.value for m in CorrelationMethod],
        default=CorrelationMethod.PEARSON.value,
        help="Correlation method (default: pearson)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="covidcast-lens",
        description="Fetch COVIDcast signals and correlate them across locations, days and lags",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("info", help="Show application info")

    # 'refresh' command - fetch data and build report
    subparsers.add_parser("refresh", help="Fetch signals and build the report")

    # 'correlate' command - print correlation rows
    correlate_parser = subparsers.add_parser("correlate", help="Correlate two signals")
    _add_signal_args(correlate_parser)
    correlate_parser.add_argument(
        "--by",
        choices=[g.value for g in GroupBy],
        default=GroupBy.LOCATION.value,
        help="Group by location (geo_value) or day (time_value)",
    )
    correlate_parser.add_argument(
        "--dt-x",
        type=int,
        default=0,
        help="Shift x forward by this many days before aligning (default: 0)",
    )

    # 'lags' command - sweep dt_x and report the best lag
    lags_parser = subparsers.add_parser("lags", help="Find the lag of maximum correlation")
    _add_signal_args(lags_parser)
    lags_parser.add_argument(
        "--max-lag",
        type=int,
        default=None,
        help="Try dt_x in [-max_lag, max_lag] (default: from settings)",
    )

    # 'serve' command - serve built report locally
    serve_parser = subparsers.add_parser("serve", help="Serve the report locally")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to serve on (default: api_port from settings)",
    )

    return parser


def _fetch_pair(args: argparse.Namespace) -> tuple[Signal, Signal]:
    """Fetch the x and y signals named by ``args`` / settings."""
    settings = get_settings()
    covidcast.use_api_key(settings.api_key)
    geo_type = args.geo_type or settings.geo_type
    start = args.start or settings.start_day
    end = args.end or settings.end_day

    pair = []
    for source, signal in (
        (args.x_source or settings.x_source, args.x_signal or settings.x_signal),
        (args.y_source or settings.y_source, args.y_signal or settings.y_signal),
    ):
        print(f"Fetching {source}:{signal} ({geo_type}, {start}..{end})...")
        pair.append(covidcast.fetch_signal(source, signal, start, end, geo_type))
    return pair[0], pair[1]


def cmd_info(_args: argparse.Namespace) -> int:
    """Handle the 'info' command."""
    settings = get_settings()
    print(f"Application: {settings.app_name}")
    print(f"Version: {__version__}")
    print(f"Environment: {settings.app_env}")
    print(f"Debug: {settings.debug}")
    print(f"Data dir: {settings.data_dir}")
    print(f"x: {settings.x_source}:{settings.x_signal}")
    print(f"y: {settings.y_source}:{settings.y_signal}")
    print(f"Range: {settings.start_day}..{settings.end_day} ({settings.geo_type})")
    return 0


def cmd_refresh(_args: argparse.Namespace) -> int:
    """Handle the 'refresh' command: fetch data then build report."""
    print("Fetching signals...")
    fetch_all()

    print("Building report...")
    result = build_all()
    if "error" in result:
        print(f"Error: {result['error']}", file=sys.stderr)
        return 1

    print("Done.")
    return 0


def cmd_correlate(args: argparse.Namespace) -> int:
    """Handle the 'correlate' command: print one row per group."""
    try:
        x, y = _fetch_pair(args)
        result = correlate(x, y, args.by, dt_x=args.dt_x, method=args.method)
    except _USER_ERRORS as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.debug:
        print(f"Debug: {len(x)} x rows, {len(y)} y rows")

    print(result.title)
    print(f"{args.by:<12} {'value':>8} {'n':>6}")
    for row in result:
        key = row.key.isoformat() if isinstance(row.key, date) else row.key
        value = f"{row.value:+.4f}" if row.value is not None else "NA"
        print(f"{key:<12} {value:>8} {row.n:>6}")
    print(f"{len(result)} group(s)")
    return 0


def cmd_lags(args: argparse.Namespace) -> int:
    """Handle the 'lags' command: sweep dt_x and report the best lag."""
    max_lag = args.max_lag if args.max_lag is not None else get_settings().max_lag
    if max_lag < 0:
        print("Error: --max-lag must be >= 0", file=sys.stderr)
        return 1

    try:
        x, y = _fetch_pair(args)
        sweep = lag_sweep(x, y, range(-max_lag, max_lag + 1), GroupBy.LOCATION, args.method)
    except _USER_ERRORS as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    summaries = summarize_lags(sweep)
    print(f"{'dt_x':>5} {'median':>8} {'mean':>8} {'groups':>7}")
    for s in summaries:
        median = f"{s.median:+.4f}" if s.median is not None else "NA"
        mean = f"{s.mean:+.4f}" if s.mean is not None else "NA"
        print(f"{s.dt_x:>5} {median:>8} {mean:>8} {s.groups:>7}")

    best = best_lag(summaries)
    if best is None:
        print("No lag produced a defined correlation.")
    else:
        print(f"Best lag: dt_x={best.dt_x}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Handle the 'serve' command: serve the built report locally."""
    settings = get_settings()
    port = args.port if args.port is not None else settings.api_port
    site_dir = DataStore(settings.data_dir).derived / "site"

    if not site_dir.exists():
        print("No site directory found. Run 'covidcast-lens refresh' first.", file=sys.stderr)
        return 1

    handler = functools.partial(http.server.SimpleHTTPRequestHandler, directory=str(site_dir))

    with http.server.HTTPServer(("", port), handler) as server:
        print(f"Serving report on http://localhost:{port}/ (Ctrl+C to stop)")
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            print("\nServer stopped.")

    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "info": cmd_info,
        "refresh": cmd_refresh,
        "correlate": cmd_correlate,
        "lags": cmd_lags,
        "serve": cmd_serve,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
