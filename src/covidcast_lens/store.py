"""Tiered data store with freshness-aware caching.

Manages read/write of JSON data files organized into tiers by update frequency:
  - signals/: Fetched signal payloads, 24h TTL (COVIDcast publishes daily)
  - metadata/: ``covidcast_meta`` snapshot, 6h TTL
  - derived/: Computed outputs, always recomputed (HTML report, correlation rows)

Every file is wrapped in a metadata envelope with ``valid_until`` so the
fetch flow can skip signals that are still fresh.
"""

from __future__ import annotations

import json
import re
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

from covidcast_lens.schemas import GeoType, TimeType

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _slug(text: str) -> str:
    return _UNSAFE_CHARS.sub("_", text).strip("._") or "_"


def signal_path(
    data_source: str,
    signal: str,
    geo_type: GeoType | str,
    start_day: date,
    end_day: date,
    time_type: TimeType | str = TimeType.DAY,
) -> Path:
    """Store path for one fetched signal query, relative to the store base.

    e.g. ``signals/fb-survey/smoothed_wcli/state_day_20200901_20201130.json``
    """
    name = f"{geo_type}_{time_type}_{start_day:%Y%m%d}_{end_day:%Y%m%d}.json"
    return Path("signals") / _slug(data_source) / _slug(signal) / name


class DataStore:
    """Manages read/write of cached data files with TTL."""

    def __init__(self, base_dir: Path) -> None:
        self.base = base_dir
        self.signals = base_dir / "signals"
        self.metadata = base_dir / "metadata"
        self.derived = base_dir / "derived"

    def read(self, path: Path) -> Any:
        """Read data payload from a metadata-enveloped JSON file.

        Returns the ``data`` field, or None if the file doesn't exist.
        """
        envelope = self.read_raw(path)
        if envelope is None:
            return None
        return envelope.get("data", envelope)

    def read_raw(self, path: Path) -> dict[str, Any] | None:
        """Read the full envelope (meta + data) from a JSON file."""
        full = self._resolve(path)
        if not full.exists():
            return None
        with full.open() as f:
            result: dict[str, Any] = json.load(f)
        return result

    def write(
        self,
        path: Path,
        data: Any,
        source: str,
        valid_until: datetime | None = None,
        **params: Any,
    ) -> Path:
        """Write data wrapped in a metadata envelope.

        Args:
            path: Relative path under base_dir (e.g. ``metadata/covidcast_meta.json``).
            data: Payload to store under the ``data`` key.
            source: Data source identifier (e.g. ``"api.delphi.cmu.edu"``).
            valid_until: Expiry timestamp. None means derived/no-cache.
            **params: Extra metadata fields (query parameters, row counts, etc.).

        Returns:
            Absolute path of the written file.
        """
        full = self._resolve(path)
        full.parent.mkdir(parents=True, exist_ok=True)

        meta: dict[str, Any] = {
            "source": source,
            "fetched_at": datetime.now(UTC).isoformat(),
        }
        if valid_until is not None:
            meta["valid_until"] = valid_until.isoformat()
        if params:
            meta.update(params)

        envelope = {"meta": meta, "data": data}
        with full.open("w") as f:
            json.dump(envelope, f, indent=2, default=str)

        return full

    def file_path(self, path: Path) -> Path | None:
        """Return the absolute path of a stored file, or None if missing."""
        full = self._resolve(path)
        return full if full.exists() else None

    def _resolve(self, path: Path) -> Path:
        full = self.base / path if not path.is_absolute() else path
        try:
            full.resolve().relative_to(self.base.resolve())
        except ValueError:
            msg = f"Path escapes store base directory: {path}"
            raise ValueError(msg) from None
        return full

    def is_fresh(self, path: Path) -> bool:
        """Check if a file exists and hasn't expired.

        Returns False if the file is missing, has no ``valid_until``, or
        the expiry time has passed.
        """
        envelope = self.read_raw(path)
        if envelope is None:
            return False

        valid_until = envelope.get("meta", {}).get("valid_until")
        if valid_until is None:
            return False

        expiry = datetime.fromisoformat(valid_until)
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=UTC)
        return datetime.now(UTC) < expiry
