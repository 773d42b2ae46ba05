"""
Tests for the fetch flow module.
"""

from __future__ import annotations

import json
from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING
from unittest.mock import Mock, patch

from covidcast_lens.config import Settings
from covidcast_lens.datasources.covidcast import Observation, Signal, SignalMeta
from covidcast_lens.flows import fetch
from covidcast_lens.schemas import GeoType, SignalRequest, TimeType
from covidcast_lens.store import DataStore

if TYPE_CHECKING:
    from pathlib import Path

    import pytest

REQUEST = SignalRequest(
    data_source="fb-survey",
    signal="smoothed_wcli",
    start_day=date(2020, 9, 1),
    end_day=date(2020, 9, 2),
    geo_type=GeoType.STATE,
)

SIGNAL = Signal(
    data_source="fb-survey",
    signal="smoothed_wcli",
    geo_type=GeoType.STATE,
    observations=(
        Observation("pa", date(2020, 9, 1), 1.2),
        Observation("pa", date(2020, 9, 2), 1.4),
    ),
)

META = SignalMeta(
    data_source="fb-survey",
    signal="smoothed_wcli",
    time_type=TimeType.DAY,
    geo_type=GeoType.STATE,
    min_time=date(2020, 4, 6),
    max_time=date(2020, 11, 29),
    num_locations=51,
    mean_value=1.1,
    stdev_value=0.5,
)


class TestRequests:
    """Test request helpers."""

    def test_request_path(self) -> None:
        assert str(fetch.request_path(REQUEST)) == (
            "signals/fb-survey/smoothed_wcli/state_day_20200901_20200902.json"
        )

    def test_default_requests_follow_settings(self) -> None:
        settings = Settings(
            x_source="a", x_signal="b", y_source="c", y_signal="d", geo_type=GeoType.COUNTY
        )

        x, y = fetch.default_requests(settings)

        assert x.key == "a/b/county"
        assert y.key == "c/d/county"
        assert x.start_day == settings.start_day
        assert y.end_day == settings.end_day


class TestFetchTasks:
    """Test individual fetch/save tasks."""

    @patch("covidcast_lens.flows.fetch.covidcast.fetch_signal")
    def test_fetch_signal(self, mock_fetch: Mock) -> None:
        mock_fetch.return_value = SIGNAL

        payload = fetch.fetch_signal(REQUEST)

        assert payload["signal"] == "smoothed_wcli"
        assert payload["observations"]["value"] == [1.2, 1.4]
        kwargs = mock_fetch.call_args[1]
        assert kwargs["data_source"] == "fb-survey"
        assert kwargs["geo_type"] == GeoType.STATE
        assert kwargs["start_day"] == date(2020, 9, 1)

    def test_save_signal(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(fetch, "store", DataStore(tmp_path))
        payload = {"observations": {"geo_value": ["pa", "pa"]}}

        output = fetch.save_signal(REQUEST, payload)

        envelope = json.loads(output.read_text())
        assert envelope["meta"]["source"] == "api.delphi.cmu.edu"
        assert envelope["meta"]["rows"] == 2
        assert envelope["meta"]["query"]["geo_type"] == "state"
        assert envelope["meta"]["query"]["start_day"] == "2020-09-01"
        assert envelope["data"] == payload
        valid_until = datetime.fromisoformat(envelope["meta"]["valid_until"])
        assert valid_until > datetime.now(UTC) + timedelta(hours=23)

    @patch("covidcast_lens.flows.fetch.covidcast.fetch_metadata")
    def test_fetch_and_save_metadata(
        self, mock_meta: Mock, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(fetch, "store", DataStore(tmp_path))
        mock_meta.return_value = [META]

        rows = fetch.fetch_metadata()
        output = fetch.save_metadata(rows)

        assert output == tmp_path / "metadata" / "covidcast_meta.json"
        assert rows[0]["min_time"] == "2020-04-06"
        assert DataStore(tmp_path).is_fresh(fetch.META_PATH)


class TestFetchAllFlow:
    """Test the main fetch flow."""

    @patch("covidcast_lens.flows.fetch.covidcast.fetch_metadata")
    @patch("covidcast_lens.flows.fetch.covidcast.fetch_signal")
    def test_fetch_all(
        self,
        mock_fetch: Mock,
        mock_meta: Mock,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(fetch, "store", DataStore(tmp_path))
        mock_fetch.return_value = SIGNAL
        mock_meta.return_value = [META]

        result = fetch.fetch_all([REQUEST])

        assert result == {
            "signals": {"fb-survey/smoothed_wcli/state": 2},
            "metadata_entries": 1,
        }
        assert (tmp_path / fetch.request_path(REQUEST)).exists()
        assert (tmp_path / fetch.META_PATH).exists()

    @patch("covidcast_lens.flows.fetch.covidcast.fetch_metadata")
    @patch("covidcast_lens.flows.fetch.covidcast.fetch_signal")
    def test_fresh_data_not_refetched(
        self,
        mock_fetch: Mock,
        mock_meta: Mock,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        ds = DataStore(tmp_path)
        monkeypatch.setattr(fetch, "store", ds)
        future = datetime.now(UTC) + timedelta(hours=1)
        ds.write(
            fetch.request_path(REQUEST),
            {"observations": {"geo_value": ["ny"]}},
            source="test",
            valid_until=future,
        )
        ds.write(fetch.META_PATH, [{}, {}], source="test", valid_until=future)

        result = fetch.fetch_all([REQUEST])

        mock_fetch.assert_not_called()
        mock_meta.assert_not_called()
        assert result["signals"] == {"fb-survey/smoothed_wcli/state": 1}
        assert result["metadata_entries"] == 2

    @patch("covidcast_lens.flows.fetch.covidcast.fetch_metadata")
    @patch("covidcast_lens.flows.fetch.covidcast.fetch_signal")
    def test_skip_metadata(
        self,
        mock_fetch: Mock,
        mock_meta: Mock,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(fetch, "store", DataStore(tmp_path))
        mock_fetch.return_value = SIGNAL

        result = fetch.fetch_all([REQUEST], include_metadata=False)

        mock_meta.assert_not_called()
        assert "metadata_entries" not in result
