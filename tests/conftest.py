"""Shared test fixtures."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import pytest

from weather_dashboard.history import HistoryStore, JsonHistoryFile
from weather_dashboard.schemas import Coordinates, WeatherSample

JAN_1_2024 = int(datetime(2024, 1, 1, tzinfo=timezone.utc).timestamp())
THREE_HOURS = 3 * 3600


@pytest.fixture
def coords() -> Coordinates:
    return Coordinates(name="Paris", latitude=48.8566, longitude=2.3522, country="FR")


@pytest.fixture
def make_samples() -> Callable[..., List[WeatherSample]]:
    """Build `count` samples at a fixed step; temperatures default to 50, 51, 52..."""

    def _make(
        count: int,
        start: int = JAN_1_2024,
        step: int = THREE_HOURS,
        temps: Optional[Sequence[float]] = None,
    ) -> List[WeatherSample]:
        return [
            WeatherSample(
                timestamp=start + i * step,
                temperature_f=temps[i] if temps is not None else 50.0 + i,
                wind_speed_mph=5.0 + i,
                humidity_pct=60.0,
                icon_code="01d",
                description="clear sky",
            )
            for i in range(count)
        ]

    return _make


@pytest.fixture
def history_path(tmp_path: Path) -> Path:
    return tmp_path / "searchHistory.json"


@pytest.fixture
def json_store(history_path: Path) -> HistoryStore:
    return HistoryStore(JsonHistoryFile(history_path))
