"""
Weather query orchestration: resolve -> fetch -> aggregate -> record history.
"""

from __future__ import annotations

import logging
from datetime import tzinfo
from typing import List, Optional

from .forecast import FORECAST_DAYS, aggregate_forecast
from .history import HistoryPersistenceError, HistoryStore
from .schemas import HistoryEntry, WeatherResult
from .weather_clients import LocationNotFound, OpenWeatherClient

logger = logging.getLogger(__name__)


class WeatherQueryService:
    """
    Holds the upstream client and the history store it was constructed with;
    nothing here is global, so tests pass fakes or mocked transports.
    """

    def __init__(
        self,
        client: OpenWeatherClient,
        history: HistoryStore,
        forecast_days: int = FORECAST_DAYS,
        tz: Optional[tzinfo] = None,
    ):
        self.client = client
        self.history = history
        self.forecast_days = forecast_days
        self.tz = tz

    async def query_weather(self, location_name: str) -> WeatherResult:
        """
        Current conditions + daily forecast for ``location_name``.

        Raises LocationNotFound (no geocoding match, or no samples) and
        UpstreamError (transport failure). In both cases no history entry is
        recorded. On success the name is added to the history, best-effort.
        """
        location_name = location_name.strip()
        coordinates = await self.client.geocode(location_name)
        if coordinates is None:
            raise LocationNotFound(f"Location not found: {location_name}")

        samples = await self.client.forecast_samples(coordinates)
        aggregated = aggregate_forecast(
            coordinates, samples, days=self.forecast_days, tz=self.tz
        )
        if aggregated is None:
            logger.info("Forecast for %s returned no samples", coordinates.name)
            raise LocationNotFound(f"No forecast available for: {location_name}")

        try:
            await self.history.add_city(location_name)
        except HistoryPersistenceError:
            logger.warning("Could not record %r in search history", location_name, exc_info=True)

        return WeatherResult(
            resolved=coordinates,
            current=aggregated.current,
            forecast=aggregated.forecast,
        )

    async def list_history(self) -> List[HistoryEntry]:
        return await self.history.list()

    async def remove_history(self, entry_id: str) -> None:
        await self.history.remove_city(entry_id)
