"""
Weather clients.

We intentionally separate API logic from FastAPI endpoints:
- easier to test in isolation
- cleaner main.py
- the query service only deals with Coordinates / WeatherSample values
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from .schemas import Coordinates, WeatherSample

logger = logging.getLogger(__name__)


class WeatherError(RuntimeError):
    """Raised for user-facing weather lookup failures."""
    pass


class LocationNotFound(WeatherError):
    """The location (or its forecast) does not exist upstream. Not retried."""
    pass


class UpstreamError(WeatherError):
    """
    Network failure, timeout, non-200 status or malformed payload.

    Messages only name the failed operation and the status code; request URLs
    carry the API key and must never reach the caller.
    """
    pass


class OpenWeatherClient:
    """
    OpenWeatherMap wrapper.

    Endpoints used:
    - Geocoding:
        /geo/1.0/direct?q=...&limit=1&appid=KEY
    - 5-day forecast (3-hour increments):
        /data/2.5/forecast?lat=...&lon=...&units=imperial&appid=KEY

    An ``httpx.AsyncClient`` may be injected (shared connection pool, tests);
    without one a short-lived client is opened per request.
    """

    def __init__(
        self,
        api_key: str,
        timeout_s: float = 10.0,
        base: str = "https://api.openweathermap.org",
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.timeout_s = timeout_s
        self.base = base.rstrip("/")
        self._http = http

    async def _get_json(self, path: str, params: Dict[str, Any], what: str) -> Any:
        url = f"{self.base}{path}"
        params = {**params, "appid": self.api_key}
        try:
            if self._http is not None:
                r = await self._http.get(url, params=params, timeout=self.timeout_s)
            else:
                async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                    r = await client.get(url, params=params)
        except httpx.TimeoutException as e:
            logger.warning("%s timed out after %.1fs", what, self.timeout_s)
            raise UpstreamError(f"{what} timed out") from e
        except httpx.HTTPError as e:
            # str(e) may include the request URL (and so the key): log the type only
            logger.warning("%s failed: %s", what, type(e).__name__)
            raise UpstreamError(f"{what} failed") from e

        if r.status_code != 200:
            logger.warning("%s failed (%s)", what, r.status_code)
            raise UpstreamError(f"{what} failed ({r.status_code})")

        try:
            return r.json()
        except ValueError as e:
            logger.warning("%s returned a non-JSON body", what)
            raise UpstreamError(f"{what} returned a malformed payload") from e

    async def geocode(self, query: str) -> Optional[Coordinates]:
        """
        Resolve a free-text place name ("Austin, TX", "Paris") to coordinates.

        The upstream ranks candidates; we take its first match and do no local
        matching. Returns None when the upstream reports zero matches.
        """
        raw = query.strip()
        results = await self._get_json(
            "/geo/1.0/direct", {"q": raw, "limit": 1}, "Geocoding"
        )
        if not isinstance(results, list):
            raise UpstreamError("Geocoding returned a malformed payload")
        if not results:
            logger.info("No geocoding match for %r", raw)
            return None

        best = results[0]
        try:
            return Coordinates(
                name=best.get("name") or raw,
                latitude=float(best["lat"]),
                longitude=float(best["lon"]),
                country=best.get("country") or "",
                region=best.get("state"),
            )
        except (AttributeError, KeyError, TypeError, ValueError, ValidationError) as e:
            raise UpstreamError("Geocoding returned a malformed payload") from e

    async def forecast_samples(self, coordinates: Coordinates, units: str = "imperial") -> List[WeatherSample]:
        """
        Retrieve the 5-day forecast in 3-hour increments as an ascending list
        of samples. Aggregation into daily records happens in forecast.py.
        """
        params = {
            "lat": coordinates.latitude,
            "lon": coordinates.longitude,
            "units": units,
        }
        data = await self._get_json("/data/2.5/forecast", params, "Forecast")
        try:
            return [self._to_sample(item) for item in data["list"]]
        except (AttributeError, IndexError, KeyError, TypeError, ValueError, ValidationError) as e:
            raise UpstreamError("Forecast returned a malformed payload") from e

    @staticmethod
    def _to_sample(item: Dict[str, Any]) -> WeatherSample:
        main = item["main"]
        w = (item.get("weather") or [{}])[0]
        return WeatherSample(
            timestamp=int(item["dt"]),
            temperature_f=float(main["temp"]),
            wind_speed_mph=float(item["wind"]["speed"]),
            humidity_pct=float(main["humidity"]),
            icon_code=w.get("icon", ""),
            description=w.get("description", ""),
        )
