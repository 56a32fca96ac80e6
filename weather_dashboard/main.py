"""
FastAPI entrypoint.

This file focuses on:
- routing
- request/response handling
- wiring together settings + client + history store

Run with:
    uvicorn weather_dashboard.main:create_app --factory
"""

from __future__ import annotations

import logging
from typing import List, Optional
from zoneinfo import ZoneInfo

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .history import HistoryPersistenceError, HistoryStore, build_history_backend
from .schemas import CityQuery, HistoryEntry, WeatherResult
from .service import WeatherQueryService
from .settings import Settings, get_settings
from .weather_clients import LocationNotFound, OpenWeatherClient, UpstreamError

logger = logging.getLogger(__name__)


def build_service(settings: Settings) -> WeatherQueryService:
    """Construct the query service and its collaborators from settings."""
    client = OpenWeatherClient(
        settings.openweather_api_key,
        timeout_s=settings.http_timeout_s,
        base=settings.openweather_base_url,
    )
    history = HistoryStore(build_history_backend(settings))
    tz = ZoneInfo(settings.forecast_timezone) if settings.forecast_timezone else None
    return WeatherQueryService(client, history, forecast_days=settings.forecast_days, tz=tz)


def get_service(request: Request) -> WeatherQueryService:
    return request.app.state.weather_service


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[WeatherQueryService] = None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=settings.app_name)
    app.state.weather_service = service or build_service(settings)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        # The rejected input is not echoed back: it may not be encodable as UTF-8
        errors = [{"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]} for e in exc.errors()]
        return JSONResponse(status_code=422, content={"detail": errors})

    @app.post("/api/weather", response_model=WeatherResult)
    async def api_weather(payload: CityQuery, svc: WeatherQueryService = Depends(get_service)):
        """Current weather + daily forecast; records the city in the history."""
        try:
            return await svc.query_weather(payload.city_name)
        except LocationNotFound as e:
            raise HTTPException(status_code=404, detail=str(e))
        except UpstreamError as e:
            logger.warning("Weather query for %r failed: %s", payload.city_name, e)
            raise HTTPException(status_code=502, detail="Weather service unavailable")

    @app.get("/api/weather/history", response_model=List[HistoryEntry])
    async def api_history(svc: WeatherQueryService = Depends(get_service)):
        """Search history, oldest first."""
        return await svc.list_history()

    @app.delete("/api/weather/history/{entry_id}", status_code=204)
    async def api_delete_history(entry_id: str, svc: WeatherQueryService = Depends(get_service)):
        """Remove one history entry. Unknown ids succeed silently."""
        try:
            await svc.remove_history(entry_id)
        except HistoryPersistenceError:
            logger.exception("Deleting history entry %s failed", entry_id)
            raise HTTPException(status_code=500, detail="Could not update search history")
        return Response(status_code=204)

    return app
