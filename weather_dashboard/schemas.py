"""
Pydantic schemas.

Why:
- Validation of upstream payloads and request bodies
- Immutable value objects shared between the aggregator, the store and the API
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Coordinates(BaseModel):
    """Normalized location data returned by geocoding."""
    model_config = ConfigDict(frozen=True)

    name: str
    latitude: float
    longitude: float
    country: str = ""
    region: Optional[str] = None


class WeatherSample(BaseModel):
    """One 3-hourly reading from the forecast upstream."""
    model_config = ConfigDict(frozen=True)

    timestamp: int  # unix seconds
    temperature_f: float
    wind_speed_mph: float
    humidity_pct: float
    icon_code: str
    description: str


class WeatherRecord(BaseModel):
    """One displayed day (or the current conditions) for a location."""
    model_config = ConfigDict(frozen=True)

    location_name: str
    date: str  # MM/DD/YYYY
    temperature_f: float
    wind_speed_mph: float
    humidity_pct: float
    icon_code: str
    description: str


class ForecastResult(BaseModel):
    current: WeatherRecord
    forecast: List[WeatherRecord]


class WeatherResult(ForecastResult):
    """Response body of a weather query: aggregated records plus the resolved location."""
    resolved: Coordinates


class HistoryEntry(BaseModel):
    """A previously searched location name with its stable identifier."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str


class CityQuery(BaseModel):
    """Payload of POST /api/weather."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    city_name: str = Field(..., alias="cityName", min_length=1, max_length=255)

    @field_validator("city_name")
    @classmethod
    def encodable(cls, v: str) -> str:
        # JSON allows lone surrogates; they cannot go into a URL or the history file
        try:
            v.encode("utf-8")
        except UnicodeEncodeError:
            raise ValueError("cityName must be valid Unicode text")
        return v
