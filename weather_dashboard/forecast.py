"""
Forecast aggregation.

The forecast upstream returns ~40 samples in 3-hour steps. The UI shows one
card per day, so we keep exactly one sample per calendar day: the first one
seen for that day (first-wins, no averaging and no min/max).
"""

from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import List, Optional, Sequence

from .schemas import Coordinates, ForecastResult, WeatherRecord, WeatherSample

DATE_FORMAT = "%m/%d/%Y"
FORECAST_DAYS = 5


def local_day(timestamp: int, tz: Optional[tzinfo] = None) -> date:
    """Calendar day of a unix timestamp in ``tz`` (server local zone when None)."""
    return datetime.fromtimestamp(timestamp, tz=tz).date()


def to_record(location_name: str, day: date, sample: WeatherSample) -> WeatherRecord:
    return WeatherRecord(
        location_name=location_name,
        date=day.strftime(DATE_FORMAT),
        temperature_f=sample.temperature_f,
        wind_speed_mph=sample.wind_speed_mph,
        humidity_pct=sample.humidity_pct,
        icon_code=sample.icon_code,
        description=sample.description,
    )


def aggregate_forecast(
    coordinates: Coordinates,
    samples: Sequence[WeatherSample],
    *,
    days: int = FORECAST_DAYS,
    tz: Optional[tzinfo] = None,
) -> Optional[ForecastResult]:
    """
    Reduce ascending samples to the current conditions plus up to ``days``
    daily records.

    - current: built from samples[0], dated by its exact timestamp
    - forecast: the first sample of every later calendar day, ascending,
      stopping after ``days`` entries; never padded when data runs short

    Returns None for an empty sample list.
    """
    if not samples:
        return None

    first = samples[0]
    current_day = local_day(first.timestamp, tz)
    current = to_record(coordinates.name, current_day, first)

    forecast: List[WeatherRecord] = []
    for sample in samples[1:]:
        if len(forecast) >= days:
            break
        sample_day = local_day(sample.timestamp, tz)
        if sample_day != current_day:
            forecast.append(to_record(coordinates.name, sample_day, sample))
            current_day = sample_day

    return ForecastResult(current=current, forecast=forecast)
