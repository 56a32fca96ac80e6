from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized configuration.

    Loaded from:
    - environment variables
    - .env file (if present)
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Required key (the app should fail fast if missing)
    openweather_api_key: str

    app_name: str = "Weather Dashboard"
    log_level: str = "INFO"

    # Upstream
    openweather_base_url: str = "https://api.openweathermap.org"
    http_timeout_s: float = 10.0

    # Forecast aggregation
    forecast_days: int = 5
    # IANA zone name used for day bucketing; None means the server's local zone
    forecast_timezone: Optional[str] = None

    # Search history persistence
    history_backend: Literal["json", "sqlite"] = "json"
    history_path: str = "searchHistory.json"
    sqlite_path: str = "weather_app.sqlite3"


@lru_cache
def get_settings() -> Settings:
    return Settings()
