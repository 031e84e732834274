"""Environment-driven settings for the weather service."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict

DATA_DIR = Path(__file__).parent / "data"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Runtime configuration.

    Redis settings are optional: with no ``redis_addr`` the service runs
    without a cache.
    """

    model_config = ConfigDict(frozen=True)

    redis_addr: Optional[str] = None
    redis_password: Optional[str] = None
    redis_db: int = 0
    redis_timeout_s: float = 5.0
    weather_cache_ttl_s: int = 15 * 60

    weather_api_url: str = "https://api.open-meteo.com/v1/forecast"
    upstream_timeout_s: float = 10.0
    upstream_retry_attempts: int = 1
    request_deadline_s: float = 15.0

    cities_file: Path = DATA_DIR / "cities.json"
    weather_codes_file: Path = DATA_DIR / "weather_codes.json"

    log_level: str = "INFO"
    log_json: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables.

        Raises:
            ValueError: If a numeric variable cannot be parsed.
        """
        defaults = cls()
        return cls(
            redis_addr=os.getenv("REDIS_ADDR") or None,
            redis_password=os.getenv("REDIS_PASSWORD") or None,
            redis_db=_env_int("REDIS_DB", defaults.redis_db),
            redis_timeout_s=_env_float("REDIS_TIMEOUT_S", defaults.redis_timeout_s),
            weather_cache_ttl_s=_env_int(
                "WEATHER_CACHE_TTL_S", defaults.weather_cache_ttl_s
            ),
            weather_api_url=os.getenv("WEATHER_API_URL") or defaults.weather_api_url,
            upstream_timeout_s=_env_float(
                "UPSTREAM_TIMEOUT_S", defaults.upstream_timeout_s
            ),
            upstream_retry_attempts=max(
                1, _env_int("UPSTREAM_RETRY_ATTEMPTS", defaults.upstream_retry_attempts)
            ),
            request_deadline_s=_env_float(
                "REQUEST_DEADLINE_S", defaults.request_deadline_s
            ),
            cities_file=Path(os.getenv("CITIES_FILE") or defaults.cities_file),
            weather_codes_file=Path(
                os.getenv("WEATHER_CODES_FILE") or defaults.weather_codes_file
            ),
            log_level=(os.getenv("LOG_LEVEL") or defaults.log_level).upper(),
            log_json=_env_bool("LOG_JSON", defaults.log_json),
        )
