"""Weather lookup orchestration: cache-aside around resolve + fetch."""

import time
from datetime import datetime, timezone
from typing import Callable, Optional

import httpx
from pydantic import ValidationError

from cityweather.config import Settings
from cityweather.locations.resolver import LocationResolver, normalize_city_name
from cityweather.logging_config import logger
from cityweather.metrics import CACHE_LOOKUPS
from cityweather.models.weather import WeatherResult
from cityweather.redis_cache.cache import WeatherCacheStore, build_weather_cache
from cityweather.weather_codes.translator import WeatherCodeTranslator
from cityweather.weather_service.errors import CacheError, InvalidInputError
from cityweather.weather_service.upstream import UpstreamFetcher


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WeatherService:
    """Answer "what is the weather in city X" with a 15-minute cache.

    Collaborators are injected so tests can swap in fakes; the cache in
    particular may be a disabled or failing store without affecting results.
    """

    def __init__(
        self,
        *,
        cache: WeatherCacheStore,
        resolver: LocationResolver,
        fetcher: UpstreamFetcher,
        translator: WeatherCodeTranslator,
        clock: Callable[[], datetime] = utc_now,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.cache = cache
        self.resolver = resolver
        self.fetcher = fetcher
        self.translator = translator
        self._clock = clock
        self._monotonic = monotonic

    def close(self) -> None:
        """Release the cache connection and the HTTP client."""
        try:
            self.cache.close()
        finally:
            self.fetcher.close()

    def _cached_weather(self, city_key: str, at: datetime) -> Optional[WeatherResult]:
        """Return a cached result, treating every cache problem as a miss."""
        try:
            payload = self.cache.get(city_key, at)
        except CacheError as exc:
            logger.error("CACHE_GET_FAILED", city=city_key, error=str(exc))
            CACHE_LOOKUPS.labels(result="error").inc()
            return None
        if payload is None:
            logger.info("CACHE_WEATHER_MISS", city=city_key)
            CACHE_LOOKUPS.labels(result="miss").inc()
            return None
        try:
            weather = WeatherResult.from_payload(payload)
        except ValidationError as exc:
            logger.warning("CACHE_PAYLOAD_CORRUPT", city=city_key, error=str(exc))
            CACHE_LOOKUPS.labels(result="corrupt").inc()
            return None
        logger.info("CACHE_WEATHER_HIT", city=city_key)
        CACHE_LOOKUPS.labels(result="hit").inc()
        return weather

    def _save_weather(
        self, city_key: str, at: datetime, weather: WeatherResult, deadline
    ) -> None:
        if deadline is not None and self._monotonic() >= deadline:
            logger.warning("CACHE_SET_SKIPPED", city=city_key, reason="deadline")
            return
        try:
            self.cache.set(city_key, at, weather.to_payload())
        except CacheError as exc:
            logger.error("CACHE_SET_FAILED", city=city_key, error=str(exc))

    def get_weather(
        self, city_name: str, deadline: Optional[float] = None
    ) -> WeatherResult:
        """Return current weather for a city.

        Args:
            city_name: City name as typed by the user.
            deadline: Optional ``time.monotonic()`` value by which the
                upstream call must complete.

        Returns:
            Weather data from the cache or the provider.

        Raises:
            InvalidInputError: If the city name is blank.
            CityNotFoundError: If the city is not in the location dataset.
            DataUnavailableError: If the location dataset cannot be read.
            UpstreamUnreachableError: On provider transport failures.
            UpstreamError: On a non-2xx provider response.
            UpstreamDecodeError: On a malformed provider payload.
        """
        if city_name is None or not city_name.strip():
            raise InvalidInputError("City name is required")

        city_key = normalize_city_name(city_name)
        now = self._clock()
        weather = self._cached_weather(city_key, now)
        if weather is not None:
            return weather

        location = self.resolver.resolve(city_name)
        forecast = self.fetcher.fetch_current(
            location.latitude, location.longitude, deadline=deadline
        )
        description = self.translator.describe(forecast.current.weather_code)
        weather = WeatherResult.from_upstream(city_name, forecast, description)

        self._save_weather(city_key, now, weather, deadline)
        return weather


def build_weather_service(
    settings: Settings, http_client: Optional[httpx.Client] = None
) -> WeatherService:
    """Wire a WeatherService from settings.

    Args:
        settings: Runtime settings.
        http_client: Shared HTTP client; one is created when omitted.

    Returns:
        A ready-to-use WeatherService.
    """
    client = http_client or httpx.Client(timeout=settings.upstream_timeout_s)
    return WeatherService(
        cache=build_weather_cache(settings),
        resolver=LocationResolver(settings.cities_file),
        fetcher=UpstreamFetcher(
            client,
            settings.weather_api_url,
            timeout_s=settings.upstream_timeout_s,
            retry_attempts=settings.upstream_retry_attempts,
        ),
        translator=WeatherCodeTranslator(settings.weather_codes_file),
    )
