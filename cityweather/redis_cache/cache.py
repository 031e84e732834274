"""Time-windowed Redis cache for weather results."""

from datetime import datetime, timezone
from typing import Optional, Protocol

from redis import Redis
from redis.exceptions import RedisError

from cityweather.config import Settings
from cityweather.locations.resolver import normalize_city_name
from cityweather.logging_config import logger
from cityweather.weather_service.errors import CacheError

WINDOW_MINUTES = 15
WEATHER_TTL_S = WINDOW_MINUTES * 60
DEFAULT_REDIS_PORT = 6379


def round_to_window(at: datetime) -> datetime:
    """Round a timestamp down to its 15-minute window in UTC.

    Naive datetimes are taken to be UTC already.

    Examples:
        10:07 -> 10:00, 10:23 -> 10:15, 10:45:59 -> 10:45
    """
    if at.tzinfo is None:
        at = at.replace(tzinfo=timezone.utc)
    else:
        at = at.astimezone(timezone.utc)
    minute = (at.minute // WINDOW_MINUTES) * WINDOW_MINUTES
    return at.replace(minute=minute, second=0, microsecond=0)


def build_key(city_name: str, at: datetime) -> str:
    """Build the cache key for a city and time.

    Format: ``weather:<city>:<rounded UTC timestamp>``, e.g.
    ``weather:mumbai:2025-10-03T10:15:00Z``.
    """
    rounded = round_to_window(at)
    return f"weather:{normalize_city_name(city_name)}:{rounded:%Y-%m-%dT%H:%M:%SZ}"


class WeatherCacheStore(Protocol):
    """Interface the weather service expects from a cache."""

    enabled: bool

    def get(self, city_name: str, at: datetime) -> Optional[str]: ...

    def set(self, city_name: str, at: datetime, payload: str) -> None: ...

    def ping(self) -> bool: ...

    def close(self) -> None: ...


class RedisWeatherCache:
    """Cache wrapper storing serialized weather results in Redis."""

    enabled = True

    def __init__(self, client, ttl_s: int = WEATHER_TTL_S):
        self.redis_client: Redis = client
        self.ttl_s = ttl_s

    def get(self, city_name: str, at: datetime) -> Optional[str]:
        """Get the cached payload for a city in the window containing ``at``.

        Args:
            city_name: Normalized city name.
            at: Lookup time.

        Returns:
            The payload if present, otherwise None.

        Raises:
            CacheError: On Redis connectivity or protocol errors, or when the
                stored value is not valid UTF-8.
        """
        key = build_key(city_name, at)
        try:
            payload = self.redis_client.get(key)
            if isinstance(payload, bytes):
                payload = payload.decode("utf-8")
        except RedisError as exc:
            raise CacheError(f"redis get failed: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise CacheError(f"undecodable cache payload: {exc}") from exc
        return payload

    def set(self, city_name: str, at: datetime, payload: str) -> None:
        """Store a payload for the window containing ``at``, with TTL.

        Raises:
            CacheError: On Redis connectivity or protocol errors.
        """
        key = build_key(city_name, at)
        try:
            self.redis_client.set(key, payload, ex=self.ttl_s)
        except RedisError as exc:
            raise CacheError(f"redis set failed: {exc}") from exc

    def ping(self) -> bool:
        try:
            return bool(self.redis_client.ping())
        except RedisError as exc:
            logger.error("REDIS_PING_FAILED", error=str(exc))
            return False

    def close(self) -> None:
        self.redis_client.close()


class NullWeatherCache:
    """Stand-in used when caching is disabled; every lookup misses."""

    enabled = False

    def get(self, city_name: str, at: datetime) -> Optional[str]:
        return None

    def set(self, city_name: str, at: datetime, payload: str) -> None:
        return None

    def ping(self) -> bool:
        return False

    def close(self) -> None:
        return None


def _parse_addr(addr: str):
    host, sep, port = addr.strip().rpartition(":")
    if not sep:
        return addr.strip(), DEFAULT_REDIS_PORT
    try:
        return host, int(port)
    except ValueError as exc:
        raise ValueError(f"REDIS_ADDR must be host:port, got {addr!r}") from exc


def build_weather_cache(settings: Settings):
    """Connect to Redis, or fall back to a disabled cache.

    Args:
        settings: Runtime settings.

    Returns:
        A RedisWeatherCache when Redis is configured and answers a ping,
        otherwise a NullWeatherCache.
    """
    if not settings.redis_addr:
        logger.warning("REDIS_NOT_CONFIGURED", detail="running without cache")
        return NullWeatherCache()

    host, port = _parse_addr(settings.redis_addr)
    client = Redis(
        host=host,
        port=port,
        db=settings.redis_db,
        password=settings.redis_password,
        socket_timeout=settings.redis_timeout_s,
        socket_connect_timeout=settings.redis_timeout_s,
    )
    try:
        client.ping()
    except RedisError as exc:
        logger.warning(
            "REDIS_UNAVAILABLE",
            addr=settings.redis_addr,
            error=str(exc),
            detail="running without cache",
        )
        client.close()
        return NullWeatherCache()

    logger.info("REDIS_CONNECTED", addr=settings.redis_addr)
    return RedisWeatherCache(client, ttl_s=settings.weather_cache_ttl_s)
