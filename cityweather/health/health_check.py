"""Health checks for the cache and the forecast provider."""

import httpx

from cityweather.logging_config import logger
from cityweather.models.health import ServiceStatus
from cityweather.models.upstream import CURRENT_FIELDS


def cache_status(cache) -> ServiceStatus:
    """Check cache connectivity.

    Args:
        cache: The weather service's cache store.

    Returns:
        disabled when caching is off, otherwise available or not_available
        depending on whether the store answers a ping.
    """
    if not cache.enabled:
        return ServiceStatus.disabled
    if cache.ping():
        return ServiceStatus.available
    logger.error("CACHE_UNAVAILABLE")
    return ServiceStatus.not_available


async def is_weather_api_available(base_url: str) -> bool:
    """Check the forecast provider for availability.

    Args:
        base_url: Forecast endpoint URL.

    Returns:
        True if the provider responds with current weather data.
    """
    try:
        async with httpx.AsyncClient(timeout=5) as client:
            response = await client.get(
                base_url,
                params={
                    "latitude": 13.08,
                    "longitude": 80.27,
                    "current": ",".join(CURRENT_FIELDS),
                },
            )
            return response.status_code == 200 and "current" in response.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("WEATHER_API_UNAVAILABLE", error=str(exc))
        return False
