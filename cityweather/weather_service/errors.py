"""Error kinds raised by the weather lookup pipeline."""

from typing import Optional


class WeatherServiceError(Exception):
    """Base exception for weather lookup failures."""

    kind = "weather_service_error"


class InvalidInputError(WeatherServiceError):
    """Raised when the requested city is blank."""

    kind = "invalid_input"


class CityNotFoundError(WeatherServiceError):
    """Raised when a city has no entry in the location dataset."""

    kind = "city_not_found"


class DataUnavailableError(WeatherServiceError):
    """Raised when the location dataset cannot be read or parsed."""

    kind = "data_unavailable"


class UpstreamUnreachableError(WeatherServiceError):
    """Raised on transport failures talking to the weather provider."""

    kind = "upstream_unreachable"


class UpstreamError(WeatherServiceError):
    """Raised when the weather provider answers with a non-2xx status."""

    kind = "upstream_error"

    def __init__(self, status_code: int, body_snippet: Optional[str] = None):
        self.status_code = status_code
        self.body_snippet = body_snippet or ""
        super().__init__(f"Weather provider returned HTTP {status_code}")


class UpstreamDecodeError(WeatherServiceError):
    """Raised when a 200 response from the provider has an unexpected shape."""

    kind = "decode_error"


class CacheError(Exception):
    """Raised by cache stores on connectivity or protocol failures.

    Never surfaced to callers of the weather service.
    """
