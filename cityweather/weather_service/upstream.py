"""Forecast provider client with bounded timeouts and retry logic."""

import time
from typing import Callable, Optional

import httpx
from pydantic import ValidationError

from cityweather.logging_config import logger
from cityweather.metrics import UPSTREAM_REQUESTS
from cityweather.models.upstream import CURRENT_FIELDS, UpstreamForecast
from cityweather.weather_service.errors import (
    UpstreamDecodeError,
    UpstreamError,
    UpstreamUnreachableError,
    WeatherServiceError,
)

REQUEST_TIMEOUT_S = 10.0
RETRY_BASE_DELAY_S = 0.3
RETRY_MAX_DELAY_S = 2.0
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
BODY_SNIPPET_CHARS = 200


def body_snippet(text: str, limit: int = BODY_SNIPPET_CHARS) -> str:
    """Collapse whitespace and truncate a response body for logging."""
    collapsed = " ".join(text.split())
    if len(collapsed) > limit:
        return collapsed[:limit] + "..."
    return collapsed


class UpstreamFetcher:
    """Fetch current conditions for a coordinate pair from the provider.

    Args:
        client: Shared HTTP client.
        base_url: Forecast endpoint URL.
        timeout_s: Upper bound for a single request.
        retry_attempts: Total attempts for retryable failures.
        sleep: Sleep function used between retries.
        monotonic: Clock used to evaluate deadlines.
    """

    def __init__(
        self,
        client: httpx.Client,
        base_url: str,
        *,
        timeout_s: float = REQUEST_TIMEOUT_S,
        retry_attempts: int = 1,
        sleep: Callable[[float], None] = time.sleep,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.base_url = base_url
        self.timeout_s = timeout_s
        self.retry_attempts = max(1, retry_attempts)
        self._sleep = sleep
        self._monotonic = monotonic

    def close(self) -> None:
        self.client.close()

    def _timeout(self, deadline: Optional[float]) -> float:
        """Return the tighter of the fixed timeout and the caller's deadline."""
        if deadline is None:
            return self.timeout_s
        remaining = deadline - self._monotonic()
        if remaining <= 0:
            UPSTREAM_REQUESTS.labels(outcome="deadline_exceeded").inc()
            raise UpstreamUnreachableError("Deadline exceeded before weather lookup")
        return min(self.timeout_s, remaining)

    def _request_once(self, params: dict, timeout: float, log_context: dict):
        """Send one request, mapping failures onto the error kinds.

        Returns:
            The successful response.

        Raises:
            UpstreamError: On a non-2xx status.
            UpstreamUnreachableError: On transport failures.
        """
        try:
            response = self.client.get(self.base_url, params=params, timeout=timeout)
        except httpx.RequestError as exc:
            logger.error(
                "UPSTREAM_REQUEST_FAILED",
                **log_context,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            UPSTREAM_REQUESTS.labels(outcome="unreachable").inc()
            raise UpstreamUnreachableError("Weather provider unreachable") from exc

        logger.info("UPSTREAM_RESPONSE", **log_context, status=response.status_code)
        if not response.is_success:
            snippet = body_snippet(response.text)
            logger.error(
                "UPSTREAM_BAD_STATUS",
                **log_context,
                status=response.status_code,
                body=snippet,
            )
            UPSTREAM_REQUESTS.labels(outcome="bad_status").inc()
            raise UpstreamError(response.status_code, snippet)
        UPSTREAM_REQUESTS.labels(outcome="ok").inc()
        return response

    def _request_with_retry(
        self, params: dict, deadline: Optional[float], log_context: dict
    ) -> httpx.Response:
        """Execute the request with retry/backoff, never past the deadline."""
        for attempt in range(1, self.retry_attempts + 1):
            timeout = self._timeout(deadline)
            try:
                return self._request_once(
                    params, timeout, {**log_context, "attempt": attempt}
                )
            except UpstreamError as exc:
                retryable = exc.status_code in RETRYABLE_STATUS_CODES
                if not retryable or attempt == self.retry_attempts:
                    raise
                last_error: WeatherServiceError = exc
            except UpstreamUnreachableError as exc:
                if attempt == self.retry_attempts:
                    raise
                last_error = exc

            delay = min(RETRY_BASE_DELAY_S * (2 ** (attempt - 1)), RETRY_MAX_DELAY_S)
            if deadline is not None and self._monotonic() + delay >= deadline:
                logger.info("UPSTREAM_RETRY_ABANDONED", **log_context, attempt=attempt)
                raise last_error
            logger.info(
                "UPSTREAM_RETRY",
                **log_context,
                attempt=attempt + 1,
                delay_s=delay,
            )
            self._sleep(delay)

    def fetch_current(
        self, latitude: float, longitude: float, deadline: Optional[float] = None
    ) -> UpstreamForecast:
        """Fetch current conditions for a location.

        Args:
            latitude: Latitude in degrees.
            longitude: Longitude in degrees.
            deadline: Optional ``time.monotonic()`` value the call must finish by.

        Returns:
            The decoded provider payload.

        Raises:
            UpstreamUnreachableError: On transport failures or an expired deadline.
            UpstreamError: On a non-2xx status.
            UpstreamDecodeError: If a successful response has an unexpected shape.
        """
        log_context = {"lat": latitude, "lon": longitude}
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "current": ",".join(CURRENT_FIELDS),
        }
        response = self._request_with_retry(params, deadline, log_context)
        try:
            return UpstreamForecast.model_validate_json(response.content)
        except ValidationError as exc:
            logger.error(
                "UPSTREAM_BAD_PAYLOAD",
                **log_context,
                error=str(exc),
                body=body_snippet(response.text),
            )
            raise UpstreamDecodeError("Weather provider returned a malformed payload") from exc
