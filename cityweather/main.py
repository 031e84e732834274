"""FastAPI application routes, middleware, and metrics."""

import time
import uuid
from contextlib import asynccontextmanager
from functools import lru_cache

from fastapi import Depends, FastAPI, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from structlog.contextvars import bind_contextvars, clear_contextvars

from cityweather.config import Settings
from cityweather.health.health_check import cache_status, is_weather_api_available
from cityweather.logging_config import configure_logging, logger
from cityweather.models.health import Dependencies, HealthResponse, ServiceStatus
from cityweather.models.weather import WeatherResult
from cityweather.weather_service.errors import (
    CityNotFoundError,
    InvalidInputError,
    WeatherServiceError,
)
from cityweather.weather_service.weather import WeatherService, build_weather_service

settings = Settings.from_env()
configure_logging(settings.log_level, settings.log_json)


@lru_cache(maxsize=1)
def get_weather_service() -> WeatherService:
    """Return the process-wide WeatherService, built on first use."""
    return build_weather_service(settings)


def shutdown_weather_service() -> None:
    """Close the shared WeatherService if one was built."""
    if get_weather_service.cache_info().currsize:
        get_weather_service().close()
        get_weather_service.cache_clear()
        logger.info("WEATHER_SERVICE_CLOSED")


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    shutdown_weather_service()


app = FastAPI(title="cityweather", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "path", "status_code"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "HTTP request duration in seconds", ["path"]
)


@app.middleware("http")
async def request_logging(request: Request, call_next):
    """Log request details, attach a request ID, and record metrics.

    Args:
        request: Incoming HTTP request.
        call_next: FastAPI handler for the next middleware/app.

    Returns:
        The response produced by the downstream handler.
    """
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    bind_contextvars(request_id=request_id)
    start = time.perf_counter()
    response = None
    try:
        response = await call_next(request)
        response.headers["x-request-id"] = request_id
        return response
    finally:
        duration_s = time.perf_counter() - start
        duration_ms = round(duration_s * 1000, 2)
        status_code = getattr(response, "status_code", 500)
        logger.info(
            "HTTP_REQUEST",
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=duration_ms,
        )
        REQUEST_COUNT.labels(
            method=request.method, path=request.url.path, status_code=status_code
        ).inc()
        REQUEST_LATENCY.labels(path=request.url.path).observe(duration_s)
        clear_contextvars()


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    """Convert blank city names into 400 responses."""
    return JSONResponse(status_code=400, content={"error": "city is required"})


@app.exception_handler(CityNotFoundError)
async def city_not_found_handler(request: Request, exc: CityNotFoundError):
    """Convert city lookup errors into 404 responses.

    Args:
        request: Incoming HTTP request.
        exc: Raised city lookup error.

    Returns:
        A JSON response with a fixed error message.
    """
    return JSONResponse(status_code=404, content={"error": "city not found"})


@app.exception_handler(WeatherServiceError)
async def weather_service_error_handler(request: Request, exc: WeatherServiceError):
    """Convert operational weather service errors into 500 responses.

    Args:
        request: Incoming HTTP request.
        exc: Raised weather service error.

    Returns:
        A JSON response with a generic error message.
    """
    logger.error("GET_WEATHER_FAILED", error_kind=exc.kind, error=str(exc))
    return JSONResponse(
        status_code=500, content={"error": "upstream or server error"}
    )


@app.get("/weather")
def get_weather_for_city(
    city: str = "", service: WeatherService = Depends(get_weather_service)
) -> WeatherResult:
    """Fetch weather data for the requested city.

    Args:
        city: City name string from the query parameter.
        service: Weather lookup service.

    Returns:
        A WeatherResult from cached or upstream data.
    """
    deadline = time.monotonic() + settings.request_deadline_s
    return service.get_weather(city, deadline=deadline)


@app.get("/health", response_model=HealthResponse)
async def health(
    service: WeatherService = Depends(get_weather_service),
) -> HealthResponse:
    """Report API health and dependency availability.

    Returns:
        A HealthResponse containing dependency status.
    """
    weather_api_available = await is_weather_api_available(settings.weather_api_url)
    return HealthResponse(
        status="ok",
        dependencies=Dependencies(
            weather_api=ServiceStatus.available
            if weather_api_available
            else ServiceStatus.not_available,
            cache=await run_in_threadpool(cache_status, service.cache),
        ),
    )


@app.get("/metrics")
async def metrics():
    """Expose Prometheus metrics for scraping."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
