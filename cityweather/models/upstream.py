"""Shape of the forecast provider's current-conditions payload."""

from typing import Optional

from pydantic import BaseModel

CURRENT_FIELDS = ("temperature_2m", "relative_humidity_2m", "rain", "weather_code")


class UpstreamCurrent(BaseModel):
    """The ``current`` block of an Open-Meteo forecast response."""

    time: str
    temperature_2m: float
    relative_humidity_2m: Optional[float] = None
    rain: Optional[float] = None
    weather_code: int


class UpstreamForecast(BaseModel):
    """Open-Meteo forecast response, restricted to the fields we request."""

    latitude: float
    longitude: float
    current: UpstreamCurrent
