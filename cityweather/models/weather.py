"""Weather result model returned by the API and stored in the cache."""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from cityweather.models.upstream import UpstreamForecast


class WeatherResult(BaseModel):
    """Current weather for a city, as exposed by the API."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    city: str  # caller's input, not the normalized key
    temp_c: float
    description: str
    time: str
    lat: float
    lon: float
    humidity: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("relative_humidity_2m", "humidity"),
        serialization_alias="relative_humidity_2m",
    )
    rain: Optional[float] = None
    weather_code: int

    @classmethod
    def from_upstream(
        cls, city: str, forecast: UpstreamForecast, description: str
    ) -> "WeatherResult":
        """Create a WeatherResult from a decoded provider payload.

        Args:
            city: City name as supplied by the caller.
            forecast: Decoded provider payload.
            description: Human-readable text for the weather code.

        Returns:
            A populated WeatherResult.
        """
        current = forecast.current
        return cls(
            city=city,
            temp_c=current.temperature_2m,
            description=description,
            time=current.time,
            lat=forecast.latitude,
            lon=forecast.longitude,
            humidity=current.relative_humidity_2m,
            rain=current.rain,
            weather_code=current.weather_code,
        )

    def to_payload(self) -> str:
        """Serialize to the JSON string stored in the cache."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_payload(cls, payload) -> "WeatherResult":
        """Decode a cached payload.

        Raises:
            pydantic.ValidationError: If the payload is not a valid result.
        """
        return cls.model_validate_json(payload)
