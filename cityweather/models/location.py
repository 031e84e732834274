"""Location model for entries of the city dataset."""

from pydantic import BaseModel, ConfigDict


class Location(BaseModel):
    """Coordinates of a city in the location dataset."""

    model_config = ConfigDict(frozen=True)

    name: str
    latitude: float
    longitude: float
