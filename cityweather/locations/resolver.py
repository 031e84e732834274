"""City name normalization and lookup in the static location dataset."""

import json
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from cityweather.logging_config import logger
from cityweather.models.location import Location
from cityweather.weather_service.errors import CityNotFoundError, DataUnavailableError


def normalize_city_name(city_name: str) -> str:
    """Normalize city names for dataset lookups and cache keys.

    Args:
        city_name: Raw city name string.

    Returns:
        Lowercased name with surrounding whitespace removed and inner
        whitespace runs replaced by a single underscore.
    """
    return "_".join(city_name.lower().split())


class LocationResolver:
    """Resolve city names to coordinates from a JSON file.

    The file maps normalized city names to ``{"latitude": .., "longitude": ..}``
    and is read on every call.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> dict:
        try:
            with self.path.open(encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.error("LOCATIONS_LOAD_FAILED", path=str(self.path), error=str(exc))
            raise DataUnavailableError("Location data unavailable") from exc
        if not isinstance(data, dict):
            logger.error("LOCATIONS_BAD_FORMAT", path=str(self.path))
            raise DataUnavailableError("Location data unavailable")
        return data

    def _entry(self, data: dict, key: str) -> Optional[Location]:
        entry = data.get(key)
        if entry is None:
            return None
        try:
            return Location(name=key, **entry)
        except (TypeError, ValidationError) as exc:
            logger.error("LOCATIONS_BAD_ENTRY", city=key, error=str(exc))
            raise DataUnavailableError("Location data unavailable") from exc

    def resolve(self, city_name: str) -> Location:
        """Look up the coordinates for a city.

        Tries the full normalized name first, then the part before the first
        comma, so "chennai, india" resolves like "chennai".

        Args:
            city_name: Raw city name string.

        Returns:
            The matching Location.

        Raises:
            CityNotFoundError: If neither lookup matches.
            DataUnavailableError: If the dataset cannot be read or parsed.
        """
        data = self._load()
        key = normalize_city_name(city_name)
        if location := self._entry(data, key):
            return location
        if "," in city_name:
            head = normalize_city_name(city_name.split(",", 1)[0])
            if head and (location := self._entry(data, head)):
                return location
        logger.info("CITY_NOT_FOUND", city=key)
        raise CityNotFoundError(f"City not found: {city_name.strip()}")
