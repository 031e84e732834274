import json

import pytest

from cityweather.config import DATA_DIR
from cityweather.locations.resolver import LocationResolver, normalize_city_name
from cityweather.models.location import Location
from cityweather.weather_service.errors import CityNotFoundError, DataUnavailableError


@pytest.fixture
def cities_file(tmp_path):
    path = tmp_path / "cities.json"
    path.write_text(
        json.dumps(
            {
                "chennai": {"latitude": 13.0827, "longitude": 80.2707},
                "mumbai": {"latitude": 19.076, "longitude": 72.8777},
                "new_delhi": {"latitude": 28.6139, "longitude": 77.209},
                "broken": {"latitude": "north"},
            }
        )
    )
    return path


def test_normalize_city_name():
    assert normalize_city_name("New York") == "new_york"
    assert normalize_city_name("Tel Aviv") == "tel_aviv"
    assert normalize_city_name("Rio de Janeiro") == "rio_de_janeiro"
    assert normalize_city_name("  Mumbai  ") == "mumbai"
    assert normalize_city_name("new \t  delhi") == "new_delhi"


def test_normalize_is_idempotent():
    once = normalize_city_name("  Rio   de Janeiro ")
    assert normalize_city_name(once) == once


def test_resolve_exact(cities_file):
    resolver = LocationResolver(cities_file)
    assert resolver.resolve("Chennai") == Location(
        name="chennai", latitude=13.0827, longitude=80.2707
    )


def test_resolve_padded_and_mixed_case_match(cities_file):
    resolver = LocationResolver(cities_file)
    assert resolver.resolve("  Mumbai  ") == resolver.resolve("mumbai")
    assert resolver.resolve("New  Delhi").name == "new_delhi"


def test_resolve_falls_back_to_text_before_comma(cities_file):
    resolver = LocationResolver(cities_file)
    assert resolver.resolve("chennai, india").name == "chennai"
    assert resolver.resolve("New Delhi, IN").name == "new_delhi"


def test_resolve_unknown_city(cities_file):
    with pytest.raises(CityNotFoundError):
        LocationResolver(cities_file).resolve("Nowhereville")


def test_resolve_unknown_city_with_comma(cities_file):
    with pytest.raises(CityNotFoundError):
        LocationResolver(cities_file).resolve("Nowhereville, Atlantis")


def test_resolve_leading_comma(cities_file):
    with pytest.raises(CityNotFoundError):
        LocationResolver(cities_file).resolve(", chennai")


def test_missing_dataset_is_data_unavailable(tmp_path):
    with pytest.raises(DataUnavailableError):
        LocationResolver(tmp_path / "missing.json").resolve("chennai")


def test_corrupt_dataset_is_data_unavailable(tmp_path):
    path = tmp_path / "cities.json"
    path.write_text("{not json")
    with pytest.raises(DataUnavailableError):
        LocationResolver(path).resolve("chennai")


def test_non_mapping_dataset_is_data_unavailable(tmp_path):
    path = tmp_path / "cities.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(DataUnavailableError):
        LocationResolver(path).resolve("chennai")


def test_bad_entry_is_data_unavailable(cities_file):
    with pytest.raises(DataUnavailableError):
        LocationResolver(cities_file).resolve("broken")


def test_dataset_is_read_on_every_call(cities_file):
    resolver = LocationResolver(cities_file)
    with pytest.raises(CityNotFoundError):
        resolver.resolve("pune")
    data = json.loads(cities_file.read_text())
    data["pune"] = {"latitude": 18.5204, "longitude": 73.8567}
    cities_file.write_text(json.dumps(data))
    assert resolver.resolve("Pune").latitude == 18.5204


def test_packaged_dataset_has_metros():
    resolver = LocationResolver(DATA_DIR / "cities.json")
    for city in ["Chennai", "Mumbai", "New Delhi", "Kolkata", "Bengaluru", "Hyderabad"]:
        assert resolver.resolve(city).name == normalize_city_name(city)
