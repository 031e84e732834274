from pathlib import Path

import pytest

from cityweather.config import DATA_DIR, Settings

ENV_VARS = [
    "REDIS_ADDR",
    "REDIS_PASSWORD",
    "REDIS_DB",
    "WEATHER_CACHE_TTL_S",
    "UPSTREAM_TIMEOUT_S",
    "UPSTREAM_RETRY_ATTEMPTS",
    "CITIES_FILE",
    "LOG_LEVEL",
    "LOG_JSON",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings.from_env()
    assert settings.redis_addr is None
    assert settings.redis_password is None
    assert settings.weather_cache_ttl_s == 900
    assert settings.upstream_timeout_s == 10.0
    assert settings.cities_file == DATA_DIR / "cities.json"
    assert settings.log_json is True


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("REDIS_ADDR", "redis:6379")
    monkeypatch.setenv("REDIS_PASSWORD", "s3cret")
    monkeypatch.setenv("REDIS_DB", "2")
    monkeypatch.setenv("UPSTREAM_RETRY_ATTEMPTS", "0")
    monkeypatch.setenv("CITIES_FILE", "/srv/cities.json")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_JSON", "false")

    settings = Settings.from_env()
    assert settings.redis_addr == "redis:6379"
    assert settings.redis_password == "s3cret"
    assert settings.redis_db == 2
    assert settings.upstream_retry_attempts == 1
    assert settings.cities_file == Path("/srv/cities.json")
    assert settings.log_level == "DEBUG"
    assert settings.log_json is False


def test_empty_redis_addr_disables_cache(monkeypatch):
    monkeypatch.setenv("REDIS_ADDR", "")
    assert Settings.from_env().redis_addr is None


def test_invalid_number_fails_fast(monkeypatch):
    monkeypatch.setenv("WEATHER_CACHE_TTL_S", "fifteen")
    with pytest.raises(ValueError):
        Settings.from_env()
