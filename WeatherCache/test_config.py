"""Tests for environment-based settings."""
import pytest
from config import Settings
from open_meteo_provider import FORECAST_URL, GEOCODING_URL


def test_defaults():
    """Test settings with an empty environment."""
    settings = Settings(environ={})

    assert settings.cache_ttl_seconds == 300
    assert settings.ttl_ms == 300000
    assert settings.cache_backend == "memory"
    assert settings.client_token is None
    assert settings.upstream_timeout == 5.0
    assert settings.max_attempts == 3
    assert settings.geocoding_url == GEOCODING_URL
    assert settings.forecast_url == FORECAST_URL
    assert settings.cors_origins == ["*"]
    assert settings.is_production is False
    assert settings.validate() == []


def test_overrides():
    settings = Settings(environ={
        "WEATHER_CACHE_TTL_SECONDS": "60",
        "WEATHER_CACHE_BACKEND": "Redis",
        "REDIS_URL": "redis://cache:6379/2",
        "WEATHER_CLIENT_TOKEN": "s3cret",
        "UPSTREAM_TIMEOUT_SECONDS": "2.5",
        "UPSTREAM_MAX_ATTEMPTS": "1",
        "CORS_ORIGINS": "https://a.example,https://b.example",
        "ENVIRONMENT": "production",
    })

    assert settings.ttl_ms == 60000
    assert settings.cache_backend == "redis"
    assert settings.redis_url == "redis://cache:6379/2"
    assert settings.client_token == "s3cret"
    assert settings.upstream_timeout == 2.5
    assert settings.max_attempts == 1
    assert settings.cors_origins == ["https://a.example", "https://b.example"]
    assert settings.is_production is True


def test_empty_token_disables_auth():
    assert Settings(environ={"WEATHER_CLIENT_TOKEN": ""}).client_token is None


def test_invalid_number_names_variable():
    """Test that a bad numeric value reports which variable is wrong."""
    with pytest.raises(ValueError) as exc_info:
        Settings(environ={"WEATHER_CACHE_TTL_SECONDS": "five minutes"})

    assert "WEATHER_CACHE_TTL_SECONDS" in str(exc_info.value)


def test_validate_reports_problems():
    settings = Settings(environ={
        "WEATHER_CACHE_BACKEND": "firestore",
        "WEATHER_CACHE_TTL_SECONDS": "0",
        "UPSTREAM_MAX_ATTEMPTS": "0",
    })

    problems = settings.validate()

    assert len(problems) == 3
    assert any("WEATHER_CACHE_BACKEND" in p for p in problems)


@pytest.mark.parametrize("env, variable", [
    ({"UPSTREAM_RETRY_MULTIPLIER": "0.5"}, "UPSTREAM_RETRY_MULTIPLIER"),
    ({"UPSTREAM_RETRY_MULTIPLIER": "0"}, "UPSTREAM_RETRY_MULTIPLIER"),
    ({"UPSTREAM_RETRY_BASE_DELAY": "-1"}, "UPSTREAM_RETRY_BASE_DELAY"),
])
def test_validate_reports_bad_retry_settings(env, variable):
    """Test that retry settings the retry policy would reject are reported up front."""
    problems = Settings(environ=env).validate()

    assert len(problems) == 1
    assert variable in problems[0]


def test_validate_accepts_zero_delay_and_flat_backoff():
    settings = Settings(environ={"UPSTREAM_RETRY_BASE_DELAY": "0", "UPSTREAM_RETRY_MULTIPLIER": "1"})

    assert settings.validate() == []
