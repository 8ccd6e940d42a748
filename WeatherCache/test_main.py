"""Tests for the command-line entry point."""
import json
from unittest.mock import Mock

import pytest
from errors import NotFound
from weather_data import WeatherRecord
from weather_service import ResolvedWeather

from main import format_weather_lines, load_settings, parse_args, run_resolve


@pytest.fixture
def resolved():
    record = WeatherRecord(
        city="Berlin",
        country="Germany",
        temperature=14.2,
        description="Rain, Moderate",
        wind_speed=19.5,
        last_updated="2025-04-02T09:15",
        temp_max=16.0,
        temp_min=8.3,
    )
    return ResolvedWeather(record, "api")


def test_parse_resolve_args():
    args = parse_args(["--cache-ttl", "60", "resolve", "New York", "--json"])

    assert args.command == "resolve"
    assert args.city == "New York"
    assert args.json is True
    assert args.cache_ttl == 60


def test_parse_serve_args():
    args = parse_args(["serve", "--port", "9000"])

    assert args.command == "serve"
    assert args.port == 9000
    assert args.host == "127.0.0.1"


def test_format_weather_lines(resolved):
    lines = format_weather_lines(resolved.to_response())

    assert lines[0] == "Berlin, Germany: 14.2°C, Rain, Moderate"
    assert lines[1] == "Wind 19.5 km/h"
    assert lines[2] == "High 16.0°C / Low 8.3°C"
    assert "source: api" in lines[3]


def test_run_resolve_prints_json(resolved, capsys):
    resolver = Mock()
    resolver.resolve.return_value = resolved

    assert run_resolve(resolver, "Berlin", as_json=True) == 0

    output = json.loads(capsys.readouterr().out)
    assert output["city"] == "Berlin"
    assert output["source"] == "api"


def test_run_resolve_reports_errors(capsys):
    """Test that resolution errors give exit code 1."""
    resolver = Mock()
    resolver.resolve.side_effect = NotFound("Could not find coordinates for city: Atlantis")

    assert run_resolve(resolver, "Atlantis", as_json=False) == 1
    assert "Atlantis" in capsys.readouterr().err


def test_load_settings_applies_overrides(monkeypatch):
    monkeypatch.delenv("WEATHER_CACHE_BACKEND", raising=False)
    monkeypatch.setenv("WEATHER_CACHE_TTL_SECONDS", "300")
    args = parse_args(["--cache-ttl", "30", "--timeout", "1.5", "--max-retries", "1", "resolve", "Oslo"])

    settings = load_settings(args)

    assert settings.cache_ttl_seconds == 30
    assert settings.upstream_timeout == 1.5
    assert settings.max_attempts == 1


def test_load_settings_rejects_bad_config(monkeypatch):
    monkeypatch.setenv("WEATHER_CACHE_BACKEND", "firestore")

    with pytest.raises(SystemExit):
        load_settings(parse_args(["resolve", "Oslo"]))


def test_load_settings_rejects_bad_retry_multiplier(monkeypatch):
    monkeypatch.setenv("UPSTREAM_RETRY_MULTIPLIER", "0.5")

    with pytest.raises(SystemExit):
        load_settings(parse_args(["resolve", "Oslo"]))
