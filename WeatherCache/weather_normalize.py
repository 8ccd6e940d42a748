"""Cache-key normalization and upstream payload -> WeatherRecord mapping."""
import math
from typing import Any, Optional

from errors import UpstreamUnavailable
from weather_data import WeatherRecord
from weather_provider import UpstreamObservation

UNKNOWN_CONDITION = "Unknown Condition"

# WMO weather interpretation codes as reported by Open-Meteo
WEATHER_CODES = {
    0: "Clear Sky",
    1: "Mainly Clear",
    2: "Partly Cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing Rime Fog",
    51: "Drizzle, Light",
    53: "Drizzle, Moderate",
    55: "Drizzle, Dense",
    56: "Freezing Drizzle, Light",
    57: "Freezing Drizzle, Dense",
    61: "Rain, Slight",
    63: "Rain, Moderate",
    65: "Rain, Heavy",
    66: "Freezing Rain, Light",
    67: "Freezing Rain, Heavy",
    71: "Snow, Slight",
    73: "Snow, Moderate",
    75: "Snow, Heavy",
    77: "Snow Grains",
    80: "Rain Showers, Slight",
    81: "Rain Showers, Moderate",
    82: "Rain Showers, Violent",
    85: "Snow Showers, Slight",
    86: "Snow Showers, Heavy",
    95: "Thunderstorm",
    96: "Thunderstorm with Hail",
    99: "Thunderstorm with Heavy Hail",
}


def normalize_key(city: str) -> str:
    """Cache key for a city name: trimmed and lower-cased. Idempotent."""
    return city.strip().lower()


def describe_weather_code(code: Any) -> str:
    if isinstance(code, bool):
        return UNKNOWN_CONDITION
    if isinstance(code, float) and code.is_integer():
        code = int(code)
    return WEATHER_CODES.get(code, UNKNOWN_CONDITION) if isinstance(code, int) else UNKNOWN_CONDITION


def _is_number(value: Any) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, float)) and math.isfinite(value)


def _required_number(current: dict, name: str) -> float:
    value = current.get(name)
    if not _is_number(value):
        raise UpstreamUnavailable(f"Malformed payload: '{name}' missing or not a finite number")
    return value


def _optional_number(value: Any) -> Optional[float]:
    return value if _is_number(value) else None


def _round1(value: Optional[float]) -> Optional[float]:
    return round(value, 1) if value is not None else None


def _round0(value: Optional[float]) -> Optional[int]:
    return int(round(value)) if value is not None else None


def _first_daily(daily: dict, name: str) -> Optional[float]:
    values = daily.get(name)
    if isinstance(values, list) and values:
        return _optional_number(values[0])
    return None


def build_record(observation: UpstreamObservation) -> WeatherRecord:
    """
    Map a raw upstream observation into the normalized record shape.

    Temperatures and wind are rounded to one decimal place, humidity and
    cloud cover to whole percentages. Unknown weather codes map to
    "Unknown Condition".

    Raises:
        UpstreamUnavailable: If a required field is missing or malformed
    """
    current = observation.current
    temperature = _required_number(current, "temperature_2m")
    wind_speed = _required_number(current, "wind_speed_10m")
    if "weather_code" not in current:
        raise UpstreamUnavailable("Malformed payload: 'weather_code' missing")
    last_updated = current.get("time")
    if not isinstance(last_updated, str) or not last_updated:
        raise UpstreamUnavailable("Malformed payload: 'time' missing")

    is_day = _optional_number(current.get("is_day"))

    return WeatherRecord(
        city=observation.name,
        country=observation.country,
        temperature=round(temperature, 1),
        description=describe_weather_code(current["weather_code"]),
        wind_speed=round(wind_speed, 1),
        last_updated=last_updated,
        apparent_temperature=_round1(_optional_number(current.get("apparent_temperature"))),
        wind_gusts=_round1(_optional_number(current.get("wind_gusts_10m"))),
        cloud_cover=_round0(_optional_number(current.get("cloud_cover"))),
        humidity=_round0(_optional_number(current.get("relative_humidity_2m"))),
        is_day=bool(is_day) if is_day is not None else None,
        temp_max=_round1(_first_daily(observation.daily, "temperature_2m_max")),
        temp_min=_round1(_first_daily(observation.daily, "temperature_2m_min")),
    )
