"""Open-Meteo geocoding + forecast provider implementation."""
import logging
import math
import time
from typing import Callable, Optional

import requests

from errors import NotFound, UpstreamUnavailable
from retry_policy import RetryPolicy
from weather_provider import UpstreamObservation, WeatherProviderBase

GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
FORECAST_URL = "https://api.open-meteo.com/v1/forecast"

CURRENT_FIELDS = [
    "temperature_2m",
    "apparent_temperature",
    "relative_humidity_2m",
    "is_day",
    "weather_code",
    "cloud_cover",
    "wind_speed_10m",
    "wind_gusts_10m",
]
DAILY_FIELDS = ["temperature_2m_max", "temperature_2m_min"]


class OpenMeteoProvider(WeatherProviderBase):
    """
    Weather provider using the free Open-Meteo APIs (no key required).

    Performs a two-stage lookup: city name -> coordinates via the geocoding
    API, then coordinates -> current conditions via the forecast API.
    """

    def __init__(
        self,
        geocoding_url: str = GEOCODING_URL,
        forecast_url: str = FORECAST_URL,
        timeout: float = 5.0,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize Open-Meteo provider.

        Args:
            geocoding_url: Geocoding search endpoint
            forecast_url: Forecast endpoint
            timeout: HTTP request timeout in seconds, applied to every call
            retry_policy: Retry policy for transient failures (default: 3 attempts)
            sleep: Sleep function used between retries
        """
        self.geocoding_url = geocoding_url
        self.forecast_url = forecast_url
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep

    def fetch(self, city: str) -> UpstreamObservation:
        """
        Geocode the city and fetch its current conditions.

        Raises:
            NotFound: If geocoding returns no match
            UpstreamUnavailable: If either call fails or returns malformed data
        """
        location = self.retry_policy.call(lambda: self._geocode(city), sleep=self._sleep)
        logging.info(
            f"Geocoded '{city}' to {location['name']} ({location['latitude']}, {location['longitude']})"
        )
        data = self.retry_policy.call(
            lambda: self._forecast(location["latitude"], location["longitude"]),
            sleep=self._sleep,
        )

        daily = data.get("daily")
        return UpstreamObservation(
            name=location["name"],
            country=location.get("country"),
            latitude=location["latitude"],
            longitude=location["longitude"],
            current=data["current"],
            daily=daily if isinstance(daily, dict) else {},
        )

    def _geocode(self, city: str) -> dict:
        params = {"name": city, "count": 1, "language": "en", "format": "json"}
        data = self._get_json(self.geocoding_url, params, "geocoding")

        results = data.get("results") or []
        if not isinstance(results, list):
            raise UpstreamUnavailable(f"Malformed geocoding results: {type(results).__name__}")
        if not results:
            logging.info(f"No geocoding match for city: {city}")
            raise NotFound(f"Could not find coordinates for city: {city}")

        match = results[0]
        try:
            latitude = float(match["latitude"])
            longitude = float(match["longitude"])
            name = match.get("name") or city
            country = match.get("country")
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise UpstreamUnavailable(f"Malformed geocoding result: {e}")
        if not (math.isfinite(latitude) and math.isfinite(longitude)):
            raise UpstreamUnavailable("Malformed geocoding result: non-finite coordinates")
        return {"name": name, "country": country, "latitude": latitude, "longitude": longitude}

    def _forecast(self, latitude: float, longitude: float) -> dict:
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "current": ",".join(CURRENT_FIELDS),
            "daily": ",".join(DAILY_FIELDS),
            "forecast_days": 1,
            "temperature_unit": "celsius",
            "wind_speed_unit": "kmh",
            "timezone": "auto",
        }
        data = self._get_json(self.forecast_url, params, "forecast")

        if data.get("error"):
            reason = data.get("reason", "Failed to retrieve weather data")
            logging.error(f"Open-Meteo error: {reason}")
            raise UpstreamUnavailable(f"Open-Meteo error: {reason}")
        if not isinstance(data.get("current"), dict):
            raise UpstreamUnavailable("Response missing 'current' block")
        return data

    def _get_json(self, url: str, params: dict, stage: str) -> dict:
        try:
            logging.info(f"Making Open-Meteo {stage} request: {url}")
            logging.debug(f"Request parameters: {params}")
            response = requests.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logging.error(f"Network error during {stage} request: {e}")
            raise UpstreamUnavailable(f"Network error: {e}", retryable=True)

        logging.info(f"{stage} response status: {response.status_code}")
        if not response.ok:
            self._handle_error_response(response, stage)

        try:
            data = response.json()
        except ValueError as e:
            logging.error(f"Failed to parse {stage} response: {e}")
            raise UpstreamUnavailable(f"Failed to parse {stage} response: {e}")
        if not isinstance(data, dict):
            raise UpstreamUnavailable(f"Unexpected {stage} response type: {type(data).__name__}")
        return data

    def _handle_error_response(self, response: requests.Response, stage: str) -> None:
        """Raise an UpstreamUnavailable describing a non-success response."""
        status = response.status_code
        retryable = status == 429 or status >= 500
        try:
            reason = response.json().get("reason", "Unknown error")
        except (ValueError, AttributeError):
            reason = response.text[:200]
        logging.error(f"Open-Meteo {stage} request failed with status {status}: {reason}")
        raise UpstreamUnavailable(f"Open-Meteo {stage} error {status}: {reason}", retryable=retryable)
