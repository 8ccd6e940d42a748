"""Resolution error taxonomy and centralized FastAPI error handlers."""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class WeatherCacheError(Exception):
    """Base exception carrying a classification and an HTTP status code."""

    kind = "internal"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(WeatherCacheError):
    """City name was empty or blank."""
    kind = "invalid_input"
    status_code = 400


class NotFound(WeatherCacheError):
    """Geocoding returned no match for the city name."""
    kind = "not_found"
    status_code = 404


class UpstreamUnavailable(WeatherCacheError):
    """Upstream call failed or returned a malformed payload."""
    kind = "upstream_unavailable"
    status_code = 502

    def __init__(self, message: str, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


class StoreUnavailable(WeatherCacheError):
    """Backing store could not be read or written."""
    kind = "store_unavailable"
    status_code = 503


class Unauthorized(WeatherCacheError):
    kind = "unauthorized"
    status_code = 401


def error_response(exc: WeatherCacheError) -> dict:
    return {"error": exc.message, "kind": exc.kind}


def register_error_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers on the FastAPI app."""

    @app.exception_handler(WeatherCacheError)
    async def handle_weather_cache_error(_request: Request, exc: WeatherCacheError):
        if exc.status_code >= 500:
            logging.error(f"Request failed ({exc.kind}): {exc}")
        return JSONResponse(error_response(exc), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        logging.exception("Unhandled error: %s", exc)
        return JSONResponse(
            {"error": "Internal server error", "kind": "internal"},
            status_code=500,
        )
