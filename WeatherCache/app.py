"""FastAPI application exposing the weather cache proxy."""
import hmac
import logging
from typing import Optional

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from config import Settings
from errors import InvalidInput, Unauthorized, register_error_handlers
from weather_service import FreshnessResolver, build_resolver


def create_app(settings: Optional[Settings] = None, resolver: Optional[FreshnessResolver] = None) -> FastAPI:
    settings = settings or Settings()
    problems = settings.validate()
    if problems:
        raise ValueError(f"Invalid configuration: {'; '.join(problems)}")
    if not settings.client_token:
        logging.warning("WEATHER_CLIENT_TOKEN not set, API key check disabled")

    app = FastAPI(title="Weather Cache API", version="1.0.0")
    app.state.settings = settings
    app.state.resolver = resolver or build_resolver(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    def require_api_key(x_api_key: Optional[str] = Header(None)) -> None:
        expected = settings.client_token
        if expected is None:
            return
        if x_api_key is None or not hmac.compare_digest(x_api_key, expected):
            logging.warning("Unauthorized access attempt detected")
            raise Unauthorized("Unauthorized: Invalid API Key")

    # Sync handlers run in the threadpool; the resolver is shared between them.
    @app.get("/weather", dependencies=[Depends(require_api_key)])
    def weather_by_query(request: Request, city: Optional[str] = Query(None)) -> dict:
        if city is None:
            raise InvalidInput("Bad Request: Missing city parameter")
        return request.app.state.resolver.resolve(city).to_response()

    @app.get("/weather/{city}", dependencies=[Depends(require_api_key)])
    def weather_by_path(request: Request, city: str) -> dict:
        return request.app.state.resolver.resolve(city).to_response()

    @app.get("/health")
    def health() -> dict:
        return {
            "status": "ok",
            "service": "weather-cache",
            "cache_backend": settings.cache_backend,
            "cache_ttl_seconds": settings.cache_ttl_seconds,
        }

    return app
