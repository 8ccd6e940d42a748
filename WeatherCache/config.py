"""Centralized configuration - all env vars in one place."""
import os
from typing import List, Mapping, Optional

from open_meteo_provider import FORECAST_URL, GEOCODING_URL

CACHE_BACKENDS = ("memory", "redis")


def _number(environ: Mapping[str, str], name: str, default: str, cast=float):
    raw = environ.get(name, default)
    try:
        return cast(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from exc


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        env = os.environ if environ is None else environ

        self.environment: str = env.get("ENVIRONMENT", "local")
        self.cors_origins: List[str] = env.get("CORS_ORIGINS", "*").split(",")
        self.client_token: Optional[str] = env.get("WEATHER_CLIENT_TOKEN") or None

        # Cache
        self.cache_ttl_seconds: int = _number(env, "WEATHER_CACHE_TTL_SECONDS", "300", int)
        self.cache_backend: str = env.get("WEATHER_CACHE_BACKEND", "memory").lower()
        self.redis_url: str = env.get("REDIS_URL", "redis://localhost:6379/0")
        self.cache_prefix: str = env.get("WEATHER_CACHE_PREFIX", "weather_cache:")

        # Upstream
        self.geocoding_url: str = env.get("GEOCODING_URL", GEOCODING_URL)
        self.forecast_url: str = env.get("FORECAST_URL", FORECAST_URL)
        self.upstream_timeout: float = _number(env, "UPSTREAM_TIMEOUT_SECONDS", "5")
        self.max_attempts: int = _number(env, "UPSTREAM_MAX_ATTEMPTS", "3", int)
        self.retry_base_delay: float = _number(env, "UPSTREAM_RETRY_BASE_DELAY", "0.5")
        self.retry_multiplier: float = _number(env, "UPSTREAM_RETRY_MULTIPLIER", "2")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def ttl_ms(self) -> int:
        return self.cache_ttl_seconds * 1000

    def validate(self) -> List[str]:
        """Return a list of configuration problems (empty when valid)."""
        problems = []
        if self.cache_backend not in CACHE_BACKENDS:
            problems.append(
                f"WEATHER_CACHE_BACKEND must be one of {', '.join(CACHE_BACKENDS)}, got {self.cache_backend!r}"
            )
        if self.cache_ttl_seconds <= 0:
            problems.append("WEATHER_CACHE_TTL_SECONDS must be positive")
        if self.upstream_timeout <= 0:
            problems.append("UPSTREAM_TIMEOUT_SECONDS must be positive")
        if self.max_attempts < 1:
            problems.append("UPSTREAM_MAX_ATTEMPTS must be at least 1")
        if self.retry_base_delay < 0:
            problems.append("UPSTREAM_RETRY_BASE_DELAY must not be negative")
        if self.retry_multiplier < 1:
            problems.append("UPSTREAM_RETRY_MULTIPLIER must be at least 1")
        return problems
