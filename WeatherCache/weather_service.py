"""Freshness resolver: serve cached weather while fresh, refetch once stale."""
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from cache_store import CacheStore, build_store
from errors import InvalidInput, StoreUnavailable
from open_meteo_provider import OpenMeteoProvider
from retry_policy import RetryPolicy
from weather_data import SOURCE_API, SOURCE_CACHE, CacheEntry, WeatherRecord, now_ms
from weather_normalize import build_record, normalize_key
from weather_provider import WeatherProviderBase

DEFAULT_TTL_MS = 5 * 60 * 1000


@dataclass(frozen=True)
class ResolvedWeather:
    """A record plus the path that produced it ("cache" or "api")."""
    record: WeatherRecord
    source: str

    def to_response(self) -> dict:
        response = self.record.to_dict()
        response["source"] = self.source
        return response


class FreshnessResolver:
    """
    Resolves city names to weather records through a TTL-checked cache.

    Staleness is computed lazily from the entry's write time on each read;
    nothing expires in the background. A stale entry is treated exactly like
    a missing one and is never served as a fallback when the upstream fails.

    Concurrent misses for the same key are not coalesced: each performs its
    own upstream fetch and the last write wins.
    """

    def __init__(
        self,
        store: CacheStore,
        provider: WeatherProviderBase,
        ttl_ms: int = DEFAULT_TTL_MS,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Initialize resolver.

        Args:
            store: Backing cache store (shared across requests)
            provider: Upstream weather provider
            ttl_ms: Maximum entry age in milliseconds before it is refetched
            clock: Source of the current epoch-millisecond time
        """
        if ttl_ms <= 0:
            raise ValueError("ttl_ms must be positive")
        self.store = store
        self.provider = provider
        self.ttl_ms = ttl_ms
        self.clock = clock

    def resolve(self, raw_city: str, now: Optional[int] = None) -> ResolvedWeather:
        """
        Get weather for a city, using the cache while it is fresh.

        Args:
            raw_city: City name as supplied by the caller
            now: Current time in epoch ms (defaults to the resolver clock)

        Returns:
            ResolvedWeather: Record tagged with its provenance

        Raises:
            InvalidInput: If the city name is empty or blank
            NotFound: If the upstream cannot geocode the city
            UpstreamUnavailable: If the upstream fetch fails
        """
        if not isinstance(raw_city, str) or not raw_city.strip():
            raise InvalidInput("City name must not be empty")
        if now is None:
            now = self.clock()

        city = raw_city.strip()
        key = normalize_key(city)

        entry = self._read(key)
        if entry is not None:
            age = entry.age_ms(now)
            if entry.is_fresh(now, self.ttl_ms):
                logging.info(f"Cache hit for '{key}' (age: {age}ms, TTL: {self.ttl_ms}ms)")
                return ResolvedWeather(entry.record, SOURCE_CACHE)
            logging.info(f"Cache entry for '{key}' is stale (age: {age}ms >= TTL: {self.ttl_ms}ms)")
        else:
            logging.info(f"Cache miss for '{key}'")

        observation = self.provider.fetch(city)
        record = build_record(observation)
        logging.info(f"Fetched weather for '{key}': {record.temperature}°C, {record.description}")

        self._write(key, CacheEntry(record=record, stored_at_ms=now))
        return ResolvedWeather(record, SOURCE_API)

    def _read(self, key: str) -> Optional[CacheEntry]:
        try:
            return self.store.get(key)
        except StoreUnavailable as e:
            logging.warning(f"Cache read failed, treating as miss: {e}")
            return None

    def _write(self, key: str, entry: CacheEntry) -> None:
        try:
            stored = self.store.put(key, entry)
        except StoreUnavailable as e:
            logging.warning(f"Cache write failed for '{key}': {e}")
            return
        if not stored:
            logging.warning(f"Cache write failed for '{key}', serving uncached result")


def build_resolver(settings) -> FreshnessResolver:
    """Wire store, provider and retry policy from settings."""
    provider = OpenMeteoProvider(
        geocoding_url=settings.geocoding_url,
        forecast_url=settings.forecast_url,
        timeout=settings.upstream_timeout,
        retry_policy=RetryPolicy(
            max_attempts=settings.max_attempts,
            base_delay_seconds=settings.retry_base_delay,
            multiplier=settings.retry_multiplier,
        ),
    )
    resolver = FreshnessResolver(build_store(settings), provider, ttl_ms=settings.ttl_ms)
    logging.info(f"Weather resolver ready (cache ttl={settings.cache_ttl_seconds}s)")
    return resolver
