"""Cache store abstraction - key -> CacheEntry storage with no TTL awareness.

Expiry is decided entirely by the resolver, so an in-memory table and a
Redis-backed document store are interchangeable.
"""
import json
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import redis

from errors import StoreUnavailable
from weather_data import CacheEntry, WeatherRecord

DEFAULT_PREFIX = "weather_cache:"


class CacheStore(ABC):
    """Abstract key-value store for cache entries."""

    @abstractmethod
    def get(self, key: str) -> Optional[CacheEntry]:
        """
        Look up the entry stored under key.

        Returns:
            CacheEntry, or None if nothing is stored for the key

        Raises:
            StoreUnavailable: If the backing medium cannot be read
        """
        pass

    @abstractmethod
    def put(self, key: str, entry: CacheEntry) -> bool:
        """
        Store entry under key, replacing any previous entry.

        Returns:
            bool: True on success, False if the write failed
        """
        pass


class InMemoryCacheStore(CacheStore):
    """Process-local store. Entries are replaced wholesale under a single lock."""

    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, entry: CacheEntry) -> bool:
        with self._lock:
            self._entries[key] = entry
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def to_epoch_millis(value: Any) -> int:
    """
    Convert a stored timestamp into integer epoch milliseconds.

    Accepts plain numbers (already milliseconds), numeric strings, ISO-8601
    strings, datetimes and {"seconds", "nanoseconds"} document timestamps.
    Anything else converts to 0, which the resolver always treats as stale.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        try:
            return int(value)
        except (ValueError, OverflowError):
            return 0
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    if isinstance(value, dict) and "seconds" in value:
        try:
            seconds = int(value["seconds"])
            nanos = int(value.get("nanoseconds", 0))
        except (TypeError, ValueError):
            return 0
        return seconds * 1000 + nanos // 1_000_000
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(float(text))
        except (ValueError, OverflowError):
            pass
        try:
            return to_epoch_millis(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            pass
    logging.warning(f"Unrecognized cache timestamp {value!r}, treating entry as stale")
    return 0


class RedisCacheStore(CacheStore):
    """
    Redis-backed document store.

    Each entry is one JSON document {"data": <record>, "timestamp": <ms>}
    under prefix + key. No Redis expiry is set.
    """

    def __init__(self, client: redis.Redis, prefix: str = DEFAULT_PREFIX):
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, timeout: float = 2.0, prefix: str = DEFAULT_PREFIX) -> "RedisCacheStore":
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
        return cls(client, prefix=prefix)

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> Optional[CacheEntry]:
        try:
            raw = self.client.get(self._key(key))
        except redis.exceptions.RedisError as e:
            raise StoreUnavailable(f"Redis read failed for {key}: {e}") from e
        if raw is None:
            return None

        try:
            document = json.loads(raw)
            return CacheEntry(
                record=WeatherRecord.from_dict(document["data"]),
                stored_at_ms=to_epoch_millis(document.get("timestamp")),
            )
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise StoreUnavailable(f"Undecodable cache document for {key}: {e}") from e

    def put(self, key: str, entry: CacheEntry) -> bool:
        try:
            self.client.set(self._key(key), json.dumps(entry.to_dict()))
        except redis.exceptions.RedisError as e:
            logging.warning(f"Redis write failed for {key}: {e}")
            return False
        return True


def build_store(settings) -> CacheStore:
    """Create the store selected by settings.cache_backend."""
    if settings.cache_backend == "redis":
        logging.info(f"Using Redis cache store at {settings.redis_url}")
        return RedisCacheStore.from_url(
            settings.redis_url,
            timeout=settings.upstream_timeout,
            prefix=settings.cache_prefix,
        )
    if settings.cache_backend != "memory":
        raise ValueError(f"Unknown cache backend: {settings.cache_backend}")
    logging.info("Using in-memory cache store")
    return InMemoryCacheStore()
