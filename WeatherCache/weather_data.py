"""Weather domain model - pure data structures independent of any API or store."""
import time
from dataclasses import asdict, dataclass
from typing import Optional


# Provenance tags, attached to outward responses only (never persisted)
SOURCE_CACHE = "cache"
SOURCE_API = "api"


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class WeatherRecord:
    """Normalized current conditions for a city."""
    city: str
    temperature: float
    description: str  # e.g., "Clear Sky", "Rain, Slight"
    wind_speed: float  # km/h
    last_updated: str  # ISO-8601 time the upstream last reported

    # Optional fields
    country: Optional[str] = None
    apparent_temperature: Optional[float] = None
    wind_gusts: Optional[float] = None
    cloud_cover: Optional[int] = None  # percentage
    humidity: Optional[int] = None  # percentage
    is_day: Optional[bool] = None
    temp_max: Optional[float] = None
    temp_min: Optional[float] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "WeatherRecord":
        """
        Rebuild a record from its stored dict form.

        Raises:
            ValueError: If a required field is missing
        """
        missing = [
            name for name in ("city", "temperature", "description", "wind_speed", "last_updated")
            if data.get(name) is None
        ]
        if missing:
            raise ValueError(f"Weather record missing fields: {', '.join(missing)}")

        return cls(
            city=data["city"],
            temperature=data["temperature"],
            description=data["description"],
            wind_speed=data["wind_speed"],
            last_updated=data["last_updated"],
            country=data.get("country"),
            apparent_temperature=data.get("apparent_temperature"),
            wind_gusts=data.get("wind_gusts"),
            cloud_cover=data.get("cloud_cover"),
            humidity=data.get("humidity"),
            is_day=data.get("is_day"),
            temp_max=data.get("temp_max"),
            temp_min=data.get("temp_min"),
        )


@dataclass(frozen=True)
class CacheEntry:
    """A stored record plus the wall-clock time (epoch ms) it was written."""
    record: WeatherRecord
    stored_at_ms: int

    def age_ms(self, now: int) -> int:
        return now - self.stored_at_ms

    def is_fresh(self, now: int, ttl_ms: int) -> bool:
        """Fresh while younger than the TTL; an age of exactly ttl_ms is stale."""
        return self.age_ms(now) < ttl_ms

    def to_dict(self) -> dict:
        return {"data": self.record.to_dict(), "timestamp": self.stored_at_ms}

    @classmethod
    def from_dict(cls, data: dict) -> "CacheEntry":
        return cls(
            record=WeatherRecord.from_dict(data["data"]),
            stored_at_ms=int(data["timestamp"]),
        )
