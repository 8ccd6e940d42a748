"""Weather provider abstraction - allows swapping different upstream weather APIs."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class UpstreamObservation:
    """Raw upstream result: the first geocoding match plus its conditions payload."""
    name: str
    latitude: float
    longitude: float
    current: dict
    daily: dict = field(default_factory=dict)
    country: Optional[str] = None


class WeatherProviderBase(ABC):
    """Abstract base class for upstream weather providers."""

    @abstractmethod
    def fetch(self, city: str) -> UpstreamObservation:
        """
        Resolve a city name to coordinates and fetch its current conditions.

        Args:
            city: Free-text city name (already trimmed)

        Returns:
            UpstreamObservation: Geocoding match and raw conditions payload

        Raises:
            NotFound: If the city name matches no location
            UpstreamUnavailable: If either upstream call fails
        """
        pass
