from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass(frozen=True)
class Coordinates:
    """A device position fix."""

    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def age_seconds(self, now: Optional[datetime] = None) -> float:
        now = now or datetime.now(timezone.utc)
        return (now - self.timestamp).total_seconds()


@dataclass(frozen=True)
class Place:
    """Geographic descriptor returned by geocoding providers."""

    city: str = ""
    region: str = ""
    country: str = ""
    country_code: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class DeviceGeolocator(ABC):
    """Source of device coordinates (the platform's permission-gated API)."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Geolocator identifier (e.g., 'static', 'callback')"""
        pass

    @abstractmethod
    async def get_position(self, *, maximum_age: float) -> Coordinates:
        """Obtain the current position.

        Args:
            maximum_age: Oldest previously obtained fix, in seconds, that may be returned

        Raises:
            PermissionDeniedError: Denied, unsupported or unavailable
        """
        pass


class ReverseGeocoder(ABC):
    """Turns coordinates into a Place."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def reverse(self, coords: Coordinates) -> Place:
        """Resolve coordinates.

        Raises:
            ProviderUnavailableError: Lookup failed
        """
        pass


class LocationProvider(ABC):
    """Input-free location source used as a fallback (e.g., IP geolocation)."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier (e.g., 'ipapi')"""
        pass

    @abstractmethod
    async def locate(self) -> Place:
        """Look up the caller's approximate location.

        Raises:
            ProviderUnavailableError: Lookup failed
        """
        pass
