"""LocationResolver - degrading chain from device geolocation to IP lookup."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fetchnews.config import LocationSettings
from fetchnews.errors import LocationError, PermissionDeniedError, ProviderUnavailableError
from fetchnews.models import Location
from fetchnews.state import LocationState
from fetchnews.status import LocationSource, LocationStatus, PermissionState

from .cache import LocationCache
from .providers import (
    Coordinates,
    DeviceGeolocator,
    Place,
    ProviderChain,
    ReverseGeocoder,
)

logger = logging.getLogger(__name__)


class LocationResolver:
    """Resolves and caches a best-effort Location.

    Resolution only happens on an explicit ``request_location()``. The
    permission outcome of the device prompt is tracked separately from
    whether a Location was obtained, since the IP fallback can succeed
    after a denial.
    """

    def __init__(
        self,
        geolocator: DeviceGeolocator,
        reverse_geocoder: ReverseGeocoder,
        fallback: ProviderChain,
        cache: LocationCache,
        state: LocationState,
        settings: LocationSettings,
    ):
        """Initialize resolver and load any cached Location.

        Args:
            geolocator: Device coordinate source
            reverse_geocoder: Coordinates -> place names
            fallback: IP-based providers tried when the device path fails
            cache: Persistent Location cache
            state: Resolver output, shared with the session
            settings: Timeouts
        """
        self.geolocator = geolocator
        self.reverse_geocoder = reverse_geocoder
        self.fallback = fallback
        self.cache = cache
        self.state = state
        self.settings = settings
        self._last_resolved_at: Optional[datetime] = None
        self._in_flight = False
        # Bumped by clear(); resolutions from an older generation are dropped
        self._generation = 0

        cached = cache.load()
        if cached is not None:
            state.location = cached
            state.status = LocationStatus.READY
            self._last_resolved_at = cached.resolved_at
            logger.info("Loaded cached location", extra={"location": cached.label})

    @property
    def location(self) -> Optional[Location]:
        return self.state.location

    def _next_timestamp(self) -> datetime:
        # Strictly increasing even when the clock has not ticked
        now = datetime.now(timezone.utc)
        if self._last_resolved_at is not None and now <= self._last_resolved_at:
            now = self._last_resolved_at + timedelta(microseconds=1)
        self._last_resolved_at = now
        return now

    def _build(self, place: Place, source: LocationSource) -> Location:
        return Location(
            city=place.city,
            region=place.region,
            country=place.country,
            country_code=place.country_code,
            latitude=place.latitude,
            longitude=place.longitude,
            source=source,
            resolved_at=self._next_timestamp(),
        )

    async def _device_position(self) -> Coordinates:
        try:
            return await asyncio.wait_for(
                self.geolocator.get_position(maximum_age=self.settings.geolocation_max_age),
                timeout=self.settings.geolocation_timeout,
            )
        except PermissionDeniedError:
            raise
        except asyncio.TimeoutError:
            raise PermissionDeniedError("Geolocation timed out") from None
        except Exception as e:
            logger.warning(
                f"Device geolocation failed: {e}",
                extra={"geolocator": self.geolocator.name},
            )
            raise PermissionDeniedError(f"Geolocation unavailable: {e}") from e

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def request_location(self) -> bool:
        """Resolve a fresh Location.

        Returns:
            True only when the device granted coordinates; False on denial,
            fallback-only resolution, failure, when a resolution is already
            running, or when ``clear()`` was called before it finished
        """
        state = self.state
        if self._in_flight:
            logger.info("Location request ignored: resolution already in progress")
            return False

        self._in_flight = True
        generation = self._generation
        state.status = LocationStatus.LOCATING
        state.error = None
        try:
            return await self._resolve(generation)
        finally:
            self._in_flight = False
            if self._is_current(generation) and state.status is LocationStatus.LOCATING:
                state.status = LocationStatus.ERROR
                state.error = state.error or "Location lookup interrupted"

    async def _resolve(self, generation: int) -> bool:
        state = self.state
        granted = False
        location: Optional[Location] = None

        try:
            coords = await self._device_position()
        except PermissionDeniedError as e:
            if not self._is_current(generation):
                return self._discard(generation)
            state.permission = PermissionState.DENIED
            logger.info(f"Device geolocation unavailable: {e}")
        else:
            if not self._is_current(generation):
                return self._discard(generation)
            granted = True
            state.permission = PermissionState.GRANTED
            try:
                place = await self.reverse_geocoder.reverse(coords)
                location = self._build(place, LocationSource.GPS)
            except ProviderUnavailableError as e:
                logger.warning(f"Reverse geocode failed, falling back to IP lookup: {e}")

        if location is None:
            try:
                place = await self.fallback.locate()
                location = self._build(place, LocationSource.IP)
            except LocationError as e:
                if not self._is_current(generation):
                    return self._discard(generation)
                state.error = str(e) or "Location lookup failed"
                state.status = LocationStatus.ERROR
                logger.error(f"Location lookup failed: {state.error}")
                return granted

        if not self._is_current(generation):
            return self._discard(generation)

        self.cache.save(location)
        state.location = location
        state.status = LocationStatus.READY
        logger.info(
            "Location resolved",
            extra={"location": location.label, "source": location.source.value},
        )
        return granted

    def _discard(self, generation: int) -> bool:
        logger.info("Discarding location resolved before clear()", extra={"generation": generation})
        return False

    def clear(self) -> None:
        """Forget the cached Location and reset status and permission.

        A resolution still running is abandoned: whatever it finds is not
        cached or published. OS-level permission is untouched; only local
        state is reset.
        """
        self._generation += 1
        self.cache.clear()
        self.fallback.reset_session()
        self.state.location = None
        self.state.status = LocationStatus.IDLE
        self.state.permission = PermissionState.UNKNOWN
        self.state.error = None
        logger.info("Location cleared")
