"""Device geolocator implementations."""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from fetchnews.errors import PermissionDeniedError

from .base import Coordinates, DeviceGeolocator

logger = logging.getLogger(__name__)

PositionCallback = Callable[[], Awaitable[Optional[Coordinates]]]


class UnsupportedGeolocator(DeviceGeolocator):
    """No device geolocation on this platform; always treated as denied."""

    @property
    def name(self) -> str:
        return "unsupported"

    async def get_position(self, *, maximum_age: float) -> Coordinates:
        raise PermissionDeniedError("Geolocation is not supported on this platform")


class StaticGeolocator(DeviceGeolocator):
    """Reports fixed coordinates, e.g. from configuration or the command line."""

    def __init__(self, latitude: float, longitude: float):
        self.latitude = latitude
        self.longitude = longitude

    @property
    def name(self) -> str:
        return "static"

    async def get_position(self, *, maximum_age: float) -> Coordinates:
        return Coordinates(latitude=self.latitude, longitude=self.longitude)


class CallbackGeolocator(DeviceGeolocator):
    """Delegates to a host-supplied async prompt.

    The callback returns coordinates when the user grants access and None
    when they refuse. A fix younger than ``maximum_age`` is reused without
    prompting again.
    """

    def __init__(self, callback: PositionCallback):
        self._callback = callback
        self._last_fix: Optional[Coordinates] = None

    @property
    def name(self) -> str:
        return "callback"

    async def get_position(self, *, maximum_age: float) -> Coordinates:
        if self._last_fix is not None and self._last_fix.age_seconds() <= maximum_age:
            logger.debug("Reusing cached device fix")
            return self._last_fix

        coords = await self._callback()
        if coords is None:
            raise PermissionDeniedError("User denied geolocation")
        self._last_fix = coords
        return coords
