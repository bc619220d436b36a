"""
Location resolution for fetchnews.

Provides the device -> reverse geocode -> IP fallback chain, the
persistent Location cache, and a factory wiring them from settings.
"""

from __future__ import annotations

from typing import Optional

import httpx

from fetchnews.config import Settings
from fetchnews.state import LocationState

from .cache import LocationCache
from .providers import (
    Coordinates,
    DeviceGeolocator,
    IpApiProvider,
    LocationProvider,
    NominatimGeocoder,
    Place,
    ProviderChain,
    ReverseGeocoder,
    StaticGeolocator,
    UnsupportedGeolocator,
)
from .resolver import LocationResolver


def create_location_resolver(
    settings: Settings,
    state: Optional[LocationState] = None,
    *,
    geolocator: Optional[DeviceGeolocator] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> LocationResolver:
    """Build a resolver from settings.

    Without an explicit geolocator, configured coordinates are used when
    present; otherwise device geolocation is treated as unsupported and
    the IP fallback does the work.
    """
    loc = settings.location
    if geolocator is None:
        if loc.has_static_position():
            geolocator = StaticGeolocator(loc.latitude, loc.longitude)
        else:
            geolocator = UnsupportedGeolocator()

    reverse = NominatimGeocoder(
        base_url=loc.reverse_geocode_url,
        user_agent=loc.user_agent,
        timeout=loc.provider_timeout,
        http_client=http_client,
    )
    fallback = ProviderChain(
        [IpApiProvider(url=loc.ip_lookup_url, timeout=loc.provider_timeout, http_client=http_client)]
    )
    cache = LocationCache(settings.location_cache_path, key=loc.cache_key)
    return LocationResolver(
        geolocator=geolocator,
        reverse_geocoder=reverse,
        fallback=fallback,
        cache=cache,
        state=state if state is not None else LocationState(),
        settings=loc,
    )


__all__ = [
    "Coordinates",
    "DeviceGeolocator",
    "LocationProvider",
    "Place",
    "ReverseGeocoder",
    "ProviderChain",
    "IpApiProvider",
    "NominatimGeocoder",
    "StaticGeolocator",
    "UnsupportedGeolocator",
    "LocationCache",
    "LocationResolver",
    "create_location_resolver",
]
