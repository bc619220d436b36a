from .base import Coordinates, DeviceGeolocator, LocationProvider, Place, ReverseGeocoder
from .chain import ProviderChain
from .geolocators import CallbackGeolocator, StaticGeolocator, UnsupportedGeolocator
from .ipapi import IpApiProvider
from .nominatim import NominatimGeocoder

__all__ = [
    "Coordinates",
    "DeviceGeolocator",
    "LocationProvider",
    "Place",
    "ReverseGeocoder",
    "ProviderChain",
    "CallbackGeolocator",
    "StaticGeolocator",
    "UnsupportedGeolocator",
    "IpApiProvider",
    "NominatimGeocoder",
]
