"""
Fake implementations for testing.

This package contains fake (test double) implementations of core interfaces,
following the "fakes over mocks" philosophy. Fakes are simplified working
implementations that behave like real components but avoid network access.

Key fakes:
- FakeBackend: canned HTTP responses behind httpx.MockTransport
- DenyingGeolocator / SlowGeolocator: device geolocation outcomes
- FakeReverseGeocoder / FakeLocationProvider: provider tiers of the location chain
"""

from tests.fakes.backend import FakeBackend
from tests.fakes.geolocation import (
    DenyingGeolocator,
    FakeLocationProvider,
    FakeReverseGeocoder,
    SlowGeolocator,
)

__all__ = [
    "FakeBackend",
    "DenyingGeolocator",
    "FakeLocationProvider",
    "FakeReverseGeocoder",
    "SlowGeolocator",
]
