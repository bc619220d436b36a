from __future__ import annotations

import sys
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio

# Ensure the repository root is importable (fetchnews and tests.fakes)
_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from fetchnews.config import ApiSettings, LocationSettings, PipelineSettings, Settings  # noqa: E402
from fetchnews.location import LocationCache, LocationResolver, ProviderChain  # noqa: E402
from fetchnews.location.providers import StaticGeolocator  # noqa: E402
from fetchnews.playback import LoggingPlayer  # noqa: E402
from fetchnews.session import BriefingSession  # noqa: E402
from fetchnews.state import LocationState  # noqa: E402
from tests.fakes import FakeBackend, FakeLocationProvider, FakeReverseGeocoder  # noqa: E402

BACKEND_URL = "http://backend.test"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with a temp data dir and short pipeline timings."""
    return Settings(
        data_dir=tmp_path / "data",
        api=ApiSettings(base_url=BACKEND_URL, prefix="/api"),
        pipeline=PipelineSettings(phase_delay=0.01, summarize_timeout=1.0, tts_timeout=1.0),
        location=LocationSettings(geolocation_timeout=0.5, provider_timeout=0.5),
    )


@pytest.fixture
def backend() -> FakeBackend:
    """
    Provide a FakeBackend with no routes.

    Example:
        async def test_summary(backend, session):
            backend.on("/api/summarize", json={"items": [...]})
            await session.run()
    """
    return FakeBackend()


@pytest.fixture
def ip_provider() -> FakeLocationProvider:
    return FakeLocationProvider()


@pytest.fixture
def reverse_geocoder() -> FakeReverseGeocoder:
    return FakeReverseGeocoder()


@pytest.fixture
def location_cache(settings: Settings) -> LocationCache:
    return LocationCache(settings.location_cache_path, key=settings.location.cache_key)


@pytest.fixture
def resolver(settings, reverse_geocoder, ip_provider, location_cache) -> LocationResolver:
    """Resolver whose device grants a fixed position."""
    return LocationResolver(
        geolocator=StaticGeolocator(30.27, -97.74),
        reverse_geocoder=reverse_geocoder,
        fallback=ProviderChain([ip_provider]),
        cache=location_cache,
        state=LocationState(),
        settings=settings.location,
    )


@pytest.fixture
def player() -> LoggingPlayer:
    return LoggingPlayer()


@pytest_asyncio.fixture
async def session(settings, backend, resolver, player) -> AsyncGenerator[BriefingSession, None]:
    """BriefingSession wired to the fake backend and fake location providers."""
    from fetchnews.api import BackendClient

    http_client = backend.client()
    client = BackendClient(settings.api, http_client=http_client)
    briefing = BriefingSession(client, resolver, settings, player=player)
    try:
        yield briefing
    finally:
        await briefing.aclose()
        await http_client.aclose()
