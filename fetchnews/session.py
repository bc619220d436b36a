"""BriefingSession - the surface a presentation layer drives."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Union

import httpx

from fetchnews.api.client import BackendClient
from fetchnews.config import Settings, get_settings
from fetchnews.errors import GenerationError
from fetchnews.location import LocationResolver, create_location_resolver
from fetchnews.location.providers import DeviceGeolocator
from fetchnews.models import GenerationResult, Location
from fetchnews.playback import AudioPlayer, LoggingPlayer, NowPlaying, PlaybackHandoff
from fetchnews.state import (
    BriefingState,
    LocationState,
    location_changed,
    reset,
    set_length,
    toggle_topic,
)
from fetchnews.status import LocationStatus, PermissionState, PipelinePhase
from fetchnews.summarization import GenerationPipeline
from fetchnews.topics import LengthPreference, Topic, catalog, local_label

logger = logging.getLogger(__name__)


class BriefingSession:
    """Owns the state containers and wires the pipeline and resolver to them.

    Every entry point a UI needs lives here: topic and length selection,
    running the pipeline, location requests, and playback.
    """

    def __init__(
        self,
        client: BackendClient,
        resolver: LocationResolver,
        settings: Settings,
        player: Optional[AudioPlayer] = None,
        state: Optional[BriefingState] = None,
    ):
        self.settings = settings
        self.client = client
        self.resolver = resolver
        self.state = state if state is not None else BriefingState()
        self.location_state: LocationState = resolver.state
        self.pipeline = GenerationPipeline(
            client=client,
            state=self.state,
            location_state=self.location_state,
            settings=settings.pipeline,
        )
        self.playback = PlaybackHandoff(
            player or LoggingPlayer(), media_base_url=settings.api.base_url
        )
        self.custom_topics: List[str] = []

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        geolocator: Optional[DeviceGeolocator] = None,
        player: Optional[AudioPlayer] = None,
    ) -> "BriefingSession":
        """Build a session with default providers."""
        settings = settings or get_settings()
        client = BackendClient(settings.api, http_client=http_client)
        resolver = create_location_resolver(
            settings, geolocator=geolocator, http_client=http_client
        )
        return cls(client, resolver, settings, player=player)

    async def __aenter__(self) -> "BriefingSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self.pipeline.cancel()
        await self.client.aclose()

    # ----- read-only views -----

    @property
    def phase(self) -> PipelinePhase:
        return self.state.phase

    @property
    def dirty(self) -> bool:
        return self.state.dirty

    @property
    def result(self) -> Optional[GenerationResult]:
        return self.state.result

    @property
    def last_error(self) -> Optional[GenerationError]:
        return self.state.last_error

    @property
    def location(self) -> Optional[Location]:
        return self.location_state.location

    @property
    def location_status(self) -> LocationStatus:
        return self.location_state.status

    @property
    def permission(self) -> PermissionState:
        return self.location_state.permission

    @property
    def location_label(self) -> str:
        return local_label(self.location)

    @property
    def selected_topics(self) -> List[str]:
        return self.state.selected_topics

    def catalog(self) -> List[Topic]:
        return catalog(self.location, self.custom_topics)

    def set_custom_topics(self, keys: Iterable[str]) -> None:
        """Replace the custom topic keys offered (their CRUD lives elsewhere)."""
        self.custom_topics = [k.strip() for k in keys if k and k.strip()]

    # ----- entry points -----

    def toggle_topic(self, key: str) -> bool:
        return toggle_topic(self.state, key)

    def set_length(self, length: Union[LengthPreference, str]) -> LengthPreference:
        return set_length(self.state, length)

    async def run(self) -> Optional[GenerationResult]:
        """Run the pipeline; see GenerationPipeline.run."""
        return await self.pipeline.run()

    def cancel(self) -> bool:
        return self.pipeline.cancel()

    def reset(self) -> bool:
        """Clear selection, result and playback; refused mid-run."""
        if not reset(self.state):
            return False
        self.playback.stop()
        return True

    async def request_location(self) -> bool:
        """Resolve a fresh Location; True only if the device granted access."""
        before = self.location
        granted = await self.resolver.request_location()
        if self.location is not before:
            location_changed(self.state, self.location)
        return granted

    def clear_location(self) -> None:
        """Forget the Location; "local" leaves the selection with it."""
        self.resolver.clear()
        location_changed(self.state, None)

    async def check_health(self) -> bool:
        """Quick backend liveness probe; failures only get logged."""
        health = await self.client.check_health()
        if not health.healthy:
            logger.warning("Backend health check failed", extra={"error": health.error})
        return health.healthy

    def play(self) -> Optional[NowPlaying]:
        """Hand the combined summary's audio to the player."""
        return self.playback.play_combined(self.state.result)
