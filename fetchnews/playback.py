"""Hand-off of finished briefings to an external audio player."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Protocol

from fetchnews.models import GenerationResult, SourceItem

logger = logging.getLogger(__name__)

_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)


def normalize_media_url(url: Optional[str], base_url: str = "") -> Optional[str]:
    """Make backend ``/media/...`` references absolute; leave others alone."""
    if not url:
        return None
    url = url.strip()
    if _ABSOLUTE_URL.match(url):
        return url
    if url.startswith("/media"):
        return f"{base_url.rstrip('/')}{url}"
    return url


@dataclass(frozen=True)
class NowPlaying:
    title: str
    audio_url: str


class AudioPlayer(Protocol):
    """Anything that can play a URL (an audio element, a desktop player...)."""

    def play(self, track: NowPlaying) -> None:
        ...


class LoggingPlayer:
    """Player that only records what it was asked to play."""

    def __init__(self) -> None:
        self.history: list[NowPlaying] = []

    def play(self, track: NowPlaying) -> None:
        self.history.append(track)
        logger.info("Now playing", extra={"title": track.title, "audio_url": track.audio_url})


class PlaybackHandoff:
    """Passes the playable part of a result to an AudioPlayer."""

    def __init__(self, player: AudioPlayer, media_base_url: str = ""):
        self.player = player
        self.media_base_url = media_base_url
        self.now_playing: Optional[NowPlaying] = None

    def _play(self, title: str, audio_ref: Optional[str]) -> Optional[NowPlaying]:
        src = normalize_media_url(audio_ref, self.media_base_url)
        if not src:
            logger.info("Nothing to play: audio not ready", extra={"title": title})
            return None
        track = NowPlaying(title=title, audio_url=src)
        self.now_playing = track
        self.player.play(track)
        return track

    def play_combined(self, result: Optional[GenerationResult]) -> Optional[NowPlaying]:
        if result is None:
            return None
        return self._play(result.combined.title, result.combined.audio_ref)

    def play_item(self, item: SourceItem) -> Optional[NowPlaying]:
        return self._play(item.title, item.audio_ref)

    def stop(self) -> None:
        self.now_playing = None
