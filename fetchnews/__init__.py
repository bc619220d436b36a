"""
fetchnews - topic-driven audio news briefings.

Contains:
- summarization: response normalization and the generation pipeline
- location: device / reverse-geocode / IP location chain and its cache
- api: backend HTTP client
- session: state container and entry points for a presentation layer
- playback: hand-off of finished audio to a player
"""

from fetchnews.session import BriefingSession
from fetchnews.status import LocationStatus, PermissionState, PipelinePhase
from fetchnews.topics import LengthPreference

__all__ = [
    "BriefingSession",
    "LengthPreference",
    "LocationStatus",
    "PermissionState",
    "PipelinePhase",
]
