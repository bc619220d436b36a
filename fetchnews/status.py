"""
Status tracking for the briefing client.

Provides the enums shared by the generation pipeline, the location
resolver and the session that exposes both to a presentation layer.
"""

from __future__ import annotations

from enum import Enum


class PipelinePhase(str, Enum):
    """Stage of a generation run."""

    IDLE = "idle"
    GATHERING = "gathering"
    SUMMARIZING = "summarizing"
    SYNTHESIZING = "synthesizing"

    def is_busy(self) -> bool:
        """Check if a run is in flight."""
        return self is not PipelinePhase.IDLE

    @property
    def label(self) -> str:
        """Button label shown while in this phase."""
        return _PHASE_LABELS[self]


_PHASE_LABELS = {
    PipelinePhase.IDLE: "Fetch the News",
    PipelinePhase.GATHERING: "Gathering sources…",
    PipelinePhase.SUMMARIZING: "Building summary…",
    PipelinePhase.SYNTHESIZING: "Recording audio…",
}


class LocationStatus(str, Enum):
    """Status of location resolution."""

    IDLE = "idle"
    LOCATING = "locating"
    READY = "ready"
    ERROR = "error"


class PermissionState(str, Enum):
    """Outcome of the most recent device-permission prompt."""

    UNKNOWN = "unknown"
    GRANTED = "granted"
    DENIED = "denied"


class LocationSource(str, Enum):
    """Which provider tier produced a Location."""

    GPS = "gps"
    IP = "ip"
