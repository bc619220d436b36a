"""
State containers shared by the pipeline, the resolver and the session.

All mutation of briefing inputs goes through the transition functions
below so that the dirty flag and the "local" invariant are kept in one
place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from fetchnews.errors import GenerationError
from fetchnews.models import GenerationResult, Location
from fetchnews.status import LocationStatus, PermissionState, PipelinePhase
from fetchnews.topics import LOCAL_TOPIC, LengthPreference


@dataclass
class BriefingState:
    """Inputs and outputs of the generation pipeline."""

    # dict as an insertion-ordered set
    selection: Dict[str, None] = field(default_factory=dict)
    length: LengthPreference = LengthPreference.SHORT
    phase: PipelinePhase = PipelinePhase.IDLE
    dirty: bool = True
    result: Optional[GenerationResult] = None
    last_error: Optional[GenerationError] = None
    # Bumped on every input mutation
    revision: int = 0

    def touch(self) -> None:
        """Record an input mutation."""
        self.revision += 1
        self.dirty = True

    @property
    def selected_topics(self) -> List[str]:
        return list(self.selection)

    def is_selected(self, key: str) -> bool:
        return key in self.selection

    def can_run(self) -> bool:
        """Whether run() would start a request right now."""
        return bool(self.selection) and self.phase is PipelinePhase.IDLE and self.dirty


@dataclass
class LocationState:
    """Outputs of the location resolver."""

    location: Optional[Location] = None
    status: LocationStatus = LocationStatus.IDLE
    permission: PermissionState = PermissionState.UNKNOWN
    error: Optional[str] = None


def toggle_topic(state: BriefingState, key: str) -> bool:
    """Add or remove ``key``; returns True if it is now selected."""
    key = key.strip()
    if not key:
        raise ValueError("Topic key must not be blank")
    if key in state.selection:
        del state.selection[key]
        selected = False
    else:
        state.selection[key] = None
        selected = True
    state.touch()
    return selected


def set_length(state: BriefingState, length: Union[LengthPreference, str]) -> LengthPreference:
    """Select a length preference; unknown keys raise ValueError."""
    new = LengthPreference(length)
    if new is not state.length:
        state.length = new
        state.touch()
    return new


def location_changed(state: BriefingState, location: Optional[Location]) -> None:
    """React to a new or removed Location.

    Removing the location also drops "local" from the selection.
    """
    if location is None:
        state.selection.pop(LOCAL_TOPIC, None)
    state.touch()


def reset(state: BriefingState) -> bool:
    """Clear selection and result; refused while a run is in flight."""
    if state.phase.is_busy():
        return False
    state.selection.clear()
    state.result = None
    state.last_error = None
    state.length = LengthPreference.SHORT
    state.touch()
    return True
