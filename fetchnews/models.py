"""
Pydantic models for the briefing client.

These models define the canonical result shape the pipeline publishes,
the request bodies sent to the backend, and the cached Location.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from fetchnews.status import LocationSource

PLACEHOLDER_TEXT = "(No summary provided.)"
DEFAULT_TITLE = "Summary"


# ==================== Location ====================

class GeoDescriptor(BaseModel):
    """Geographic subset sent with the "local" topic."""

    model_config = ConfigDict(frozen=True)

    city: str = ""
    region: str = ""
    country: str = Field(default="", description="Two-letter country code")


class Location(BaseModel):
    """Best-effort geographic context. Immutable once created."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    city: str = ""
    region: str = ""
    country: str = ""
    country_code: str = Field(
        default="",
        validation_alias=AliasChoices("country_code", "countryCode"),
        serialization_alias="countryCode",
    )
    latitude: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("latitude", "lat"),
        serialization_alias="lat",
    )
    longitude: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("longitude", "lon"),
        serialization_alias="lon",
    )
    source: LocationSource
    resolved_at: datetime = Field(
        validation_alias=AliasChoices("resolved_at", "resolvedAt"),
        serialization_alias="resolvedAt",
    )

    @property
    def label(self) -> str:
        """Short human label, e.g. "Austin, Texas"."""
        parts = [p for p in (self.city, self.region) if p]
        if parts:
            return ", ".join(parts)
        return self.country or "My Location"

    def to_geo(self) -> GeoDescriptor:
        """Build the request subset; ``country`` carries the country code."""
        return GeoDescriptor(city=self.city, region=self.region, country=self.country_code)


# ==================== Backend requests ====================

class SummarizeRequest(BaseModel):
    """Body of ``POST /summarize`` and ``/summarize/batch``."""

    model_config = ConfigDict(populate_by_name=True)

    topics: List[str] = Field(min_length=1)
    word_count: int = Field(serialization_alias="wordCount", gt=0)
    geo: Optional[GeoDescriptor] = None

    def to_payload(self) -> dict:
        """Wire form; ``geo`` is omitted entirely when absent."""
        return self.model_dump(by_alias=True, exclude_none=True)


class TTSRequest(BaseModel):
    """Body of ``POST /tts``."""

    text: str = Field(min_length=1)


# ==================== Results ====================

class CombinedSummary(BaseModel):
    """Single narrative covering all selected topics."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = DEFAULT_TITLE
    body_text: str = PLACEHOLDER_TEXT
    audio_ref: Optional[str] = None

    @property
    def has_text(self) -> bool:
        """True when the body is real text rather than the placeholder."""
        body = self.body_text.strip()
        return bool(body) and body != PLACEHOLDER_TEXT


class SourceItem(BaseModel):
    """One per-source story behind the combined summary."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    body_text: str = PLACEHOLDER_TEXT
    source_name: Optional[str] = None
    topic_key: Optional[str] = None
    external_link: Optional[str] = None
    audio_ref: Optional[str] = None


class GenerationResult(BaseModel):
    """Output of one generation run. Replaced wholesale, never patched."""

    model_config = ConfigDict(frozen=True)

    combined: CombinedSummary
    items: List[SourceItem] = Field(default_factory=list)

    def with_audio(self, audio_ref: str) -> "GenerationResult":
        """Copy of this result with the combined summary's audio attached."""
        combined = self.combined.model_copy(update={"audio_ref": audio_ref})
        return self.model_copy(update={"combined": combined})

    def displayable_items(self) -> List[SourceItem]:
        """Items that carry real text, for presentation layers that hide placeholders."""
        return [
            item for item in self.items
            if item.body_text.strip() and item.body_text != PLACEHOLDER_TEXT
        ]
