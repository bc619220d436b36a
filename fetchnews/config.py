"""
Configuration for the fetchnews briefing client.

Provides environment-based configuration with Pydantic settings.
Nested sections cover the backend API, the generation pipeline and
location resolution.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LocalGeoFallback(str, Enum):
    """What to send for the "local" topic when the Location has no region."""

    EMPTY = "empty"  # send geo with a blank region
    OMIT = "omit"  # drop geo entirely


class CombinedTitle(str, Enum):
    """Title given to a combined summary that arrives without one."""

    SELECTION = "selection"  # "Top business", "Top — a, b", "Top local — <region>"
    GENERIC = "generic"  # always "Summary"


class ApiSettings(BaseModel):
    """Backend API connection settings."""

    base_url: str = "http://localhost:8080"
    prefix: str = "/api"
    health_timeout: float = 1.0

    @field_validator("base_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v):
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @field_validator("prefix", mode="before")
    @classmethod
    def normalize_prefix(cls, v):
        if not v:
            return ""
        v = str(v).strip().rstrip("/")
        if v and not v.startswith("/"):
            v = "/" + v
        return v

    def url(self, path: str) -> str:
        """Build an absolute URL for an API path such as ``/summarize``."""
        return f"{self.base_url}{self.prefix}{path}"


class PipelineSettings(BaseModel):
    """Generation pipeline settings."""

    phase_delay: float = Field(
        default=0.25,
        description="Seconds before 'gathering' flips to 'summarizing'",
    )
    summarize_timeout: float = 3.0
    tts_timeout: float = 30.0
    use_batch_endpoint: bool = False
    defer_tts: bool = Field(
        default=True,
        description="Ask the backend to skip audio so the pipeline synthesizes it",
    )
    local_geo_fallback: LocalGeoFallback = LocalGeoFallback.EMPTY
    combined_title: CombinedTitle = CombinedTitle.SELECTION


class LocationSettings(BaseModel):
    """Location resolution settings."""

    geolocation_timeout: float = 10.0
    geolocation_max_age: float = Field(
        default=300.0,
        description="Oldest cached device fix accepted, in seconds",
    )
    provider_timeout: float = 10.0
    reverse_geocode_url: str = "https://nominatim.openstreetmap.org/reverse"
    ip_lookup_url: str = "https://ipapi.co/json/"
    user_agent: str = "FetchNews/1.0"
    cache_key: str = "fetchnews.location.v1"
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    def has_static_position(self) -> bool:
        """Check if fixed device coordinates are configured."""
        return self.latitude is not None and self.longitude is not None


class Settings(BaseSettings):
    """Top-level configuration for the briefing client."""

    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENVIRONMENT", "ENV"),
    )

    # Location cache lives here
    data_dir: Path = Field(
        default=Path.home() / ".fetchnews",
        validation_alias=AliasChoices("FETCHNEWS_DATA_DIR", "DATA_DIR"),
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL"),
    )
    log_format: str = Field(
        default="text",
        validation_alias=AliasChoices("LOG_FORMAT"),
        description="Log format: 'json' or 'text'",
    )

    # Nested settings
    api: ApiSettings = Field(default_factory=ApiSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    location: LocationSettings = Field(default_factory=LocationSettings)

    @property
    def location_cache_path(self) -> Path:
        """Path of the JSON file holding the cached Location."""
        return self.data_dir / "location-cache.json"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
        populate_by_name=True,
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure logging based on settings.

    Args:
        settings: Optional settings instance, uses cached settings if not provided
    """
    import logging
    import sys

    if settings is None:
        settings = get_settings()

    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    if settings.log_format == "json":
        import json

        # Attributes every LogRecord carries; anything else came in via extra=
        reserved = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

        class JSONFormatter(logging.Formatter):
            def format(self, record):
                log_record = {
                    "timestamp": self.formatTime(record),
                    "level": record.levelname,
                    "logger": record.name,
                    "message": record.getMessage(),
                    "environment": settings.environment,
                }
                if record.exc_info:
                    log_record["exception"] = self.formatException(record.exc_info)
                for key, value in vars(record).items():
                    if key not in reserved and key not in log_record:
                        log_record[key] = value
                return json.dumps(log_record, default=str)

        handler.setFormatter(JSONFormatter())
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)

    root_logger.addHandler(handler)

    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
