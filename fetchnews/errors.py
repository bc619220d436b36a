"""Exceptions raised by the generation pipeline and location resolver."""

from __future__ import annotations

from typing import Optional

PREVIEW_LIMIT = 400


def preview(raw: Optional[str], limit: int = PREVIEW_LIMIT) -> str:
    """Bound a raw payload for use in error messages and logs."""
    text = raw or ""
    if len(text) <= limit:
        return text
    return text[:limit] + "…"


class FetchNewsError(Exception):
    """Base class for all fetchnews errors."""


class GenerationError(FetchNewsError):
    """A generation run failed before publishing a result."""


class NetworkOrTimeoutError(GenerationError):
    """The summarization request could not complete (transport error or timeout)."""


class RequestFailedError(GenerationError):
    """The backend answered with a non-2xx status."""

    def __init__(self, status: int, body_preview: str = ""):
        self.status = status
        self.body_preview = preview(body_preview)
        super().__init__(f"HTTP {status}: {self.body_preview or 'Server error'}")


class MalformedResponseError(GenerationError):
    """The backend body could not be parsed into a result."""

    def __init__(self, body_preview: str = "", reason: str = "Bad payload"):
        self.body_preview = preview(body_preview)
        super().__init__(f"{reason}: {self.body_preview or 'empty'}")


class EmptyResultError(GenerationError):
    """The backend returned neither a combined summary nor any items."""

    def __init__(self, message: str = "Response contained no summary and no items"):
        super().__init__(message)


class LocationError(FetchNewsError):
    """A location provider could not produce a result."""


class PermissionDeniedError(LocationError):
    """Device geolocation was denied, unsupported or timed out."""


class ProviderUnavailableError(LocationError):
    """A geocoding or IP lookup provider failed."""

    def __init__(self, provider: str, message: str = ""):
        self.provider = provider
        super().__init__(f"{provider}: {message}" if message else provider)
