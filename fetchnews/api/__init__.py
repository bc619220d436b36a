"""Backend API access for the briefing client."""

from .client import BackendClient, BackendHealth, RawResponse

__all__ = [
    "BackendClient",
    "BackendHealth",
    "RawResponse",
]
