from __future__ import annotations

import logging
from typing import List, Optional

from fetchnews.errors import ProviderUnavailableError

from .base import LocationProvider, Place

logger = logging.getLogger(__name__)


class ProviderChain:
    """Ordered fallback chain of location providers with sticky support.

    In sticky mode (default), the provider that last succeeded is tried
    first on the next lookup, ahead of the configured order.
    """

    def __init__(self, providers: List[LocationProvider], sticky: bool = True):
        """Initialize provider chain.

        Args:
            providers: Ordered list of providers (first = highest priority)
            sticky: If True, try the last successful provider first
        """
        if not providers:
            raise ValueError("Provider chain requires at least one provider")

        self.providers = providers
        self.sticky = sticky
        self._active_provider: Optional[LocationProvider] = None

    def reset_session(self) -> None:
        """Forget the sticky provider."""
        self._active_provider = None

    def _ordered(self) -> List[LocationProvider]:
        if self.sticky and self._active_provider is not None:
            return [self._active_provider] + [
                p for p in self.providers if p is not self._active_provider
            ]
        return list(self.providers)

    async def locate(self) -> Place:
        """Locate using the first provider that succeeds.

        Raises:
            ProviderUnavailableError: Every provider failed
        """
        last_error: Optional[Exception] = None
        for provider in self._ordered():
            logger.debug("Trying provider", extra={"provider": provider.name})
            try:
                place = await provider.locate()
            except ProviderUnavailableError as e:
                last_error = e
                logger.warning(
                    "Provider failed, trying next",
                    extra={"provider": provider.name, "error": str(e)},
                )
                continue

            if self.sticky:
                self._active_provider = provider
            logger.info("Provider succeeded", extra={"provider": provider.name})
            return place

        logger.error("All location providers failed")
        raise ProviderUnavailableError(
            "fallback", str(last_error) if last_error else "Location lookup failed"
        )
