from __future__ import annotations

import logging
from typing import Optional

import httpx

from fetchnews.errors import ProviderUnavailableError

from .base import Coordinates, Place, ReverseGeocoder

logger = logging.getLogger(__name__)


class NominatimGeocoder(ReverseGeocoder):
    """OpenStreetMap Nominatim reverse geocoding."""

    def __init__(
        self,
        base_url: str = "https://nominatim.openstreetmap.org/reverse",
        user_agent: str = "FetchNews/1.0",
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize Nominatim geocoder.

        Args:
            base_url: Reverse endpoint URL
            user_agent: Sent on every request, as Nominatim's usage policy requires
            timeout: Request timeout in seconds
            http_client: Optional shared client
        """
        self.base_url = base_url
        self.user_agent = user_agent
        self.timeout = timeout
        self._http_client = http_client

    @property
    def name(self) -> str:
        return "nominatim"

    async def reverse(self, coords: Coordinates) -> Place:
        params = {
            "format": "jsonv2",
            "lat": str(coords.latitude),
            "lon": str(coords.longitude),
            "zoom": "10",
            "addressdetails": "1",
        }
        headers = {"Accept": "application/json", "User-Agent": self.user_agent}
        try:
            if self._http_client is not None:
                response = await self._http_client.get(
                    self.base_url, params=params, headers=headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(self.base_url, params=params, headers=headers)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Reverse geocode failed: {e}")
            raise ProviderUnavailableError(self.name, "reverse geocode failed") from e

        address = data.get("address") if isinstance(data, dict) else None
        if not isinstance(address, dict):
            address = {}
        return Place(
            city=address.get("city")
            or address.get("town")
            or address.get("village")
            or address.get("county")
            or "",
            region=address.get("state") or address.get("region") or "",
            country=address.get("country") or "",
            country_code=(address.get("country_code") or "").upper(),
            latitude=coords.latitude,
            longitude=coords.longitude,
        )
