from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from fetchnews.errors import ProviderUnavailableError

from .base import LocationProvider, Place

logger = logging.getLogger(__name__)


def _float_or_none(value: Any) -> Optional[float]:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


class IpApiProvider(LocationProvider):
    """IP-based geolocation via ipapi.co."""

    def __init__(
        self,
        url: str = "https://ipapi.co/json/",
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._http_client = http_client

    @property
    def name(self) -> str:
        return "ipapi"

    async def locate(self) -> Place:
        try:
            if self._http_client is not None:
                response = await self._http_client.get(self.url, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(self.url)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"IP lookup failed: {e}")
            raise ProviderUnavailableError(self.name, "ip lookup failed") from e

        # ipapi.co reports rate limiting and reserved ranges as 200 + error flag
        if not isinstance(data, dict) or data.get("error"):
            reason = data.get("reason") if isinstance(data, dict) else None
            raise ProviderUnavailableError(self.name, reason or "ip lookup failed")

        return Place(
            city=data.get("city") or "",
            region=data.get("region") or "",
            country=data.get("country_name") or "",
            country_code=(data.get("country") or "").upper(),
            latitude=_float_or_none(data.get("latitude")),
            longitude=_float_or_none(data.get("longitude")),
        )
