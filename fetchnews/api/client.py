"""HTTP client for the briefing backend."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import httpx

from fetchnews.config import ApiSettings
from fetchnews.errors import NetworkOrTimeoutError, preview
from fetchnews.models import SummarizeRequest, TTSRequest

logger = logging.getLogger(__name__)

ResponseStartHook = Callable[[], Optional[Awaitable[None]]]


@dataclass
class RawResponse:
    """Undecoded backend answer; decoding belongs to the ResponseNormalizer."""

    status: int
    text: str


@dataclass
class BackendHealth:
    """Health status of the backend."""

    healthy: bool
    latency_ms: Optional[float] = None
    error: Optional[str] = None


class BackendClient:
    """Async client for ``/summarize``, ``/tts`` and ``/health``.

    A single ``httpx.AsyncClient`` is kept for the client's lifetime so
    session cookies set by the backend are sent with every request.
    """

    def __init__(
        self,
        settings: ApiSettings,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize backend client.

        Args:
            settings: API base URL, prefix and health timeout
            http_client: Optional preconfigured client (tests pass a mock transport)
        """
        self.settings = settings
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            headers={"Content-Type": "application/json"},
            follow_redirects=True,
        )

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def summarize_path(self, *, batch: bool) -> str:
        return "/summarize/batch" if batch else "/summarize"

    async def summarize(
        self,
        request: SummarizeRequest,
        *,
        batch: bool = False,
        defer_tts: bool = True,
        on_response_start: Optional[ResponseStartHook] = None,
    ) -> RawResponse:
        """POST a summarize request and return the raw answer.

        Args:
            request: Topics, word budget and optional geo
            batch: Use the multi-topic endpoint
            defer_tts: Ask the backend not to synthesize audio itself
            on_response_start: Called once response headers arrive, before the body is read

        Returns:
            Status and body text, whatever the status

        Raises:
            NetworkOrTimeoutError: Transport failure
        """
        url = self.settings.url(self.summarize_path(batch=batch))
        params = {"noTts": "1"} if defer_tts else None
        payload = request.to_payload()
        logger.info(
            "Requesting summary",
            extra={"url": url, "topics": payload["topics"], "word_count": payload["wordCount"]},
        )
        try:
            async with self._client.stream("POST", url, json=payload, params=params) as response:
                if on_response_start is not None:
                    maybe = on_response_start()
                    if maybe is not None:
                        await maybe
                body = await response.aread()
                text = body.decode(response.encoding or "utf-8", errors="replace")
                return RawResponse(status=response.status_code, text=text)
        except httpx.TimeoutException as e:
            raise NetworkOrTimeoutError(f"Summarize request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise NetworkOrTimeoutError(f"Network error: {e}") from e

    async def synthesize(self, text: str, *, timeout: float) -> Optional[str]:
        """Request speech for ``text``.

        Returns:
            Audio reference, or None when the backend has no TTS or the call failed
        """
        url = self.settings.url("/tts")
        try:
            response = await self._client.post(
                url,
                json=TTSRequest(text=text).model_dump(),
                timeout=timeout,
            )
        except httpx.HTTPError as e:
            logger.warning(f"TTS error: {e}")
            return None

        raw = response.text
        if not response.is_success:
            logger.warning(
                "TTS not available or failed",
                extra={"status": response.status_code, "body_preview": preview(raw)},
            )
            return None
        try:
            data = response.json()
        except ValueError:
            logger.warning("TTS returned a non-JSON body", extra={"body_preview": preview(raw)})
            return None

        audio_url = data.get("audioUrl") if isinstance(data, dict) else None
        if not isinstance(audio_url, str) or not audio_url.strip():
            logger.info("TTS response carried no audioUrl")
            return None
        return audio_url.strip()

    async def check_health(self) -> BackendHealth:
        """Quick liveness probe; never raises."""
        start = time.time()
        try:
            response = await self._client.get(
                self.settings.url("/health"),
                timeout=self.settings.health_timeout,
            )
            latency = (time.time() - start) * 1000
            return BackendHealth(healthy=response.status_code == 200, latency_ms=latency)
        except httpx.HTTPError as e:
            return BackendHealth(healthy=False, error=str(e))
