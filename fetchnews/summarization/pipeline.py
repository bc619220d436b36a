"""GenerationPipeline - phased orchestrator for briefing generation."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Sequence

from fetchnews.api.client import BackendClient
from fetchnews.config import LocalGeoFallback, PipelineSettings
from fetchnews.errors import GenerationError, NetworkOrTimeoutError
from fetchnews.models import GenerationResult, SummarizeRequest
from fetchnews.state import BriefingState, LocationState
from fetchnews.status import PipelinePhase
from fetchnews.topics import LOCAL_TOPIC

from .response_parser import RequestShape, ResponseNormalizer

logger = logging.getLogger(__name__)

PhaseListener = Callable[[PipelinePhase], None]


class GenerationPipeline:
    """State machine over gathering -> summarizing -> synthesizing.

    At most one run is in flight; ``run()`` while busy is a no-op rather
    than a queued request. Each run carries a token so that anything
    arriving for a run that was cancelled is dropped instead of applied.
    """

    def __init__(
        self,
        client: BackendClient,
        state: BriefingState,
        location_state: LocationState,
        settings: PipelineSettings,
        normalizer: Optional[ResponseNormalizer] = None,
    ):
        """Initialize the pipeline.

        Args:
            client: Backend API client
            state: Briefing inputs/outputs, shared with the session
            location_state: Resolver output; only ``location`` is read
            settings: Timing, endpoint and geo options
            normalizer: Response normalizer
        """
        self.client = client
        self.state = state
        self.location_state = location_state
        self.settings = settings
        self.normalizer = normalizer or ResponseNormalizer(title_mode=settings.combined_title)
        self._run_token = 0
        self._task: Optional[asyncio.Task] = None
        self._listeners: List[PhaseListener] = []

    @property
    def in_flight(self) -> bool:
        return self.state.phase.is_busy()

    def add_listener(self, listener: PhaseListener) -> None:
        """Register a callback invoked on every phase change."""
        self._listeners.append(listener)

    def _set_phase(self, phase: PipelinePhase) -> None:
        if self.state.phase is phase:
            return
        self.state.phase = phase
        logger.debug("Pipeline phase changed", extra={"phase": phase.value})
        for listener in self._listeners:
            try:
                listener(phase)
            except Exception:
                logger.exception("Phase listener failed", extra={"phase": phase.value})

    def build_request(self, topics: Sequence[str]) -> SummarizeRequest:
        """Build the summarize body from current inputs.

        ``geo`` is attached only when "local" is selected and a Location is
        cached.
        """
        geo = None
        location = self.location_state.location
        if LOCAL_TOPIC in topics and location is not None:
            if location.region or self.settings.local_geo_fallback is LocalGeoFallback.EMPTY:
                geo = location.to_geo()
            else:
                logger.info("Location has no region; sending local topic without geo")
        return SummarizeRequest(
            topics=list(topics),
            word_count=self.state.length.word_count,
            geo=geo,
        )

    def _use_batch(self, topics: Sequence[str]) -> bool:
        return self.settings.use_batch_endpoint and len(topics) > 1

    def _enter_summarizing(self, token: int) -> None:
        # Timer and first-byte signal race; whichever fires first wins
        if token == self._run_token and self.state.phase is PipelinePhase.GATHERING:
            self._set_phase(PipelinePhase.SUMMARIZING)

    async def run(self) -> Optional[GenerationResult]:
        """Run one generation if inputs allow it.

        Returns:
            The published result, or None when preconditions were not met
            (empty selection, busy, or nothing changed since the last run)

        Raises:
            GenerationError: Summarization failed; dirty stays True
        """
        state = self.state
        if not state.selection:
            logger.debug("run() ignored: no topics selected")
            return None
        if state.phase.is_busy():
            logger.debug("run() ignored: pipeline busy", extra={"phase": state.phase.value})
            return None
        if not state.dirty:
            logger.debug("run() ignored: result is up to date")
            return None

        # Claim the pipeline before the first suspension point
        self._run_token += 1
        token = self._run_token
        self._task = asyncio.current_task()
        start_revision = state.revision
        try:
            self._set_phase(PipelinePhase.GATHERING)

            topics = state.selected_topics
            batch = self._use_batch(topics)
            request = self.build_request(topics)
            shape = RequestShape(
                topics=tuple(topics),
                is_batch=batch,
                region=request.geo.region if request.geo else None,
            )

            logger.info(
                "Starting generation run",
                extra={"run": token, "topics": topics, "word_count": request.word_count},
            )

            loop = asyncio.get_running_loop()
            timer = loop.call_later(self.settings.phase_delay, self._enter_summarizing, token)
            try:
                raw = await asyncio.wait_for(
                    self.client.summarize(
                        request,
                        batch=batch,
                        defer_tts=self.settings.defer_tts,
                        on_response_start=lambda: self._enter_summarizing(token),
                    ),
                    timeout=self.settings.summarize_timeout,
                )
            except asyncio.TimeoutError:
                raise NetworkOrTimeoutError(
                    f"Network error or timeout ({int(self.settings.summarize_timeout * 1000)}ms)"
                ) from None
            finally:
                timer.cancel()

            if token != self._run_token:
                logger.info("Discarding response for superseded run", extra={"run": token})
                return None

            result = self.normalizer.normalize(raw.text, raw.status, shape)
            state.result = result
            logger.info(
                "Summary published",
                extra={"run": token, "combined_id": result.combined.id, "item_count": len(result.items)},
            )

            if result.combined.has_text:
                self._set_phase(PipelinePhase.SYNTHESIZING)
                audio_ref = await self._synthesize(result.combined.body_text)
                if audio_ref and token == self._run_token:
                    state.result = result.with_audio(audio_ref)

            if token != self._run_token:
                return None
            state.dirty = state.revision != start_revision
            state.last_error = None
            logger.info("Generation run complete", extra={"run": token, "dirty": state.dirty})
            return state.result

        except GenerationError as e:
            if token == self._run_token:
                state.dirty = True
                state.last_error = e
            logger.error(f"Generation run failed: {e}", extra={"run": token})
            raise
        except asyncio.CancelledError:
            if token == self._run_token:
                state.dirty = True
            logger.info("Generation run cancelled", extra={"run": token})
            raise
        finally:
            if token == self._run_token:
                self._task = None
                self._set_phase(PipelinePhase.IDLE)

    async def _synthesize(self, text: str) -> Optional[str]:
        """Best-effort speech synthesis; failures never fail the run."""
        try:
            return await asyncio.wait_for(
                self.client.synthesize(text, timeout=self.settings.tts_timeout),
                timeout=self.settings.tts_timeout,
            )
        except Exception as e:
            logger.warning(f"TTS error: {e}")
            return None

    def cancel(self) -> bool:
        """Abort the in-flight run, if any.

        The phase returns to idle immediately, dirty stays True and the last
        published result is kept. Anything the aborted run receives later is
        discarded.
        """
        if not self.state.phase.is_busy():
            return False
        task = self._task
        self._run_token += 1
        self._task = None
        self.state.dirty = True
        self._set_phase(PipelinePhase.IDLE)
        if task is not None and task is not asyncio.current_task():
            task.cancel()
        logger.info("Generation run cancel requested")
        return True
