"""Unit tests for the generation pipeline state machine."""
import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from fetchnews.config import LocalGeoFallback
from fetchnews.errors import (
    EmptyResultError,
    MalformedResponseError,
    NetworkOrTimeoutError,
    RequestFailedError,
)
from fetchnews.models import Location
from fetchnews.status import LocationSource, PipelinePhase

SUMMARIZE = "/api/summarize"
TTS = "/api/tts"

COMBINED = {"combined": {"id": "c1", "title": "Top business", "summary": "X. Y."}, "items": []}


def _location(region="Texas"):
    return Location(
        city="Austin",
        region=region,
        country="United States",
        country_code="US",
        latitude=30.27,
        longitude=-97.74,
        source=LocationSource.GPS,
        resolved_at=datetime.now(timezone.utc),
    )


@pytest.mark.asyncio
async def test_scenario_business_short_with_audio(session, backend):
    backend.on(SUMMARIZE, json=COMBINED)
    backend.on(TTS, json={"audioUrl": "/media/a.mp3"})
    session.toggle_topic("business")
    session.set_length("short")

    result = await session.run()

    assert result is not None
    assert result.combined.audio_ref == "/media/a.mp3"
    assert session.result.combined.audio_ref == "/media/a.mp3"
    assert session.dirty is False
    assert session.phase is PipelinePhase.IDLE

    body = backend.json_body(SUMMARIZE)
    assert body == {"topics": ["business"], "wordCount": 200}
    assert backend.json_body(TTS) == {"text": "X. Y."}
    assert backend.calls(SUMMARIZE)[0].url.params["noTts"] == "1"


@pytest.mark.asyncio
async def test_scenario_server_error(session, backend):
    backend.on(SUMMARIZE, status=500, text="boom")
    session.toggle_topic("world")
    session.toggle_topic("sports")

    with pytest.raises(RequestFailedError) as exc_info:
        await session.run()

    assert exc_info.value.status == 500
    assert session.dirty is True
    assert session.phase is PipelinePhase.IDLE
    assert session.result is None
    assert session.last_error is exc_info.value
    assert backend.calls(TTS) == []


@pytest.mark.asyncio
async def test_two_immediate_runs_issue_one_request(session, backend):
    backend.on(SUMMARIZE, json=COMBINED, delay=0.05)
    backend.on(TTS, json={})
    session.toggle_topic("business")

    first, second = await asyncio.gather(session.run(), session.run())

    assert first is not None
    assert second is None
    assert len(backend.calls(SUMMARIZE)) == 1


@pytest.mark.asyncio
async def test_run_is_noop_without_topics_or_when_clean(session, backend):
    assert await session.run() is None
    assert backend.requests == []

    backend.on(SUMMARIZE, json=COMBINED)
    backend.on(TTS, json={})
    session.toggle_topic("business")
    await session.run()
    assert session.dirty is False

    # Nothing changed since the last successful run
    assert await session.run() is None
    assert len(backend.calls(SUMMARIZE)) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "route, error",
    [
        ({"status": 503, "text": "unavailable"}, RequestFailedError),
        ({"text": "<html>not json</html>"}, MalformedResponseError),
        ({"json": {"items": []}}, EmptyResultError),
        ({"exc": httpx.ConnectError("refused")}, NetworkOrTimeoutError),
    ],
)
async def test_failed_run_keeps_previous_result(session, backend, route, error):
    backend.on(SUMMARIZE, json=COMBINED)
    backend.on(SUMMARIZE, **route)
    backend.on(TTS, json={"audioUrl": "/media/a.mp3"})
    session.toggle_topic("business")
    previous = await session.run()

    session.set_length("long")
    with pytest.raises(error):
        await session.run()

    assert session.result is previous
    assert session.dirty is True
    assert session.phase is PipelinePhase.IDLE


@pytest.mark.asyncio
async def test_summarize_timeout_is_network_failure(session, backend):
    session.settings.pipeline.summarize_timeout = 0.05
    backend.on(SUMMARIZE, json=COMBINED, delay=2.0)
    session.toggle_topic("business")

    with pytest.raises(NetworkOrTimeoutError):
        await session.run()

    assert session.phase is PipelinePhase.IDLE
    assert session.dirty is True
    assert session.result is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "tts_route",
    [
        {"status": 500, "text": "tts down"},
        {"json": {}},
        {"json": {"audioUrl": ""}},
        {"text": "not json"},
        {"exc": httpx.ReadTimeout("slow")},
    ],
)
async def test_tts_failure_is_swallowed(session, backend, tts_route):
    backend.on(SUMMARIZE, json=COMBINED)
    backend.on(TTS, **tts_route)
    session.toggle_topic("business")

    result = await session.run()

    assert result is not None
    assert result.combined.audio_ref is None
    assert result.combined.body_text == "X. Y."
    assert session.dirty is False
    assert session.last_error is None


@pytest.mark.asyncio
async def test_placeholder_summary_skips_tts(session, backend):
    backend.on(SUMMARIZE, json={"items": [{"id": "i1", "title": "T", "summary": ""}]})
    session.toggle_topic("business")

    result = await session.run()

    assert result.combined.body_text == "(No summary provided.)"
    assert backend.calls(TTS) == []
    assert session.dirty is False


@pytest.mark.asyncio
async def test_phase_sequence(session, backend):
    phases = []
    session.pipeline.add_listener(phases.append)
    backend.on(SUMMARIZE, json=COMBINED)
    backend.on(TTS, json={"audioUrl": "/media/a.mp3"})
    session.toggle_topic("business")

    await session.run()

    assert phases == [
        PipelinePhase.GATHERING,
        PipelinePhase.SUMMARIZING,
        PipelinePhase.SYNTHESIZING,
        PipelinePhase.IDLE,
    ]


@pytest.mark.asyncio
async def test_timer_moves_to_summarizing_while_request_in_flight(session, backend):
    backend.on(SUMMARIZE, json=COMBINED, delay=0.2)
    backend.on(TTS, json={})
    session.settings.pipeline.phase_delay = 0.01
    session.toggle_topic("business")

    task = asyncio.create_task(session.run())
    await asyncio.sleep(0.05)

    # Response headers have not arrived yet; only the timer can have fired
    assert backend.calls(SUMMARIZE)
    assert session.phase is PipelinePhase.SUMMARIZING

    result = await task
    assert result is not None
    assert session.phase is PipelinePhase.IDLE


@pytest.mark.asyncio
async def test_first_byte_moves_to_summarizing_before_timer(session, backend):
    session.settings.pipeline.phase_delay = 60.0
    phases = []
    session.pipeline.add_listener(phases.append)
    backend.on(SUMMARIZE, json=COMBINED)
    backend.on(TTS, json={})
    session.toggle_topic("business")

    await asyncio.wait_for(session.run(), timeout=5)

    assert phases[:2] == [PipelinePhase.GATHERING, PipelinePhase.SUMMARIZING]


@pytest.mark.asyncio
async def test_local_without_location_sends_no_geo(session, backend):
    backend.on(SUMMARIZE, json=COMBINED)
    backend.on(TTS, json={})
    session.toggle_topic("local")

    await session.run()

    assert "geo" not in backend.json_body(SUMMARIZE)


@pytest.mark.asyncio
async def test_local_with_location_sends_geo_subset(session, backend):
    session.location_state.location = _location()
    backend.on(SUMMARIZE, json=COMBINED)
    backend.on(TTS, json={})
    session.toggle_topic("local")
    session.toggle_topic("world")

    await session.run()

    body = backend.json_body(SUMMARIZE)
    assert body["topics"] == ["local", "world"]
    assert body["geo"] == {"city": "Austin", "region": "Texas", "country": "US"}


@pytest.mark.asyncio
async def test_location_without_local_topic_sends_no_geo(session, backend):
    session.location_state.location = _location()
    backend.on(SUMMARIZE, json=COMBINED)
    backend.on(TTS, json={})
    session.toggle_topic("world")

    await session.run()

    assert "geo" not in backend.json_body(SUMMARIZE)


@pytest.mark.parametrize(
    "fallback, expect_geo",
    [(LocalGeoFallback.EMPTY, True), (LocalGeoFallback.OMIT, False)],
)
@pytest.mark.asyncio
async def test_local_without_region_follows_setting(session, fallback, expect_geo):
    session.settings.pipeline.local_geo_fallback = fallback
    session.location_state.location = _location(region="")

    request = session.pipeline.build_request(["local"])

    assert (request.geo is not None) is expect_geo
    if expect_geo:
        assert request.geo.region == ""


@pytest.mark.asyncio
async def test_batch_endpoint_for_multiple_topics(session, backend):
    session.settings.pipeline.use_batch_endpoint = True
    backend.on("/api/summarize/batch", json=COMBINED)
    backend.on(TTS, json={})
    session.toggle_topic("world")
    session.toggle_topic("sports")
    session.set_length("medium")

    await session.run()

    assert backend.json_body("/api/summarize/batch")["wordCount"] == 1000
    assert backend.calls(SUMMARIZE) == []


@pytest.mark.asyncio
async def test_mutation_during_run_leaves_result_dirty(session, backend):
    backend.on(SUMMARIZE, json=COMBINED, delay=0.05)
    backend.on(TTS, json={})
    session.toggle_topic("business")

    task = asyncio.create_task(session.run())
    await asyncio.sleep(0.01)
    session.toggle_topic("world")
    result = await task

    assert result is not None
    assert session.dirty is True


@pytest.mark.asyncio
async def test_cancel_discards_in_flight_response(session, backend):
    backend.on(SUMMARIZE, json=COMBINED, delay=0.2)
    session.toggle_topic("business")

    task = asyncio.create_task(session.run())
    await asyncio.sleep(0.02)
    assert session.phase is not PipelinePhase.IDLE

    assert session.cancel() is True
    assert session.phase is PipelinePhase.IDLE
    with pytest.raises(asyncio.CancelledError):
        await task

    assert session.result is None
    assert session.dirty is True
    assert session.cancel() is False


@pytest.mark.asyncio
async def test_mutations_after_success_mark_dirty_but_keep_result(session, backend):
    backend.on(SUMMARIZE, json=COMBINED)
    backend.on(TTS, json={})
    session.toggle_topic("business")
    result = await session.run()

    session.toggle_topic("science")

    assert session.dirty is True
    assert session.result is result


@pytest.mark.asyncio
async def test_failing_listener_does_not_wedge_pipeline(session, backend):
    backend.on(SUMMARIZE, json=COMBINED)
    backend.on(TTS, json={})
    seen = []

    def listener(phase):
        seen.append(phase)
        if phase is PipelinePhase.GATHERING:
            raise RuntimeError("listener bug")

    session.pipeline.add_listener(listener)
    session.toggle_topic("business")

    result = await session.run()

    assert result is not None
    assert session.phase is PipelinePhase.IDLE
    assert seen[-1] is PipelinePhase.IDLE


@pytest.mark.asyncio
async def test_error_building_request_returns_to_idle(session, backend, monkeypatch):
    backend.on(SUMMARIZE, json=COMBINED)
    backend.on(TTS, json={})
    session.toggle_topic("business")

    def broken(topics):
        raise ValueError("bad request")

    monkeypatch.setattr(session.pipeline, "build_request", broken)
    with pytest.raises(ValueError):
        await session.run()

    assert session.phase is PipelinePhase.IDLE
    assert session.dirty is True

    monkeypatch.undo()
    assert await session.run() is not None


@pytest.mark.asyncio
async def test_untitled_combined_named_after_local_region(session, backend):
    session.location_state.location = _location()
    backend.on(SUMMARIZE, json={"combined": {"id": "c1", "summary": "Local news."}})
    backend.on(TTS, json={})
    session.toggle_topic("local")
    session.toggle_topic("world")

    result = await session.run()

    assert result.combined.title == "Top local — Texas"
