"""Unit tests for audio hand-off."""
import pytest

from fetchnews.models import CombinedSummary, GenerationResult, SourceItem
from fetchnews.playback import LoggingPlayer, PlaybackHandoff, normalize_media_url


@pytest.mark.parametrize(
    "url, expected",
    [
        ("/media/a.mp3", "http://backend.test/media/a.mp3"),
        ("https://cdn.example.com/a.mp3", "https://cdn.example.com/a.mp3"),
        ("HTTP://cdn.example.com/a.mp3", "HTTP://cdn.example.com/a.mp3"),
        ("blob:abc", "blob:abc"),
        ("", None),
        (None, None),
    ],
)
def test_normalize_media_url(url, expected):
    assert normalize_media_url(url, "http://backend.test/") == expected


def _result(audio_ref=None):
    combined = CombinedSummary(id="c1", title="Top business", body_text="X. Y.", audio_ref=audio_ref)
    return GenerationResult(combined=combined, items=[])


def test_play_combined_hands_absolute_url_to_player():
    player = LoggingPlayer()
    handoff = PlaybackHandoff(player, media_base_url="http://backend.test")

    track = handoff.play_combined(_result("/media/a.mp3"))

    assert track.audio_url == "http://backend.test/media/a.mp3"
    assert track.title == "Top business"
    assert player.history == [track]
    assert handoff.now_playing is track


def test_nothing_to_play_without_audio():
    player = LoggingPlayer()
    handoff = PlaybackHandoff(player)

    assert handoff.play_combined(_result()) is None
    assert handoff.play_combined(None) is None
    assert player.history == []


def test_play_item_and_stop():
    player = LoggingPlayer()
    handoff = PlaybackHandoff(player, media_base_url="http://backend.test")
    item = SourceItem(id="i1", title="Story", body_text="Body.", audio_ref="https://cdn/x.mp3")

    handoff.play_item(item)
    assert handoff.now_playing.audio_url == "https://cdn/x.mp3"

    handoff.stop()
    assert handoff.now_playing is None
