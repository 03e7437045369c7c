"""Test configuration and fixtures"""

from unittest.mock import MagicMock

import pytest

from remotify.config import AppConfig
from remotify.core.dispatcher import RequestDispatcher
from remotify.core.spotify_client import RemoteFacade
from remotify.core.state import SharedAppState


def make_facade():
    """RemoteFacade double: every async method is an AsyncMock with an empty result."""
    facade = MagicMock(spec=RemoteFacade)
    facade.session_device = None
    facade.current_playback.return_value = None
    facade.devices.return_value = []
    facade.fetch_image.return_value = b"image-bytes"
    facade.find_lyrics.return_value = None
    facade.saved_tracks_contains.return_value = [False]
    facade.saved_albums_contains.return_value = [False]
    facade.following_artists.return_value = [False]
    facade.playlist_is_following.return_value = [False]
    return facade


def playback_payload(
    device_id="dev-1",
    is_playing=True,
    shuffle_state=False,
    repeat_state="off",
    cover_url="https://i.scdn.co/image/cover",
):
    """Minimal current_playback() response"""
    return {
        "device": {"id": device_id, "name": "Kitchen", "volume_percent": 40},
        "is_playing": is_playing,
        "shuffle_state": shuffle_state,
        "repeat_state": repeat_state,
        "progress_ms": 1000,
        "context": {"uri": "spotify:album:alb1"},
        "item": {
            "id": "trk1",
            "type": "track",
            "name": "Song",
            "duration_ms": 200000,
            "artists": [{"id": "art1", "name": "Artist"}],
            "album": {"id": "alb1", "name": "Album", "images": [{"url": cover_url}]},
        },
    }


def track_json(track_id, name=None, album=None):
    data = {
        "id": track_id,
        "type": "track",
        "name": name or f"Track {track_id}",
        "duration_ms": 180000,
        "artists": [{"id": "art1", "name": "Artist"}],
    }
    if album is not None:
        data["album"] = album
    return data


@pytest.fixture
def app_config():
    return AppConfig(default_device="Kitchen", cache_capacity=4)


@pytest.fixture
def state(app_config):
    return SharedAppState(app_config)


@pytest.fixture
def facade():
    return make_facade()


@pytest.fixture
def dispatcher(facade):
    d = RequestDispatcher(facade, connect_delay_sec=0)
    d.refresher.interval_sec = 0
    return d


@pytest.fixture
def playing_state(state):
    """State with an active playback on dev-1"""
    with state.player.write() as player:
        player.set_playback(playback_payload())
    return state
