"""Test shared state, locks and playback models"""

import threading
import time

import pytest

from remotify.core.locks import Guarded, ReadWriteLock
from remotify.core.state import LIKED_TRACKS_ID, AppData, PlayerState, SharedAppState, UserData
from remotify.models.context import ContextId
from remotify.models.entities import Playlist, Track, User
from remotify.models.playback import RepeatState, SimplifiedPlayback
from tests.conftest import playback_payload


class TestRepeatState:
    """Test the repeat cycle"""

    def test_full_cycle(self):
        state = RepeatState.OFF
        seen = []
        for _ in range(3):
            state = state.next()
            seen.append(state)
        assert seen == [RepeatState.TRACK, RepeatState.CONTEXT, RepeatState.OFF]


class TestSimplifiedPlayback:
    """Test reading the playback payload"""

    def test_from_payload(self):
        pb = SimplifiedPlayback.from_spotify(
            playback_payload(is_playing=False, shuffle_state=True, repeat_state="context")
        )
        assert pb == SimplifiedPlayback("dev-1", False, True, RepeatState.CONTEXT)

    def test_empty_payload(self):
        assert SimplifiedPlayback.from_spotify(None) is None
        assert SimplifiedPlayback.from_spotify({}) is None

    def test_unknown_repeat_state_reads_as_off(self):
        pb = SimplifiedPlayback.from_spotify(playback_payload(repeat_state="bogus"))
        assert pb.repeat_state is RepeatState.OFF

    def test_cover_url(self):
        player = PlayerState()
        assert player.current_playing_track_album_cover_url() is None
        player.set_playback(playback_payload(cover_url="https://img/1"))
        assert player.current_playing_track_album_cover_url() == "https://img/1"


class TestUserData:
    """Test library helpers"""

    def test_modifiable_playlists(self):
        user_data = UserData(
            user=User(id="me"),
            playlists=[
                Playlist(id="p1", name="Mine", owner_id="me"),
                Playlist(id="p2", name="Shared", owner_id="friend", collaborative=True),
                Playlist(id="p3", name="Theirs", owner_id="friend"),
            ],
        )
        assert [p.id for p in user_data.modifiable_playlists()] == ["p1", "p2"]

    def test_modifiable_playlists_without_user(self):
        user_data = UserData(playlists=[Playlist(id="p1", name="Mine", owner_id="me")])
        assert user_data.modifiable_playlists() == []

    def test_remove_unknown_kind(self):
        with pytest.raises(ValueError):
            UserData().remove_item("episode", "e1")

    def test_get_tracks_by_id(self):
        data = AppData(cache_capacity=2)
        data.user_data.saved_tracks = [Track(id="t1", name="One")]
        data.caches.tracks.put("top-tracks", [Track(id="t2", name="Two")])

        assert [t.id for t in data.get_tracks_by_id(LIKED_TRACKS_ID)] == ["t1"]
        assert [t.id for t in data.get_tracks_by_id("top-tracks")] == ["t2"]
        assert data.get_tracks_by_id("missing") is None

    def test_cache_capacity_from_config(self, state):
        with state.data.read() as data:
            assert data.caches.context.capacity == 4

    def test_default_config(self):
        assert SharedAppState().app_config.cache_capacity == 64


class TestContextId:
    """Test context ids and uris"""

    def test_uri_round_trip(self):
        context_id = ContextId.from_uri("spotify:playlist:abc")
        assert context_id == ContextId("playlist", "abc")
        assert context_id.uri == "spotify:playlist:abc"

    @pytest.mark.parametrize("uri", ["spotify:track:abc", "playlist:abc", "nonsense"])
    def test_rejects_bad_uris(self, uri):
        with pytest.raises(ValueError):
            ContextId.from_uri(uri)


class TestReadWriteLock:
    """Test reader/writer exclusion"""

    def test_readers_share(self):
        lock = ReadWriteLock()
        lock.acquire_read()
        acquired = threading.Event()

        def reader():
            lock.acquire_read()
            acquired.set()
            lock.release_read()

        thread = threading.Thread(target=reader)
        thread.start()
        assert acquired.wait(timeout=1)
        thread.join()
        lock.release_read()

    def test_writer_waits_for_reader(self):
        guarded = Guarded([])
        reader_in = threading.Event()
        release_reader = threading.Event()

        def reader():
            with guarded.read():
                reader_in.set()
                release_reader.wait(timeout=2)

        def writer():
            with guarded.write() as value:
                value.append("written")

        r = threading.Thread(target=reader)
        r.start()
        reader_in.wait(timeout=1)
        w = threading.Thread(target=writer)
        w.start()
        time.sleep(0.05)
        with_reader_held = list(guarded._value)
        release_reader.set()
        r.join()
        w.join()

        assert with_reader_held == []
        with guarded.read() as value:
            assert value == ["written"]
