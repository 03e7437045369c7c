"""Test library, queue and playlist edits"""

import pytest

from remotify.core.errors import ContractViolationError, RemoteError
from remotify.models.context import ContextId, PlaylistContext
from remotify.models.entities import Album, Artist, Playlist, Track, User
from remotify.models.requests import (
    AddToLibrary,
    AddTrackToPlaylist,
    AddTrackToQueue,
    DeleteFromLibrary,
    DeleteTrackFromPlaylist,
    ItemId,
)


def seed_library(state):
    with state.data.write() as data:
        data.user_data.user = User(id="me", display_name="Me")
        data.user_data.saved_tracks = [Track(id="t1", name="One"), Track(id="t2", name="Two")]
        data.user_data.saved_albums = [Album(id="a1", name="Album")]
        data.user_data.followed_artists = [Artist(id="ar1", name="Artist")]
        data.user_data.playlists = [Playlist(id="p1", name="Mine", owner_id="me")]


class TestAddToLibrary:
    """Test the check-then-save flow"""

    @pytest.mark.asyncio
    async def test_already_saved_track_is_not_added(self, dispatcher, facade, state):
        facade.saved_tracks_contains.return_value = [True]

        await dispatcher.handle(state, AddToLibrary(Track(id="t9", name="Nine")))

        facade.saved_tracks_contains.assert_awaited_once_with(["t9"])
        facade.saved_tracks_add.assert_not_awaited()
        with state.data.read() as data:
            assert data.user_data.saved_tracks == []

    @pytest.mark.asyncio
    async def test_new_track_is_saved_and_put_first(self, dispatcher, facade, state):
        seed_library(state)
        track = Track(id="t9", name="Nine")

        await dispatcher.handle(state, AddToLibrary(track))

        facade.saved_tracks_add.assert_awaited_once_with(["t9"])
        with state.data.read() as data:
            assert [t.id for t in data.user_data.saved_tracks] == ["t9", "t1", "t2"]

    @pytest.mark.asyncio
    async def test_album_and_artist(self, dispatcher, facade, state):
        await dispatcher.handle(state, AddToLibrary(Album(id="a9", name="New")))
        await dispatcher.handle(state, AddToLibrary(Artist(id="ar9", name="New")))

        facade.saved_albums_add.assert_awaited_once_with(["a9"])
        facade.follow_artists.assert_awaited_once_with(["ar9"])
        with state.data.read() as data:
            assert [a.id for a in data.user_data.saved_albums] == ["a9"]
            assert [a.id for a in data.user_data.followed_artists] == ["ar9"]

    @pytest.mark.asyncio
    async def test_playlist_follow_checks_current_user(self, dispatcher, facade, state):
        seed_library(state)
        playlist = Playlist(id="p9", name="Theirs", owner_id="someone")

        await dispatcher.handle(state, AddToLibrary(playlist))

        facade.playlist_is_following.assert_awaited_once_with("p9", ["me"])
        facade.follow_playlist.assert_awaited_once_with("p9")
        with state.data.read() as data:
            assert data.user_data.playlists[0] == playlist

    @pytest.mark.asyncio
    async def test_playlist_follow_without_user_does_nothing(self, dispatcher, facade, state):
        await dispatcher.handle(state, AddToLibrary(Playlist(id="p9", name="Theirs")))

        facade.playlist_is_following.assert_not_awaited()
        facade.follow_playlist.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_contains_response_is_a_contract_violation(self, dispatcher, facade, state):
        facade.saved_albums_contains.return_value = []

        with pytest.raises(ContractViolationError):
            await dispatcher.handle(state, AddToLibrary(Album(id="a9", name="New")))

        facade.saved_albums_add.assert_not_awaited()


class TestDeleteFromLibrary:
    """Test removal from the library"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind,item_id,method,arg", [
        ("track", "t1", "saved_tracks_delete", ["t1"]),
        ("album", "a1", "saved_albums_delete", ["a1"]),
        ("artist", "ar1", "unfollow_artists", ["ar1"]),
        ("playlist", "p1", "unfollow_playlist", "p1"),
    ])
    async def test_delete_calls_spotify_then_filters(
        self, dispatcher, facade, state, kind, item_id, method, arg
    ):
        seed_library(state)

        await dispatcher.handle(state, DeleteFromLibrary(ItemId(kind, item_id)))

        getattr(facade, method).assert_awaited_once_with(arg)
        with state.data.read() as data:
            user_data = data.user_data
            remaining = {
                "track": user_data.saved_tracks,
                "album": user_data.saved_albums,
                "artist": user_data.followed_artists,
                "playlist": user_data.playlists,
            }[kind]
            assert item_id not in [i.id for i in remaining]

    @pytest.mark.asyncio
    async def test_failed_delete_keeps_local_library(self, dispatcher, facade, state):
        seed_library(state)
        facade.saved_tracks_delete.side_effect = RemoteError("saved_tracks_delete failed")

        with pytest.raises(RemoteError):
            await dispatcher.handle(state, DeleteFromLibrary(ItemId("track", "t1")))

        with state.data.read() as data:
            assert [t.id for t in data.user_data.saved_tracks] == ["t1", "t2"]

    def test_item_id_rejects_unknown_kind(self):
        with pytest.raises(ValueError):
            ItemId("episode", "e1")


class TestPlaylistEdits:
    """Test queue and playlist track edits"""

    @pytest.mark.asyncio
    async def test_add_to_queue(self, dispatcher, facade, state):
        await dispatcher.handle(state, AddTrackToQueue(track_id="t1"))

        facade.add_to_queue.assert_awaited_once_with("spotify:track:t1")

    @pytest.mark.asyncio
    async def test_add_track_removes_then_adds_and_drops_cached_context(self, dispatcher, facade, state):
        call_order = []
        facade.playlist_remove_all_occurrences.side_effect = lambda *a: call_order.append("remove")
        facade.playlist_add_items.side_effect = lambda *a: call_order.append("add")
        uri = ContextId("playlist", "p1").uri
        with state.data.write() as data:
            data.caches.context.put(uri, PlaylistContext(playlist=Playlist(id="p1", name="Mine")))

        await dispatcher.handle(state, AddTrackToPlaylist(playlist_id="p1", track_id="t1"))

        assert call_order == ["remove", "add"]
        facade.playlist_add_items.assert_awaited_once_with("p1", ["t1"])
        with state.data.read() as data:
            assert not data.caches.context.contains(uri)

    @pytest.mark.asyncio
    async def test_delete_track_patches_cached_context(self, dispatcher, facade, state):
        uri = ContextId("playlist", "p1").uri
        tracks = [Track(id="t1", name="One"), Track(id="t2", name="Two"), Track(id="t1", name="One")]
        with state.data.write() as data:
            data.caches.context.put(
                uri, PlaylistContext(playlist=Playlist(id="p1", name="Mine"), tracks=tracks)
            )

        await dispatcher.handle(state, DeleteTrackFromPlaylist(playlist_id="p1", track_id="t1"))

        facade.playlist_remove_all_occurrences.assert_awaited_once_with("p1", ["t1"])
        with state.data.read() as data:
            context = data.caches.context.peek(uri)
            assert [t.id for t in context.tracks] == ["t2"]

    @pytest.mark.asyncio
    async def test_delete_track_without_cached_context(self, dispatcher, facade, state):
        await dispatcher.handle(state, DeleteTrackFromPlaylist(playlist_id="p1", track_id="t1"))

        facade.playlist_remove_all_occurrences.assert_awaited_once_with("p1", ["t1"])
        with state.data.read() as data:
            assert len(data.caches.context) == 0
