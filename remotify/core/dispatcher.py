"""Request dispatcher: turns front-end requests into Spotify calls and state updates.

Every handler follows the same shape: look in the matching cache and stop on
a hit, otherwise call Spotify, convert the response and store it. Locks on
the shared state are only taken around the final synchronous write, never
while a call is in flight. Player actions additionally schedule a background
playback refresh.
"""
import asyncio
import dataclasses
import logging
import time
from typing import Awaitable, Callable, Dict, List, Optional, Type

from remotify.config import CONNECT_ATTEMPTS, CONNECT_RETRY_DELAY_SEC, PAGE_LIMIT
from remotify.core.albums import clean_up_artist_albums
from remotify.core.errors import ContractViolationError, PreconditionError, RemotifyError
from remotify.core.pagination import walk_cursor_pages, walk_pages
from remotify.core.refresher import BackgroundRefresher, TaskSupervisor
from remotify.core.spotify_client import RemoteFacade
from remotify.core.state import (
    RECENTLY_PLAYED_TRACKS_ID,
    TOP_TRACKS_ID,
    SharedAppState,
)
from remotify.models.context import AlbumContext, ArtistContext, Context, ContextId, PlaylistContext
from remotify.models.entities import (
    Album,
    Artist,
    Category,
    Device,
    LyricResult,
    Playlist,
    SearchResults,
    Track,
    User,
)
from remotify.models.requests import (
    AddToLibrary,
    AddTrackToPlaylist,
    AddTrackToQueue,
    ConnectDevice,
    ContextPlayback,
    DeleteFromLibrary,
    DeleteTrackFromPlaylist,
    GetBrowseCategories,
    GetBrowseCategoryPlaylists,
    GetContext,
    GetCurrentPlayback,
    GetCurrentUser,
    GetDevices,
    GetLyric,
    GetRecommendations,
    GetUserFollowedArtists,
    GetUserPlaylists,
    GetUserRecentlyPlayedTracks,
    GetUserSavedAlbums,
    GetUserSavedTracks,
    GetUserTopTracks,
    Item,
    ItemId,
    NextTrack,
    Playback,
    Player,
    PlayerAction,
    PreviousTrack,
    Repeat,
    ResumePause,
    Search,
    SeedItem,
    SeekTrack,
    Shuffle,
    StartPlayback,
    TransferPlayback,
    UrisPlayback,
    Volume,
)

logger = logging.getLogger(__name__)

SEARCH_TYPES = ("track", "artist", "album", "playlist")


def _present(items) -> list:
    return [i for i in items if i is not None]


def _first_flag(flags: List[bool], what: str) -> bool:
    if not flags:
        raise ContractViolationError(f"empty {what} response")
    return bool(flags[0])


class RequestDispatcher:
    """Handles one request at a time against a shared state.

    The dispatcher holds no per-request state; the only thing it owns is the
    supervisor of its background refresh tasks.
    """

    def __init__(
        self,
        spotify: RemoteFacade,
        supervisor: Optional[TaskSupervisor] = None,
        connect_attempts: int = CONNECT_ATTEMPTS,
        connect_delay_sec: float = CONNECT_RETRY_DELAY_SEC,
        refresher: Optional[BackgroundRefresher] = None,
    ) -> None:
        self._spotify = spotify
        self.supervisor = supervisor or TaskSupervisor()
        self.connect_attempts = connect_attempts
        self.connect_delay_sec = connect_delay_sec
        self.refresher = refresher or BackgroundRefresher(
            self.supervisor,
            self.update_current_playback_state,
            self.get_current_track_cover_image,
        )
        self._handlers: Dict[Type, Callable[[SharedAppState, object], Awaitable[None]]] = {
            ConnectDevice: self._connect_device,
            GetBrowseCategories: self._get_browse_categories,
            GetBrowseCategoryPlaylists: self._get_browse_category_playlists,
            GetLyric: self._get_lyric,
            GetCurrentUser: self._get_current_user,
            Player: self._player,
            GetCurrentPlayback: self._get_current_playback,
            GetDevices: self._get_devices,
            GetUserPlaylists: self._get_user_playlists,
            GetUserFollowedArtists: self._get_user_followed_artists,
            GetUserSavedAlbums: self._get_user_saved_albums,
            GetUserSavedTracks: self._get_user_saved_tracks,
            GetUserTopTracks: self._get_user_top_tracks,
            GetUserRecentlyPlayedTracks: self._get_user_recently_played_tracks,
            GetContext: self._get_context,
            Search: self._search,
            GetRecommendations: self._get_recommendations,
            AddTrackToQueue: self._add_track_to_queue,
            AddTrackToPlaylist: self._add_track_to_playlist,
            DeleteTrackFromPlaylist: self._delete_track_from_playlist,
            AddToLibrary: self._add_to_library,
            DeleteFromLibrary: self._delete_from_library,
        }

    async def handle(self, state: SharedAppState, request) -> None:
        """Handle a single request. Raises RemotifyError on failure."""
        handler = self._handlers.get(type(request))
        if handler is None:
            raise TypeError(f"unsupported request: {request!r}")
        started = time.monotonic()
        await handler(state, request)
        logger.info(
            "Successfully handled %s, took: %dms",
            type(request).__name__,
            (time.monotonic() - started) * 1000,
        )

    # --- cache helpers ---

    @staticmethod
    def _cached(state: SharedAppState, category: str, key: str) -> bool:
        """True (and bump recency) when ``key`` is already cached in ``category``."""
        with state.data.write() as data:
            return getattr(data.caches, category).get(key) is not None

    @staticmethod
    def _cache_put(state: SharedAppState, category: str, key: str, value) -> None:
        with state.data.write() as data:
            getattr(data.caches, category).put(key, value)

    # --- device connection ---

    async def _connect_device(self, state: SharedAppState, request: ConnectDevice) -> None:
        # The device may not be registered on Spotify's side yet, in which case
        # the transfer fails (usually 404); keep trying for a while.
        for _ in range(self.connect_attempts):
            await asyncio.sleep(self.connect_delay_sec)

            device_id = request.device_id
            if device_id is None:
                try:
                    device_id = await self.find_available_device(state.app_config.default_device)
                except RemotifyError as e:
                    logger.error("Failed to find an available device: %s", e)
                    continue
                if device_id is None:
                    logger.info("No device found.")
                    continue

            logger.info("Trying to connect to device (id=%s)", device_id)
            try:
                await self._spotify.transfer_playback(device_id, force_play=False)
            except RemotifyError as e:
                logger.warning("Connection failed (device_id=%s): %s", device_id, e)
                continue
            logger.info("Connection succeeded (device_id=%s)!", device_id)
            self.refresher.schedule(state)
            return

        logger.warning("Could not connect to a device after %d attempts", self.connect_attempts)

    async def find_available_device(self, default_device: str) -> Optional[str]:
        """Return the id of a device to play on, preferring one named ``default_device``."""
        raw_devices = await self._spotify.devices()
        logger.info("Available devices: %s", [d.get("name") for d in raw_devices])

        devices = [(d.get("name") or "", d["id"]) for d in raw_devices if d.get("id")]
        # The local session's device often is not listed yet right after it starts
        if self._spotify.session_device is not None:
            devices.append(self._spotify.session_device)

        if not devices:
            return None
        for name, device_id in devices:
            if name == default_device:
                return device_id
        return devices[0][1]

    # --- player ---

    async def _player(self, state: SharedAppState, request: Player) -> None:
        await self.handle_player_request(state, request.action)
        self.refresher.schedule(state)

    async def handle_player_request(self, state: SharedAppState, action: PlayerAction) -> None:
        # Transfer is the one action that works without an active playback
        if isinstance(action, TransferPlayback):
            await self._spotify.transfer_playback(action.device_id, force_play=action.force_play)
            logger.info("Transferred the playback to device with %s id", action.device_id)
            return

        with state.player.read() as player:
            playback = player.simplified_playback()
        if playback is None:
            raise PreconditionError(
                "failed to handle the player request: there is no active playback",
                details={"action": type(action).__name__},
            )
        device_id = playback.device_id

        if isinstance(action, NextTrack):
            await self._spotify.next_track(device_id)
        elif isinstance(action, PreviousTrack):
            await self._spotify.previous_track(device_id)
        elif isinstance(action, ResumePause):
            if playback.is_playing:
                await self._spotify.pause_playback(device_id)
            else:
                await self._spotify.resume_playback(device_id)
        elif isinstance(action, SeekTrack):
            await self._spotify.seek_track(action.position_ms, device_id)
        elif isinstance(action, Repeat):
            await self._spotify.repeat(playback.repeat_state.next().value, device_id)
        elif isinstance(action, Shuffle):
            await self._spotify.shuffle(not playback.shuffle_state, device_id)
        elif isinstance(action, Volume):
            await self._spotify.volume(action.percent, device_id)
        elif isinstance(action, StartPlayback):
            await self.start_playback(action.playback, device_id)
            # A fresh context start does not keep the shuffle flag; put it back
            await self._spotify.shuffle(playback.shuffle_state, device_id)
        else:
            raise TypeError(f"unsupported player action: {action!r}")

    async def start_playback(self, playback: Playback, device_id: Optional[str]) -> None:
        if isinstance(playback, ContextPlayback):
            await self._spotify.start_playback(
                device_id, context_uri=playback.context_id.uri, offset=playback.offset
            )
        elif isinstance(playback, UrisPlayback):
            await self._spotify.start_playback(
                device_id,
                uris=[f"spotify:track:{track_id}" for track_id in playback.track_ids],
                offset=playback.offset,
            )
        else:
            raise TypeError(f"unsupported playback: {playback!r}")

    async def _get_current_playback(self, state: SharedAppState, request: GetCurrentPlayback) -> None:
        await self.update_current_playback_state(state)
        await self.get_current_track_cover_image(state)

    async def update_current_playback_state(self, state: SharedAppState) -> None:
        playback = await self._spotify.current_playback()
        with state.player.write() as player:
            player.set_playback(playback)

    async def get_current_track_cover_image(self, state: SharedAppState) -> None:
        with state.player.read() as player:
            url = player.current_playing_track_album_cover_url()
        if url is None:
            return
        with state.data.read() as data:
            if data.caches.images.contains(url):
                return
        logger.info("Retrieving an image from url: %s", url)
        image = await self._spotify.fetch_image(url)
        self._cache_put(state, "images", url, image)

    async def _get_devices(self, state: SharedAppState, request: GetDevices) -> None:
        devices = _present(Device.from_spotify(d) for d in await self._spotify.devices())
        with state.player.write() as player:
            player.devices = devices

    # --- user and browse data ---

    async def _get_current_user(self, state: SharedAppState, request: GetCurrentUser) -> None:
        user = User.from_spotify(await self._spotify.current_user())
        with state.data.write() as data:
            data.user_data.user = user

    async def _get_browse_categories(self, state: SharedAppState, request: GetBrowseCategories) -> None:
        page = await self._spotify.categories(PAGE_LIMIT)
        categories = [Category.from_spotify(c) for c in page.get("items") or []]
        with state.data.write() as data:
            data.browse.categories = categories

    async def _get_browse_category_playlists(
        self, state: SharedAppState, request: GetBrowseCategoryPlaylists
    ) -> None:
        category_id = request.category.id
        page = await self._spotify.category_playlists(category_id, PAGE_LIMIT)
        playlists = _present(Playlist.from_spotify(p) for p in page.get("items") or [])
        with state.data.write() as data:
            data.browse.category_playlists[category_id] = playlists

    async def _get_user_playlists(self, state: SharedAppState, request: GetUserPlaylists) -> None:
        playlists = await self.current_user_playlists()
        with state.data.write() as data:
            data.user_data.playlists = playlists

    async def _get_user_followed_artists(self, state: SharedAppState, request: GetUserFollowedArtists) -> None:
        artists = await self.current_user_followed_artists()
        with state.data.write() as data:
            data.user_data.followed_artists = artists

    async def _get_user_saved_albums(self, state: SharedAppState, request: GetUserSavedAlbums) -> None:
        albums = await self.current_user_saved_albums()
        with state.data.write() as data:
            data.user_data.saved_albums = albums

    async def _get_user_saved_tracks(self, state: SharedAppState, request: GetUserSavedTracks) -> None:
        tracks = await self.current_user_saved_tracks()
        with state.data.write() as data:
            data.user_data.saved_tracks = tracks

    async def _get_user_top_tracks(self, state: SharedAppState, request: GetUserTopTracks) -> None:
        if self._cached(state, "tracks", TOP_TRACKS_ID):
            return
        tracks = await self.current_user_top_tracks()
        self._cache_put(state, "tracks", TOP_TRACKS_ID, tracks)

    async def _get_user_recently_played_tracks(
        self, state: SharedAppState, request: GetUserRecentlyPlayedTracks
    ) -> None:
        if self._cached(state, "tracks", RECENTLY_PLAYED_TRACKS_ID):
            return
        tracks = await self.current_user_recently_played_tracks()
        self._cache_put(state, "tracks", RECENTLY_PLAYED_TRACKS_ID, tracks)

    async def current_user_playlists(self) -> List[Playlist]:
        first_page = await self._spotify.current_user_playlists(PAGE_LIMIT)
        items = await walk_pages(first_page, self._spotify.fetch_url)
        return _present(Playlist.from_spotify(p) for p in items)

    async def current_user_followed_artists(self) -> List[Artist]:
        # This endpoint is cursor-paged and wraps each page as {"artists": page}
        response = await self._spotify.current_user_followed_artists(PAGE_LIMIT)
        first_page = response.get("artists") or {}
        items = await walk_cursor_pages(first_page, self._spotify.fetch_url, key="artists")
        return _present(Artist.from_spotify(a) for a in items)

    async def current_user_saved_albums(self) -> List[Album]:
        first_page = await self._spotify.current_user_saved_albums(PAGE_LIMIT)
        items = await walk_pages(first_page, self._spotify.fetch_url)
        return _present(Album.from_spotify(i.get("album")) for i in items)

    async def current_user_saved_tracks(self) -> List[Track]:
        first_page = await self._spotify.current_user_saved_tracks(PAGE_LIMIT)
        items = await walk_pages(first_page, self._spotify.fetch_url)
        return _present(Track.from_spotify(i.get("track")) for i in items)

    async def current_user_top_tracks(self) -> List[Track]:
        first_page = await self._spotify.current_user_top_tracks(PAGE_LIMIT)
        items = await walk_pages(first_page, self._spotify.fetch_url)
        return _present(Track.from_spotify(t) for t in items)

    async def current_user_recently_played_tracks(self) -> List[Track]:
        first_page = await self._spotify.current_user_recently_played(PAGE_LIMIT)
        histories = await walk_cursor_pages(first_page, self._spotify.fetch_url)

        # The history repeats tracks; keep the most recent play of each name
        tracks: List[Track] = []
        seen_names = set()
        for history in histories:
            track = Track.from_spotify(history.get("track"))
            if track is None or track.name in seen_names:
                continue
            seen_names.add(track.name)
            tracks.append(track)
        return tracks

    # --- lyrics ---

    async def _get_lyric(self, state: SharedAppState, request: GetLyric) -> None:
        query = request.query
        if self._cached(state, "lyrics", query):
            return
        lyrics = await self._spotify.find_lyrics(query)
        self._cache_put(state, "lyrics", query, LyricResult(query=query, lyrics=lyrics))

    # --- contexts ---

    async def _get_context(self, state: SharedAppState, request: GetContext) -> None:
        context_id = request.context_id
        uri = context_id.uri
        if self._cached(state, "context", uri):
            return
        context = await self.get_context(context_id)
        self._cache_put(state, "context", uri, context)

    async def get_context(self, context_id: ContextId) -> Context:
        if context_id.kind == "playlist":
            return await self.playlist_context(context_id.id)
        if context_id.kind == "album":
            return await self.album_context(context_id.id)
        return await self.artist_context(context_id.id)

    async def playlist_context(self, playlist_id: str) -> PlaylistContext:
        logger.info("Get playlist context: spotify:playlist:%s", playlist_id)
        raw = await self._spotify.playlist(playlist_id)
        playlist = Playlist.from_spotify(raw)
        if playlist is None:
            raise ContractViolationError(f"playlist {playlist_id} came back without an id")

        items = await walk_pages(raw.get("tracks") or {}, self._spotify.fetch_url)
        # Episodes and local files are skipped
        tracks = _present(Track.from_spotify(i.get("track")) for i in items if i)
        return PlaylistContext(playlist=playlist, tracks=tracks)

    async def album_context(self, album_id: str) -> AlbumContext:
        logger.info("Get album context: spotify:album:%s", album_id)
        raw = await self._spotify.album(album_id)
        album = Album.from_spotify(raw)
        if album is None:
            raise ContractViolationError(f"album {album_id} came back without an id")

        items = await walk_pages(raw.get("tracks") or {}, self._spotify.fetch_url)
        tracks = _present(Track.from_spotify(t) for t in items)
        # Album tracks are simplified and carry no album of their own
        for track in tracks:
            track.album = album
        return AlbumContext(album=album, tracks=tracks)

    async def artist_context(self, artist_id: str) -> ArtistContext:
        logger.info("Get artist context: spotify:artist:%s", artist_id)
        artist = Artist.from_spotify(await self._spotify.artist(artist_id))
        if artist is None:
            raise ContractViolationError(f"artist {artist_id} came back without an id")

        top_tracks = _present(
            Track.from_spotify(t) for t in await self._spotify.artist_top_tracks(artist_id)
        )
        related_artists = _present(
            Artist.from_spotify(a) for a in await self._spotify.artist_related_artists(artist_id)
        )
        albums = await self.artist_albums(artist_id)
        return ArtistContext(
            artist=artist,
            top_tracks=top_tracks,
            albums=albums,
            related_artists=related_artists,
        )

    async def artist_albums(self, artist_id: str) -> List[Album]:
        singles_page = await self._spotify.artist_albums(artist_id, "single", PAGE_LIMIT)
        singles = await walk_pages(singles_page, self._spotify.fetch_url)
        albums_page = await self._spotify.artist_albums(artist_id, "album", PAGE_LIMIT)
        albums = await walk_pages(albums_page, self._spotify.fetch_url)
        return clean_up_artist_albums(_present(Album.from_spotify(a) for a in albums + singles))

    # --- search and recommendations ---

    async def _search(self, state: SharedAppState, request: Search) -> None:
        query = request.query
        if self._cached(state, "search", query):
            return
        results = await self.search(query)
        self._cache_put(state, "search", query, results)

    async def search(self, query: str) -> SearchResults:
        """Search all four categories concurrently."""
        track_result, artist_result, album_result, playlist_result = await asyncio.gather(
            *(self._spotify.search(query, search_type) for search_type in SEARCH_TYPES)
        )
        return SearchResults(
            tracks=_present(Track.from_spotify(t) for t in self._search_items(track_result, "track")),
            artists=_present(Artist.from_spotify(a) for a in self._search_items(artist_result, "artist")),
            albums=_present(Album.from_spotify(a) for a in self._search_items(album_result, "album")),
            playlists=_present(
                Playlist.from_spotify(p) for p in self._search_items(playlist_result, "playlist")
            ),
        )

    @staticmethod
    def _search_items(result: dict, search_type: str) -> list:
        key = f"{search_type}s"
        if not isinstance(result, dict) or key not in result:
            raise ContractViolationError(
                f"expect {'an' if search_type[0] in 'aeiou' else 'a'} {search_type} search result",
                details={"keys": sorted(result) if isinstance(result, dict) else None},
            )
        return (result[key] or {}).get("items") or []

    async def _get_recommendations(self, state: SharedAppState, request: GetRecommendations) -> None:
        fingerprint = request.fingerprint
        if self._cached(state, "tracks", fingerprint):
            return
        tracks = await self.recommendations(request.seed)
        self._cache_put(state, "tracks", fingerprint, tracks)

    async def recommendations(self, seed: SeedItem) -> List[Track]:
        if isinstance(seed, Track):
            raw = await self._spotify.recommendations(
                seed_artists=[a.id for a in seed.artists], seed_tracks=[seed.id], limit=PAGE_LIMIT
            )
        else:
            raw = await self._spotify.recommendations(
                seed_artists=[seed.id], seed_tracks=None, limit=PAGE_LIMIT
            )
        tracks = _present(Track.from_spotify(t) for t in raw)

        if isinstance(seed, Track):
            # Recommended tracks are simplified (no album); match the seed to them
            tracks.insert(0, dataclasses.replace(seed, album=None))
        return tracks

    # --- queue and playlists ---

    async def _add_track_to_queue(self, state: SharedAppState, request: AddTrackToQueue) -> None:
        await self._spotify.add_to_queue(f"spotify:track:{request.track_id}")

    async def _add_track_to_playlist(self, state: SharedAppState, request: AddTrackToPlaylist) -> None:
        playlist_id, track_id = request.playlist_id, request.track_id
        # Removing first keeps the track in the playlist exactly once
        await self._spotify.playlist_remove_all_occurrences(playlist_id, [track_id])
        await self._spotify.playlist_add_items(playlist_id, [track_id])

        # Positions changed; drop the cached context so it is refetched
        with state.data.write() as data:
            data.caches.context.pop(ContextId("playlist", playlist_id).uri)

    async def _delete_track_from_playlist(
        self, state: SharedAppState, request: DeleteTrackFromPlaylist
    ) -> None:
        playlist_id, track_id = request.playlist_id, request.track_id
        await self._spotify.playlist_remove_all_occurrences(playlist_id, [track_id])

        with state.data.write() as data:
            context = data.caches.context.get(ContextId("playlist", playlist_id).uri)
            if isinstance(context, PlaylistContext):
                context.tracks = [t for t in context.tracks if t.id != track_id]

    # --- library ---

    async def _add_to_library(self, state: SharedAppState, request: AddToLibrary) -> None:
        await self.add_to_library(state, request.item)

    async def add_to_library(self, state: SharedAppState, item: Item) -> None:
        """Save/follow ``item`` unless it already is; nothing is written twice."""
        if isinstance(item, Track):
            if _first_flag(await self._spotify.saved_tracks_contains([item.id]), "saved tracks contains"):
                return
            await self._spotify.saved_tracks_add([item.id])
            with state.data.write() as data:
                data.user_data.add_saved_track(item)
        elif isinstance(item, Album):
            if _first_flag(await self._spotify.saved_albums_contains([item.id]), "saved albums contains"):
                return
            await self._spotify.saved_albums_add([item.id])
            with state.data.write() as data:
                data.user_data.add_saved_album(item)
        elif isinstance(item, Artist):
            if _first_flag(await self._spotify.following_artists([item.id]), "following artists"):
                return
            await self._spotify.follow_artists([item.id])
            with state.data.write() as data:
                data.user_data.add_followed_artist(item)
        elif isinstance(item, Playlist):
            with state.data.read() as data:
                user = data.user_data.user
            if user is None:
                logger.info("Cannot follow playlist %s before the current user is known", item.id)
                return
            follows = await self._spotify.playlist_is_following(item.id, [user.id])
            if _first_flag(follows, "playlist is following"):
                return
            await self._spotify.follow_playlist(item.id)
            with state.data.write() as data:
                data.user_data.add_playlist(item)
        else:
            raise TypeError(f"unsupported library item: {item!r}")

    async def _delete_from_library(self, state: SharedAppState, request: DeleteFromLibrary) -> None:
        await self.delete_from_library(state, request.item_id)

    async def delete_from_library(self, state: SharedAppState, item_id: ItemId) -> None:
        if item_id.kind == "track":
            await self._spotify.saved_tracks_delete([item_id.id])
        elif item_id.kind == "album":
            await self._spotify.saved_albums_delete([item_id.id])
        elif item_id.kind == "artist":
            await self._spotify.unfollow_artists([item_id.id])
        else:
            await self._spotify.unfollow_playlist(item_id.id)

        with state.data.write() as data:
            data.user_data.remove_item(item_id.kind, item_id.id)
