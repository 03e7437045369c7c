"""Shared application state: the player region and the data region, each behind its own lock.

A single SharedAppState is created at startup and passed to every handler.
Handlers take one region's lock at a time and only around synchronous
mutations, so a reader may briefly see fresh player state next to stale
caches (or the reverse).
"""
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from remotify.config import AppConfig
from remotify.core.cache import DEFAULT_CAPACITY, ResponseCache
from remotify.core.locks import Guarded
from remotify.models.context import Context
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
from remotify.models.playback import SimplifiedPlayback

LIKED_TRACKS_ID = "liked-tracks"
TOP_TRACKS_ID = "top-tracks"
RECENTLY_PLAYED_TRACKS_ID = "recently-played-tracks"


@dataclass
class PlayerState:
    """Latest current_playback() payload and device list."""
    playback: Optional[dict] = None
    playback_last_updated_time: Optional[float] = None
    devices: List[Device] = field(default_factory=list)

    def set_playback(self, playback: Optional[dict]) -> None:
        self.playback = playback
        self.playback_last_updated_time = time.monotonic()

    def simplified_playback(self) -> Optional[SimplifiedPlayback]:
        return SimplifiedPlayback.from_spotify(self.playback)

    def current_playing_track_album_cover_url(self) -> Optional[str]:
        item = (self.playback or {}).get("item") or {}
        images = (item.get("album") or {}).get("images") or []
        return images[0].get("url") if images else None


@dataclass
class UserData:
    """Current user's library. Lists are newest-first after local edits."""
    user: Optional[User] = None
    playlists: List[Playlist] = field(default_factory=list)
    followed_artists: List[Artist] = field(default_factory=list)
    saved_albums: List[Album] = field(default_factory=list)
    saved_tracks: List[Track] = field(default_factory=list)

    def modifiable_playlists(self) -> List[Playlist]:
        """Playlists the user can possibly edit: owned or collaborative."""
        if self.user is None:
            return []
        return [p for p in self.playlists if p.owner_id == self.user.id or p.collaborative]

    # Library edits; called only after Spotify confirmed the change

    def add_saved_track(self, track: Track) -> None:
        self.saved_tracks.insert(0, track)

    def add_saved_album(self, album: Album) -> None:
        self.saved_albums.insert(0, album)

    def add_followed_artist(self, artist: Artist) -> None:
        self.followed_artists.insert(0, artist)

    def add_playlist(self, playlist: Playlist) -> None:
        self.playlists.insert(0, playlist)

    def remove_item(self, kind: str, item_id: str) -> None:
        if kind == "track":
            self.saved_tracks = [t for t in self.saved_tracks if t.id != item_id]
        elif kind == "album":
            self.saved_albums = [a for a in self.saved_albums if a.id != item_id]
        elif kind == "artist":
            self.followed_artists = [a for a in self.followed_artists if a.id != item_id]
        elif kind == "playlist":
            self.playlists = [p for p in self.playlists if p.id != item_id]
        else:
            raise ValueError(f"unknown library item kind: {kind!r}")


class Caches:
    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self.context: ResponseCache[Context] = ResponseCache(capacity)
        self.search: ResponseCache[SearchResults] = ResponseCache(capacity)
        self.tracks: ResponseCache[List[Track]] = ResponseCache(capacity)
        self.lyrics: ResponseCache[LyricResult] = ResponseCache(capacity)
        self.images: ResponseCache[bytes] = ResponseCache(capacity)


@dataclass
class BrowseData:
    categories: List[Category] = field(default_factory=list)
    category_playlists: Dict[str, List[Playlist]] = field(default_factory=dict)


class AppData:
    def __init__(self, cache_capacity: int = DEFAULT_CAPACITY) -> None:
        self.user_data = UserData()
        self.caches = Caches(cache_capacity)
        self.browse = BrowseData()

    def get_tracks_by_id(self, tracks_id: str) -> Optional[List[Track]]:
        # Liked tracks live in user data, not in the track-list cache
        if tracks_id == LIKED_TRACKS_ID:
            return self.user_data.saved_tracks
        return self.caches.tracks.peek(tracks_id)


class SharedAppState:
    """Explicit context object handed to the dispatcher; never a module global."""

    def __init__(self, app_config: Optional[AppConfig] = None) -> None:
        self.app_config = app_config or AppConfig()
        self.player: Guarded[PlayerState] = Guarded(PlayerState())
        self.data: Guarded[AppData] = Guarded(AppData(self.app_config.cache_capacity))
