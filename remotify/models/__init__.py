"""Data models: Spotify entities, contexts, playback and requests."""
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
from remotify.models.playback import RepeatState, SimplifiedPlayback

__all__ = [
    "Album",
    "AlbumContext",
    "Artist",
    "ArtistContext",
    "Category",
    "Context",
    "ContextId",
    "Device",
    "LyricResult",
    "Playlist",
    "PlaylistContext",
    "RepeatState",
    "SearchResults",
    "SimplifiedPlayback",
    "Track",
    "User",
]
