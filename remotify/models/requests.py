"""Requests the front end sends to the dispatcher. Immutable; each is handled once."""
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from remotify.models.context import ContextId
from remotify.models.entities import Album, Artist, Category, Playlist, Track

ITEM_KINDS = ("track", "album", "artist", "playlist")


@dataclass(frozen=True)
class ItemId:
    kind: str
    id: str

    def __post_init__(self) -> None:
        if self.kind not in ITEM_KINDS:
            raise ValueError(f"unknown item kind: {self.kind!r}")


# Library items are the entities themselves so they can be put in UserData as-is
Item = Union[Track, Album, Artist, Playlist]
SeedItem = Union[Artist, Track]


# --- Playback targets ---

@dataclass(frozen=True)
class ContextPlayback:
    context_id: ContextId
    offset: Optional[int] = None


@dataclass(frozen=True)
class UrisPlayback:
    track_ids: Tuple[str, ...]
    offset: Optional[int] = None


Playback = Union[ContextPlayback, UrisPlayback]


# --- Player actions ---

@dataclass(frozen=True)
class NextTrack:
    pass


@dataclass(frozen=True)
class PreviousTrack:
    pass


@dataclass(frozen=True)
class ResumePause:
    pass


@dataclass(frozen=True)
class SeekTrack:
    position_ms: int


@dataclass(frozen=True)
class Repeat:
    pass


@dataclass(frozen=True)
class Shuffle:
    pass


@dataclass(frozen=True)
class Volume:
    percent: int


@dataclass(frozen=True)
class StartPlayback:
    playback: Playback


@dataclass(frozen=True)
class TransferPlayback:
    device_id: str
    force_play: bool = False


PlayerAction = Union[
    NextTrack,
    PreviousTrack,
    ResumePause,
    SeekTrack,
    Repeat,
    Shuffle,
    Volume,
    StartPlayback,
    TransferPlayback,
]


# --- Client requests ---

@dataclass(frozen=True)
class ConnectDevice:
    device_id: Optional[str] = None


@dataclass(frozen=True)
class GetBrowseCategories:
    pass


@dataclass(frozen=True)
class GetBrowseCategoryPlaylists:
    category: Category


@dataclass(frozen=True)
class GetLyric:
    track: str
    artists: str

    @property
    def query(self) -> str:
        return f"{self.track} {self.artists}"


@dataclass(frozen=True)
class GetCurrentUser:
    pass


@dataclass(frozen=True)
class Player:
    action: PlayerAction


@dataclass(frozen=True)
class GetCurrentPlayback:
    pass


@dataclass(frozen=True)
class GetDevices:
    pass


@dataclass(frozen=True)
class GetUserPlaylists:
    pass


@dataclass(frozen=True)
class GetUserFollowedArtists:
    pass


@dataclass(frozen=True)
class GetUserSavedAlbums:
    pass


@dataclass(frozen=True)
class GetUserSavedTracks:
    pass


@dataclass(frozen=True)
class GetUserTopTracks:
    pass


@dataclass(frozen=True)
class GetUserRecentlyPlayedTracks:
    pass


@dataclass(frozen=True)
class GetContext:
    context_id: ContextId


@dataclass(frozen=True)
class Search:
    query: str


@dataclass(frozen=True)
class GetRecommendations:
    seed: SeedItem

    @property
    def fingerprint(self) -> str:
        return f"recommendations::{self.seed.uri}"


@dataclass(frozen=True)
class AddTrackToQueue:
    track_id: str


@dataclass(frozen=True)
class AddTrackToPlaylist:
    playlist_id: str
    track_id: str


@dataclass(frozen=True)
class DeleteTrackFromPlaylist:
    playlist_id: str
    track_id: str


@dataclass(frozen=True)
class AddToLibrary:
    item: Item


@dataclass(frozen=True)
class DeleteFromLibrary:
    item_id: ItemId


ClientRequest = Union[
    ConnectDevice,
    GetBrowseCategories,
    GetBrowseCategoryPlaylists,
    GetLyric,
    GetCurrentUser,
    Player,
    GetCurrentPlayback,
    GetDevices,
    GetUserPlaylists,
    GetUserFollowedArtists,
    GetUserSavedAlbums,
    GetUserSavedTracks,
    GetUserTopTracks,
    GetUserRecentlyPlayedTracks,
    GetContext,
    Search,
    GetRecommendations,
    AddTrackToQueue,
    AddTrackToPlaylist,
    DeleteTrackFromPlaylist,
    AddToLibrary,
    DeleteFromLibrary,
]
