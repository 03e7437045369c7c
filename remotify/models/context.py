"""Contexts: a playlist, album or artist together with its tracks."""
from dataclasses import dataclass, field
from typing import List, Union

from remotify.models.entities import Album, Artist, Playlist, Track

CONTEXT_KINDS = ("playlist", "album", "artist")


@dataclass(frozen=True)
class ContextId:
    """Id of a playlist, album or artist. ``uri`` is the context cache key."""
    kind: str
    id: str

    def __post_init__(self) -> None:
        if self.kind not in CONTEXT_KINDS:
            raise ValueError(f"unknown context kind: {self.kind!r}")

    @property
    def uri(self) -> str:
        return f"spotify:{self.kind}:{self.id}"

    @classmethod
    def from_uri(cls, uri: str) -> "ContextId":
        parts = uri.split(":")
        if len(parts) != 3 or parts[0] != "spotify":
            raise ValueError(f"not a Spotify context uri: {uri!r}")
        return cls(kind=parts[1].lower(), id=parts[2])


@dataclass
class PlaylistContext:
    playlist: Playlist
    tracks: List[Track] = field(default_factory=list)


@dataclass
class AlbumContext:
    album: Album
    tracks: List[Track] = field(default_factory=list)


@dataclass
class ArtistContext:
    artist: Artist
    top_tracks: List[Track] = field(default_factory=list)
    albums: List[Album] = field(default_factory=list)
    related_artists: List[Artist] = field(default_factory=list)


Context = Union[PlaylistContext, AlbumContext, ArtistContext]
