"""Spotify entities as the rest of the app sees them, built from spotipy JSON."""
from dataclasses import dataclass, field
from typing import List, Optional


def _first_image_url(images) -> Optional[str]:
    images = images or []
    return images[0].get("url") if images else None


@dataclass
class Artist:
    id: str
    name: str

    @property
    def uri(self) -> str:
        return f"spotify:artist:{self.id}"

    @classmethod
    def from_spotify(cls, data: Optional[dict]) -> Optional["Artist"]:
        if not data or not data.get("id"):
            return None
        return cls(id=data["id"], name=data.get("name") or "")


def _artists(items) -> List[Artist]:
    return [a for a in (Artist.from_spotify(d) for d in (items or [])) if a is not None]


@dataclass
class Album:
    id: str
    name: str
    release_date: str = ""
    release_date_precision: str = "day"
    album_type: str = "album"
    artists: List[Artist] = field(default_factory=list)
    image_url: Optional[str] = None

    @property
    def uri(self) -> str:
        return f"spotify:album:{self.id}"

    @classmethod
    def from_spotify(cls, data: Optional[dict]) -> Optional["Album"]:
        """Build from a full or simplified album; None when the album has no id."""
        if not data or not data.get("id"):
            return None
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            release_date=data.get("release_date") or "",
            release_date_precision=data.get("release_date_precision") or "day",
            album_type=data.get("album_type") or "album",
            artists=_artists(data.get("artists")),
            image_url=_first_image_url(data.get("images")),
        )


@dataclass
class Track:
    id: str
    name: str
    artists: List[Artist] = field(default_factory=list)
    album: Optional[Album] = None
    duration_ms: int = 0
    explicit: bool = False

    @property
    def uri(self) -> str:
        return f"spotify:track:{self.id}"

    @classmethod
    def from_spotify(cls, data: Optional[dict]) -> Optional["Track"]:
        """Build from a full or simplified track.

        Local files and unavailable tracks come back without an id and are
        dropped (None). Simplified tracks have no album; callers that know the
        album set it afterwards.
        """
        if not data or not data.get("id"):
            return None
        if data.get("type", "track") != "track":
            return None
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            artists=_artists(data.get("artists")),
            album=Album.from_spotify(data.get("album")),
            duration_ms=int(data.get("duration_ms") or 0),
            explicit=bool(data.get("explicit", False)),
        )


@dataclass
class Playlist:
    id: str
    name: str
    owner_id: str = ""
    owner_name: str = ""
    collaborative: bool = False
    description: str = ""

    @property
    def uri(self) -> str:
        return f"spotify:playlist:{self.id}"

    @classmethod
    def from_spotify(cls, data: Optional[dict]) -> Optional["Playlist"]:
        if not data or not data.get("id"):
            return None
        owner = data.get("owner") or {}
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            owner_id=owner.get("id") or "",
            owner_name=owner.get("display_name") or owner.get("id") or "",
            collaborative=bool(data.get("collaborative", False)),
            description=data.get("description") or "",
        )


@dataclass
class Category:
    id: str
    name: str

    @classmethod
    def from_spotify(cls, data: dict) -> "Category":
        return cls(id=data["id"], name=data.get("name") or "")


@dataclass
class Device:
    id: str
    name: str
    type: str = ""
    is_active: bool = False
    volume_percent: Optional[int] = None

    @classmethod
    def from_spotify(cls, data: Optional[dict]) -> Optional["Device"]:
        # Restricted devices can be listed without an id
        if not data or not data.get("id"):
            return None
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            type=data.get("type") or "",
            is_active=bool(data.get("is_active", False)),
            volume_percent=data.get("volume_percent"),
        )


@dataclass
class User:
    id: str
    display_name: str = ""

    @classmethod
    def from_spotify(cls, data: dict) -> "User":
        return cls(id=data["id"], display_name=data.get("display_name") or "")


@dataclass
class SearchResults:
    tracks: List[Track] = field(default_factory=list)
    artists: List[Artist] = field(default_factory=list)
    albums: List[Album] = field(default_factory=list)
    playlists: List[Playlist] = field(default_factory=list)


@dataclass
class LyricResult:
    """Lyrics lookup outcome; ``lyrics`` is None when no provider had a match."""
    query: str
    lyrics: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.lyrics is not None
