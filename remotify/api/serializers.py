"""Turn state objects into JSON-ready dicts for responses."""
import dataclasses
from typing import Optional

from remotify.models.context import AlbumContext, ArtistContext, Context, PlaylistContext


def to_dict(obj) -> dict:
    return dataclasses.asdict(obj)


def context_to_dict(context: Context) -> dict:
    if isinstance(context, PlaylistContext):
        kind = "playlist"
    elif isinstance(context, AlbumContext):
        kind = "album"
    elif isinstance(context, ArtistContext):
        kind = "artist"
    else:
        raise TypeError(f"unknown context: {context!r}")
    return {"type": kind, **dataclasses.asdict(context)}


def empty_playback() -> dict:
    return {
        "is_playing": False,
        "device_id": None,
        "device_name": None,
        "context_uri": None,
        "cover_url": None,
        "track_id": None,
        "track_name": "",
        "album_name": "",
        "artist_name": "",
        "position_ms": 0,
        "duration_ms": 0,
        "shuffle_state": False,
        "repeat_state": "off",
        "volume_percent": None,
    }


def playback_to_dict(pb: Optional[dict]) -> dict:
    """Map a Spotify current_playback() payload to our API shape."""
    if not pb:
        return empty_playback()
    item = pb.get("item") or {}
    album = item.get("album") or {}
    artists = item.get("artists") or []
    context = pb.get("context") or {}
    device = pb.get("device") or {}
    images = album.get("images") or []
    return {
        "is_playing": bool(pb.get("is_playing", False)),
        "device_id": device.get("id"),
        "device_name": device.get("name"),
        "context_uri": context.get("uri"),
        "cover_url": images[0]["url"] if images else None,
        "track_id": item.get("id"),
        "track_name": item.get("name", ""),
        "album_name": album.get("name", ""),
        "artist_name": ", ".join(a.get("name", "") for a in artists),
        "position_ms": int(pb.get("progress_ms") or 0),
        "duration_ms": int(item.get("duration_ms") or 0),
        "shuffle_state": bool(pb.get("shuffle_state", False)),
        "repeat_state": pb.get("repeat_state") or "off",
        "volume_percent": device.get("volume_percent"),
    }
