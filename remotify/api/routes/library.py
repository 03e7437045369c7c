"""Current user's library: saved items, follows, playlist edits and the queue."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from remotify.api.serializers import to_dict
from remotify.api.state import AppState, get_state
from remotify.core.state import LIKED_TRACKS_ID, RECENTLY_PLAYED_TRACKS_ID, TOP_TRACKS_ID
from remotify.models.entities import Album, Artist, Playlist, Track
from remotify.models.requests import (
    ITEM_KINDS,
    AddToLibrary,
    AddTrackToPlaylist,
    AddTrackToQueue,
    DeleteFromLibrary,
    DeleteTrackFromPlaylist,
    GetCurrentUser,
    GetUserFollowedArtists,
    GetUserPlaylists,
    GetUserRecentlyPlayedTracks,
    GetUserSavedAlbums,
    GetUserSavedTracks,
    GetUserTopTracks,
    ItemId,
)

router = APIRouter()

_TRACK_LIST_REQUESTS = {
    LIKED_TRACKS_ID: GetUserSavedTracks,
    TOP_TRACKS_ID: GetUserTopTracks,
    RECENTLY_PLAYED_TRACKS_ID: GetUserRecentlyPlayedTracks,
}


@router.get("")
def get_library(state: AppState = Depends(get_state)):
    """Return the in-memory library as last fetched (see POST /refresh)."""
    with state.shared.data.read() as data:
        user_data = data.user_data
        return {
            "user": to_dict(user_data.user) if user_data.user else None,
            "playlists": [to_dict(p) for p in user_data.playlists],
            "followed_artists": [to_dict(a) for a in user_data.followed_artists],
            "saved_albums": [to_dict(a) for a in user_data.saved_albums],
            "saved_tracks": [to_dict(t) for t in user_data.saved_tracks],
        }


@router.post("/refresh")
async def refresh_library(state: AppState = Depends(get_state)):
    """Refetch user, playlists, followed artists, saved albums and saved tracks."""
    for request in (
        GetCurrentUser(),
        GetUserPlaylists(),
        GetUserFollowedArtists(),
        GetUserSavedAlbums(),
        GetUserSavedTracks(),
    ):
        await state.submit(request)
    return {"ok": True}


@router.get("/playlists/modifiable")
def get_modifiable_playlists(state: AppState = Depends(get_state)):
    with state.shared.data.read() as data:
        return [to_dict(p) for p in data.user_data.modifiable_playlists()]


@router.get("/tracks/{tracks_id}")
async def get_track_list(tracks_id: str, state: AppState = Depends(get_state)):
    """Track lists by id: liked-tracks, top-tracks or recently-played-tracks."""
    request_type = _TRACK_LIST_REQUESTS.get(tracks_id)
    if request_type is None:
        raise HTTPException(status_code=404, detail=f"Unknown track list '{tracks_id}'.")
    await state.submit(request_type())
    with state.shared.data.read() as data:
        tracks = data.get_tracks_by_id(tracks_id) or []
        return [to_dict(t) for t in tracks]


class ArtistBody(BaseModel):
    id: str
    name: str = ""


class AlbumBody(BaseModel):
    id: str
    name: str = ""
    release_date: str = ""
    release_date_precision: str = "day"
    album_type: str = "album"
    artists: List[ArtistBody] = []
    image_url: Optional[str] = None


class LibraryItemBody(BaseModel):
    """An entity as returned by the browse/library routes, tagged with its ``kind``.

    It is stored as-is at the front of the local library, so send every field
    you want listed before the next refresh.
    """
    kind: str
    id: str
    name: str = ""
    artists: List[ArtistBody] = []
    # track
    album: Optional[AlbumBody] = None
    duration_ms: int = 0
    explicit: bool = False
    # album
    release_date: str = ""
    release_date_precision: str = "day"
    album_type: str = "album"
    image_url: Optional[str] = None
    # playlist
    owner_id: str = ""
    owner_name: str = ""
    collaborative: bool = False
    description: str = ""


def _artists(bodies: List[ArtistBody]) -> List[Artist]:
    return [Artist(id=a.id, name=a.name) for a in bodies]


def _album(body: AlbumBody) -> Album:
    return Album(
        id=body.id,
        name=body.name,
        release_date=body.release_date,
        release_date_precision=body.release_date_precision,
        album_type=body.album_type,
        artists=_artists(body.artists),
        image_url=body.image_url,
    )


def _item_from_body(body: LibraryItemBody):
    if body.kind == "track":
        return Track(
            id=body.id,
            name=body.name,
            artists=_artists(body.artists),
            album=_album(body.album) if body.album else None,
            duration_ms=body.duration_ms,
            explicit=body.explicit,
        )
    if body.kind == "album":
        return Album(
            id=body.id,
            name=body.name,
            release_date=body.release_date,
            release_date_precision=body.release_date_precision,
            album_type=body.album_type,
            artists=_artists(body.artists),
            image_url=body.image_url,
        )
    if body.kind == "artist":
        return Artist(id=body.id, name=body.name)
    if body.kind == "playlist":
        return Playlist(
            id=body.id,
            name=body.name,
            owner_id=body.owner_id,
            owner_name=body.owner_name,
            collaborative=body.collaborative,
            description=body.description,
        )
    raise HTTPException(status_code=400, detail=f"'kind' must be one of {', '.join(ITEM_KINDS)}.")


@router.post("/items")
async def add_to_library(body: LibraryItemBody, state: AppState = Depends(get_state)):
    """Save a track/album, follow an artist/playlist. No-op when already saved."""
    await state.submit(AddToLibrary(_item_from_body(body)))
    return {"ok": True}


@router.delete("/items/{kind}/{item_id}")
async def delete_from_library(kind: str, item_id: str, state: AppState = Depends(get_state)):
    try:
        target = ItemId(kind, item_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    await state.submit(DeleteFromLibrary(target))
    return {"ok": True}


class TrackBody(BaseModel):
    track_id: str


@router.post("/queue")
async def add_to_queue(body: TrackBody, state: AppState = Depends(get_state)):
    await state.submit(AddTrackToQueue(body.track_id))
    return {"ok": True}


@router.post("/playlists/{playlist_id}/tracks")
async def add_track_to_playlist(playlist_id: str, body: TrackBody, state: AppState = Depends(get_state)):
    await state.submit(AddTrackToPlaylist(playlist_id, body.track_id))
    return {"ok": True}


@router.delete("/playlists/{playlist_id}/tracks/{track_id}")
async def delete_track_from_playlist(
    playlist_id: str, track_id: str, state: AppState = Depends(get_state)
):
    await state.submit(DeleteTrackFromPlaylist(playlist_id, track_id))
    return {"ok": True}
