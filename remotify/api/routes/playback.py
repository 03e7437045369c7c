"""Player controls, current playback and devices."""
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Response
from pydantic import BaseModel, Field

from remotify.api.serializers import playback_to_dict, to_dict
from remotify.api.state import AppState, get_state
from remotify.models.context import ContextId
from remotify.models.requests import (
    ConnectDevice,
    ContextPlayback,
    GetCurrentPlayback,
    GetDevices,
    NextTrack,
    Player,
    PreviousTrack,
    Repeat,
    ResumePause,
    SeekTrack,
    Shuffle,
    StartPlayback,
    TransferPlayback,
    UrisPlayback,
    Volume,
)

router = APIRouter()


def _snapshot(state: AppState) -> dict:
    with state.shared.player.read() as player:
        return playback_to_dict(player.playback)


@router.get("")
async def get_playback(refresh: bool = False, state: AppState = Depends(get_state)):
    """Return the last known playback; ``refresh=true`` polls Spotify first."""
    if refresh:
        await state.submit(GetCurrentPlayback())
    return _snapshot(state)


@router.get("/cover")
def get_cover(state: AppState = Depends(get_state)):
    """Cover image of the current track, if it has been fetched already."""
    with state.shared.player.read() as player:
        url = player.current_playing_track_album_cover_url()
    if url is None:
        raise HTTPException(status_code=404, detail="Nothing is playing.")
    with state.shared.data.read() as data:
        image = data.caches.images.peek(url)
    if image is None:
        raise HTTPException(status_code=404, detail="Cover not fetched yet.")
    return Response(content=image, media_type="image/jpeg")


@router.get("/devices")
async def get_devices(refresh: bool = True, state: AppState = Depends(get_state)):
    if refresh:
        await state.submit(GetDevices())
    with state.shared.player.read() as player:
        return [to_dict(d) for d in player.devices]


class ConnectBody(BaseModel):
    device_id: Optional[str] = None


@router.post("/connect")
async def connect_device(body: ConnectBody | None = Body(None), state: AppState = Depends(get_state)):
    """Connect to ``device_id`` or, when omitted, to the default/first available device."""
    await state.submit(ConnectDevice(device_id=body.device_id if body else None))
    return {"ok": True}


class TransferBody(BaseModel):
    device_id: str
    force_play: bool = False


@router.post("/transfer")
async def transfer(body: TransferBody, state: AppState = Depends(get_state)):
    await state.submit(Player(TransferPlayback(body.device_id, body.force_play)))
    return {"ok": True}


@router.post("/next")
async def next_track(state: AppState = Depends(get_state)):
    await state.submit(Player(NextTrack()))
    return {"ok": True}


@router.post("/previous")
async def previous_track(state: AppState = Depends(get_state)):
    await state.submit(Player(PreviousTrack()))
    return {"ok": True}


@router.post("/toggle")
async def resume_pause(state: AppState = Depends(get_state)):
    await state.submit(Player(ResumePause()))
    return {"ok": True}


class SeekBody(BaseModel):
    position_ms: int = Field(ge=0)


@router.post("/seek")
async def seek(body: SeekBody, state: AppState = Depends(get_state)):
    await state.submit(Player(SeekTrack(body.position_ms)))
    return {"ok": True}


@router.post("/repeat")
async def cycle_repeat(state: AppState = Depends(get_state)):
    await state.submit(Player(Repeat()))
    return {"ok": True}


@router.post("/shuffle")
async def toggle_shuffle(state: AppState = Depends(get_state)):
    await state.submit(Player(Shuffle()))
    return {"ok": True}


class VolumeBody(BaseModel):
    percent: int = Field(ge=0, le=100)


@router.post("/volume")
async def set_volume(body: VolumeBody, state: AppState = Depends(get_state)):
    await state.submit(Player(Volume(body.percent)))
    return {"ok": True}


class StartBody(BaseModel):
    """Either a context (album, playlist or artist URI) or a list of track ids."""
    context_uri: Optional[str] = None
    track_ids: Optional[List[str]] = None
    offset: Optional[int] = Field(default=None, ge=0)


@router.post("/start")
async def start_playback(body: StartBody, state: AppState = Depends(get_state)):
    if body.context_uri:
        try:
            context_id = ContextId.from_uri(body.context_uri)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        playback = ContextPlayback(context_id, body.offset)
    elif body.track_ids:
        playback = UrisPlayback(tuple(body.track_ids), body.offset)
    else:
        raise HTTPException(status_code=400, detail="Send either 'context_uri' or 'track_ids'.")
    await state.submit(Player(StartPlayback(playback)))
    return {"ok": True}
