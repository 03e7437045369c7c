"""Search, contexts, recommendations, browse categories and lyrics."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from remotify.api.serializers import context_to_dict, to_dict
from remotify.api.state import AppState, get_state
from remotify.models.context import CONTEXT_KINDS, ContextId
from remotify.models.entities import Artist, Category, Track
from remotify.models.requests import (
    GetBrowseCategories,
    GetBrowseCategoryPlaylists,
    GetContext,
    GetLyric,
    GetRecommendations,
    Search,
)

router = APIRouter()


@router.get("/search")
async def search(q: str = Query(min_length=1), state: AppState = Depends(get_state)):
    await state.submit(Search(q))
    with state.shared.data.read() as data:
        results = data.caches.search.peek(q)
    if results is None:
        # Evicted between the request and this read
        raise HTTPException(status_code=503, detail="Search results were evicted, retry.")
    return to_dict(results)


@router.get("/context/{kind}/{context_id}")
async def get_context(kind: str, context_id: str, state: AppState = Depends(get_state)):
    if kind not in CONTEXT_KINDS:
        raise HTTPException(status_code=400, detail=f"'kind' must be one of {', '.join(CONTEXT_KINDS)}.")
    target = ContextId(kind, context_id)
    await state.submit(GetContext(target))
    with state.shared.data.read() as data:
        context = data.caches.context.peek(target.uri)
    if context is None:
        raise HTTPException(status_code=503, detail="Context was evicted, retry.")
    return context_to_dict(context)


@router.get("/recommendations")
async def get_recommendations(
    artist_id: Optional[str] = None,
    track_id: Optional[str] = None,
    track_artist_ids: List[str] = Query(default=[]),
    state: AppState = Depends(get_state),
):
    """Recommendations seeded by an artist, or by a track (plus that track's artists)."""
    if track_id:
        seed = Track(id=track_id, name="", artists=[Artist(id=a, name="") for a in track_artist_ids])
    elif artist_id:
        seed = Artist(id=artist_id, name="")
    else:
        raise HTTPException(status_code=400, detail="Send either 'artist_id' or 'track_id'.")
    request = GetRecommendations(seed)
    await state.submit(request)
    with state.shared.data.read() as data:
        tracks = data.caches.tracks.peek(request.fingerprint) or []
        return [to_dict(t) for t in tracks]


@router.get("/categories")
async def get_categories(state: AppState = Depends(get_state)):
    await state.submit(GetBrowseCategories())
    with state.shared.data.read() as data:
        return [to_dict(c) for c in data.browse.categories]


@router.get("/categories/{category_id}/playlists")
async def get_category_playlists(category_id: str, state: AppState = Depends(get_state)):
    await state.submit(GetBrowseCategoryPlaylists(Category(id=category_id, name="")))
    with state.shared.data.read() as data:
        playlists = data.browse.category_playlists.get(category_id) or []
        return [to_dict(p) for p in playlists]


@router.get("/lyrics")
async def get_lyrics(track: str, artists: str, state: AppState = Depends(get_state)):
    request = GetLyric(track=track, artists=artists)
    await state.submit(request)
    with state.shared.data.read() as data:
        result = data.caches.lyrics.peek(request.query)
    if result is None or not result.found:
        raise HTTPException(status_code=404, detail="No lyrics found.")
    return to_dict(result)
