"""Spotify API client via Spotipy; uses cached OAuth token.

RemoteFacade is the async surface the dispatcher talks to. spotipy is
blocking, so every call runs in the default executor; failures come back as
RemoteError.
"""
import asyncio
import logging
from typing import Any, Callable, List, Optional, Tuple

import requests
import spotipy
import syncedlyrics
from spotipy.cache_handler import CacheFileHandler
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from remotify.config import (
    SPOTIFY_CLIENT_ID,
    SPOTIFY_CLIENT_SECRET,
    SPOTIFY_REDIRECT_URI,
    SPOTIFY_SCOPES,
    SPOTIFY_TOKEN_CACHE,
    ensure_data_dir,
)
from remotify.core.errors import RemoteError

logger = logging.getLogger(__name__)

HTTP_TIMEOUT_SEC = 10


def _auth_manager() -> Optional[SpotifyOAuth]:
    if not SPOTIFY_CLIENT_ID or not SPOTIFY_CLIENT_SECRET:
        return None
    ensure_data_dir()
    cache = CacheFileHandler(cache_path=str(SPOTIFY_TOKEN_CACHE))
    return SpotifyOAuth(
        client_id=SPOTIFY_CLIENT_ID,
        client_secret=SPOTIFY_CLIENT_SECRET,
        redirect_uri=SPOTIFY_REDIRECT_URI,
        scope=SPOTIFY_SCOPES,
        cache_handler=cache,
        open_browser=False,
    )


def get_spotify_client() -> Optional[spotipy.Spotify]:
    """Return an authenticated Spotipy Spotify client, or None if not logged in."""
    auth = _auth_manager()
    if auth is None:
        return None
    token_info = auth.validate_token(auth.cache_handler.get_cached_token())
    if token_info is None:
        return None
    return spotipy.Spotify(auth_manager=auth, requests_timeout=HTTP_TIMEOUT_SEC)


def get_authorize_url() -> Optional[str]:
    auth = _auth_manager()
    return auth.get_authorize_url() if auth is not None else None


def exchange_code_and_save_token(code: str) -> bool:
    """Exchange OAuth code for tokens and save to cache. Returns True on success."""
    auth = _auth_manager()
    if auth is None:
        return False
    try:
        auth.get_access_token(code=code, check_cache=False)
        return True
    except (SpotifyOauthError, requests.RequestException) as e:
        logger.warning("Spotify token exchange failed: %s", e)
        return False


def _to_remote_error(operation: str, exc: Exception) -> RemoteError:
    if isinstance(exc, spotipy.SpotifyException):
        status = exc.http_status
        return RemoteError(
            f"Spotify {operation} failed: {exc.msg}",
            details={"operation": operation, "original_error": str(exc)},
            http_status=status,
            is_rate_limit=status == 429,
            is_auth_error=status in (401, 403),
            is_not_found=status == 404,
        )
    if isinstance(exc, SpotifyOauthError):
        return RemoteError(
            f"Spotify {operation} failed: not authorized ({exc})",
            details={"operation": operation, "original_error": str(exc)},
            is_auth_error=True,
        )
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        status = exc.response.status_code
        return RemoteError(
            f"HTTP {operation} failed: {exc}",
            details={"operation": operation, "url": exc.response.url},
            http_status=status,
            is_rate_limit=status == 429,
            is_auth_error=status in (401, 403),
            is_not_found=status == 404,
        )
    return RemoteError(
        f"{operation} failed: {exc}",
        details={"operation": operation, "original_error": repr(exc)},
    )


class RemoteFacade:
    """Typed async calls against the Spotify Web API.

    Methods return decoded JSON (dicts/lists) exactly as spotipy does;
    turning them into entities is the dispatcher's job.
    """

    def __init__(self, spotify: spotipy.Spotify, http: Optional[requests.Session] = None) -> None:
        self._spotify = spotify
        self._http = http or requests.Session()
        # (name, device_id) of a local playback session, once one is running
        self.session_device: Optional[Tuple[str, str]] = None

    async def _call(self, operation: str, fn: Callable[..., Any], *args, **kwargs) -> Any:
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except (spotipy.SpotifyException, SpotifyOauthError, requests.RequestException) as e:
            raise _to_remote_error(operation, e) from e

    async def _spotify_call(self, name: str, *args, **kwargs) -> Any:
        return await self._call(name, getattr(self._spotify, name), *args, **kwargs)

    # --- raw authenticated fetches ---

    async def access_token(self) -> str:
        return await self._call(
            "access_token", self._spotify.auth_manager.get_access_token, as_dict=False
        )

    def _get_json(self, url: str, token: str) -> dict:
        resp = self._http.get(
            url, headers={"Authorization": f"Bearer {token}"}, timeout=HTTP_TIMEOUT_SEC
        )
        resp.raise_for_status()
        return resp.json()

    async def fetch_url(self, url: str) -> dict:
        """GET a continuation URL (``next`` of a paging object) with the user's token."""
        token = await self.access_token()
        try:
            return await self._call("fetch_url", self._get_json, url, token)
        except ValueError as e:
            raise RemoteError(f"Malformed response from {url}", details={"url": url}) from e

    def _get_bytes(self, url: str) -> bytes:
        resp = self._http.get(url, timeout=HTTP_TIMEOUT_SEC)
        resp.raise_for_status()
        return resp.content

    async def fetch_image(self, url: str) -> bytes:
        return await self._call("fetch_image", self._get_bytes, url)

    async def find_lyrics(self, query: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(syncedlyrics.search, query)
        except Exception as e:
            # syncedlyrics providers raise whatever their HTTP stack raises
            raise RemoteError(
                f"Lyrics lookup failed for {query!r}: {e}", details={"query": query}
            ) from e

    # --- player ---

    async def current_playback(self) -> Optional[dict]:
        return await self._spotify_call("current_playback", additional_types="track,episode")

    async def devices(self) -> List[dict]:
        result = await self._spotify_call("devices")
        return (result or {}).get("devices") or []

    async def transfer_playback(self, device_id: str, force_play: bool) -> None:
        await self._spotify_call("transfer_playback", device_id, force_play=force_play)

    async def next_track(self, device_id: Optional[str]) -> None:
        await self._spotify_call("next_track", device_id=device_id)

    async def previous_track(self, device_id: Optional[str]) -> None:
        await self._spotify_call("previous_track", device_id=device_id)

    async def resume_playback(self, device_id: Optional[str]) -> None:
        await self._spotify_call("start_playback", device_id=device_id)

    async def start_playback(
        self,
        device_id: Optional[str],
        context_uri: Optional[str] = None,
        uris: Optional[List[str]] = None,
        offset: Optional[int] = None,
    ) -> None:
        await self._spotify_call(
            "start_playback",
            device_id=device_id,
            context_uri=context_uri,
            uris=uris,
            offset={"position": offset} if offset is not None else None,
        )

    async def pause_playback(self, device_id: Optional[str]) -> None:
        await self._spotify_call("pause_playback", device_id=device_id)

    async def seek_track(self, position_ms: int, device_id: Optional[str]) -> None:
        await self._spotify_call("seek_track", position_ms, device_id=device_id)

    async def repeat(self, state: str, device_id: Optional[str]) -> None:
        await self._spotify_call("repeat", state, device_id=device_id)

    async def shuffle(self, state: bool, device_id: Optional[str]) -> None:
        await self._spotify_call("shuffle", state, device_id=device_id)

    async def volume(self, percent: int, device_id: Optional[str]) -> None:
        await self._spotify_call("volume", percent, device_id=device_id)

    async def add_to_queue(self, track_uri: str) -> None:
        await self._spotify_call("add_to_queue", track_uri)

    # --- user ---

    async def current_user(self) -> dict:
        return await self._spotify_call("current_user")

    async def current_user_playlists(self, limit: int) -> dict:
        return await self._spotify_call("current_user_playlists", limit=limit)

    async def current_user_saved_tracks(self, limit: int) -> dict:
        return await self._spotify_call("current_user_saved_tracks", limit=limit)

    async def current_user_saved_albums(self, limit: int) -> dict:
        return await self._spotify_call("current_user_saved_albums", limit=limit)

    async def current_user_top_tracks(self, limit: int) -> dict:
        return await self._spotify_call("current_user_top_tracks", limit=limit)

    async def current_user_recently_played(self, limit: int) -> dict:
        return await self._spotify_call("current_user_recently_played", limit=limit)

    async def current_user_followed_artists(self, limit: int) -> dict:
        """Cursor page of artists; the API wraps it as ``{"artists": page}``."""
        return await self._spotify_call("current_user_followed_artists", limit=limit)

    # --- library ---

    async def saved_tracks_contains(self, track_ids: List[str]) -> List[bool]:
        return await self._spotify_call("current_user_saved_tracks_contains", tracks=track_ids)

    async def saved_tracks_add(self, track_ids: List[str]) -> None:
        await self._spotify_call("current_user_saved_tracks_add", tracks=track_ids)

    async def saved_tracks_delete(self, track_ids: List[str]) -> None:
        await self._spotify_call("current_user_saved_tracks_delete", tracks=track_ids)

    async def saved_albums_contains(self, album_ids: List[str]) -> List[bool]:
        return await self._spotify_call("current_user_saved_albums_contains", albums=album_ids)

    async def saved_albums_add(self, album_ids: List[str]) -> None:
        await self._spotify_call("current_user_saved_albums_add", albums=album_ids)

    async def saved_albums_delete(self, album_ids: List[str]) -> None:
        await self._spotify_call("current_user_saved_albums_delete", albums=album_ids)

    async def following_artists(self, artist_ids: List[str]) -> List[bool]:
        return await self._spotify_call("current_user_following_artists", ids=artist_ids)

    async def follow_artists(self, artist_ids: List[str]) -> None:
        await self._spotify_call("user_follow_artists", ids=artist_ids)

    async def unfollow_artists(self, artist_ids: List[str]) -> None:
        await self._spotify_call("user_unfollow_artists", ids=artist_ids)

    async def playlist_is_following(self, playlist_id: str, user_ids: List[str]) -> List[bool]:
        return await self._spotify_call("playlist_is_following", playlist_id, user_ids)

    async def follow_playlist(self, playlist_id: str) -> None:
        await self._spotify_call("current_user_follow_playlist", playlist_id)

    async def unfollow_playlist(self, playlist_id: str) -> None:
        await self._spotify_call("current_user_unfollow_playlist", playlist_id)

    async def playlist_remove_all_occurrences(self, playlist_id: str, track_ids: List[str]) -> None:
        await self._spotify_call(
            "playlist_remove_all_occurrences_of_items", playlist_id, track_ids
        )

    async def playlist_add_items(self, playlist_id: str, track_ids: List[str]) -> None:
        await self._spotify_call("playlist_add_items", playlist_id, track_ids)

    # --- catalog ---

    async def playlist(self, playlist_id: str) -> dict:
        return await self._spotify_call("playlist", playlist_id)

    async def album(self, album_id: str) -> dict:
        return await self._spotify_call("album", album_id)

    async def artist(self, artist_id: str) -> dict:
        return await self._spotify_call("artist", artist_id)

    async def artist_top_tracks(self, artist_id: str) -> List[dict]:
        result = await self._spotify_call("artist_top_tracks", artist_id, country="from_token")
        return (result or {}).get("tracks") or []

    async def artist_related_artists(self, artist_id: str) -> List[dict]:
        result = await self._spotify_call("artist_related_artists", artist_id)
        return (result or {}).get("artists") or []

    async def artist_albums(self, artist_id: str, include_groups: str, limit: int) -> dict:
        return await self._spotify_call(
            "artist_albums", artist_id, include_groups=include_groups, limit=limit
        )

    async def search(self, query: str, search_type: str) -> dict:
        """Search one category; the response is ``{"<type>s": page}``."""
        return await self._spotify_call("search", query, limit=50, type=search_type)

    async def recommendations(
        self, seed_artists: List[str], seed_tracks: Optional[List[str]], limit: int
    ) -> List[dict]:
        result = await self._spotify_call(
            "recommendations", seed_artists=seed_artists, seed_tracks=seed_tracks, limit=limit
        )
        return (result or {}).get("tracks") or []

    async def categories(self, limit: int) -> dict:
        result = await self._spotify_call("categories", country=None, locale="en_US", limit=limit)
        return (result or {}).get("categories") or {}

    async def category_playlists(self, category_id: str, limit: int) -> dict:
        result = await self._spotify_call("category_playlists", category_id, limit=limit)
        return (result or {}).get("playlists") or {}
