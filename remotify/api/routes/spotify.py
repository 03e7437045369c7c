"""Spotify OAuth: auth URL, callback and logout."""
import asyncio
import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from remotify.api.state import start_runtime, stop_runtime
from remotify.config import REMOTIFY_WEB_ORIGIN, SPOTIFY_CLIENT_ID, SPOTIFY_TOKEN_CACHE
from remotify.core.spotify_client import (
    exchange_code_and_save_token,
    get_authorize_url,
    get_spotify_client,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/auth-url")
def get_auth_url(request: Request):
    """Return Spotify OAuth authorization URL and whether the user is logged in."""
    if not SPOTIFY_CLIENT_ID:
        return {"auth_url": None, "error": "SPOTIFY_CLIENT_ID not set", "logged_in": False}
    logged_in = getattr(request.app.state, "remotify", None) is not None
    return {"auth_url": get_authorize_url(), "logged_in": logged_in}


@router.get("/callback")
async def spotify_callback(request: Request, code: str | None = None):
    """Exchange code for tokens, start handling requests, then redirect to web app or show success."""
    if not code:
        return HTMLResponse(
            "<body><p>Missing authorization code. Try logging in again.</p></body>",
            status_code=400,
        )
    if not await asyncio.to_thread(exchange_code_and_save_token, code):
        return HTMLResponse(
            "<body><p>Failed to link Spotify. Check backend logs and try again.</p></body>",
            status_code=500,
        )
    sp = await asyncio.to_thread(get_spotify_client)
    if sp is not None and getattr(request.app.state, "remotify", None) is None:
        start_runtime(request.app, sp)
    if REMOTIFY_WEB_ORIGIN:
        redirect_url = f"{REMOTIFY_WEB_ORIGIN.rstrip('/')}/connect?spotify=success"
        return RedirectResponse(url=redirect_url, status_code=302)
    return HTMLResponse(
        "<body><p>Spotify linked successfully. You can close this window.</p></body>"
    )


@router.post("/logout")
async def logout(request: Request):
    """Clear the Spotify token and stop handling requests."""
    await stop_runtime(request.app)
    try:
        if SPOTIFY_TOKEN_CACHE.exists():
            SPOTIFY_TOKEN_CACHE.unlink()
    except OSError as e:
        logger.warning("Could not remove token cache: %s", e)
    return {"ok": True}
