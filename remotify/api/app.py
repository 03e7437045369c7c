"""FastAPI app, CORS, and route registration."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from remotify.config import LOG_LEVEL, ensure_data_dir

# Configure logging in the worker process (so INFO logs are visible with uvicorn --reload)
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(levelname)s: %(name)s: %(message)s",
)

from remotify.api.state import AppState, get_state, start_runtime, stop_runtime
from remotify.core.spotify_client import get_spotify_client

# Import routes after state to avoid circular imports
from remotify.api.routes import browse, library, playback, spotify

__all__ = ["app", "AppState", "get_state"]

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_data_dir()
    app.state.remotify = None
    sp = get_spotify_client()
    if sp is None:
        logger.info("Spotify not linked yet; waiting for /api/spotify/callback")
    else:
        start_runtime(app, sp)

    yield

    await stop_runtime(app)


app = FastAPI(
    title="Remotify API",
    description="Remote control for Spotify playback and library",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(playback.router, prefix="/api/playback", tags=["playback"])
app.include_router(library.router, prefix="/api/library", tags=["library"])
app.include_router(browse.router, prefix="/api/browse", tags=["browse"])
app.include_router(spotify.router, prefix="/api/spotify", tags=["spotify"])
