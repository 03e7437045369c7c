"""Runtime objects shared by the routes (injected via Depends)."""
import logging
from typing import Optional

import spotipy
from fastapi import FastAPI, HTTPException, Request

from remotify.config import AppConfig, load_app_config
from remotify.core.dispatcher import RequestDispatcher
from remotify.core.errors import ContractViolationError, PreconditionError, RemoteError
from remotify.core.spotify_client import RemoteFacade
from remotify.core.state import SharedAppState
from remotify.core.worker import RequestWorker

logger = logging.getLogger(__name__)


class AppState:
    """Shared app state plus the dispatcher and the worker that feeds it."""

    def __init__(self, spotify: RemoteFacade, app_config: Optional[AppConfig] = None) -> None:
        self.spotify = spotify
        self.shared = SharedAppState(app_config or load_app_config())
        self.dispatcher = RequestDispatcher(spotify)
        self.worker = RequestWorker(self.dispatcher, self.shared)

    async def submit(self, request) -> None:
        """Run ``request`` through the queue; map dispatcher errors to HTTP errors."""
        try:
            await self.worker.submit(request)
        except PreconditionError as e:
            raise HTTPException(status_code=409, detail=e.message)
        except RemoteError as e:
            status = 401 if e.is_auth_error else 429 if e.is_rate_limit else 502
            raise HTTPException(status_code=status, detail=e.message)
        except ContractViolationError as e:
            raise HTTPException(status_code=502, detail=e.message)


def start_runtime(app: FastAPI, spotify: spotipy.Spotify) -> AppState:
    """Create the runtime for a logged-in Spotify client and start its worker."""
    state = AppState(RemoteFacade(spotify))
    state.worker.start()
    app.state.remotify = state
    logger.info("Request worker started")
    return state


async def stop_runtime(app: FastAPI) -> None:
    state: Optional[AppState] = getattr(app.state, "remotify", None)
    if state is None:
        return
    await state.worker.stop()
    app.state.remotify = None


def get_state(request: Request) -> AppState:
    state: Optional[AppState] = getattr(request.app.state, "remotify", None)
    if state is None:
        raise HTTPException(
            status_code=503,
            detail="Spotify not linked. Open /api/spotify/auth-url to log in.",
        )
    return state
