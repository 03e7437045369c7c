"""Detached background jobs: the post-action playback refresh and the supervisor that owns them."""
import asyncio
import logging
from typing import Awaitable, Callable, Coroutine, Optional, Set

from remotify.config import REFRESH_INTERVAL_SEC, REFRESH_ROUNDS
from remotify.core.errors import RemotifyError
from remotify.core.state import SharedAppState

logger = logging.getLogger(__name__)

RefreshStep = Callable[[SharedAppState], Awaitable[None]]


class TaskSupervisor:
    """Keeps fire-and-forget tasks alive until they finish and logs the ones that crash.

    Nothing awaits these tasks on the request path; ``drain`` and ``shutdown``
    exist for tests and app shutdown.
    """

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine, name: Optional[str] = None) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task %s crashed: %r", task.get_name(), exc)

    async def drain(self) -> None:
        """Wait until every running task (including ones spawned meanwhile) is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


class BackgroundRefresher:
    """Re-polls playback a few times after a player action.

    Spotify takes a moment to reflect a change, so one refresh right after the
    action would usually read the old state. Each round sleeps, then runs every
    step; errors are logged and the round count is fixed regardless.
    """

    def __init__(
        self,
        supervisor: TaskSupervisor,
        refresh_playback: RefreshStep,
        refresh_cover: Optional[RefreshStep] = None,
        rounds: int = REFRESH_ROUNDS,
        interval_sec: float = REFRESH_INTERVAL_SEC,
    ) -> None:
        self._supervisor = supervisor
        self._refresh_playback = refresh_playback
        self._refresh_cover = refresh_cover
        self.rounds = rounds
        self.interval_sec = interval_sec

    def schedule(self, state: SharedAppState) -> asyncio.Task:
        return self._supervisor.spawn(self._run(state), name="playback-refresh")

    async def _run(self, state: SharedAppState) -> None:
        for _ in range(self.rounds):
            await asyncio.sleep(self.interval_sec)
            try:
                await self._refresh_playback(state)
            except RemotifyError as e:
                logger.error("Failed to refresh the player's playback: %s", e)
            except Exception:
                logger.exception("Unexpected error while refreshing the player's playback")
            if self._refresh_cover is None:
                continue
            try:
                await self._refresh_cover(state)
            except RemotifyError as e:
                logger.error("Failed to get the current track's cover image: %s", e)
            except Exception:
                logger.exception("Unexpected error while getting the current track's cover image")
